import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from ntc_table.ntc import BetaThermistor, Divider, NtcCircuit, table_bounds
from ntc_table.table import build_table


@pytest.fixture(scope="session")
def example_circuit():
    # 33k NTC @ 25 C, beta 3950 K, 22.1k pullup, 1.3k isolation, 12-bit ADC.
    return NtcCircuit(BetaThermistor(33.0e3, 25.0, 3950.0), Divider(22.1e3, 1.3e3, 4096))


@pytest.fixture(scope="session")
def example_reference(example_circuit):
    return example_circuit.reference_curve()


@pytest.fixture(scope="session")
def example_bounds(example_circuit):
    return table_bounds(example_circuit, -30.0, 90.0)


@pytest.fixture(scope="session")
def example_table(example_reference, example_bounds):
    return build_table(example_reference, example_bounds.start_index, example_bounds.end_index, 0.1)


@pytest.fixture(scope="session")
def decay_reference():
    return 80.0 * np.exp(-np.arange(1000) / 300.0)


@pytest.fixture(scope="session")
def small_table(decay_reference):
    return build_table(decay_reference, 0, 999, 0.05)


def assert_table_invariants(table, reference):
    """Contiguous coverage and the error bound at every covered index."""
    segs, stats = table.segments, table.stats
    assert segs[0].start_index == table.start_index
    for k in range(len(segs) - 1):
        assert segs[k + 1].start_index == segs[k].start_index + stats[k].n_points
    assert segs[-1].start_index + stats[-1].n_points - 1 == table.end_index
    assert sum(s.n_points for s in stats) == table.end_index - table.start_index + 1

    idx = np.arange(table.start_index, table.end_index + 1)
    err = np.abs(table.evaluate(idx) / 128.0 - np.asarray(reference)[idx])
    assert err.max() <= table.max_error


@pytest.fixture
def check_table():
    return assert_table_invariants
