import numpy as np
import pandas as pd
import pytest

from ntc_table.calibration import CalibrationCurve
from ntc_table.errors import TableInputError
from ntc_table.ntc import BetaThermistor, Divider, NtcCircuit, table_bounds
from ntc_table.table import build_table

BETA = BetaThermistor(10.0e3, 25.0, 3435.0)


@pytest.fixture(scope="module")
def curve():
    temps = np.arange(-40.0, 130.0, 10.0)
    return CalibrationCurve(temps, BETA.resistance_from_temperature(temps))


def test_spline_passes_through_calibration_points(curve):
    assert curve.resistance_from_temperature(20.0) == pytest.approx(BETA.resistance_from_temperature(20.0))
    assert curve.temperature_from_resistance(curve.res_ohm[3]) == pytest.approx(curve.temp_C[3])


@pytest.mark.parametrize("temp", [-12.7, 0.5, 37.3, 64.2])
def test_inverse_tracks_beta_model(curve, temp):
    r = BETA.resistance_from_temperature(temp)
    assert curve.temperature_from_resistance(r) == pytest.approx(temp, abs=0.1)


def test_inverse_is_flat_outside_the_data(curve):
    assert curve.temperature_from_resistance(1.0e9) == -40.0
    assert curve.temperature_from_resistance(1.0) == 120.0
    assert curve.resistance_from_temperature(200.0) == pytest.approx(curve.res_ohm[-1])


def test_inverse_preserves_shape_and_nan(curve):
    out = curve.temperature_from_resistance(np.array([[np.nan, -5.0], [1.0e4, 2.0e4]]))
    assert out.shape == (2, 2)
    assert np.isnan(out[0, 0]) and np.isnan(out[0, 1])
    assert out[1, 0] == pytest.approx(25.0, abs=0.1)


def test_from_frame_sorts_rows():
    df = pd.DataFrame({"temp_C": [50.0, 0.0, 25.0, -20.0], "res_ohm": [3600.0, 32600.0, 10000.0, 96000.0]})
    curve = CalibrationCurve.from_frame(df)
    assert list(curve.temp_C) == [-20.0, 0.0, 25.0, 50.0]


@pytest.mark.parametrize(
    "temps, res",
    [
        ([0.0, 10.0, 20.0], [3.0, 2.0, 1.0]),
        ([0.0, 10.0, 10.0, 20.0], [4.0, 3.0, 2.0, 1.0]),
        ([0.0, 10.0, 20.0, 30.0], [4.0, 3.0, 3.5, 1.0]),
        ([0.0, 10.0, 20.0, 30.0], [4.0, 3.0, 2.0, -1.0]),
        ([0.0, 10.0, 20.0, 300.0], [4.0, 3.0, 2.0, 1.0]),
        ([0.0, 10.0, np.nan, 30.0], [4.0, 3.0, 2.0, 1.0]),
    ],
)
def test_rejects_bad_calibration_data(temps, res):
    with pytest.raises(TableInputError):
        CalibrationCurve(np.array(temps), np.array(res))


def test_calibrated_circuit_builds_valid_table(curve, check_table):
    circuit = NtcCircuit(curve, Divider(10.0e3, 100.0, 1024))
    bounds = table_bounds(circuit, -20.0, 80.0)
    reference = circuit.reference_curve()
    table = build_table(reference, bounds.start_index, bounds.end_index, 0.2)
    check_table(table, reference)
