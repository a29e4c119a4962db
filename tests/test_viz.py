import matplotlib.pyplot as plt
import numpy as np

from ntc_table.viz import plot_table_error, table_error


def test_table_error_within_bound(small_table, decay_reference):
    err = table_error(small_table, decay_reference)
    assert err.shape == (1000,)
    assert np.abs(err).max() <= small_table.max_error


def test_plot_table_error(small_table, decay_reference):
    ax = plot_table_error(small_table, decay_reference)
    assert ax.get_xlabel() == "ADC count"
    assert len(ax.lines) == 3 + small_table.n_segments
    plt.close(ax.figure)
