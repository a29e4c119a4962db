import pandas as pd

from ntc_table.cli.generate import main

SMALL_ARGS = [
    "--min-temp", "-20",
    "--max-temp", "80",
    "--r-ntc", "10k",
    "--t-nominal", "25",
    "--beta", "3435",
    "--r-pullup", "10k",
    "--r-iso", "100",
    "--adc-counts", "1024",
    "--max-error", "0.2",
]


def test_main_writes_outputs(tmp_path):
    out = tmp_path / "gen" / "table.c"
    stats = tmp_path / "gen" / "stats.csv"
    plot = tmp_path / "gen" / "error.png"
    rc = main(SMALL_ARGS + ["--out", str(out), "--stats-csv", str(stats), "--plot", str(plot)])
    assert rc == 0
    assert "read_thermistor" in out.read_text()
    df = pd.read_csv(stats)
    assert (df["max_error"] <= 0.2).all()
    assert plot.stat().st_size > 0


def test_main_prints_source_to_stdout(capsys):
    assert main(SMALL_ARGS) == 0
    captured = capsys.readouterr()
    assert "interp_segment_t" in captured.out
    assert "stats:" in captured.err


def test_main_reads_config_and_applies_overrides(tmp_path, capsys):
    cfg = tmp_path / "ntc.yaml"
    cfg.write_text(
        "min_temp_C: -20\nmax_temp_C: 80\nr_ntc_ohm: 10k\nbeta_K: 3435\n"
        "r_pullup_ohm: 10k\nr_iso_ohm: 100\nadc_counts: 1024\nmax_error_C: 5.0\n"
    )
    assert main(["--config", str(cfg), "--max-error", "0.2"]) == 0
    assert "Max interpolation error: 0.20000000" in capsys.readouterr().out


def test_main_calibration_csv(tmp_path):
    csv = tmp_path / "ntc.csv"
    csv.write_text(
        "temp_C,res_ohm\n-40,336k\n-20,97k\n0,32.6k\n25,10k\n50,3.6k\n80,1.25k\n100,680\n"
    )
    out = tmp_path / "table.c"
    args = SMALL_ARGS + ["--calibration-csv", str(csv), "--out", str(out)]
    assert main(args) == 0
    assert "calibration table ntc.csv" in out.read_text()


def test_main_reports_input_errors(caplog):
    assert main(SMALL_ARGS + ["--beta", "10"]) == 2
    assert any("beta" in r.getMessage() for r in caplog.records)


def test_main_missing_config(tmp_path):
    assert main(["--config", str(tmp_path / "missing.yaml")]) == 2
