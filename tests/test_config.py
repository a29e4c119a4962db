import dataclasses

import pytest

from ntc_table.config import GeneratorConfig, load_config, validate_config
from ntc_table.errors import TableInputError


def test_defaults_are_valid():
    cfg = GeneratorConfig()
    assert validate_config(cfg) is cfg


def test_load_config_parses_resistance_suffixes(tmp_path):
    path = tmp_path / "ntc.yaml"
    path.write_text("r_ntc_ohm: 10k\nr_pullup_ohm: 4.7k\nbeta_K: 3435\nadc_counts: 1024\nmax_error_C: 0.25\n")
    cfg = load_config(path)
    assert cfg.r_ntc_ohm == pytest.approx(10.0e3)
    assert cfg.r_pullup_ohm == pytest.approx(4.7e3)
    assert cfg.adc_counts == 1024
    assert cfg.beta_K == 3435
    assert cfg.min_temp_C == GeneratorConfig().min_temp_C


def test_load_config_empty_file_gives_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert load_config(path) == GeneratorConfig()


def test_load_config_rejects_unknown_keys(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("thermistor: 10k\n")
    with pytest.raises(ValueError, match="Unknown"):
        load_config(path)


def test_load_config_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


def test_updated_ignores_none():
    cfg = GeneratorConfig().updated(beta_K=None, max_error_C=0.2)
    assert cfg.beta_K == GeneratorConfig().beta_K
    assert cfg.max_error_C == 0.2


@pytest.mark.parametrize(
    "changes",
    [
        {"min_temp_C": 50.0, "max_temp_C": 10.0},
        {"min_temp_C": -300.0},
        {"max_temp_C": 300.0},
        {"r_ntc_ohm": 0.5},
        {"r_pullup_ohm": 2.0e8},
        {"r_iso_ohm": 0.1},
        {"t_nominal_C": 2100.0},
        {"beta_K": 50.0},
        {"beta_K": 2.0e5},
        {"adc_counts": 4},
        {"adc_counts": 70000},
        {"max_error_C": 1.0 / 256.0},
        {"max_error_C": 90.0},
        {"min_temp_C": float("nan")},
    ],
)
def test_validate_config_rejects_out_of_range(changes):
    cfg = dataclasses.replace(GeneratorConfig(), **changes)
    with pytest.raises(TableInputError):
        validate_config(cfg)


def test_calibration_csv_skips_beta_checks():
    cfg = dataclasses.replace(GeneratorConfig(), beta_K=0.0, calibration_csv="table.csv")
    assert validate_config(cfg) is cfg
