"""Command line interface for thermistor interpolation table generation."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from ntc_table.calibration import CalibrationCurve
from ntc_table.codegen import render_c_source, render_segment_report
from ntc_table.config import GeneratorConfig, load_config, validate_config
from ntc_table.errors import FitError, QuantizationError, TableInputError
from ntc_table.io import parse_resistance
from ntc_table.ntc import BetaThermistor, Divider, NtcCircuit, table_bounds
from ntc_table.table import build_table

log = logging.getLogger("ntc_table")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=(
            "Generate a table of fixed-point line segments interpolating NTC thermistor "
            "temperature vs. ADC counts, with every table error below a bound."
        ),
        epilog="Example: ntc-table --min-temp -30 --max-temp 90 --r-ntc 33k --beta 3950 "
        "--r-pullup 22.1k --r-iso 1.3k --adc-counts 4096 --max-error 0.1",
    )
    parser.add_argument("--config", help="YAML file with generator settings; options below override it.")
    parser.add_argument("--min-temp", type=float, help="Lowest table temperature [°C].")
    parser.add_argument("--max-temp", type=float, help="Highest table temperature [°C].")
    parser.add_argument("--r-ntc", type=parse_resistance, help="NTC nominal resistance [Ω], e.g. 33k.")
    parser.add_argument("--t-nominal", type=float, help="Temperature of the NTC nominal resistance [°C].")
    parser.add_argument("--beta", type=float, help="NTC nominal β coefficient [K].")
    parser.add_argument(
        "--r-pullup",
        type=parse_resistance,
        help="Pullup resistor between the NTC and the positive supply [Ω].",
    )
    parser.add_argument(
        "--r-iso",
        type=parse_resistance,
        help="Isolation resistor between the NTC and ground [Ω].",
    )
    parser.add_argument("--adc-counts", type=int, help="ADC number of counts (4096 for 12-bit).")
    parser.add_argument("--max-error", type=float, help="Maximum interpolation error [°C].")
    parser.add_argument(
        "--calibration-csv",
        help="Temperature [°C], resistance [Ω] table to use instead of the β model.",
    )
    parser.add_argument("--out", help="Write the generated C source here instead of stdout.")
    parser.add_argument("--stats-csv", help="Write per-segment parameters and statistics to CSV.")
    parser.add_argument("--plot", help="Save a plot of the table error to this image file.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every accepted segment.")
    return parser


def config_from_args(args: argparse.Namespace) -> GeneratorConfig:
    cfg = load_config(args.config) if args.config else GeneratorConfig()
    return cfg.updated(
        min_temp_C=args.min_temp,
        max_temp_C=args.max_temp,
        r_ntc_ohm=args.r_ntc,
        t_nominal_C=args.t_nominal,
        beta_K=args.beta,
        r_pullup_ohm=args.r_pullup,
        r_iso_ohm=args.r_iso,
        adc_counts=args.adc_counts,
        max_error_C=args.max_error,
        calibration_csv=args.calibration_csv,
    )


def circuit_from_config(cfg: GeneratorConfig) -> NtcCircuit:
    if cfg.calibration_csv:
        thermistor = CalibrationCurve.from_csv(cfg.calibration_csv)
    else:
        thermistor = BetaThermistor(cfg.r_ntc_ohm, cfg.t_nominal_C, cfg.beta_K)
    return NtcCircuit(thermistor, Divider(cfg.r_pullup_ohm, cfg.r_iso_ohm, cfg.adc_counts))


def describe_inputs(cfg: GeneratorConfig) -> list[str]:
    if cfg.calibration_csv:
        lines = [f"NTC Thermistor: calibration table {Path(cfg.calibration_csv).name}"]
    else:
        lines = [
            f"NTC Thermistor: {cfg.r_ntc_ohm:.1f} Ohms nominal @ {cfg.t_nominal_C:.1f} deg. C.",
            f"                Beta = {cfg.beta_K:.0f} K",
        ]
    lines += [
        f"Pullup resistor: {cfg.r_pullup_ohm:.1f} Ohms nominal.",
        "  - The pullup resistor connects between the NTC and the",
        "    positive voltage supply.",
        f"Isolation resistor: {cfg.r_iso_ohm:.1f} Ohms nominal",
        "  - The isolation resistor connects between the NTC and GND.",
        f"Full ADC count range: 0-{cfg.adc_counts - 1}",
    ]
    return lines


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    try:
        cfg = validate_config(config_from_args(args))
        circuit = circuit_from_config(cfg)
        bounds = table_bounds(circuit, cfg.min_temp_C, cfg.max_temp_C)
        log.info(
            "Table temperatures: lowest = %.8f C, highest = %.8f C (ADC counts %d-%d)",
            bounds.realized_min_C,
            bounds.realized_max_C,
            bounds.start_index,
            bounds.end_index,
        )
        reference = circuit.reference_curve()
        table = build_table(reference, bounds.start_index, bounds.end_index, cfg.max_error_C)
    except (TableInputError, FitError, QuantizationError, ValueError, FileNotFoundError) as exc:
        log.error("%s", exc)
        return 2

    header = describe_inputs(cfg) + [
        f"Table range: {bounds.realized_min_C:.8f} to {bounds.realized_max_C:.8f} deg. C",
    ]
    source = render_c_source(table, header_lines=header)

    sys.stderr.write(render_segment_report(table))

    if args.out:
        out_path = Path(args.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(source)
        log.info("Wrote %s", out_path)
    else:
        sys.stdout.write(source)

    if args.stats_csv:
        stats_path = Path(args.stats_csv)
        stats_path.parent.mkdir(parents=True, exist_ok=True)
        table.to_frame().to_csv(stats_path, index=False)
        log.info("Wrote %s", stats_path)

    if args.plot:
        import matplotlib

        matplotlib.use("Agg")
        import matplotlib.pyplot as plt

        from ntc_table.viz import plot_table_error

        plot_path = Path(args.plot)
        plot_path.parent.mkdir(parents=True, exist_ok=True)
        ax = plot_table_error(table, reference)
        ax.figure.savefig(plot_path, dpi=150)
        plt.close(ax.figure)
        log.info("Wrote %s", plot_path)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
