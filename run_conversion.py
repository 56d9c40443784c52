"""
run_conversion.py – Standalone runner for a single energy → CO₂e conversion.

Resolves a grid factor from the built-in factor pack (or uses an explicit
factor), prints the rounded result and the canonical audit digest.

Usage
──────
# Resolve the IN baseline factor effective on a date
python run_conversion.py --energy 12345.678 --unit kWh --region IN --date 2024-06-30

# Explicit factor, 3 decimals, truncating
python run_conversion.py --energy 5.1 --unit MWh --factor 0.708 --decimals 3 --mode TRUNC

# Only the canonical JSON (for piping into other tools)
python run_conversion.py --energy 1 --unit GWh --region US --json
"""
from __future__ import annotations

import argparse
import logging
import sys

from rich.console import Console
from rich.table import Table

from carbon_conversion.config import get_config
from carbon_conversion.constants import ALLOWED_SCOPES, ENERGY_UNIT_FACTORS, SCOPE_BASELINE
from carbon_conversion.errors import CarbonConversionError
from carbon_conversion.factors import FactorRegistry
from carbon_conversion.default_pack import DEFAULT_FACTORS, DEFAULT_REGIONS
from carbon_conversion.grid import convert
from carbon_conversion.hashing import fingerprint, stable_stringify
from carbon_conversion.models import RoundingSpec

log = logging.getLogger(__name__)

console = Console()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="run_conversion",
        description="Convert an energy quantity to CO₂e with a deterministic, auditable result.",
    )
    parser.add_argument("--energy", type=float, required=True, help="Energy quantity (>= 0)")
    parser.add_argument(
        "--unit",
        default="kWh",
        choices=sorted(ENERGY_UNIT_FACTORS),
        help="Energy unit (default: kWh)",
    )
    parser.add_argument(
        "--factor",
        type=float,
        default=None,
        help="Explicit factor in kg CO₂e/kWh (skips registry resolution)",
    )
    parser.add_argument("--region", default="WORLD", help="Region code or ISO alias (default: WORLD)")
    parser.add_argument(
        "--scope",
        default=SCOPE_BASELINE,
        choices=ALLOWED_SCOPES,
        help="Factor scope (default: baseline)",
    )
    parser.add_argument("--date", default=None, help="Effective date YYYY-MM-DD")
    parser.add_argument("--decimals", type=int, default=None, help="Override CARBON_ROUNDING_DECIMALS")
    parser.add_argument(
        "--mode",
        default=None,
        choices=["HALF_UP", "DOWN", "TRUNC"],
        help="Override CARBON_ROUNDING_MODE",
    )
    parser.add_argument("--json", action="store_true", default=False, help="Print canonical JSON only")
    parser.add_argument("--verbose", action="store_true", default=False, help="Debug logging")
    return parser


def _print_result(result, digest: str) -> None:
    table = Table(title="CO₂e conversion", show_header=True, header_style="bold")
    table.add_column("Field")
    table.add_column("Value", justify="right")
    table.add_row("Energy (kWh)", f"{result.energy_kwh}")
    table.add_row("Factor (kg CO₂e/kWh)", f"{result.factor_kg_per_kwh}")
    table.add_row("kg CO₂e", f"{result.kg_co2e}")
    table.add_row("t CO₂e", f"{result.t_co2e}")
    if result.uncertainty is not None:
        table.add_row(
            f"± {result.uncertainty.plus_minus_pct}%",
            f"{result.uncertainty.lower_tco2e} – {result.uncertainty.upper_tco2e} t",
        )
    if "factor_id" in result.meta:
        table.add_row("Factor id", result.meta["factor_id"])
    console.print(table)
    console.print(f"[dim]sha256[/dim] {digest}")


def main(argv: list[str] | None = None) -> int:
    """Parse arguments, run the conversion, return the process exit code."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s  %(levelname)-8s  %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        cfg = get_config()
    except EnvironmentError as exc:
        console.print(f"[red]Configuration error:[/red] {exc}")
        return 2

    rounding = RoundingSpec(
        decimals=args.decimals if args.decimals is not None else cfg.rounding.decimals,
        mode=args.mode or cfg.rounding.mode,
    )
    registry = FactorRegistry.from_pack(
        DEFAULT_FACTORS, DEFAULT_REGIONS, undated_policy=cfg.undated_policy
    )

    try:
        result = convert(
            args.energy,
            args.unit,
            factor_kg_per_kwh=args.factor,
            region=args.region,
            scope=args.scope,
            date=args.date,
            rounding=rounding,
            registry=registry,
        )
    except (CarbonConversionError, ValueError) as exc:
        log.error("Conversion failed: %s", exc)
        console.print(f"[red]Error:[/red] {exc}")
        return 1

    # calculated_at changes per run; keep it out of the digest.
    audit_payload = result.to_dict()
    audit_payload["meta"] = {k: v for k, v in result.meta.items() if k != "calculated_at"}

    if args.json:
        print(stable_stringify(audit_payload, cfg.digest_decimals))
        return 0

    _print_result(result, fingerprint(audit_payload, cfg.digest_decimals))
    return 0


if __name__ == "__main__":
    sys.exit(main())
