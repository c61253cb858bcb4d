from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional, Sequence

from .config import DEFAULT_CORRECTION_CONFIG
from .excel_io import WorkbookDecodeError, read_workbook, save_corrected_workbook
from .models import ValidationMode
from .report import build_summary_table, write_validation_report
from .runner import validate

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_UNREADABLE = 2


def setup_logging(verbose: bool) -> None:
    level = logging.INFO if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Validate valuation report workbooks.")

    parser.add_argument("input", type=str, help="Workbook (.xlsx) to validate")
    parser.add_argument(
        "--mode",
        choices=[m.value for m in ValidationMode],
        default=ValidationMode.REPORT.value,
        help='"report" (report + 2 asset sheets) or "identifier" (2 asset sheets only)',
    )
    parser.add_argument(
        "--corrected",
        type=str,
        default=None,
        help=f"Where to write the annotated workbook when errors exist "
             f"(default: {DEFAULT_CORRECTION_CONFIG.default_filename} next to the input)",
    )
    parser.add_argument(
        "--report",
        type=str,
        default=None,
        help="Optional path for an Excel report (Summary / Counts / Errors)",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable INFO logs")

    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    input_path = Path(args.input)
    try:
        workbook = read_workbook(input_path)
    except (FileNotFoundError, WorkbookDecodeError) as e:
        print(f"Error reading workbook: {e}")
        return EXIT_UNREADABLE

    outcome = validate(workbook, args.mode)

    summary = build_summary_table(outcome.results)
    print(f"\n=== {input_path.name} ({outcome.mode.value}) ===")
    print(summary.to_string(index=False))

    if args.report:
        report_path = write_validation_report(outcome, workbook, args.report)
        print(f"Validation report saved to: {report_path.resolve()}")

    if outcome.ok:
        print("Validation passed.")
        return EXIT_OK

    for err in outcome.errors:
        print(f"  sheet {err.sheet_index + 1} row {err.row_index + 1} col {err.col_index + 1}: {err.message}")

    corrected = Path(args.corrected) if args.corrected else input_path.with_name(DEFAULT_CORRECTION_CONFIG.default_filename)
    save_corrected_workbook(workbook, outcome.errors, corrected)
    print(f"Corrected file saved to: {corrected.resolve()}")
    return EXIT_INVALID


if __name__ == "__main__":
    raise SystemExit(main())
