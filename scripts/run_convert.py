"""
Convert PMS booking exports (.xlsx / .xls) to the Anreise CSV via the public API.

Usage:
    uv run python scripts/run_convert.py inputs/arrivals.xlsx
    uv run python scripts/run_convert.py inputs/*.xlsx --output-dir outputs/
    uv run python scripts/run_convert.py inputs/arrivals.xls --config aliases.yaml
    uv run python scripts/run_convert.py --write-config aliases.yaml

Each input file is written to ``<output-dir>/Anreise_<DD.MM.YYYY>.csv``.
Since the file name only carries the date, converting several files on
the same day overwrites the export; the last file wins.

A file that fails (missing column, no valid rows, unreadable) is logged
and skipped; the exit code is 1 if any file failed.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    datefmt="%H:%M:%S",
)
log = logging.getLogger("run_convert")


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    import booking_ingest
    from booking_ingest.config import default_config, save_config
    from booking_ingest.exceptions import BookingIngestError

    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("inputs", nargs="*", help="Workbook files to convert")
    parser.add_argument("--output-dir", default="outputs", help="Export directory")
    parser.add_argument("--config", default=None, help="YAML config with header aliases")
    parser.add_argument(
        "--write-config",
        default=None,
        metavar="PATH",
        help="Write the default config to PATH and exit",
    )
    args = parser.parse_args(argv)

    if args.write_config:
        save_config(default_config(), args.write_config)
        log.info("Wrote default config to %s", args.write_config)
        return 0

    if not args.inputs:
        parser.error("no input files given")

    failed = 0
    for input_path in args.inputs:
        if not Path(input_path).exists():
            log.warning("SKIP  %s  (file not found)", input_path)
            failed += 1
            continue

        log.info("=" * 70)
        log.info("Processing: %s", input_path)
        log.info("  output_dir  : %s", args.output_dir)
        log.info("=" * 70)

        try:
            written = booking_ingest.convert(
                input_path,
                output_dir=args.output_dir,
                config_path=args.config,
            )
        except BookingIngestError as exc:
            log.error("FAILED  %s: %s", input_path, exc)
            failed += 1
            continue

        log.info("Done: %s -> %s\n", input_path, written)

    log.info("All files processed (%d failed).", failed)
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
