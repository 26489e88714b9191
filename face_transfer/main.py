import argparse
import logging
import sys
from pathlib import Path

from . import config
from .core import FaceTransferApp
from .reporting import ReportGenerator


def setup_logging(catalog_path: Path, verbose: bool):
    """Sets up logging to both console and a file next to the catalog."""
    log_level = logging.DEBUG if verbose else logging.INFO
    log_file = catalog_path.parent / config.LOG_FILE_NAME

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[
            logging.FileHandler(log_file, encoding='utf-8'),
            logging.StreamHandler(sys.stdout)
        ]
    )


def parse_args(argv=None):
    p = argparse.ArgumentParser(
        description="Transfer faces, keywords, stacks and GPS positions from an Aperture library to a Lightroom catalog"
    )

    p.add_argument("-l", "--catalog", type=Path, default=config.DEFAULT_CATALOG,
                   help=f"Lightroom catalog (default: {config.DEFAULT_CATALOG})")
    p.add_argument("-a", "--library", type=Path, default=config.DEFAULT_LIBRARY,
                   help=f"Aperture library bundle (default: {config.DEFAULT_LIBRARY})")
    p.add_argument("-f", "--face-folder", default=config.DEFAULT_FACE_FOLDER,
                   help="Keyword folder for people; empty for the top level")
    p.add_argument("-t", "--tag-folder", default=config.DEFAULT_TAG_FOLDER,
                   help="Keyword folder for Aperture keywords; empty for the top level")
    p.add_argument("--dry-run", action="store_true", help="Run everything, then roll the catalog back")
    p.add_argument("--report-csv", type=str, default=None, help="Write a per-photo CSV report")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    catalog_path = args.catalog.expanduser().resolve()
    library_root = args.library.expanduser().resolve()

    setup_logging(catalog_path, args.verbose)

    logging.info("=== Face Transfer Started ===")
    logging.info(f"Catalog: {catalog_path}")
    logging.info(f"Library: {library_root}")
    if args.dry_run:
        logging.info("Dry run: the catalog will not be changed.")

    app = FaceTransferApp(catalog_path, library_root)

    try:
        stats = app.transfer(
            face_folder=args.face_folder,
            tag_folder=args.tag_folder,
            dry_run=args.dry_run,
        )
    except KeyboardInterrupt:
        logging.warning("Operation cancelled by user.")
        sys.exit(1)
    except Exception:
        logging.exception("Fatal error during transfer. The catalog was not changed.")
        sys.exit(1)

    reporter = ReportGenerator(stats, app.outcomes)
    reporter.log_summary()
    if args.report_csv:
        reporter.write_csv(args.report_csv)


if __name__ == "__main__":
    main()
