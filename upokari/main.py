"""
Main entry point for the Upokari result analytics service.

Supports these modes:
  upokari --portal                 Serve the REST API
  upokari --init-db                Create the database tables
  upokari --import-json FILE       Upsert applicant documents from a JSON array
  upokari --report stats           Print the result statistics report
  upokari --report institutes      Print the institute leaderboard
  upokari --report searches        Print the total number of result lookups
"""

import argparse
import json
import sys
from pathlib import Path

from upokari.analytics.config_store import get_band_config
from upokari.analytics.records import records_from_documents, total_searches
from upokari.analytics.reports import build_institute_wise_report, build_result_stats_report
from upokari.config import load_config
from upokari.database.db_manager import DatabaseManager
from upokari.utils.logger import get_logger, setup_logging


def import_json(db: DatabaseManager, path: Path) -> int:
    """Upsert every applicant document in the JSON array at *path*."""
    docs = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(docs, list):
        raise ValueError(f"{path} must contain a JSON array of applicant documents")
    for doc in docs:
        db.save_applicant(doc)
    return len(docs)


def print_report(db: DatabaseManager, kind: str, config) -> None:
    records = records_from_documents(db.find_applicants())
    if kind == "searches":
        print(json.dumps({"totalSearches": total_searches(records)}))
        return

    band_config = get_band_config(db)
    if kind == "stats":
        data = build_result_stats_report(records, band_config)
    else:
        data = build_institute_wise_report(
            records,
            band_config,
            similarity_threshold=config.SIMILARITY_THRESHOLD,
            min_present=config.MIN_PRESENT_FOR_RANKING,
        )
    print(json.dumps(data, ensure_ascii=False, indent=2))


def main(argv=None) -> None:
    """Parse CLI arguments and launch the requested mode."""
    parser = argparse.ArgumentParser(description="Upokari result analytics service")
    parser.add_argument("--portal", action="store_true", help="Serve the REST API")
    parser.add_argument("--init-db", action="store_true", help="Create database tables")
    parser.add_argument(
        "--import-json", type=Path, default=None, help="JSON array of applicant documents"
    )
    parser.add_argument(
        "--report",
        choices=("stats", "institutes", "searches"),
        default=None,
        help="Print a report as JSON",
    )
    parser.add_argument("--env", type=str, default=None, help="Path to .env file")
    args = parser.parse_args(argv)

    config = load_config(env_path=args.env)
    setup_logging(config)
    logger = get_logger(__name__)

    if not config.validate():
        logger.warning("Configuration has warnings — some features may not work.")

    db = DatabaseManager(config.DATABASE_URL)
    db.init_db()

    if args.import_json:
        count = import_json(db, args.import_json)
        logger.info("Imported %d applicant documents from %s", count, args.import_json)

    if args.report:
        print_report(db, args.report, config)

    if args.portal:
        from upokari.portal.app import launch_portal

        config.print_summary()
        launch_portal(config)
    elif not (args.init_db or args.import_json or args.report):
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
