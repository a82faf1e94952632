import argparse
import json
import logging
import sys
from typing import List, Optional

from .core.errors import InstrumentationFailure
from .core.instrumentation import ACTION_TITLES, ACTIONS, InstrumentationEngine
from .core.project import ProjectCorpus
from .core.settings import load_settings


def setup_logging(log_level: str = "INFO", stream=None) -> None:
    """Configure application logging."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(stream or sys.stdout)
        ]
    )


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nappa_instrument",
        description="Instrument an Android project for the NAPPA prefetching library",
    )
    parser.add_argument(
        "project_root",
        type=str,
        help="Root directory of the Android project"
    )
    parser.add_argument(
        "--action",
        type=str,
        default="all",
        choices=list(ACTIONS) + ["all"],
        help="Instrumentation to run"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to the YAML configuration file"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Instrument in memory without writing any file"
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print results as JSON"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (defaults to the configured level)"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for nappa-instrument."""
    args = build_parser().parse_args(argv)

    settings = load_settings(args.config)
    if args.dry_run:
        settings.dry_run = True
    if args.log_level:
        settings.log_level = args.log_level

    # Keep stdout clean for the JSON report
    setup_logging(settings.log_level, sys.stderr if args.json else None)
    logger.info(f"Instrumenting {args.project_root} (action: {args.action})")

    try:
        corpus = ProjectCorpus(args.project_root, settings)
    except FileNotFoundError as e:
        logger.error(str(e))
        return 2

    engine = InstrumentationEngine(corpus, settings)
    actions = list(ACTIONS) if args.action == "all" else [args.action]

    exit_code = 0
    reports = {}
    for action in actions:
        title = ACTION_TITLES[action]
        try:
            result = engine.run(action)
        except InstrumentationFailure as e:
            exit_code = 1
            result = e.result
            logger.error(str(e))
            if not args.json:
                print(f"{title}: {e}")

        if args.json:
            reports[action] = result.to_dict()
        else:
            print(result.render_summary(title))
            print()

    if args.json:
        print(json.dumps(reports, indent=2))

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
