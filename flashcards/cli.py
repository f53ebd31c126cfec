# flashcards/cli.py
"""
CLI entry point for the flashcards seed run.

Usage
─────
  # Insert the default prompt into the local "flashcards" database and dump it
  python -m flashcards

  # Against another store, creating the table if needed
  python -m flashcards --database-url sqlite:///./flashcards.db \\
      --create-collection --prompt "what is a cornerback" \\
      --answer "a defensive back"

Flags override the environment (see flashcards.config); .env is loaded first.
"""

import argparse
import logging
import sys
from typing import Optional

from dotenv import find_dotenv, load_dotenv

from flashcards import monitoring
from flashcards.config import StoreConfig
from flashcards.errors import FlashcardsError
from flashcards.reporter import FORMATS
from flashcards.seed import DEFAULT_PROMPT, run

__all__ = ["build_parser", "config_from_args", "main"]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flashcards-seed",
        description="Insert one flashcard and print every stored flashcard",
    )
    parser.add_argument("--prompt", default=DEFAULT_PROMPT, help="Prompt text to insert")
    parser.add_argument("--answer", default=None, help="Answer text to store with the prompt")
    parser.add_argument(
        "--database-url",
        default=None,
        metavar="URL",
        help="SQLAlchemy URL (overrides the discrete connection flags)",
    )
    parser.add_argument("--host", default=None, help="Database host")
    parser.add_argument("--port", default=None, type=int, help="Database port")
    parser.add_argument("--user", default=None, help="Database user")
    parser.add_argument("--password", default=None, help="Database password")
    parser.add_argument("--database", default=None, help="Database name (default: flashcards)")
    parser.add_argument("--collection", default=None, help="Table name (default: flashcards)")
    parser.add_argument(
        "--teardown-timeout",
        default=None,
        type=float,
        metavar="SECONDS",
        help="Max seconds to wait for connection release (default: 5)",
    )
    parser.add_argument(
        "--create-collection",
        action="store_true",
        default=None,
        help="Create the table if it does not exist",
    )
    parser.add_argument("--format", choices=FORMATS, default="text", help="Output format")
    parser.add_argument(
        "--metrics-file",
        default=None,
        metavar="PATH",
        help="Write Prometheus metrics to PATH (textfile collector format)",
    )
    parser.add_argument("--debug", action="store_true", default=False, help="Enable debug logging")
    return parser


def config_from_args(ns: argparse.Namespace) -> StoreConfig:
    return StoreConfig.from_env(
        database_url=ns.database_url,
        host=ns.host,
        port=ns.port,
        username=ns.user,
        password=ns.password,
        database=ns.database,
        collection=ns.collection,
        teardown_timeout=ns.teardown_timeout,
        create_collection=ns.create_collection,
    )


def main(argv: Optional[list] = None) -> int:
    """Main CLI entry point. Returns exit code."""
    # .env of the working directory; monitoring reads its flags on use
    load_dotenv(find_dotenv(usecwd=True))
    ns = build_parser().parse_args(argv)

    monitoring.setup_logger(level=logging.DEBUG if ns.debug else None)
    monitoring.init_sentry()

    try:
        config = config_from_args(ns)
        run(config, prompt=ns.prompt, answer=ns.answer, fmt=ns.format)
    except FlashcardsError as exc:
        monitoring.logger.debug("Seed run failed", exc_info=True)
        print(f"Error [{exc.error_code}] during {exc.step}: {exc}", file=sys.stderr)
        return 1
    finally:
        if ns.metrics_file:
            monitoring.write_metrics(ns.metrics_file)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
