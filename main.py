# main.py
"""
The command-line entry point for chess-patterns.

Usage:
    python main.py analyze <pgn> [--corpus FILE] [--position N] [--raw] [--json]
    python main.py index <pgn> <corpus>

Commands:
    analyze     Extract the signature of each game and project its trajectory
    index       Add the finished games of a PGN file to a corpus file
"""
import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import List, Optional

import structlog

from chess_patterns.config.settings import settings
from chess_patterns.containers import get_container
from chess_patterns.exceptions import ChessPatternsError, MalformedSequenceError
from chess_patterns.orchestration.corpus_builder import CorpusBuilder
from chess_patterns.orchestration.engine import PatternEngine
from chess_patterns.output.report_generator import ReportGenerator
from chess_patterns.services.corpus_store import CorpusStore
from chess_patterns.services.pgn_service import PgnService
from chess_patterns.statistics import StatisticsTracker
from chess_patterns.utils.logging_config import setup_logging

logger = structlog.get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chess-patterns",
        description="Temporal pattern signatures, matching and trajectory prediction for chess games.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--log-level", default=settings.default_log_level, help="Logging level (default: %(default)s)")
    parser.add_argument("--log-file", type=Path, default=None, help="Also write JSON logs to this file")
    parser.add_argument("--json-logs", action="store_true", help="Render console logs as JSON")
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze = subparsers.add_parser("analyze", help="Analyze the games in a PGN file")
    analyze.add_argument("pgn", type=Path, help="INPUT: PGN file")
    analyze.add_argument("--corpus", type=Path, default=None, help="INPUT: corpus JSON file to match against")
    analyze.add_argument("--position", type=int, default=None, help="Analyze only the first N moves (live prediction)")
    analyze.add_argument("--raw", action="store_true",
                         help="Treat the whole file as one record and parse it strictly (reports the failing token)")
    analyze.add_argument("--json", action="store_true", help="Print reports as JSON")

    index = subparsers.add_parser("index", help="Add finished games from a PGN file to a corpus")
    index.add_argument("pgn", type=Path, help="INPUT: PGN file")
    index.add_argument("corpus", type=Path, help="OUTPUT: corpus JSON file (created or extended)")
    return parser


async def run_analyze(args: argparse.Namespace) -> int:
    container = get_container(settings, args.corpus)
    engine: PatternEngine = container.resolve(PatternEngine)
    pgn_service: PgnService = container.resolve(PgnService)
    generator = ReportGenerator()

    corpus = []
    if args.corpus is not None:
        store: CorpusStore = container.resolve(CorpusStore)
        corpus = await store.load()

    records = []
    if args.raw:
        records.append(("record", await pgn_service.read_record(args.pgn)))
    else:
        async for game in pgn_service.stream_games(args.pgn):
            records.append((pgn_service.extract_game_id(game.headers), game))

    outputs = []
    skipped = 0
    for record_id, record in records:
        try:
            report = engine.analyze(record, corpus, current_position=args.position, record_id=record_id)
        except MalformedSequenceError as e:
            if args.raw:
                raise
            logger.warning(
                "Skipping game with malformed moves.", game_id=record_id,
                offset=e.offset, token=e.token, error=str(e),
            )
            skipped += 1
            if args.json:
                outputs.append({"id": record_id, "error": str(e), "offset": e.offset, "token": e.token})
            else:
                print(f"=== {record_id} ===")
                print(f"Skipped: {e}")
                print()
            continue

        if args.json:
            outputs.append({"id": record_id, **generator.to_dict(report)})
        else:
            print(f"=== {record_id} ===")
            print(generator.render_text(report))
            print()
    if args.json:
        print(json.dumps(outputs, indent=2))
    logger.info("Analysis finished.", analyzed=len(records) - skipped, skipped=skipped)
    return 0


async def run_index(args: argparse.Namespace) -> int:
    container = get_container(settings, args.corpus)
    store: CorpusStore = container.resolve(CorpusStore)
    builder: CorpusBuilder = container.resolve(CorpusBuilder)
    stats: StatisticsTracker = container.resolve(StatisticsTracker)

    await store.load()
    await builder.index_file(args.pgn, store)
    await store.save()
    stats.log_summary()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Parses arguments, configures logging and runs the chosen command."""
    args = build_parser().parse_args(argv)
    setup_logging(log_level=args.log_level, log_file=args.log_file, force_json_console=args.json_logs)

    command = run_analyze if args.command == "analyze" else run_index
    try:
        return asyncio.run(command(args))
    except ChessPatternsError as e:
        logger.error("Command failed.", command=args.command, error=str(e))
        return 1

if __name__ == "__main__":
    sys.exit(main())
