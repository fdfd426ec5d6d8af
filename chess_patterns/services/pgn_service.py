# chess_patterns/services/pgn_service.py
"""
Provides a service for handling all filesystem interactions with PGN files.

This module acts as a stateless adapter to the filesystem for all things
related to PGN (Portable Game Notation). It encapsulates the I/O logic for
streaming games from a file, reading raw records, and extracting game IDs from
headers. This keeps I/O-specific code isolated from the pattern engine, which
never touches the filesystem.
"""

import asyncio
import re
from pathlib import Path
from typing import AsyncGenerator, Generator, List, Mapping, TextIO, Tuple

import aiofiles
import chess.pgn
import structlog

from chess_patterns.exceptions import PgnServiceError

logger = structlog.get_logger(__name__)

class PgnService:
    """A stateless service for handling PGN file I/O operations."""

    # A declarative, data-driven list of patterns for game ID extraction.
    # The patterns are tried in order, prioritizing Lichess and Chess.com URLs.
    _GAME_ID_EXTRACTION_PATTERNS: List[Tuple[str, re.Pattern]] = [
        ("Link", re.compile(r"lichess\.org/([a-zA-Z0-9]{8})")),
        ("Site", re.compile(r"lichess\.org/([a-zA-Z0-9]{8})")),
        ("Link", re.compile(r"chess\.com/game/live/(\d+)")),
        ("Site", re.compile(r"chess\.com/game/live/(\d+)")),
    ]

    @classmethod
    def extract_game_id(cls, headers: Mapping[str, str]) -> str:
        """
        Extracts a unique ID from a game's PGN headers.

        It prioritizes extracting IDs from game URLs (e.g., Lichess, Chess.com)
        found in "Link" or "Site" tags. If no URL is found, it falls back to a
        generated ID based on player names and the game date.
        """
        for tag_name, pattern in cls._GAME_ID_EXTRACTION_PATTERNS:
            if header_value := headers.get(tag_name):
                if match := pattern.search(str(header_value)):
                    prefix = "lichess" if "lichess" in str(header_value) else "chesscom"
                    return f"{prefix}_{match.group(1)}"

        white = headers.get("White", "Unknown").replace(" ", "_")
        black = headers.get("Black", "Unknown").replace(" ", "_")
        date = headers.get("Date", "0000.00.00")
        return f"local_{white}_vs_{black}_{date}"

    def _sync_game_streamer(self, pgn_handle: TextIO) -> Generator[chess.pgn.Game, None, None]:
        """
        A synchronous generator that yields games from an open file handle.

        This is a helper function designed to be run in a separate thread to
        avoid blocking the main asyncio event loop.
        """
        while True:
            try:
                # `chess.pgn.read_game` is a blocking I/O call.
                game = chess.pgn.read_game(pgn_handle)
            except (ValueError, RuntimeError) as e:
                logger.warning("Skipping unreadable PGN game.", error=str(e))
                continue
            if game is None:
                break
            yield game

    async def stream_games(self, pgn_filepath: Path) -> AsyncGenerator[chess.pgn.Game, None]:
        """
        Asynchronously streams games from a PGN file one by one.

        This approach is memory-efficient as it does not load the entire PGN
        file into memory. It uses `asyncio.to_thread` to run the blocking
        I/O operations of the `python-chess` library in a worker thread.

        Raises:
            PgnServiceError: If the file cannot be found or read.
        """
        def _get_next_game(generator):
            """Wrapper to catch StopIteration for use with `to_thread`."""
            try:
                return next(generator)
            except StopIteration:
                return None

        try:
            with pgn_filepath.open("r", encoding="utf-8", errors="replace") as pgn_handle:
                game_generator = self._sync_game_streamer(pgn_handle)
                while True:
                    game = await asyncio.to_thread(_get_next_game, game_generator)
                    if game is None:
                        break
                    yield game
        except FileNotFoundError:
            raise PgnServiceError(f"Input PGN file not found: {pgn_filepath}")
        except OSError as e:
            raise PgnServiceError(f"Failed to stream games from {pgn_filepath}: {e}")

    async def read_record(self, pgn_filepath: Path) -> str:
        """
        Reads a whole file as one raw record (a single PGN game or bare movetext).

        Uses `aiofiles` for non-blocking file I/O.

        Raises:
            PgnServiceError: If the file cannot be read.
        """
        try:
            async with aiofiles.open(pgn_filepath, "r", encoding="utf-8", errors="replace") as f:
                return await f.read()
        except FileNotFoundError:
            raise PgnServiceError(f"Input PGN file not found: {pgn_filepath}")
        except OSError as e:
            raise PgnServiceError(f"Failed to read {pgn_filepath}: {e}")
