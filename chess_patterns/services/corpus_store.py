# chess_patterns/services/corpus_store.py
"""
Provides a JSON-file backed store for corpus entries (historical signatures
with known outcomes).

Entries are keyed by pattern id and kept in insertion order, which is also the
order the matcher scores them in. A store never holds two entries with the
same id. Reads run off the event loop; writes use `aiofiles` and replace the
target file in one step so a crash never leaves a half-written corpus.
"""

import asyncio
import json
import os
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional

import aiofiles
import structlog

from chess_patterns.exceptions import CorpusReadError, CorpusWriteError
from chess_patterns.types import CorpusEntry

logger = structlog.get_logger(__name__)

CORPUS_FORMAT_VERSION = 1


class CorpusStore:
    """An in-memory, insertion-ordered corpus that loads from and saves to a JSON file."""

    def __init__(self, path: Path, domain: str = "chess"):
        self._path = Path(path)
        self._domain = domain
        self._entries: Dict[str, CorpusEntry] = {}

    @property
    def path(self) -> Path:
        return self._path

    @property
    def entries(self) -> List[CorpusEntry]:
        return list(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[CorpusEntry]:
        return iter(list(self._entries.values()))

    def __contains__(self, pattern_id: object) -> bool:
        return pattern_id in self._entries

    def get(self, pattern_id: str) -> Optional[CorpusEntry]:
        return self._entries.get(pattern_id)

    def add(self, entry: CorpusEntry) -> None:
        """
        Adds an entry.

        Raises:
            CorpusWriteError: If an entry with the same pattern id is already stored.
        """
        if entry.pattern_id in self._entries:
            raise CorpusWriteError(f"Pattern '{entry.pattern_id}' is already in the corpus.")
        self._entries[entry.pattern_id] = entry

    def extend(self, entries: Iterable[CorpusEntry]) -> None:
        for entry in entries:
            self.add(entry)

    # --- Serialization ---

    def to_document(self) -> dict:
        return {
            "version": CORPUS_FORMAT_VERSION,
            "domain": self._domain,
            "entries": [entry.to_dict() for entry in self._entries.values()],
        }

    def _load_document(self, document: dict) -> List[CorpusEntry]:
        if not isinstance(document, dict) or not isinstance(document.get("entries"), list):
            raise CorpusReadError(f"Corpus file {self._path} has no 'entries' list.")
        domain = document.get("domain", self._domain)
        if domain != self._domain:
            raise CorpusReadError(f"Corpus file {self._path} holds '{domain}' patterns, expected '{self._domain}'.")

        loaded: Dict[str, CorpusEntry] = {}
        for position, raw in enumerate(document["entries"]):
            try:
                entry = CorpusEntry.from_dict(raw)
            except (KeyError, TypeError, ValueError) as e:
                raise CorpusReadError(f"Invalid corpus entry #{position} in {self._path}: {e}") from e
            if entry.pattern_id in loaded:
                raise CorpusReadError(f"Duplicate pattern '{entry.pattern_id}' in {self._path}.")
            loaded[entry.pattern_id] = entry
        self._entries = loaded
        return list(loaded.values())

    async def load(self) -> List[CorpusEntry]:
        """
        Replaces the in-memory entries with the file's contents.

        A missing file is an empty corpus.

        Raises:
            CorpusReadError: If the file cannot be read or is not a valid corpus.
        """
        if not self._path.exists():
            logger.info("Corpus file not found; starting with an empty corpus.", path=str(self._path))
            self._entries = {}
            return []
        try:
            text = await asyncio.to_thread(self._path.read_text, encoding="utf-8")
            document = json.loads(text)
        except OSError as e:
            raise CorpusReadError(f"Could not read corpus file {self._path}: {e}") from e
        except json.JSONDecodeError as e:
            raise CorpusReadError(f"Corpus file {self._path} is not valid JSON: {e}") from e

        entries = self._load_document(document)
        logger.info("Loaded corpus.", path=str(self._path), entries=len(entries))
        return entries

    async def save(self) -> None:
        """
        Writes every entry to the corpus file.

        Raises:
            CorpusWriteError: If the file cannot be written.
        """
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
                await f.write(json.dumps(self.to_document(), indent=2))
            await asyncio.to_thread(os.replace, tmp_path, self._path)
        except OSError as e:
            raise CorpusWriteError(f"Failed to write corpus to {self._path}: {e}") from e
        logger.info("Saved corpus.", path=str(self._path), entries=len(self._entries))
