"""
excusemaster/history.py
Durable excuse history: a JSON array of ExcuseRecord dicts, newest first.
Each generation batch is prepended as a unit so its order is kept.

Read-modify-write cycles hold a per-store lock, and saves go through a
temp file + os.replace so an interrupted write never truncates the file.
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Iterable, List

from excusemaster.models.record import ExcuseRecord

logger = logging.getLogger(__name__)


class HistoryStore:

    def __init__(self, path: Path = Path('excuse_history.json')):
        self.path  = Path(path)
        self._lock = threading.RLock()

    def load(self) -> List[ExcuseRecord]:
        """
        Saved records, newest first. Missing or unreadable file → [].
        A malformed entry is skipped; the rest of the list still loads.
        """
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding='utf-8'))
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"History load failed ({self.path.name}): {e}")
            return []
        if not isinstance(data, list):
            logger.warning(f"History at {self.path.name} is not a list — ignoring")
            return []

        records: List[ExcuseRecord] = []
        for i, entry in enumerate(data):
            try:
                records.append(ExcuseRecord.from_dict(entry))
            except (TypeError, ValueError, KeyError, AttributeError) as e:
                logger.warning(f"History entry {i} skipped: {e}")
        return records

    def save(self, records: Iterable[ExcuseRecord]) -> None:
        payload = json.dumps([r.to_dict() for r in records], indent=2)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=self.path.parent)
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(payload)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def prepend(self, records: List[ExcuseRecord]) -> List[ExcuseRecord]:
        with self._lock:
            history = list(records) + self.load()
            self.save(history)
        logger.info(f"History: +{len(records)} excuses ({len(history)} total)")
        return history

    def delete(self, excuse_id: str) -> bool:
        with self._lock:
            history = self.load()
            kept    = [r for r in history if r.id != excuse_id]
            if len(kept) == len(history):
                return False
            self.save(kept)
        return True

    def clear(self) -> None:
        with self._lock:
            self.save([])

    def search(self, query: str = '') -> List[ExcuseRecord]:
        """Case-insensitive substring match over text and rationale."""
        history = self.load()
        needle  = (query or '').strip().casefold()
        if not needle:
            return history
        return [
            r for r in history
            if needle in r.text.casefold() or needle in r.rationale.casefold()
        ]
