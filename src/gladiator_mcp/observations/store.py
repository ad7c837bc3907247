"""
Append-only observation log.

Storage: <data_dir>/observations.jsonl, one JSON object per line.

Each line is decoded independently; a line that is not valid JSON or not a
valid observation is skipped so one bad write never hides the rest of the log.
The only in-place mutation is flipping `processed` to true during reflection.

Single-writer by assumption: no file locking is performed.
"""

import json
import logging
from collections.abc import Iterable
from pathlib import Path

from ..errors import ObservationValidationError
from .models import Observation

logger = logging.getLogger(__name__)


class ObservationStore:
    """Reads and writes the observation log."""

    def __init__(self, path: Path):
        """
        Initialize store for a log file.

        Args:
            path: Path to observations.jsonl (parent created on first append)
        """
        self.path = Path(path)

    def _read_lines(self) -> list[bytes]:
        # Raw bytes: each line is decoded on its own so one bad byte stays local
        if not self.path.exists():
            return []
        return [line for line in self.path.read_bytes().split(b"\n") if line]

    def append(self, observation: Observation) -> None:
        """Append a single observation to the log."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(json.dumps(observation.to_dict()) + "\n")
        logger.debug(f"Appended observation {observation.id}")

    def read(self, processed: bool | None = None, limit: int | None = None) -> list[Observation]:
        """
        Read observations in log order (oldest first).

        Args:
            processed: If set, keep only observations with this processed flag
            limit: If set, keep only the last `limit` observations after filtering

        Returns:
            List of Observation objects
        """
        observations: list[Observation] = []
        skipped = 0

        for line in self._read_lines():
            try:
                observations.append(Observation.from_record(json.loads(line.decode("utf-8"))))
            except (UnicodeDecodeError, json.JSONDecodeError, ObservationValidationError):
                skipped += 1

        if skipped:
            logger.debug(f"Skipped {skipped} unreadable line(s) in {self.path}")

        if processed is not None:
            observations = [o for o in observations if o.processed == processed]
        if limit:
            observations = observations[-limit:]

        return observations

    def mark_processed(self, ids: Iterable[str]) -> int:
        """
        Mark observations as processed, rewriting the log.

        Lines that cannot be decoded or parsed, and records without a string
        id, are written back byte-for-byte. Fields the current version does
        not know about are preserved.

        Args:
            ids: Observation IDs to mark

        Returns:
            Number of records flipped from unprocessed to processed
        """
        id_set = set(ids)
        if not id_set or not self.path.exists():
            return 0

        flipped = 0
        updated: list[bytes] = []
        for line in self._read_lines():
            try:
                raw = json.loads(line.decode("utf-8"))
            except (UnicodeDecodeError, json.JSONDecodeError):
                updated.append(line)
                continue

            if (
                isinstance(raw, dict)
                and isinstance(raw.get("id"), str)
                and raw["id"] in id_set
                and raw.get("processed") is not True
            ):
                raw["processed"] = True
                flipped += 1
                updated.append(json.dumps(raw).encode("utf-8"))
            else:
                updated.append(line)

        self.path.write_bytes(b"\n".join(updated) + b"\n")
        logger.debug(f"Marked {flipped} observation(s) processed")
        return flipped

    def backlog(self) -> tuple[int, int]:
        """Return (unprocessed, total) observation counts."""
        observations = self.read()
        unprocessed = sum(1 for o in observations if not o.processed)
        return unprocessed, len(observations)
