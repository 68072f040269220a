"""
Local persistence for last known state and the pending-delivery queue.

Both files are replaced atomically (temp file, fsync, rename) so a crash
mid-write leaves the previous contents intact.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, List, Optional, Sequence

from ..core import constants
from ..core.date_utils import DateUtils
from ..core.exceptions import PersistenceError
from ..models import PersistedRecord, PendingPayload


def atomic_write_json(target_path: Path, data: Any, indent: int = 2) -> None:
    """
    Persist JSON data to ``target_path`` atomically.

    Raises:
        OSError: On any filesystem failure (temp file is cleaned up)
    """
    target_path = Path(target_path)
    target_path.parent.mkdir(parents=True, exist_ok=True)

    temp_fd, temp_path = tempfile.mkstemp(
        prefix=f"{target_path.name}.", suffix=".tmp", dir=target_path.parent
    )
    temp_file = Path(temp_path)

    try:
        with os.fdopen(temp_fd, "w", encoding="utf-8") as handle:
            json.dump(data, handle, indent=indent)
            handle.flush()
            os.fsync(handle.fileno())

        os.replace(temp_file, target_path)

    except Exception:
        if temp_file.exists():
            temp_file.unlink()
        raise


class LocalStore:
    """File-backed store keyed by file name inside ``data_dir``."""

    def __init__(
        self,
        data_dir: str = constants.DEFAULT_DATA_DIR,
        queue_key: str = constants.PENDING_QUEUE_KEY,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize store.

        Args:
            data_dir: Directory holding the state files
            queue_key: Key (file stem) of the pending queue blob
            logger: Logger instance
        """
        self.data_dir = Path(data_dir)
        self.queue_key = queue_key
        self.logger = logger or logging.getLogger(__name__)

    @property
    def last_state_path(self) -> Path:
        return self.data_dir / constants.LAST_STATE_FILENAME

    @property
    def queue_path(self) -> Path:
        return self.data_dir / f"{self.queue_key}.json"

    def save_last(self, record: PersistedRecord) -> None:
        """
        Overwrite the last known state.

        Raises:
            PersistenceError: If the file cannot be written
        """
        try:
            atomic_write_json(self.last_state_path, record.to_dict())
        except OSError as e:
            raise PersistenceError(f"Failed to save location to {self.last_state_path}: {e}")

        self.logger.info("Location saved locally")

    def load_last(self) -> Optional[PersistedRecord]:
        """
        Read the last known state.

        Returns:
            Stored record, or None if nothing has been saved yet

        Raises:
            PersistenceError: If the file exists but cannot be read or parsed
        """
        if not self.last_state_path.exists():
            return None

        try:
            with open(self.last_state_path, "r", encoding="utf-8") as f:
                return PersistedRecord.from_dict(json.load(f))
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise PersistenceError(f"Failed to read {self.last_state_path}: {e}")

    def load_pending_queue(self) -> List[PendingPayload]:
        """
        Read the pending-delivery queue.

        A corrupt queue blob is moved aside so new readings can still be
        queued; the corrupt copy is kept for inspection.

        Returns:
            Pending payloads in resolution order

        Raises:
            PersistenceError: If the file cannot be read at all
        """
        if not self.queue_path.exists():
            return []

        try:
            with open(self.queue_path, "r", encoding="utf-8") as f:
                raw = f.read()
        except OSError as e:
            raise PersistenceError(f"Failed to read pending queue {self.queue_path}: {e}")

        try:
            return self.deserialize_queue(raw)
        except (ValueError, KeyError, TypeError) as e:
            self._quarantine_queue(e)
            return []

    def save_pending_queue(self, entries: Sequence[PendingPayload]) -> None:
        """
        Replace the pending-delivery queue.

        Raises:
            PersistenceError: If the file cannot be written
        """
        try:
            atomic_write_json(self.queue_path, [entry.to_dict() for entry in entries])
        except OSError as e:
            raise PersistenceError(f"Failed to save pending queue {self.queue_path}: {e}")

        self.logger.debug(f"Pending queue saved ({len(entries)} entries)")

    def enqueue(self, payload: PendingPayload) -> int:
        """
        Append one payload to the pending queue.

        Returns:
            New queue length

        Raises:
            PersistenceError: If the queue cannot be read or written
        """
        queue = self.load_pending_queue()
        queue.append(payload)
        self.save_pending_queue(queue)
        return len(queue)

    @staticmethod
    def serialize_queue(entries: Sequence[PendingPayload]) -> str:
        """Serialize a queue to its JSON blob."""
        return json.dumps([entry.to_dict() for entry in entries])

    @staticmethod
    def deserialize_queue(blob: str) -> List[PendingPayload]:
        """
        Parse a JSON queue blob.

        Raises:
            ValueError: If the blob is not a JSON list of payload objects
        """
        if not blob.strip():
            return []
        data = json.loads(blob)
        if not isinstance(data, list):
            raise ValueError("pending queue must be a JSON list")
        return [PendingPayload.from_dict(item) for item in data]

    def _quarantine_queue(self, error: Exception) -> None:
        stamp = DateUtils.utc_now().strftime("%Y%m%dT%H%M%S")
        target = self.queue_path.with_name(f"{self.queue_path.name}.corrupt-{stamp}")
        self.logger.error(
            f"Pending queue {self.queue_path} is corrupt ({error}); moving it to {target}"
        )
        try:
            os.replace(self.queue_path, target)
        except OSError as e:
            raise PersistenceError(f"Failed to move corrupt queue aside: {e}")
