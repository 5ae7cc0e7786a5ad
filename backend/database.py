import json
import logging
import os
from contextlib import suppress
from enum import Enum
from pathlib import Path
from threading import Lock

from pydantic import TypeAdapter, ValidationError

from backend.core import config
from backend.models.appointment import Appointment


logger = logging.getLogger(__name__)

_appointment_list = TypeAdapter(list[Appointment])


class StorageUnavailable(Exception):
    """The appointment snapshot could not be read."""


class StorageMode(str, Enum):
    DURABLE = 'durable'
    DEGRADED = 'degraded'
    VOLATILE = 'volatile'


class InMemoryStorage:
    """Process-local snapshot, lost on restart."""

    mode = StorageMode.VOLATILE

    def __init__(self, appointments: list[Appointment] | None = None) -> None:
        self._snapshot: list[Appointment] = list(appointments or [])

    def initialize(self) -> None:
        return None

    def load_all(self) -> list[Appointment]:
        return list(self._snapshot)

    def save_all(self, appointments: list[Appointment]) -> bool:
        self._snapshot = list(appointments)
        return True


class JsonFileStorage:
    """Full-collection JSON snapshot on disk.

    A failed write moves the adapter into ``StorageMode.DEGRADED`` for the
    rest of the process: the last snapshot is then held in memory and the
    file is no longer read or written.
    """

    def __init__(self, path: str | os.PathLike) -> None:
        self.path = Path(path)
        self.mode = StorageMode.DURABLE
        self._fallback: list[Appointment] = []
        self._state_lock = Lock()

    @property
    def is_degraded(self) -> bool:
        return self.mode is StorageMode.DEGRADED

    def initialize(self) -> None:
        if self.path.exists():
            return

        try:
            self._write([])
        except OSError as exc:
            self._degrade([], exc)

    def load_all(self) -> list[Appointment]:
        with self._state_lock:
            if self.is_degraded:
                return list(self._fallback)

        try:
            raw = self.path.read_text(encoding='utf-8')
            return _appointment_list.validate_python(json.loads(raw))
        except (OSError, ValueError, ValidationError) as exc:
            logger.warning('Appointment snapshot %s is unreadable: %s', self.path, exc)
            raise StorageUnavailable(str(exc)) from exc

    def save_all(self, appointments: list[Appointment]) -> bool:
        snapshot = list(appointments)

        with self._state_lock:
            if self.is_degraded:
                self._fallback = snapshot
                return False

        try:
            self._write(snapshot)
        except OSError as exc:
            self._degrade(snapshot, exc)
            return False

        return True

    def _write(self, appointments: list[Appointment]) -> None:
        documents = [appointment.to_document() for appointment in appointments]
        temp_path = self.path.with_name(f'.{self.path.name}.tmp')
        try:
            temp_path.write_text(json.dumps(documents, indent=2), encoding='utf-8')
            os.replace(temp_path, self.path)
        except OSError:
            with suppress(OSError):
                temp_path.unlink(missing_ok=True)
            raise

    def _degrade(self, snapshot: list[Appointment], exc: Exception) -> None:
        with self._state_lock:
            self._fallback = snapshot
            self.mode = StorageMode.DEGRADED
        logger.error(
            'Failed to write %s, using in-memory storage for the rest of this process: %s',
            self.path,
            exc,
        )


def create_storage(
    read_only: bool | None = None,
    path: str | os.PathLike | None = None,
) -> InMemoryStorage | JsonFileStorage:
    if read_only is None:
        read_only = config.READ_ONLY_FILESYSTEM

    if read_only:
        storage = InMemoryStorage()
    else:
        storage = JsonFileStorage(path or config.APPOINTMENTS_FILE)

    storage.initialize()
    logger.info('Appointment storage mode: %s', storage.mode.value)
    return storage
