"""Состояние виджета загрузки, по одному экземпляру на открытую страницу."""

from __future__ import annotations

import shutil
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

import httpx

from config import Settings
from file_handles import FileHandle
from logger import get_logger, session_logger
from services.submission import SubmissionController
from staging import StagingStore
from .previews import PreviewRegistry

logger = get_logger(__name__)


@dataclass
class AddFiles:
    handles: List[FileHandle]


@dataclass
class RemoveFile:
    file_id: str


@dataclass
class RemoveLast:
    pass


@dataclass
class UpdateField:
    file_id: str
    field: str
    value: str


Command = Union[AddFiles, RemoveFile, RemoveLast, UpdateField]


class WidgetSession:
    def __init__(
        self,
        session_id: str,
        store: StagingStore,
        controller: SubmissionController,
        staging_dir: Path,
        now: float = 0.0,
    ) -> None:
        self.id = session_id
        self.store = store
        self.controller = controller
        self.previews = PreviewRegistry()
        self.staging_dir = staging_dir
        self.closed = False
        self.last_active = now
        self.log = session_logger(logger, session_id)

    def is_idle(self, now: float, ttl: float) -> bool:
        # Сессию с отправкой в полёте не трогаем
        if self.controller.is_submitting:
            return False
        return now - self.last_active > ttl

    def dispatch(self, command: Command) -> bool:
        """Применить команду интерфейса к хранилищу.

        Возвращает ``True``, если набор файлов изменился и список нужно
        перерисовать. Правка поля меняет только состояние.
        """
        if isinstance(command, AddFiles):
            result = self.store.add(command.handles)
            if result.rejected:
                self.log.info("Rejected %d of %d file(s)", result.rejected, len(command.handles))
            return bool(result.added)
        if isinstance(command, RemoveFile):
            return self.store.remove(command.file_id)
        if isinstance(command, RemoveLast):
            return self.store.remove_last() is not None
        if isinstance(command, UpdateField):
            self.store.update_field(command.file_id, command.field, command.value)
            return False
        raise TypeError(f"Unsupported command: {command!r}")

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.store.clear()
        self.previews.revoke_all()
        shutil.rmtree(self.staging_dir, ignore_errors=True)
        self.log.debug("Removed %s", self.staging_dir)


class SessionRegistry:
    """Открывает и закрывает сессии виджета.

    Вкладка может исчезнуть, не отправив ``/staging/close``, поэтому при
    каждом ``open`` и ``get`` закрываются сессии, простаивающие дольше
    ``settings.session_ttl`` секунд.
    """

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings
        self.transport = transport
        self.clock = clock
        self._sessions: Dict[str, WidgetSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def open(self) -> WidgetSession:
        now = self.clock()
        self.expire_idle(now)
        session_id = str(uuid.uuid4())
        store = StagingStore(
            max_files=self.settings.max_files,
            max_size_bytes=self.settings.max_size_bytes,
        )
        controller = SubmissionController(
            store,
            self.settings.upload_endpoint,
            timeout=self.settings.upload_timeout,
            transport=self.transport,
        )
        staging_dir = Path(self.settings.staging_dir) / session_id
        session = WidgetSession(session_id, store, controller, staging_dir, now=now)
        self._sessions[session_id] = session
        logger.info("Opened upload session %s", session_id)
        return session

    def get(self, session_id: Optional[str]) -> Optional[WidgetSession]:
        """Найти сессию и отметить её активной."""
        now = self.clock()
        self.expire_idle(now)
        if not session_id:
            return None
        session = self._sessions.get(session_id)
        if session is not None:
            session.last_active = now
        return session

    def expire_idle(self, now: Optional[float] = None) -> int:
        now = self.clock() if now is None else now
        ttl = self.settings.session_ttl
        idle = [sid for sid, s in self._sessions.items() if s.is_idle(now, ttl)]
        for session_id in idle:
            logger.info("Upload session %s expired", session_id)
            self.close(session_id)
        return len(idle)

    def close(self, session_id: Optional[str]) -> bool:
        session = self._sessions.pop(session_id, None) if session_id else None
        if session is None:
            return False
        session.close()
        logger.info("Closed upload session %s", session_id)
        return True

    def close_all(self) -> None:
        for session_id in list(self._sessions):
            self.close(session_id)
