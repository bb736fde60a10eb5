"""Отправка подготовленных файлов одним multipart-запросом."""

from __future__ import annotations

from contextlib import ExitStack
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

import httpx

from logger import get_logger
from models import StagedFile
from staging import StagingStore

logger = get_logger(__name__)

FILES_FIELD = "files"
SUBMIT_LABEL = "🚀 Upload Files"
BUSY_LABEL = "Uploading..."
FAILURE_MESSAGE = "Upload failed. Check the server log for details."


class SubmissionState(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"


class SubmissionInProgressError(RuntimeError):
    """Повторная отправка, пока предыдущая ещё не завершилась."""


@dataclass(frozen=True)
class Notification:
    kind: str  # "success" | "error"
    text: str


@dataclass(frozen=True)
class SubmissionResult:
    ok: bool
    submitted: int
    status_code: Optional[int] = None
    error: Optional[str] = None


def meta_field(file_id: str) -> str:
    return f"meta_{file_id}"


def build_form(
    files: Sequence[StagedFile], stack: ExitStack
) -> Tuple[Dict[str, str], List[Tuple[str, Tuple[str, Any, str]]]]:
    """Собрать поля формы: ``meta_<id>`` с JSON и по одной части ``files`` на файл.

    Открытые файлы регистрируются в *stack* и закрываются вместе с ним.
    """
    data: Dict[str, str] = {}
    parts: List[Tuple[str, Tuple[str, Any, str]]] = []
    for staged in files:
        fh = stack.enter_context(staged.handle.open())
        parts.append((FILES_FIELD, (staged.name, fh, staged.handle.mime_type)))
        data[meta_field(staged.id)] = staged.metadata().to_json()
    return data, parts


class SubmissionController:
    """Отправляет содержимое :class:`StagingStore` на ``endpoint``.

    Состояний два: ``IDLE`` и ``SUBMITTING``. Пока запрос в полёте, новая
    отправка невозможна. При ответе 2xx отправленные файлы убираются из
    хранилища; при ошибке хранилище не меняется, и отправку можно повторить.
    """

    def __init__(
        self,
        store: StagingStore,
        endpoint: str,
        *,
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.store = store
        self.endpoint = endpoint
        self.timeout = timeout
        self._transport = transport
        self.state = SubmissionState.IDLE
        self.notification: Notification | None = None
        self.reset_input = False

    @property
    def is_submitting(self) -> bool:
        return self.state is SubmissionState.SUBMITTING

    @property
    def submit_disabled(self) -> bool:
        return self.is_submitting or self.store.is_empty

    @property
    def submit_label(self) -> str:
        return BUSY_LABEL if self.is_submitting else SUBMIT_LABEL

    def consume_notification(self) -> Notification | None:
        """Вернуть и сбросить одноразовое уведомление."""
        notification, self.notification = self.notification, None
        self.reset_input = False
        return notification

    async def submit(self) -> SubmissionResult | None:
        if self.is_submitting:
            raise SubmissionInProgressError("A submission is already in flight")
        if self.store.is_empty:
            return None

        self.state = SubmissionState.SUBMITTING
        self.notification = None
        self.reset_input = False
        batch = self.store.list()
        try:
            result = await self._send(batch)
        finally:
            self.state = SubmissionState.IDLE

        if result.ok:
            self.store.discard(f.id for f in batch)
            self.reset_input = True
            self.notification = Notification(
                "success", f"🎉 Successfully uploaded {result.submitted} file(s)!"
            )
        else:
            self.notification = Notification("error", FAILURE_MESSAGE)
        return result

    async def _send(self, batch: Sequence[StagedFile]) -> SubmissionResult:
        count = len(batch)
        logger.info("Submitting %d file(s) to %s", count, self.endpoint)
        try:
            with ExitStack() as stack:
                data, files = build_form(batch, stack)
                async with httpx.AsyncClient(
                    timeout=self.timeout, transport=self._transport
                ) as client:
                    response = await client.post(self.endpoint, data=data, files=files)
        except (httpx.HTTPError, OSError) as exc:
            logger.error("Upload of %d file(s) failed: %s", count, exc)
            return SubmissionResult(ok=False, submitted=0, error=str(exc))

        if not response.is_success:
            logger.error("Upload failed: %s", response.status_code)
            return SubmissionResult(
                ok=False,
                submitted=0,
                status_code=response.status_code,
                error=f"Upload failed: {response.status_code}",
            )
        logger.info("Uploaded %d file(s): %s", count, response.status_code)
        return SubmissionResult(ok=True, submitted=count, status_code=response.status_code)


__all__ = [
    "SubmissionController",
    "SubmissionState",
    "SubmissionResult",
    "SubmissionInProgressError",
    "Notification",
    "build_form",
    "meta_field",
]
