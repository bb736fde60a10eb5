from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Callable, Iterable, Iterator, List, Optional, Sequence, Tuple

from catalog import FIELD_ATTRIBUTES, resolve_field
from file_handles import FileHandle
from logger import get_logger
from models import StagedFile

logger = get_logger(__name__)

MAX_FILES = 50
MAX_SIZE_BYTES = 100 * 1024 * 1024


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass
class AddResult:
    """Результат :meth:`StagingStore.add`."""

    added: List[StagedFile] = field(default_factory=list)
    truncated: List[FileHandle] = field(default_factory=list)
    oversized: List[FileHandle] = field(default_factory=list)

    @property
    def rejected(self) -> int:
        return len(self.truncated) + len(self.oversized)


class StagingStore:
    """Упорядоченный список подготовленных файлов.

    Хранилище владеет дескрипторами своих записей: отклонённые и удалённые
    дескрипторы освобождаются сразу.
    """

    def __init__(
        self,
        max_files: int = MAX_FILES,
        max_size_bytes: int = MAX_SIZE_BYTES,
        id_factory: Callable[[], str] = _new_id,
    ) -> None:
        self.max_files = max_files
        self.max_size_bytes = max_size_bytes
        self._id_factory = id_factory
        self._files: List[StagedFile] = []
        self._issued: set[str] = set()

    def __len__(self) -> int:
        return len(self._files)

    def __iter__(self) -> Iterator[StagedFile]:
        return iter(self.list())

    def __contains__(self, file_id: object) -> bool:
        return any(f.id == file_id for f in self._files)

    @property
    def is_empty(self) -> bool:
        return not self._files

    def size(self) -> int:
        return len(self._files)

    def list(self) -> Tuple[StagedFile, ...]:
        """Снимок в порядке добавления; его изменение не затрагивает хранилище."""
        return tuple(f.model_copy() for f in self._files)

    def get(self, file_id: str) -> Optional[StagedFile]:
        for staged in self._files:
            if staged.id == file_id:
                return staged.model_copy()
        return None

    def add(self, handles: Sequence[FileHandle]) -> AddResult:
        """Добавить *handles*; при переполнении остаются более ранние файлы."""
        result = AddResult()
        batch = list(handles)

        over = len(self._files) + len(batch) - self.max_files
        if over > 0:
            keep = max(len(batch) - over, 0)
            batch, result.truncated = batch[:keep], batch[keep:]
            logger.warning(
                "Dropping %d file(s): limit of %d files reached",
                len(result.truncated),
                self.max_files,
            )

        for handle in batch:
            if handle.size > self.max_size_bytes:
                logger.warning("Skipping %s: too large", handle.name)
                result.oversized.append(handle)
                continue
            staged = StagedFile.create(self._new_unique_id(), handle)
            result.added.append(staged)

        for handle in result.truncated + result.oversized:
            handle.release()

        self._files.extend(result.added)
        if result.added:
            logger.info("Staged %d file(s), %d in total", len(result.added), len(self._files))
        return result

    def remove(self, file_id: str) -> bool:
        """Удалить запись *file_id*; неизвестный id игнорируется."""
        for index, staged in enumerate(self._files):
            if staged.id == file_id:
                del self._files[index]
                staged.handle.release()
                logger.debug("Removed %s (%s)", staged.name, file_id)
                return True
        return False

    def remove_last(self) -> Optional[StagedFile]:
        if not self._files:
            return None
        staged = self._files.pop()
        staged.handle.release()
        logger.debug("Removed last file %s", staged.name)
        return staged

    def discard(self, file_ids: Iterable[str]) -> int:
        """Удалить записи с id из *file_ids* и вернуть их число."""
        ids = set(file_ids)
        kept: List[StagedFile] = []
        removed = 0
        for staged in self._files:
            if staged.id in ids:
                staged.handle.release()
                removed += 1
            else:
                kept.append(staged)
        self._files = kept
        return removed

    def update_field(self, file_id: str, field_name: str, value: str) -> bool:
        """Изменить одно поле метаданных. Значение по каталогу не проверяется."""
        attribute = FIELD_ATTRIBUTES[resolve_field(field_name)]
        for staged in self._files:
            if staged.id == file_id:
                setattr(staged, attribute, value)
                return True
        return False

    def clear(self) -> None:
        files, self._files = self._files, []
        for staged in files:
            staged.handle.release()

    def _new_unique_id(self) -> str:
        # id не используется повторно даже после удаления записи
        while True:
            file_id = self._id_factory()
            if file_id not in self._issued:
                self._issued.add(file_id)
                return file_id


__all__ = ["StagingStore", "AddResult", "MAX_FILES", "MAX_SIZE_BYTES"]
