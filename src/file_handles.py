from __future__ import annotations

import logging
import mimetypes
import re
import shutil
import uuid
from pathlib import Path
from typing import BinaryIO, Optional

from fastapi import UploadFile

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024

# Запрещённые для имён файлов символы (Windows-совместимо)
INVALID_CHARS_PATTERN = re.compile(r'[<>:"/\\|?*]')


def sanitize_filename(name: str, replacement: str = "_") -> str:
    """Заменяет недопустимые символы в имени файла.

    :param name: исходное имя.
    :param replacement: символ для подстановки.
    :return: скорректированное имя.
    """
    return INVALID_CHARS_PATTERN.sub(replacement, name)


def guess_mime_type(name: str) -> str:
    return mimetypes.guess_type(name)[0] or "application/octet-stream"


class FileHandle:
    """Выбранный файл: имя, размер, MIME-тип и собственная копия на диске.

    Копия принадлежит только дескриптору, :meth:`release` её удаляет.
    """

    def __init__(self, name: str, size: int, mime_type: str, path: Path) -> None:
        self.name = name
        self.size = size
        self.mime_type = mime_type
        self.path = Path(path)
        self._released = False

    def __repr__(self) -> str:
        return f"FileHandle(name={self.name!r}, size={self.size}, mime_type={self.mime_type!r})"

    @property
    def released(self) -> bool:
        return self._released

    def open(self) -> BinaryIO:
        if self._released:
            raise ValueError(f"File handle for {self.name} has been released")
        return self.path.open("rb")

    def read_bytes(self) -> bytes:
        with self.open() as fh:
            return fh.read()

    def release(self) -> None:
        """Удалить копию файла. Повторный вызов ничего не делает."""
        if self._released:
            return
        self._released = True
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Failed to remove staged file %s: %s", self.path, exc)

    @classmethod
    def from_bytes(
        cls,
        name: str,
        data: bytes,
        directory: Path,
        mime_type: Optional[str] = None,
    ) -> "FileHandle":
        path = _staging_path(Path(directory), name)
        path.write_bytes(data)
        return cls(name, len(data), mime_type or guess_mime_type(name), path)

    @classmethod
    def from_path(cls, source: Path, directory: Path) -> "FileHandle":
        """Скопировать *source* в *directory* и вернуть дескриптор копии."""
        source = Path(source)
        path = _staging_path(Path(directory), source.name)
        shutil.copyfile(source, path)
        return cls(source.name, path.stat().st_size, guess_mime_type(source.name), path)


def _staging_path(directory: Path, name: str) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    safe_name = sanitize_filename(Path(name).name) or "upload"
    return directory / f"{uuid.uuid4()}_{safe_name}"


async def stage_upload(
    upload: UploadFile, directory: Path, *, limit: Optional[int] = None
) -> FileHandle:
    """Сохранить загруженный файл в *directory* порциями по 1 МБ.

    Если задан ``limit``, чтение прекращается, как только файл превысил
    лимит: такой файл всё равно будет отклонён хранилищем, а диск не
    заполняется лишними данными. ``size`` в этом случае равен числу
    прочитанных байт и заведомо больше ``limit``.
    """
    filename = Path(upload.filename or "").name
    if not filename:
        guessed_ext = mimetypes.guess_extension(upload.content_type or "") or ""
        filename = f"upload{guessed_ext}"
    path = _staging_path(Path(directory), filename)
    size = 0
    with open(path, "wb") as dest:
        while True:
            chunk = await upload.read(CHUNK_SIZE)
            if not chunk:
                break
            dest.write(chunk)
            size += len(chunk)
            if limit is not None and size > limit:
                logger.debug("Stopped reading %s after %d bytes", filename, size)
                break
    mime_type = upload.content_type or guess_mime_type(filename)
    return FileHandle(filename, size, mime_type, path)


__all__ = ["FileHandle", "stage_upload", "sanitize_filename", "guess_mime_type"]
