from __future__ import annotations

import io
import logging
import secrets
from typing import Dict, Optional, Tuple

from PIL import Image, UnidentifiedImageError

from catalog import extension
from file_handles import FileHandle

logger = logging.getLogger(__name__)

PREVIEW_MAX_HEIGHT = 120


class PreviewRegistry:
    """Одноразовые ссылки на превью изображений.

    Токен действует до первой загрузки картинки или до следующей
    перерисовки списка, после чего отзывается.
    """

    def __init__(self) -> None:
        self._handles: Dict[str, FileHandle] = {}

    def __len__(self) -> int:
        return len(self._handles)

    def create(self, handle: FileHandle) -> str:
        token = secrets.token_urlsafe(16)
        self._handles[token] = handle
        return token

    def consume(self, token: str) -> Optional[FileHandle]:
        handle = self._handles.pop(token, None)
        if handle is None or handle.released:
            return None
        return handle

    def revoke_all(self) -> None:
        self._handles.clear()


def render_thumbnail(
    handle: FileHandle, max_height: int = PREVIEW_MAX_HEIGHT
) -> Optional[Tuple[bytes, str]]:
    """Вернуть ``(content, media_type)`` превью высотой не более *max_height*.

    ``None`` означает, что картинка слишком велика для декодирования
    (защита Pillow от «бомб декомпрессии») и превью не будет.
    """
    if extension(handle.name) == "svg":
        return handle.read_bytes(), "image/svg+xml"
    try:
        with Image.open(handle.path) as img:
            # JPEG сразу декодируется в уменьшенном масштабе
            target_width = max(1, img.width * max_height // max(img.height, 1))
            img.draft(None, (target_width, max_height))
            img.thumbnail((img.width, max_height))
            if img.mode not in ("RGB", "RGBA", "L", "LA", "P"):
                img = img.convert("RGBA")
            buffer = io.BytesIO()
            img.save(buffer, format="PNG")
            return buffer.getvalue(), "image/png"
    except Image.DecompressionBombError as exc:
        logger.warning("No preview for %s: %s", handle.name, exc)
        return None
    except (UnidentifiedImageError, OSError) as exc:
        logger.debug("Pillow could not render %s: %s", handle.name, exc)
        return handle.read_bytes(), handle.mime_type
