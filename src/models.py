from __future__ import annotations

import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from catalog import (
    DEFAULT_CONTENT_TYPE,
    DEFAULT_HIERARCHY,
    DEFAULT_PRIORITY,
    DEFAULT_SAP_MODULE,
    infer_category,
)
from file_handles import FileHandle

_EXTENSION_RE = re.compile(r"\.[^/.]+$")


def default_title(filename: str) -> str:
    """Имя файла без последнего расширения."""
    return _EXTENSION_RE.sub("", filename)


class FileMetadata(BaseModel):
    """Метаданные, отправляемые с каждым файлом, с ключами в camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    category: str
    priority: str = DEFAULT_PRIORITY
    hierarchy: str = DEFAULT_HIERARCHY
    sap_module: str = DEFAULT_SAP_MODULE
    content_type: str = DEFAULT_CONTENT_TYPE
    document_title: str = ""
    document_author: str = ""

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class StagedFile(FileMetadata):
    """Выбранный файл, ожидающий отправки, вместе с метаданными."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )

    id: str
    handle: FileHandle = Field(exclude=True)

    @classmethod
    def create(cls, file_id: str, handle: FileHandle) -> "StagedFile":
        return cls(
            id=file_id,
            handle=handle,
            category=infer_category(handle.name),
            document_title=default_title(handle.name),
        )

    @property
    def name(self) -> str:
        return self.handle.name

    @property
    def size(self) -> int:
        return self.handle.size

    def metadata(self) -> FileMetadata:
        return FileMetadata.model_validate(
            self.model_dump(include=set(FileMetadata.model_fields))
        )


class FieldUpdate(BaseModel):
    """Тело запроса на изменение одного поля формы."""

    field: str
    value: str


class UploadStubResponse(BaseModel):
    status: str = "success"
    file_id: str
    filename: Optional[str] = None
    message: str


class ProxyErrorResponse(BaseModel):
    error: str
    detail: Optional[str] = None
