"""Фиксированные значения метаданных для каждого подготовленного файла."""

from __future__ import annotations

from typing import Dict, Tuple

CATEGORIES: Tuple[str, ...] = (
    "Documents",
    "Images",
    "Videos",
    "Audio",
    "Archives",
    "Spreadsheets",
    "Presentations",
    "Code",
    "Other",
)
PRIORITIES: Tuple[str, ...] = ("Low", "Medium", "High", "Urgent")
HIERARCHIES: Tuple[str, ...] = ("Level 1", "Level 2", "Level 3", "Level 4", "Level 5")
SAP_MODULES: Tuple[str, ...] = (
    "FI - Finance",
    "CO - Controlling",
    "SD - Sales & Distribution",
    "MM - Materials Management",
    "PP - Production Planning",
    "HR - Human Resources",
    "PM - Plant Maintenance",
    "QM - Quality Management",
    "WM - Warehouse Management",
    "PS - Project Systems",
    "Other",
)
CONTENT_TYPES: Tuple[str, ...] = (
    "Manual",
    "Process Document",
    "Training Material",
    "Policy",
    "Procedure",
    "Form",
    "Template",
    "Report",
    "Specification",
    "Other",
)

DEFAULT_CATEGORY = "Documents"
DEFAULT_PRIORITY = "Medium"
DEFAULT_HIERARCHY = "Level 1"
DEFAULT_SAP_MODULE = "Other"
DEFAULT_CONTENT_TYPE = "Other"

# Порядок важен: первое совпадение определяет категорию
_CATEGORY_EXTENSIONS: Tuple[Tuple[str, frozenset[str]], ...] = (
    ("Images", frozenset({"jpg", "jpeg", "png", "gif", "bmp", "svg", "webp"})),
    ("Videos", frozenset({"mp4", "avi", "mkv", "mov", "wmv", "flv"})),
    ("Audio", frozenset({"mp3", "wav", "flac", "aac", "ogg"})),
    ("Archives", frozenset({"zip", "rar", "7z", "tar", "gz"})),
    ("Spreadsheets", frozenset({"xls", "xlsx", "csv"})),
    ("Presentations", frozenset({"ppt", "pptx"})),
    ("Code", frozenset({"js", "html", "css", "py", "java", "cpp", "c"})),
)

# bmp считается изображением, но браузеры показывают его ненадёжно
PREVIEW_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "gif", "webp", "svg"})

SIZE_UNITS: Tuple[str, ...] = ("Bytes", "KB", "MB", "GB", "TB")

# Имена полей в запросах (camelCase) в порядке отображения
ENUM_FIELDS: Dict[str, Tuple[str, ...]] = {
    "category": CATEGORIES,
    "priority": PRIORITIES,
    "hierarchy": HIERARCHIES,
    "sapModule": SAP_MODULES,
    "contentType": CONTENT_TYPES,
}
TEXT_FIELDS: Tuple[str, ...] = ("documentTitle", "documentAuthor")
METADATA_FIELDS: Tuple[str, ...] = tuple(ENUM_FIELDS) + TEXT_FIELDS

FIELD_ATTRIBUTES: Dict[str, str] = {
    "category": "category",
    "priority": "priority",
    "hierarchy": "hierarchy",
    "sapModule": "sap_module",
    "contentType": "content_type",
    "documentTitle": "document_title",
    "documentAuthor": "document_author",
}
_ATTRIBUTE_FIELDS = {attr: field for field, attr in FIELD_ATTRIBUTES.items()}

FIELD_LABELS: Dict[str, str] = {
    "category": "Category",
    "priority": "Priority",
    "hierarchy": "Hierarchy",
    "sapModule": "SAP Module",
    "contentType": "Content Type",
    "documentTitle": "Document Title",
    "documentAuthor": "Document Author",
}


class UnknownFieldError(ValueError):
    """Имя поля не входит в число редактируемых полей метаданных."""


class InvalidFieldValue(ValueError):
    """Значение перечислимого поля не входит в его набор."""


def extension(name: str) -> str:
    """Текст после последней точки в нижнем регистре, ``""`` если точки нет."""
    _, dot, ext = name.rpartition(".")
    return ext.lower() if dot else ""


def infer_category(filename: str) -> str:
    """Определить категорию по расширению файла."""
    ext = extension(filename)
    for category, extensions in _CATEGORY_EXTENSIONS:
        if ext in extensions:
            return category
    return DEFAULT_CATEGORY


def is_previewable(filename: str) -> bool:
    return extension(filename) in PREVIEW_EXTENSIONS


def format_byte_size(size: int) -> str:
    """Размер в единицах по основанию 1024, например ``1536 -> "1.50 KB"``."""
    if size < 0:
        raise ValueError(f"Size must not be negative: {size}")
    if size == 0:
        return "0 Bytes"
    index = 0
    while index < len(SIZE_UNITS) - 1 and size >= 1024 ** (index + 1):
        index += 1
    return f"{size / 1024 ** index:.2f} {SIZE_UNITS[index]}"


def resolve_field(name: str) -> str:
    """Имя поля в запросах для *name*; имена атрибутов тоже принимаются."""
    if name in FIELD_ATTRIBUTES:
        return name
    if name in _ATTRIBUTE_FIELDS:
        return _ATTRIBUTE_FIELDS[name]
    raise UnknownFieldError(f"Unknown metadata field: {name!r}")


def validate_value(field: str, value: str) -> None:
    """Проверить *value* по каталогу; текстовые поля принимают любое значение."""
    field = resolve_field(field)
    options = ENUM_FIELDS.get(field)
    if options is not None and value not in options:
        raise InvalidFieldValue(f"{value!r} is not a valid {FIELD_LABELS[field]}")


__all__ = [
    "CATEGORIES",
    "PRIORITIES",
    "HIERARCHIES",
    "SAP_MODULES",
    "CONTENT_TYPES",
    "ENUM_FIELDS",
    "TEXT_FIELDS",
    "METADATA_FIELDS",
    "FIELD_ATTRIBUTES",
    "FIELD_LABELS",
    "PREVIEW_EXTENSIONS",
    "UnknownFieldError",
    "InvalidFieldValue",
    "extension",
    "infer_category",
    "is_previewable",
    "format_byte_size",
    "resolve_field",
    "validate_value",
]
