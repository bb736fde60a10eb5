import pytest

import catalog
from catalog import (
    InvalidFieldValue,
    UnknownFieldError,
    extension,
    format_byte_size,
    infer_category,
    is_previewable,
    resolve_field,
    validate_value,
)


@pytest.mark.parametrize(
    "filename, expected",
    [
        ("report.PDF", "Documents"),
        ("photo.JPG", "Images"),
        ("noext", "Documents"),
        ("clip.mkv", "Videos"),
        ("song.flac", "Audio"),
        ("backup.tar.gz", "Archives"),
        ("budget.xlsx", "Spreadsheets"),
        ("deck.pptx", "Presentations"),
        ("main.cpp", "Code"),
        ("scan.bmp", "Images"),
        ("trailing.", "Documents"),
    ],
)
def test_infer_category(filename, expected):
    assert infer_category(filename) == expected


def test_extension_uses_last_dot():
    assert extension("archive.tar.GZ") == "gz"
    assert extension("noext") == ""
    assert extension(".env") == "env"


def test_format_byte_size():
    assert format_byte_size(0) == "0 Bytes"
    assert format_byte_size(1536) == "1.50 KB"
    assert format_byte_size(500) == "500.00 Bytes"
    assert format_byte_size(1024) == "1.00 KB"
    assert format_byte_size(100 * 1024 * 1024) == "100.00 MB"
    assert format_byte_size(3 * 1024 ** 3) == "3.00 GB"


def test_format_byte_size_caps_at_terabytes():
    assert format_byte_size(2048 * 1024 ** 4) == "2048.00 TB"


def test_format_byte_size_rejects_negative():
    with pytest.raises(ValueError):
        format_byte_size(-1)


def test_preview_only_for_browser_images():
    assert is_previewable("a.png")
    assert is_previewable("a.SVG")
    assert not is_previewable("a.bmp")
    assert not is_previewable("a.pdf")


def test_field_registry_order():
    assert catalog.METADATA_FIELDS == (
        "category",
        "priority",
        "hierarchy",
        "sapModule",
        "contentType",
        "documentTitle",
        "documentAuthor",
    )
    assert catalog.ENUM_FIELDS["priority"] == ("Low", "Medium", "High", "Urgent")
    assert catalog.SAP_MODULES[0] == "FI - Finance"
    assert catalog.SAP_MODULES[-1] == "Other"


def test_resolve_field_accepts_attribute_names():
    assert resolve_field("sapModule") == "sapModule"
    assert resolve_field("sap_module") == "sapModule"
    with pytest.raises(UnknownFieldError):
        resolve_field("id")


def test_validate_value():
    validate_value("priority", "Urgent")
    validate_value("documentAuthor", "anything <at all>")
    with pytest.raises(InvalidFieldValue):
        validate_value("hierarchy", "Level 9")
