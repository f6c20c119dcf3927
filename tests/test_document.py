import json
from pathlib import Path

import pytest

from cmdialog.dialog.document import (
    DialogDocument,
    dump_document,
    load_document,
    parse_document,
    sample_document,
    validate_document,
)
from cmdialog.errors import JsonConfigurationError


def test_parse_camel_case_document_and_ignore_unknown_fields() -> None:
    document = parse_document(
        json.dumps(
            {
                "title": "Setup",
                "message": "Installing",
                "buttons": [{"text": "OK", "isDefault": True}],
                "listItems": [{"title": "Chrome", "statusText": "Queued"}],
                "styling": {"backgroundColor": "#202020", "fontSize": 14},
                "futureFeature": {"enabled": True},
            }
        )
    )

    assert document.buttons[0].is_default is True
    assert document.list_items[0].status_text == "Queued"
    assert document.styling.background_color == "#202020"
    assert document.styling.font_size == 14


@pytest.mark.parametrize("text", ["", "   ", "{not json", '{"buttons": "nope"}'])
def test_parse_rejects_bad_documents(text: str) -> None:
    with pytest.raises(JsonConfigurationError):
        parse_document(text)


def test_validate_reports_errors() -> None:
    document = DialogDocument.model_validate(
        {
            "title": "t",
            "message": "m",
            "buttons": [
                {"text": "A", "isDefault": True, "isCancel": True},
                {"text": "B", "isDefault": True, "isCancel": True},
            ],
            "progress": {"value": 120, "maximum": 100},
            "listItems": [{"title": "  "}],
            "styling": {"width": 0, "height": -1, "opacity": 1.5},
        }
    )

    result = validate_document(document)

    assert result.is_valid is False
    assert result.errors == [
        "Only one button can be marked as default",
        "Only one button can be marked as cancel",
        "Progress value (120) must be between 0 and 100",
        "List item title cannot be empty",
        "Width must be positive",
        "Height must be positive",
        "Opacity must be between 0 and 1",
    ]


def test_validate_reports_warnings_only() -> None:
    document = DialogDocument.model_validate({"listItems": [{"title": "Chrome", "status": "sparkly"}]})

    result = validate_document(document)

    assert result.is_valid is True
    assert result.has_warnings is True
    assert "Title is empty" in result.warnings
    assert "Message is empty" in result.warnings
    assert "No buttons defined - dialog may be uncloseable" in result.warnings
    assert "Unknown status 'sparkly' for list item 'Chrome'" in result.warnings


def test_sample_document_is_valid_and_round_trips_camel_case() -> None:
    document = sample_document()
    assert validate_document(document).is_valid

    dumped = json.loads(dump_document(document))
    assert "listItems" in dumped
    assert dumped["buttons"][0]["isDefault"] is True
    assert parse_document(dump_document(document)) == document


@pytest.mark.asyncio
async def test_load_document_handles_bom_and_missing_files(tmp_path: Path) -> None:
    path = tmp_path / "dialog.json"
    path.write_bytes(b"\xef\xbb\xbf" + json.dumps({"title": "BOM"}).encode("utf-8"))

    document = await load_document(path)
    assert document.title == "BOM"

    with pytest.raises(JsonConfigurationError):
        await load_document(tmp_path / "missing.json")
