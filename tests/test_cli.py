import json
from pathlib import Path

from typer.testing import CliRunner

from cmdialog.cli import app

runner = CliRunner()


def test_send_appends_lines(tmp_path: Path) -> None:
    command_file = tmp_path / "commands.log"
    command_file.write_text("# header\n", encoding="utf-8")

    result = runner.invoke(app, ["send", str(command_file), "progress: 50", "title: Done"])

    assert result.exit_code == 0
    assert "appended 2 line(s)" in result.output
    assert command_file.read_text(encoding="utf-8") == "# header\nprogress: 50\ntitle: Done\n"


def test_send_requires_existing_directory(tmp_path: Path) -> None:
    result = runner.invoke(app, ["send", str(tmp_path / "missing" / "commands.log"), "quit:"])

    assert result.exit_code == 1
    assert "directory does not exist" in result.output


def test_sample_config_is_valid_json() -> None:
    result = runner.invoke(app, ["sample-config"])

    assert result.exit_code == 0
    document = json.loads(result.output)
    assert document["title"] == "Sample Dialog"
    assert len(document["listItems"]) == 3


def test_validate_accepts_sample(tmp_path: Path) -> None:
    path = tmp_path / "dialog.json"
    path.write_text(runner.invoke(app, ["sample-config"]).output, encoding="utf-8")

    result = runner.invoke(app, ["validate", str(path)])

    assert result.exit_code == 0
    assert "valid" in result.output


def test_validate_rejects_duplicate_defaults(tmp_path: Path) -> None:
    path = tmp_path / "dialog.json"
    path.write_text(
        json.dumps({"title": "t", "message": "m", "buttons": [{"isDefault": True}, {"isDefault": True}]}),
        encoding="utf-8",
    )

    result = runner.invoke(app, ["validate", str(path)])

    assert result.exit_code == 1
    assert "Only one button can be marked as default" in result.output


def test_validate_reports_unreadable_file(tmp_path: Path) -> None:
    result = runner.invoke(app, ["validate", str(tmp_path / "missing.json")])

    assert result.exit_code == 1
    assert "error" in result.output
