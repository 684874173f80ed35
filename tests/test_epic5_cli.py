from pathlib import Path

from pydantic import BaseModel, Field
from typer.testing import CliRunner

from fieldpath.cli import app
from fieldpath.stable_json import config_hash

runner = CliRunner()

MODEL = "test_epic5_cli:AppConfig"


class NestedSection(BaseModel):
    field3: bool = False


class AppConfig(BaseModel):
    field1: str = ""
    field2: int = 0
    nested: NestedSection = Field(default_factory=NestedSection)


def _config(tmp_path: Path) -> Path:
    p = tmp_path / "app.yaml"
    p.write_text("field1: value1\nfield2: 2\nnested:\n  field3: true\n", encoding="utf-8")
    return p


def test_cli_prints_effective_config_with_overrides(tmp_path: Path):
    result = runner.invoke(
        app,
        [MODEL, str(_config(tmp_path)), "--set", "field1=newvalue1", "--set", "nested.field3=false"],
    )

    assert result.exit_code == 0, result.output
    assert '"field1": "newvalue1"' in result.output
    assert '"field2": 2' in result.output
    assert '"field3": false' in result.output


def test_cli_hash_matches_library_hash(tmp_path: Path):
    result = runner.invoke(app, [MODEL, str(_config(tmp_path)), "--hash", "--set", "field2=3"])

    expected = AppConfig(field1="value1", field2=3, nested=NestedSection(field3=True))
    assert result.exit_code == 0, result.output
    assert result.output.strip() == config_hash(expected)


def test_cli_override_file(tmp_path: Path):
    over = tmp_path / "local.json"
    over.write_text('{"field2": 40}', encoding="utf-8")

    result = runner.invoke(
        app, [MODEL, str(_config(tmp_path)), "--override-file", str(over), "--hash"]
    )

    expected = AppConfig(field1="value1", field2=40, nested=NestedSection(field3=True))
    assert result.exit_code == 0, result.output
    assert result.output.strip() == config_hash(expected)


def test_cli_reports_failed_override(tmp_path: Path):
    result = runner.invoke(app, [MODEL, str(_config(tmp_path)), "--set", "missing=1"])

    assert result.exit_code == 1
    assert "override failed" in result.output
    assert "missing" in result.output


def test_cli_rejects_bad_model_reference(tmp_path: Path):
    result = runner.invoke(app, ["no_colon_here", str(_config(tmp_path))])
    assert result.exit_code != 0


def test_cli_rejects_unsupported_format(tmp_path: Path):
    p = tmp_path / "app.ini"
    p.write_text("[x]\n", encoding="utf-8")

    result = runner.invoke(app, [MODEL, str(p)])
    assert result.exit_code == 1
    assert "Unsupported config format" in result.output
