"""Tests for the command line entry point."""

from typer.testing import CliRunner

from recipe_remix import __version__, identity
from recipe_remix.main import app

runner = CliRunner()


def test_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_identity_command(tmp_path, monkeypatch):
    from recipe_remix.config import get_settings

    monkeypatch.setattr(identity, "_identity", None)
    monkeypatch.setattr(get_settings(), "session_id_path", tmp_path / "session_id")

    result = runner.invoke(app, ["identity"])

    assert result.exit_code == 0
    assert (tmp_path / "session_id").read_text() in result.output


def test_health_requires_openai_key(monkeypatch):
    from recipe_remix.config import get_settings

    monkeypatch.setattr(get_settings(), "openai_api_key", None)
    result = runner.invoke(app, ["health"])
    assert result.exit_code == 1
    assert "OPENAI_API_KEY missing" in result.output
