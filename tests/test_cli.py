"""Tests for the command-line interface."""

from typer.testing import CliRunner

from news_assistant.cli import app

runner = CliRunner()


def test_interpret_number():
    result = runner.invoke(app, ["interpret", "tin số 3", "--count", "5"])
    assert result.exit_code == 0
    assert "SelectByNumber" in result.output


def test_interpret_with_titles():
    result = runner.invoke(
        app,
        ["interpret", "giá vàng", "--title", "Giá vàng tăng", "--title", "Bão mới"],
    )
    assert result.exit_code == 0
    assert "SelectByFuzzyMatch" in result.output


def test_interpret_control():
    result = runner.invoke(app, ["interpret", "dừng"])
    assert result.exit_code == 0
    assert "Control" in result.output


def test_info_lists_backends():
    result = runner.invoke(app, ["info"])
    assert result.exit_code == 0
    assert "google" in result.output
    assert "server" in result.output


def test_run_missing_config():
    result = runner.invoke(app, ["run", "--config", "/nonexistent/preset.yaml"])
    assert result.exit_code == 1
    assert "not found" in result.output


def test_say_without_key_fails_cleanly():
    result = runner.invoke(app, ["say", "xin chào", "--output", "out.mp3"])
    assert result.exit_code == 1
    assert "GOOGLE_TTS_API" in result.output
