"""Tests for the chatbridge command line."""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest
from click.testing import CliRunner

import chatbridge.cli as cli_module
from chatbridge.cli import load_history, main
from chatbridge.llm.models import FunctionCallPart, Role, TextPart
from fakes import chunked, completion_body, delta_line, sse_body


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def use_handler(monkeypatch: pytest.MonkeyPatch, make_generator, sent_requests):
    """Route the CLI's generator through a mock transport."""

    def _use(handler) -> list[httpx.Request]:
        monkeypatch.setattr(
            cli_module,
            "_build_generator",
            lambda env_file, model, base_url: make_generator(handler),
        )
        return sent_requests

    return _use


class TestGenerate:
    def test_single_shot(self, runner: CliRunner, use_handler) -> None:
        sent = use_handler(
            lambda r: httpx.Response(200, json=completion_body("Hi from the model"))
        )
        result = runner.invoke(main, ["generate", "hello", "there"])
        assert result.exit_code == 0, result.output
        assert "Hi from the model" in result.output
        assert "finish reason: stop" in result.output
        body = json.loads(sent[0].content)
        assert body["messages"] == [{"role": "user", "content": "hello there"}]
        assert body["stream"] is False

    def test_stream(self, runner: CliRunner, use_handler) -> None:
        body = sse_body(delta_line("Hel"), delta_line("lo", "stop"), "data: [DONE]")
        use_handler(lambda r: httpx.Response(200, content=chunked(body)))
        result = runner.invoke(main, ["generate", "--stream", "hi"])
        assert result.exit_code == 0, result.output
        assert "Hello" in result.output
        assert "finish reason: stop" in result.output

    def test_history_is_sent_first(
        self, runner: CliRunner, use_handler, tmp_path: Path
    ) -> None:
        history = tmp_path / "chat.json"
        history.write_text(
            json.dumps(
                [
                    {"role": "user", "text": "What is 2+2?"},
                    {"role": "model", "parts": [{"text": "4"}]},
                ]
            )
        )
        sent = use_handler(lambda r: httpx.Response(200, json=completion_body("8")))
        result = runner.invoke(
            main, ["generate", "--history", str(history), "Double it"]
        )
        assert result.exit_code == 0, result.output
        assert json.loads(sent[0].content)["messages"] == [
            {"role": "user", "content": "What is 2+2?"},
            {"role": "assistant", "content": "4"},
            {"role": "user", "content": "Double it"},
        ]

    def test_http_error_exits_1(self, runner: CliRunner, use_handler) -> None:
        use_handler(lambda r: httpx.Response(401, text="invalid key"))
        result = runner.invoke(main, ["generate", "hi"])
        assert result.exit_code == 1
        assert "AuthenticationError" in result.output
        assert "invalid key" in result.output

    def test_unsupported_role_exits_1(
        self, runner: CliRunner, use_handler, tmp_path: Path
    ) -> None:
        history = tmp_path / "chat.json"
        history.write_text(json.dumps([{"role": "tool", "text": "42"}]))
        sent = use_handler(lambda r: httpx.Response(200, json=completion_body("x")))
        result = runner.invoke(main, ["generate", "--history", str(history), "hi"])
        assert result.exit_code == 1
        assert "Unsupported role: tool" in result.output
        assert sent == []

    def test_missing_key_exits_1(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["generate", "hi"])
        assert result.exit_code == 1
        assert "ConfigurationError" in result.output

    def test_bad_history_file(self, runner: CliRunner, tmp_path: Path) -> None:
        history = tmp_path / "chat.json"
        history.write_text('{"role": "user"}')
        result = runner.invoke(main, ["generate", "--history", str(history), "hi"])
        assert result.exit_code == 1
        assert "Failed to load history" in result.output


class TestLoadHistory:
    def test_parts_are_typed(self, tmp_path: Path) -> None:
        path = tmp_path / "h.json"
        path.write_text(
            json.dumps(
                [
                    {
                        "role": "model",
                        "parts": [
                            {"function_call": {"name": "lookup", "args": {"q": 1}}},
                            {"text": "done"},
                        ],
                    }
                ]
            )
        )
        (turn,) = load_history(path)
        assert turn.role == Role.MODEL.value
        assert turn.parts == [
            FunctionCallPart(name="lookup", args={"q": 1}),
            TextPart(text="done"),
        ]

    def test_unknown_part(self, tmp_path: Path) -> None:
        path = tmp_path / "h.json"
        path.write_text(json.dumps([{"role": "user", "parts": [{"video": "x"}]}]))
        with pytest.raises(ValueError, match="Unrecognised part"):
            load_history(path)


class TestConfigCommand:
    def test_masks_key(self, runner: CliRunner, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OPENAI_API_KEY", "sk-abcdefghijklmnop")
        monkeypatch.setenv("OPENAI_MODEL", "gpt-test")
        result = runner.invoke(main, ["config"])
        assert result.exit_code == 0, result.output
        assert "sk-abcdefghijklmnop" not in result.output
        assert "mnop" in result.output
        assert "gpt-test" in result.output

    def test_missing_key_shown(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["config"])
        assert result.exit_code == 0
        assert "missing" in result.output
