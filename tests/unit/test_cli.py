"""
Unit tests for the reqspell.__main__ CLI module.

Tests:
- parse_args argument parsing
- setup_logging configuration
- compile: JSON output, default limit, stream flag, empty filter exit code
- spell encode / spell decode
- Invalid configuration and unreadable input
"""

import json
import logging
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest

from reqspell.__main__ import main, parse_args, setup_logging
from reqspell.core.logger import StructuredFormatter
from tests.conftest import PUBKEY_HEX


@pytest.fixture
def quiet_logging() -> Iterator[None]:
    """Keep main() from installing root handlers."""
    with patch("reqspell.__main__.setup_logging"):
        yield


# ============================================================================
# parse_args
# ============================================================================


class TestParseArgs:
    """parse_args()."""

    def test_compile(self) -> None:
        args = parse_args(["compile", "-k 1"])
        assert args.action == "compile"
        assert args.command == "-k 1"
        assert args.config is None
        assert args.log_level is None
        assert args.json_logs is False

    def test_global_options(self) -> None:
        args = parse_args(
            ["--config", "cfg.yaml", "--log-level", "DEBUG", "--json-logs", "compile", "-k 1"]
        )
        assert args.config == Path("cfg.yaml")
        assert args.log_level == "DEBUG"
        assert args.json_logs is True

    def test_spell_encode(self) -> None:
        args = parse_args(
            ["spell", "encode", "-k 1", "--name", "Notes", "--topic", "a", "--topic", "b"]
        )
        assert args.spell_action == "encode"
        assert args.name == "Notes"
        assert args.topic == ["a", "b"]

    def test_spell_decode(self) -> None:
        args = parse_args(["spell", "decode", "spell.json"])
        assert args.path == Path("spell.json")

    def test_action_required(self) -> None:
        with pytest.raises(SystemExit):
            parse_args([])

    def test_invalid_log_level(self) -> None:
        with pytest.raises(SystemExit):
            parse_args(["--log-level", "TRACE", "compile", "-k 1"])


# ============================================================================
# setup_logging
# ============================================================================


class TestSetupLogging:
    """setup_logging()."""

    @pytest.fixture(autouse=True)
    def _restore_root(self) -> Iterator[None]:
        handlers = list(logging.root.handlers)
        level = logging.root.level
        yield
        logging.root.handlers = handlers
        logging.root.setLevel(level)

    def test_structured_formatter(self) -> None:
        setup_logging("WARNING")
        assert logging.root.level == logging.WARNING
        assert isinstance(logging.root.handlers[-1].formatter, StructuredFormatter)

    def test_json_output(self) -> None:
        setup_logging("DEBUG", json_output=True)
        formatter = logging.root.handlers[-1].formatter
        assert formatter is not None
        assert not isinstance(formatter, StructuredFormatter)


# ============================================================================
# main
# ============================================================================


@pytest.mark.usefixtures("quiet_logging")
class TestMain:
    """main() end to end."""

    def test_compile(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["compile", f"-k 1 -a {PUBKEY_HEX} relay.example.com"]) == 0
        output = json.loads(capsys.readouterr().out)
        assert output["command"] == "REQ"
        assert output["filter"] == {"kinds": [1], "authors": [PUBKEY_HEX], "limit": 50}
        assert output["relays"] == ["wss://relay.example.com/"]
        assert output["stream"] is True

    def test_compile_stream_flag(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert main(["compile", "-k 1 --close-on-eose"]) == 0
        assert json.loads(capsys.readouterr().out)["stream"] is False

        config = tmp_path / "config.yaml"
        config.write_text("query:\n  stream: false\n")
        assert main(["--config", str(config), "compile", "-k 1"]) == 0
        assert json.loads(capsys.readouterr().out)["stream"] is False

    def test_compile_keeps_explicit_limit(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["compile", "-k 1 -l 5"]) == 0
        assert json.loads(capsys.readouterr().out)["filter"]["limit"] == 5

    def test_compile_empty_filter(
        self, capsys: pytest.CaptureFixture[str], caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.ERROR):
            assert main(["compile", "relay.example.com"]) == 1
        assert capsys.readouterr().out == ""
        assert any(r.getMessage() == "compile_failed" for r in caplog.records)

    def test_config_default_limit(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        config = tmp_path / "config.yaml"
        config.write_text("query:\n  default_limit: 7\n")
        assert main(["--config", str(config), "compile", "-k 1"]) == 0
        assert json.loads(capsys.readouterr().out)["filter"]["limit"] == 7

    def test_invalid_config(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        config = tmp_path / "config.yaml"
        config.write_text("query:\n  default_limit: 0\n")
        with caplog.at_level(logging.ERROR):
            assert main(["--config", str(config), "compile", "-k 1"]) == 1
        assert any(r.getMessage() == "config_invalid" for r in caplog.records)

    def test_missing_config(self, tmp_path: Path) -> None:
        assert main(["--config", str(tmp_path / "absent.yaml"), "compile", "-k 1"]) == 1

    def test_spell_encode(self, capsys: pytest.CaptureFixture[str]) -> None:
        argv = ["spell", "encode", "-k 30023 -t nostr", "--name", "Long-form", "--topic", "blog"]
        assert main(argv) == 0
        event = json.loads(capsys.readouterr().out)
        assert event["kind"] == 777
        assert ["name", "Long-form"] in event["tags"]
        assert ["t", "blog"] in event["tags"]

    def test_spell_decode(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        path = tmp_path / "spell.json"
        path.write_text(json.dumps({"tags": [["cmd", "COUNT"], ["k", "7"]], "content": ""}))
        assert main(["spell", "decode", str(path)]) == 0
        assert capsys.readouterr().out.strip() == "count -k 7"

    def test_spell_decode_invalid_spell(self, tmp_path: Path) -> None:
        path = tmp_path / "spell.json"
        path.write_text(json.dumps({"tags": [["k", "7"]]}))
        assert main(["spell", "decode", str(path)]) == 1

    def test_spell_decode_not_object(self, tmp_path: Path) -> None:
        path = tmp_path / "spell.json"
        path.write_text("[]")
        assert main(["spell", "decode", str(path)]) == 1

    @pytest.mark.parametrize("content", [None, "{not json"])
    def test_spell_decode_unreadable(
        self, tmp_path: Path, content: str | None, caplog: pytest.LogCaptureFixture
    ) -> None:
        path = tmp_path / "spell.json"
        if content is not None:
            path.write_text(content)
        with caplog.at_level(logging.ERROR):
            assert main(["spell", "decode", str(path)]) == 1
        assert any(r.getMessage() == "input_unreadable" for r in caplog.records)
