"""CLI entry point for ReqSpell.

Compiles commands and converts them to and from spell tags. Output goes to
stdout as JSON (or as a plain command string for ``spell decode``); logs go
to stderr.

Examples:
    ```bash
    python -m reqspell compile "req -k 1 -a npub1... --since 7d relay.damus.io"
    python -m reqspell spell encode "-k 30023 -t nostr" --name "Long-form" --topic nostr
    python -m reqspell spell decode spell.json
    python -m reqspell --log-level DEBUG compile "-k 1,x -l 20"
    ```
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from reqspell.core.config import ReqSpellConfig
from reqspell.core.exceptions import ReqSpellError
from reqspell.core.logger import Logger, StructuredFormatter
from reqspell.query.compiler import compile_command, require_constraints
from reqspell.spells.codec import decode_spell, encode_spell
from reqspell.spells.resolver import apply_default_limit


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="reqspell",
        description="Nostr REQ/COUNT command compiler",
    )

    parser.add_argument(
        "--config",
        type=Path,
        help="YAML config path (default: built-in defaults)",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: from config, else INFO)",
    )

    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit log records as JSON lines",
    )

    commands = parser.add_subparsers(dest="action", required=True)

    compile_parser = commands.add_parser("compile", help="Compile a command to a filter")
    compile_parser.add_argument("command", help="Command string, quoted")

    spell_parser = commands.add_parser("spell", help="Encode or decode spell events")
    spell_commands = spell_parser.add_subparsers(dest="spell_action", required=True)

    encode_parser = spell_commands.add_parser("encode", help="Encode a command as spell tags")
    encode_parser.add_argument("command", help="Command string, quoted")
    encode_parser.add_argument("--name", help="Spell name")
    encode_parser.add_argument("--description", help="Spell description (event content)")
    encode_parser.add_argument(
        "--topic", action="append", default=[], help="Topic tag (repeatable)"
    )

    decode_parser = spell_commands.add_parser("decode", help="Decode a spell event JSON file")
    decode_parser.add_argument("path", type=Path, help='JSON file with "tags" and "content"')

    return parser.parse_args(argv)


def setup_logging(level: str, *, json_output: bool = False) -> None:
    """Configure the root logger.

    Installs a ``StructuredFormatter`` on a stderr handler so that output
    is ``level name message key=value ...``. In JSON mode each
    [Logger][reqspell.core.logger.Logger] record already is a JSON line and
    the handler prints the message alone.
    """
    handler = logging.StreamHandler()
    if json_output:
        handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        handler.setFormatter(StructuredFormatter())
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level))


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def run(args: argparse.Namespace, config: ReqSpellConfig, logger: Logger) -> int:
    """Execute the parsed action. Returns the process exit code."""
    log = config.logging.make_logger("reqspell")

    if args.action == "compile":
        compiled = require_constraints(compile_command(args.command, logger=log))
        compiled = apply_default_limit(compiled, config.query.default_limit)
        _print_json({**compiled.to_dict(), "stream": config.query.streams(compiled.close_on_eose)})
        return 0

    if args.spell_action == "encode":
        encoded = encode_spell(
            args.command,
            name=args.name,
            description=args.description,
            topics=args.topic,
            logger=log,
        )
        _print_json(encoded.to_dict())
        return 0

    with args.path.open(encoding="utf-8") as f:
        event = json.load(f)
    if not isinstance(event, dict):
        logger.error("spell_decode_failed", path=str(args.path), error="not a JSON object")
        return 1
    parsed = decode_spell(event.get("tags", []), event.get("content") or "")
    print(parsed.command)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point: parse args, load config, and run the action."""
    args = parse_args(argv)

    try:
        config = ReqSpellConfig.from_yaml(args.config) if args.config else ReqSpellConfig()
    except ReqSpellError as e:
        setup_logging(args.log_level or "INFO", json_output=args.json_logs)
        Logger("cli", json_output=args.json_logs).error("config_invalid", error=str(e))
        return 1

    if args.json_logs:
        config = config.model_copy(
            update={"logging": config.logging.model_copy(update={"json_output": True})}
        )
    setup_logging(args.log_level or config.logging.level, json_output=config.logging.json_output)
    logger = config.logging.make_logger("cli")

    try:
        return run(args, config, logger)
    except ReqSpellError as e:
        logger.error(f"{args.action}_failed", error=str(e), error_type=type(e).__name__)
        return 1
    except (OSError, json.JSONDecodeError) as e:
        logger.error("input_unreadable", error=str(e))
        return 1


def cli() -> None:
    """Synchronous entry point for console_scripts."""
    sys.exit(main())


if __name__ == "__main__":
    cli()
