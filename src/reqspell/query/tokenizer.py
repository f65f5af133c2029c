"""
Command-line tokenizer.

Splits a raw command string on whitespace outside of matching single or
double quotes. Quote characters are consumed; an unterminated quote runs
to the end of the string. There is no escaping beyond quote boundaries.

Examples:
    ```python
    tokenize('-k 1 --search "hello world"')
    # ['-k', '1', '--search', 'hello world']

    split_command("COUNT -k 7 -a $me")
    # (CommandType.COUNT, ['-k', '7', '-a', '$me'])
    ```
"""

from __future__ import annotations

from reqspell.models.constants import CommandType


_QUOTES = frozenset("\"'")

_COMMAND_PREFIXES: dict[str, CommandType] = {
    "req": CommandType.REQ,
    "count": CommandType.COUNT,
}


def tokenize(command: str) -> list[str]:
    """Split *command* into non-empty tokens, honouring quotes."""
    tokens: list[str] = []
    current: list[str] = []
    quote: str | None = None

    for char in command:
        if quote is not None:
            if char == quote:
                quote = None
            else:
                current.append(char)
        elif char in _QUOTES:
            quote = char
        elif char.isspace():
            if current:
                tokens.append("".join(current))
            current = []
        else:
            current.append(char)

    if current:
        tokens.append("".join(current))
    return tokens


def split_command(command: str) -> tuple[CommandType, list[str]]:
    """Tokenize *command* and strip a leading ``req``/``count`` word.

    Returns:
        The command type (``REQ`` when no prefix is present) and the
        remaining tokens.
    """
    tokens = tokenize(command)
    if tokens:
        command_type = _COMMAND_PREFIXES.get(tokens[0].lower())
        if command_type is not None:
            return command_type, tokens[1:]
    return CommandType.REQ, tokens
