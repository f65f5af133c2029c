"""Command compilation: tokenizer, identifier classification, time parsing, compiler.

Pure and synchronous end to end; network-dependent resolution of NIP-05
and domain identifiers happens later in
[resolve_query()][reqspell.spells.resolver.resolve_query].

Attributes:
    compile_command: Tokenize and compile a full command string.
    compile_tokens: Compile an already tokenized command.
    require_constraints: The single strict gate, raising
        [EmptyFilterError][reqspell.core.exceptions.EmptyFilterError].
    tokenize: Quote-aware whitespace tokenizer.
    parse_timestamp: ``--since``/``--until`` expression parser.
"""

from .compiler import compile_command, compile_tokens, require_constraints
from .identifiers import Classified, IdentifierKind, classify_event, classify_pubkey
from .timestamps import UNIT_SECONDS, parse_timestamp
from .tokenizer import split_command, tokenize


__all__ = [
    "UNIT_SECONDS",
    "Classified",
    "IdentifierKind",
    "classify_event",
    "classify_pubkey",
    "compile_command",
    "compile_tokens",
    "parse_timestamp",
    "require_constraints",
    "split_command",
    "tokenize",
]
