"""Saved queries: spell events, parameters and identifier resolution.

Top of the diamond DAG. Depends on ``query``, ``models``, ``nips``,
``core`` and ``utils``.

Attributes:
    encode_spell: Command string to kind-777 spell tags.
    decode_spell: Spell tags back to a compiled query and canonical command.
    reconstruct_command: Canonical command string from filter components.
    apply_spell_parameters: Substitute a spell's ``$pubkey`` / ``$event`` /
        ``$relay`` placeholder.
    resolve_query: Concurrent NIP-05 / domain resolution and alias
        substitution.
    prepare_query: Resolution plus the configured default limit.
"""

from .codec import (
    EncodedSpell,
    ParsedSpell,
    decode_spell,
    decode_spell_event,
    detect_command_type,
    encode_spell,
    reconstruct_command,
)
from .parameters import ParameterContext, SpellParameter, apply_spell_parameters
from .resolver import (
    AccountContext,
    AliasResolver,
    apply_default_limit,
    prepare_query,
    resolve_query,
    substitute_aliases,
)


__all__ = [
    "AccountContext",
    "AliasResolver",
    "EncodedSpell",
    "ParameterContext",
    "ParsedSpell",
    "SpellParameter",
    "apply_default_limit",
    "apply_spell_parameters",
    "decode_spell",
    "decode_spell_event",
    "detect_command_type",
    "encode_spell",
    "prepare_query",
    "reconstruct_command",
    "resolve_query",
    "substitute_aliases",
]
