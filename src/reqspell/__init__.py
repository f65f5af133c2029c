r"""ReqSpell -- Nostr REQ/COUNT command compiler and multi-relay query state.

Compiles terminal-style commands (``req -k 1 -a npub1... --since 7d``) into
NIP-01 filters, stores them as shareable kind-777 spell events, and derives
one overall status for a subscription fanned out over many relays.

Architecture follows a **diamond DAG** dependency structure where imports
flow strictly downward:

```text
              spells           Spell codec, parameters, resolution
             /      \
          query    state       Compiler and relay-state aggregation
             \   |   /
       core  nips  utils       Config, logging, NIP-19/05, caching
             \   |   /
              models           Pure frozen dataclasses (zero I/O)
```

Attributes:
    models: Pure frozen dataclasses. Depends on stdlib and ``rfc3986``.
    core: Exceptions, structured logging, configuration.
    nips: NIP-19 identifier decoding and NIP-05 identifier shapes.
    utils: Per-event computation cache.
    query: Tokenizer, identifier classification, time parsing, compiler.
    state: Relay state tracker, overall status aggregator, presentation.
    spells: Spell encoding/decoding, parameters, identifier resolution.

Note:
    For lightweight usage, import directly from subpackages::

        from reqspell.query import compile_command
        from reqspell.state import derive_overall_state

    Top-level imports (``from reqspell import compile_command``) use lazy
    loading and resolve on first access.
"""

import importlib
from importlib.metadata import version as _get_version


__version__ = _get_version("reqspell")

__all__ = [
    "CompiledQuery",
    "ComputationCache",
    "Filter",
    "Logger",
    "OverallQueryState",
    "QueryStatus",
    "RelayState",
    "RelayStateTracker",
    "ReqSpellConfig",
    "ReqSpellError",
    "compile_command",
    "decode_spell",
    "derive_overall_state",
    "encode_spell",
    "reconstruct_command",
    "resolve_query",
]

_LAZY_IMPORTS: dict[str, tuple[str, str]] = {
    "Logger": ("reqspell.core", "Logger"),
    "ReqSpellConfig": ("reqspell.core", "ReqSpellConfig"),
    "ReqSpellError": ("reqspell.core", "ReqSpellError"),
    "CompiledQuery": ("reqspell.models", "CompiledQuery"),
    "Filter": ("reqspell.models", "Filter"),
    "OverallQueryState": ("reqspell.models", "OverallQueryState"),
    "QueryStatus": ("reqspell.models", "QueryStatus"),
    "RelayState": ("reqspell.models", "RelayState"),
    "ComputationCache": ("reqspell.utils", "ComputationCache"),
    "compile_command": ("reqspell.query", "compile_command"),
    "RelayStateTracker": ("reqspell.state", "RelayStateTracker"),
    "derive_overall_state": ("reqspell.state", "derive_overall_state"),
    "decode_spell": ("reqspell.spells", "decode_spell"),
    "encode_spell": ("reqspell.spells", "encode_spell"),
    "reconstruct_command": ("reqspell.spells", "reconstruct_command"),
    "resolve_query": ("reqspell.spells", "resolve_query"),
}


def __getattr__(name: str) -> object:
    if name in _LAZY_IMPORTS:
        module_path, attr_name = _LAZY_IMPORTS[name]
        module = importlib.import_module(module_path)
        value = getattr(module, attr_name)
        globals()[name] = value  # Cache for subsequent access
        return value
    raise AttributeError(f"module 'reqspell' has no attribute {name!r}")


def __dir__() -> list[str]:
    return __all__
