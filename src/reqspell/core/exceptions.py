"""ReqSpell exception hierarchy.

Typed exceptions for the failure categories callers may want to handle
separately. Unrecognized command tokens are never errors (the compiler
skips them); these exceptions cover the places where a caller asked for
something that cannot be honoured.

Exception hierarchy:

```text
ReqSpellError (base -- never raised directly)
├── ConfigurationError      -- config validation, missing keys, bad YAML
├── CommandError            -- a compiled command is unusable
│   └── EmptyFilterError    -- filter has no constraint at all
├── SpellError              -- spell (kind 777) encoding/decoding failures
│   └── SpellDecodeError    -- missing or malformed ``cmd`` tag
└── ParameterError          -- invalid spell parameter application
```

See Also:
    [require_constraints()][reqspell.query.compiler.require_constraints]:
        Raises [EmptyFilterError][reqspell.core.exceptions.EmptyFilterError].
    [decode_spell()][reqspell.spells.codec.decode_spell]: Raises
        [SpellDecodeError][reqspell.core.exceptions.SpellDecodeError].
    [apply_spell_parameters()][reqspell.spells.parameters.apply_spell_parameters]:
        Raises [ParameterError][reqspell.core.exceptions.ParameterError].
"""

from __future__ import annotations


class ReqSpellError(Exception):
    """Base exception for all ReqSpell errors.

    Never raised directly -- always use a specific subclass.
    """


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ConfigurationError(ReqSpellError):
    """Invalid or missing configuration (YAML file, CLI flags).

    See Also:
        [ReqSpellConfig.from_yaml()][reqspell.core.config.ReqSpellConfig.from_yaml]:
            Wraps YAML and validation failures in this exception.
    """


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


class CommandError(ReqSpellError):
    """A compiled command cannot be used as requested."""


class EmptyFilterError(CommandError):
    """The compiled filter has no constraint and would match every event.

    See Also:
        [Filter.has_constraints()][reqspell.models.filter.Filter.has_constraints]:
            The predicate behind this error.
    """


# ---------------------------------------------------------------------------
# Spells
# ---------------------------------------------------------------------------


class SpellError(ReqSpellError):
    """Base for spell encoding and decoding failures."""


class SpellDecodeError(SpellError):
    """A spell event lacks a valid ``cmd`` tag or carries malformed tags."""


# ---------------------------------------------------------------------------
# Parameters
# ---------------------------------------------------------------------------


class ParameterError(ReqSpellError):
    """A parameterized spell was applied with missing or invalid arguments.

    Raised when no values are supplied, when the spell declares no
    parameter, or when a value does not match the declared parameter type.
    """
