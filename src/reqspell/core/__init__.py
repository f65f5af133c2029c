"""Core layer: exceptions, structured logging and configuration.

Sits in the middle of the diamond DAG -- depends only on
``reqspell.models`` and is depended upon by the ``query``, ``state`` and
``spells`` layers.

Attributes:
    Logger: Structured logger supporting key=value and JSON output modes.
        See [Logger][reqspell.core.logger.Logger].
    ReqSpellConfig: Root Pydantic configuration model with
        [from_yaml()][reqspell.core.config.ReqSpellConfig.from_yaml].
    ReqSpellError: Base of the exception hierarchy.
        See [reqspell.core.exceptions][].
    load_yaml: Safe YAML loading with ``yaml.safe_load()``.
"""

from .config import LoggingConfig, QueryConfig, ReqSpellConfig
from .exceptions import (
    CommandError,
    ConfigurationError,
    EmptyFilterError,
    ParameterError,
    ReqSpellError,
    SpellDecodeError,
    SpellError,
)
from .logger import Logger, StructuredFormatter, format_kv_pairs
from .yaml import load_yaml


__all__ = [
    "CommandError",
    "ConfigurationError",
    "EmptyFilterError",
    "Logger",
    "LoggingConfig",
    "ParameterError",
    "QueryConfig",
    "ReqSpellConfig",
    "ReqSpellError",
    "SpellDecodeError",
    "SpellError",
    "StructuredFormatter",
    "format_kv_pairs",
    "load_yaml",
]
