"""
Pydantic configuration models for ReqSpell.

[ReqSpellConfig][reqspell.core.config.ReqSpellConfig] is the root model
loaded by the CLI from an optional YAML file. It groups:

* [LoggingConfig][reqspell.core.config.LoggingConfig] -- level, output
  format and value truncation of the structured logger;
* [QueryConfig][reqspell.core.config.QueryConfig] -- defaults applied when
  a compiled query is prepared for execution.

Examples:
    ```yaml
    logging:
      level: DEBUG
      json_output: false
    query:
      default_limit: 50
      stream: true
      max_resolver_concurrency: 8
    ```

    ```python
    config = ReqSpellConfig.from_yaml("reqspell.yaml")
    logger = config.logging.make_logger("reqspell.compiler")
    ```
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Self

import yaml
from pydantic import BaseModel, Field, ValidationError

from .exceptions import ConfigurationError
from .logger import Logger
from .yaml import load_yaml


LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LoggingConfig(BaseModel):
    """Logging configuration.

    ``level`` applies to the root handler installed by the CLI. Library
    components only log when they are handed a
    [Logger][reqspell.core.logger.Logger], typically built with
    [make_logger()][reqspell.core.config.LoggingConfig.make_logger].
    """

    level: LogLevel = Field(default="INFO", description="Root log level")
    json_output: bool = Field(default=False, description="Emit JSON lines instead of key=value")
    max_value_length: int = Field(
        default=1000, ge=16, le=100_000, description="Truncate structured values past this length"
    )

    def make_logger(self, name: str) -> Logger:
        """Return a [Logger][reqspell.core.logger.Logger] honouring this configuration."""
        return Logger(name, json_output=self.json_output, max_value_length=self.max_value_length)


class QueryConfig(BaseModel):
    """Defaults applied to compiled queries before execution.

    See Also:
        [apply_default_limit()][reqspell.spells.resolver.apply_default_limit]:
            Uses ``default_limit``.
        [prepare_query()][reqspell.spells.resolver.prepare_query]: Uses
            ``default_limit`` and ``max_resolver_concurrency``.
    """

    default_limit: int = Field(
        default=50, ge=1, le=100_000, description="Limit used when the command sets none"
    )
    stream: bool = Field(default=True, description="Keep subscriptions open after EOSE")
    max_resolver_concurrency: int = Field(
        default=8, ge=1, le=256, description="Concurrent NIP-05 / domain lookups"
    )

    def streams(self, close_on_eose: bool) -> bool:
        """Return True if a subscription stays open after EOSE.

        A command with ``--close-on-eose`` always closes; otherwise ``stream``
        decides. The result is the ``is_streaming`` input of
        [derive_overall_state()][reqspell.state.aggregator.derive_overall_state].
        """
        return self.stream and not close_on_eose


class ReqSpellConfig(BaseModel):
    """Root configuration model."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    query: QueryConfig = Field(default_factory=QueryConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Validate a configuration dictionary.

        Raises:
            ConfigurationError: If the dictionary fails validation.
        """
        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    @classmethod
    def from_yaml(cls, config_path: str | Path) -> Self:
        """Load and validate a YAML configuration file.

        Delegates parsing to [load_yaml()][reqspell.core.yaml.load_yaml].

        Raises:
            ConfigurationError: If the file is missing, is not valid YAML,
                is not a mapping, or fails validation.
        """
        try:
            data = load_yaml(config_path)
        except (FileNotFoundError, TypeError, yaml.YAMLError) as e:
            raise ConfigurationError(str(e)) from e
        return cls.from_dict(data)
