"""YAML configuration loading for ReqSpell.

Safe YAML file loading using ``yaml.safe_load``. Used by
[ReqSpellConfig.from_yaml()][reqspell.core.config.ReqSpellConfig.from_yaml]
to load the CLI configuration file.

Examples:
    ```python
    from reqspell.core.yaml import load_yaml

    config = load_yaml("reqspell.yaml")
    ```
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml


def load_yaml(config_path: str | Path) -> dict[str, Any]:
    """Load and parse a YAML configuration file.

    Args:
        config_path: Path to the YAML file (absolute or relative).

    Returns:
        Parsed configuration as a nested dictionary. Returns an empty dict
        if the file exists but contains no data.

    Raises:
        FileNotFoundError: If the file does not exist.
        yaml.YAMLError: If the file contains invalid YAML syntax.
        TypeError: If the top-level YAML value is not a mapping.

    Warning:
        The structure of the returned dictionary is not validated here.
        Callers pass it to a Pydantic model such as
        [ReqSpellConfig][reqspell.core.config.ReqSpellConfig].
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise TypeError(f"Config file must contain a mapping, got {type(data).__name__}")
    return data
