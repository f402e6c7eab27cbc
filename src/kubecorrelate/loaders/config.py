#!/usr/bin/env python3
"""
KUBECORRELATE USER CONFIG
-------------------------
Loads manual correlation pairs:

    correlationSettings:
      manualCorrelation:
        correlationPairs:
          apps/v1_Deployment_ns_name: deployment.yaml

Author: KubeCorrelate Team
Date: 2026-10-19
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Union

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from kubecorrelate.core.errors import ConfigError


@dataclass
class UserConfig:
    correlation_pairs: Dict[str, str] = field(default_factory=dict)


def _section(data: Any, key: str, where: str) -> Any:
    if data is None:
        return None
    if not isinstance(data, dict):
        raise ConfigError(f"User config: '{where}' must be a mapping")
    return data.get(key)


def parse_user_config(data: Any) -> UserConfig:
    settings = _section(data, "correlationSettings", "root")
    manual = _section(settings, "manualCorrelation", "correlationSettings")
    pairs = _section(manual, "correlationPairs", "manualCorrelation")
    if pairs is None:
        return UserConfig()
    if not isinstance(pairs, dict):
        raise ConfigError("User config: 'correlationPairs' must be a mapping of resource to template name")
    return UserConfig(correlation_pairs={str(k): str(v) for k, v in pairs.items()})


def load_user_config(path: Union[str, Path]) -> UserConfig:
    config_path = Path(path)
    try:
        data = YAML(typ="safe", pure=True).load(config_path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ConfigError(f"User config file doesn't exist: {config_path}") from e
    except YAMLError as e:
        raise ConfigError(f"Failed to parse user config {config_path}: {e}") from e
    return parse_user_config(data)
