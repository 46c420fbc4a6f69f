"""Compass configuration loader.

Model settings and prompts live in ``compass/agent_config.yaml`` (or the file
named by ``AGENT_CONFIG_PATH``).  Credentials never go in this file; they are
read from the environment by :mod:`compass.tools.llm` and
:mod:`compass.web_search`.

The loader is tolerant: a missing or malformed file yields the built-in
defaults.

The YAML schema:

- default_model: <string | null>
- compass:
    model_name: <string | null>
    system_prompt: <string | null>
    max_tokens: <int | null>
    temperature: <float | null>
- web_search:
    model_name: <string | null>
    system_prompt: <string | null>
    timeout: <float | null>
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Optional

import yaml

logger = logging.getLogger("compass.config")

DEFAULT_COMPASS_MODEL = "claude-3-5-sonnet-20241022"
DEFAULT_MAX_TOKENS = 8192
DEFAULT_TEMPERATURE = 1.0

DEFAULT_SEARCH_MODEL = "sonar"
DEFAULT_SEARCH_SYSTEM_PROMPT = "Be precise and concise."
DEFAULT_SEARCH_TIMEOUT = 60.0


@dataclass(frozen=True)
class CompassSettings:
    model_name: Optional[str]
    system_prompt: Optional[str]
    max_tokens: int = DEFAULT_MAX_TOKENS
    temperature: float = DEFAULT_TEMPERATURE


@dataclass(frozen=True)
class SearchSettings:
    model_name: str = DEFAULT_SEARCH_MODEL
    system_prompt: str = DEFAULT_SEARCH_SYSTEM_PROMPT
    timeout: float = DEFAULT_SEARCH_TIMEOUT


def _default_config_path() -> str:
    return os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "agent_config.yaml")


@lru_cache(maxsize=1)
def load_agent_config(path: Optional[str] = None) -> dict[str, Any]:
    config_path = path or os.getenv("AGENT_CONFIG_PATH") or _default_config_path()
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        return {}
    except (OSError, yaml.YAMLError):
        logger.warning(f"Could not read config file {config_path}; using defaults", exc_info=True)
        return {}
    return data if isinstance(data, dict) else {}


def _block(config: dict[str, Any], name: str) -> dict[str, Any]:
    block = config.get(name)
    return block if isinstance(block, dict) else {}


def _number(value: Any, default: float) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    return default


def get_compass_settings() -> CompassSettings:
    config = load_agent_config()
    block = _block(config, "compass")

    model_name = block.get("model_name")
    if model_name is None:
        model_name = config.get("default_model")
    system_prompt = block.get("system_prompt")

    return CompassSettings(
        model_name=model_name if isinstance(model_name, str) else None,
        system_prompt=system_prompt if isinstance(system_prompt, str) else None,
        max_tokens=int(_number(block.get("max_tokens"), DEFAULT_MAX_TOKENS)),
        temperature=float(_number(block.get("temperature"), DEFAULT_TEMPERATURE)),
    )


def get_search_settings() -> SearchSettings:
    block = _block(load_agent_config(), "web_search")
    model_name = block.get("model_name")
    system_prompt = block.get("system_prompt")
    return SearchSettings(
        model_name=model_name if isinstance(model_name, str) else DEFAULT_SEARCH_MODEL,
        system_prompt=system_prompt if isinstance(system_prompt, str) else DEFAULT_SEARCH_SYSTEM_PROMPT,
        timeout=float(_number(block.get("timeout"), DEFAULT_SEARCH_TIMEOUT)),
    )
