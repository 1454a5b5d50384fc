"""Configuration file loading and caching.

Handles:
- YAML file parsing
- Environment variable overrides
- Config caching for the process-wide (cwd-less) config
- Conversion from dict to typed Config dataclass
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from kiro_acp.config.merge import merge_configs
from kiro_acp.config.paths import get_config_paths
from kiro_acp.config.schema import (
    DEFAULT_THOUGHT_PREFIXES,
    STRATEGIES,
    WRAP_POLICIES,
    Config,
    KiroConfig,
    LoggingConfig,
    TranscriptConfig,
)

# Module logger (may not be configured yet at import time)
_log = logging.getLogger("kiro_acp.config")

_cached_config: Config | None = None

_TRUE_VALUES = {"1", "true", "yes"}


def env_string(name: str) -> str | None:
    """Return an environment variable, treating empty values as unset."""
    value = os.environ.get(name)
    return value if value else None


def env_bool(name: str) -> bool:
    """Return True when an environment variable is 1, true or yes."""
    value = os.environ.get(name)
    if not value:
        return False
    return value.lower() in _TRUE_VALUES


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file, returning empty dict if not found or invalid."""
    if not path.exists():
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
            return data if isinstance(data, dict) else {}
    except yaml.YAMLError as e:
        _log.warning("Invalid YAML in %s: %s", path, e)
        return {}
    except PermissionError:
        _log.debug("Permission denied reading %s", path)
        return {}
    except OSError as e:
        _log.warning("Error reading %s: %s", path, e)
        return {}


def env_overrides() -> dict[str, Any]:
    """Build config dict from environment variables.

    Environment variables take highest priority. They are how editors such
    as Zed pass settings to an agent server.
    """
    kiro: dict[str, Any] = {}

    cli = env_string("KIRO_ACP_KIRO_CLI") or env_string("KIRO_CLI")
    if cli:
        kiro["cli"] = cli
    if agent := env_string("KIRO_ACP_AGENT"):
        kiro["agent"] = agent
    if model := env_string("KIRO_ACP_MODEL"):
        kiro["model"] = model
    if env_string("KIRO_ACP_TRUST_ALL_TOOLS"):
        kiro["trust_all_tools"] = env_bool("KIRO_ACP_TRUST_ALL_TOOLS")
    if trust_tools := env_string("KIRO_ACP_TRUST_TOOLS"):
        kiro["trust_tools"] = trust_tools
    if wrap := env_string("KIRO_ACP_WRAP"):
        kiro["wrap"] = wrap
    if env_string("KIRO_ACP_VERBOSE"):
        kiro["verbose"] = env_bool("KIRO_ACP_VERBOSE")

    overrides: dict[str, Any] = {}
    if kiro:
        overrides["kiro"] = kiro

    if strategy := env_string("KIRO_ACP_STRATEGY"):
        overrides["transcript"] = {"strategy": strategy}

    logging_overrides: dict[str, Any] = {}
    if log_path := env_string("KIRO_ACP_LOG"):
        logging_overrides["file"] = log_path
    if level := env_string("KIRO_ACP_LOG_LEVEL"):
        logging_overrides["level"] = level
    if logging_overrides:
        overrides["logging"] = logging_overrides

    return overrides


def _choice(value: Any, allowed: tuple[str, ...], default: str, key: str) -> str:
    if value is None:
        return default
    text = str(value).lower()
    if text not in allowed:
        _log.warning("Ignoring invalid %s %r (expected one of %s)", key, value, ", ".join(allowed))
        return default
    return text


def dict_to_config(data: dict[str, Any]) -> Config:
    """Convert merged dict to typed Config dataclass."""
    kiro_data = data.get("kiro") or {}
    kiro = KiroConfig(
        cli=kiro_data.get("cli"),
        agent=kiro_data.get("agent"),
        model=kiro_data.get("model"),
        trust_all_tools=bool(kiro_data.get("trust_all_tools", False)),
        trust_tools=kiro_data.get("trust_tools"),
        wrap=_choice(kiro_data.get("wrap"), WRAP_POLICIES, "auto", "kiro.wrap"),
        verbose=bool(kiro_data.get("verbose", True)),
    )

    transcript_data = data.get("transcript") or {}
    prefixes = transcript_data.get("thought_prefixes")
    if not isinstance(prefixes, list):
        prefixes = list(DEFAULT_THOUGHT_PREFIXES)
    transcript = TranscriptConfig(
        strategy=_choice(
            transcript_data.get("strategy"), STRATEGIES, "classify", "transcript.strategy"
        ),
        carry_chars=int(transcript_data.get("carry_chars", 64)),
        thought_prefixes=[p for p in prefixes if isinstance(p, str) and p],
    )

    log_data = data.get("logging") or {}
    logging_config = LoggingConfig(
        level=log_data.get("level"),
        file=log_data.get("file"),
    )

    known_keys = {"kiro", "transcript", "logging"}
    extra = {k: v for k, v in data.items() if k not in known_keys}

    return Config(
        kiro=kiro,
        transcript=transcript,
        logging=logging_config,
        extra=extra,
    )


def load_config(cwd: str | None = None, reload: bool = False) -> Config:
    """Load and merge config from all sources.

    Priority order (highest to lowest):
    1. Environment variables
    2. Project config ($cwd/.kiro-acp/config.yaml)
    3. User config (~/.config/kiro-acp/config.yaml or %APPDATA%)
    4. System config (/etc/kiro-acp/ or %PROGRAMDATA%)

    Args:
        cwd: Session working directory for project-level config.
        reload: Force reload even if cached.

    Returns:
        Merged Config object.
    """
    global _cached_config

    if _cached_config is not None and not reload and cwd is None:
        return _cached_config

    layers: list[dict[str, Any]] = []

    for path in get_config_paths(cwd):
        layer = load_yaml_file(path)
        if layer:
            _log.debug("Loaded config from %s", path)
            layers.append(layer)

    env_layer = env_overrides()
    if env_layer:
        layers.append(env_layer)

    config = dict_to_config(merge_configs(*layers))

    # Cache only the global config (no cwd)
    if cwd is None:
        _cached_config = config

    return config


def get_config() -> Config:
    """Get the cached global config, loading it on first use."""
    if _cached_config is None:
        return load_config()
    return _cached_config


def reset_config() -> None:
    """Reset cached config. Useful for testing."""
    global _cached_config
    _cached_config = None
