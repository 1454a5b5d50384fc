"""Configuration management for kiro-acp.

Provides hierarchical YAML-based configuration with:
- System-level config (/etc/kiro-acp/ or %PROGRAMDATA%)
- User-level config (~/.config/kiro-acp/ or %APPDATA%)
- Project-level config ($cwd/.kiro-acp/)
- Environment variable overrides (highest priority)

Example usage:
    from kiro_acp.config import load_config

    config = load_config(cwd="/path/to/project")
    print(config.kiro.wrap)
    print(config.transcript.strategy)
"""

from kiro_acp.config.host_settings import host_default_mode, host_settings_path
from kiro_acp.config.loader import (
    env_bool,
    env_string,
    get_config,
    load_config,
    reset_config,
)
from kiro_acp.config.paths import (
    get_config_paths,
    get_project_config_path,
    get_system_config_path,
    get_user_config_path,
)
from kiro_acp.config.schema import (
    Config,
    KiroConfig,
    LoggingConfig,
    TranscriptConfig,
)

__all__ = [
    "Config",
    "load_config",
    "get_config",
    "reset_config",
    "env_bool",
    "env_string",
    "KiroConfig",
    "TranscriptConfig",
    "LoggingConfig",
    "host_default_mode",
    "host_settings_path",
    "get_config_paths",
    "get_system_config_path",
    "get_user_config_path",
    "get_project_config_path",
]
