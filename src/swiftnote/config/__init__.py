"""設定管理モジュール"""

from swiftnote.config.loader import (
    ConfigError,
    ConfigValidationError,
    EnvironmentVariableError,
    expand_env_vars,
    load_config,
)
from swiftnote.config.models import (
    Config,
    DatabaseConfig,
    LoggingConfig,
    NotesConfig,
    QueryConfig,
)

__all__ = [
    "Config",
    "ConfigError",
    "ConfigValidationError",
    "DatabaseConfig",
    "EnvironmentVariableError",
    "LoggingConfig",
    "NotesConfig",
    "QueryConfig",
    "expand_env_vars",
    "load_config",
]
