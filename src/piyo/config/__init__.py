"""設定管理モジュール"""

from piyo.config.loader import (
    ConfigError,
    ConfigValidationError,
    EnvironmentVariableError,
    expand_env_vars,
    load_config,
)
from piyo.config.models import (
    Config,
    InterestConfig,
    LLMConfig,
    LoggingConfig,
    MemoryConfig,
    PersonaConfig,
    TelegramConfig,
    TemplatesConfig,
)

__all__ = [
    "Config",
    "ConfigError",
    "ConfigValidationError",
    "EnvironmentVariableError",
    "InterestConfig",
    "LLMConfig",
    "LoggingConfig",
    "MemoryConfig",
    "PersonaConfig",
    "TelegramConfig",
    "TemplatesConfig",
    "expand_env_vars",
    "load_config",
]
