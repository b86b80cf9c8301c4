"""YAML設定ファイルの読み込みと環境変数展開"""

import os
import re
from pathlib import Path
from typing import Any

import yaml

from piyo.config.models import (
    DEFAULT_API_ROOT,
    DEFAULT_LOG_FORMAT,
    Config,
    InterestConfig,
    LLMConfig,
    LoggingConfig,
    MemoryConfig,
    PersonaConfig,
    TelegramConfig,
    TemplatesConfig,
)


class ConfigError(Exception):
    """設定関連の基底例外"""


class ConfigValidationError(ConfigError):
    """設定値のバリデーションエラー"""


class EnvironmentVariableError(ConfigError):
    """環境変数が見つからないエラー"""


# 環境変数パターン: ${VAR_NAME}
ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


def expand_env_vars(value: str) -> str:
    """文字列中の ${VAR_NAME} を環境変数の値に置換する

    Args:
        value: 置換対象の文字列

    Returns:
        環境変数が展開された文字列

    Raises:
        EnvironmentVariableError: 環境変数が未設定
    """
    if not value:
        return value

    def replace_var(match: re.Match[str]) -> str:
        var_name = match.group(1)
        env_value = os.environ.get(var_name)
        if env_value is None:
            raise EnvironmentVariableError(
                f"Environment variable '{var_name}' is not set"
            )
        return env_value

    return ENV_VAR_PATTERN.sub(replace_var, value)


def _expand_recursive(data: Any) -> Any:
    """データ構造を再帰的に走査し、文字列中の環境変数を展開する"""
    if isinstance(data, dict):
        return {key: _expand_recursive(value) for key, value in data.items()}
    elif isinstance(data, list):
        return [_expand_recursive(item) for item in data]
    elif isinstance(data, str):
        return expand_env_vars(data)
    else:
        return data


def _validate_required_field(data: dict[str, Any], field: str, parent: str = "") -> Any:
    """必須フィールドの存在を検証する

    Args:
        data: 検証対象のdict
        field: フィールド名
        parent: 親フィールド名（エラーメッセージ用）

    Returns:
        フィールドの値

    Raises:
        ConfigValidationError: フィールドが存在しない
    """
    if field not in data or data[field] is None:
        full_path = f"{parent}.{field}" if parent else field
        raise ConfigValidationError(f"Required field '{full_path}' is missing")
    return data[field]


def _load_telegram(data: dict[str, Any]) -> TelegramConfig:
    allowed = data.get("allowed_group_ids") or []
    if not isinstance(allowed, list):
        raise ConfigValidationError("'telegram.allowed_group_ids' must be a list")

    return TelegramConfig(
        bot_token=_validate_required_field(data, "bot_token", "telegram"),
        api_root=data.get("api_root") or DEFAULT_API_ROOT,
        ignore_bot_messages=bool(data.get("ignore_bot_messages", False)),
        ignore_direct_messages=bool(data.get("ignore_direct_messages", False)),
        only_allowed_groups=bool(data.get("only_allowed_groups", False)),
        # Telegram のチャットIDは数値だが、比較は文字列で行う
        allowed_group_ids=[str(group_id) for group_id in allowed],
    )


def _load_persona(data: dict[str, Any]) -> PersonaConfig:
    bio = data.get("bio", "")
    if isinstance(bio, list):
        bio = "\n".join(str(line) for line in bio)

    templates_data = data.get("templates") or {}
    templates = TemplatesConfig(
        should_respond=templates_data.get("should_respond"),
        message_handler=templates_data.get("message_handler"),
    )

    return PersonaConfig(
        name=_validate_required_field(data, "name", "persona"),
        bio=bio,
        templates=templates,
    )


def load_config(path: str | Path) -> Config:
    """設定ファイルを読み込む

    Args:
        path: config.yaml のパス

    Returns:
        Config オブジェクト

    Raises:
        FileNotFoundError: ファイルが存在しない
        ConfigValidationError: 必須項目が欠落
        EnvironmentVariableError: 環境変数が未設定
        yaml.YAMLError: YAML構文エラー
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, encoding="utf-8") as f:
        raw_data = yaml.safe_load(f)

    if not isinstance(raw_data, dict):
        raise ConfigValidationError("Config file must contain a mapping")

    # 環境変数を展開
    data = _expand_recursive(raw_data)

    # 必須セクションの検証
    telegram_data = _validate_required_field(data, "telegram")
    llm_data = _validate_required_field(data, "llm")
    persona_data = _validate_required_field(data, "persona")
    memory_data = _validate_required_field(data, "memory")

    telegram = _load_telegram(telegram_data)

    # LLMConfig (defaultは必須)
    _validate_required_field(llm_data, "default", "llm")
    llm: dict[str, LLMConfig] = {}
    for key, llm_item in llm_data.items():
        model = _validate_required_field(llm_item, "model", f"llm.{key}")
        llm[key] = LLMConfig(
            model=model,
            temperature=llm_item.get("temperature", 0.7),
            max_tokens=llm_item.get("max_tokens", 1000),
        )

    persona = _load_persona(persona_data)

    memory = MemoryConfig(
        database_path=_validate_required_field(memory_data, "database_path", "memory"),
        recent_message_count=memory_data.get("recent_message_count", 20),
    )

    interest_data = data.get("interest") or {}
    max_messages = interest_data.get("max_messages_per_chat", 50)
    if not isinstance(max_messages, int) or max_messages <= 0:
        raise ConfigValidationError(
            "'interest.max_messages_per_chat' must be a positive integer"
        )
    handler_timeout = interest_data.get("handler_timeout_seconds", 300.0)
    if not isinstance(handler_timeout, (int, float)) or handler_timeout < 0:
        raise ConfigValidationError(
            "'interest.handler_timeout_seconds' must be a non-negative number"
        )
    interest = InterestConfig(
        max_messages_per_chat=max_messages,
        handler_timeout_seconds=float(handler_timeout),
    )

    # LoggingConfig (optional)
    logging_config: LoggingConfig | None = None
    logging_data = data.get("logging")
    if logging_data:
        logging_config = LoggingConfig(
            level=logging_data.get("level", "INFO"),
            format=logging_data.get("format", DEFAULT_LOG_FORMAT),
            loggers=logging_data.get("loggers"),
            debug_llm_messages=logging_data.get("debug_llm_messages", False),
        )

    return Config(
        telegram=telegram,
        llm=llm,
        persona=persona,
        memory=memory,
        interest=interest,
        logging=logging_config,
    )
