"""設定データクラス"""

from dataclasses import dataclass, field

DEFAULT_API_ROOT = "https://api.telegram.org"
DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class TelegramConfig:
    """Telegram接続設定

    Attributes:
        bot_token: Bot API トークン
        api_root: Bot API のベースURL
        ignore_bot_messages: ボットからのメッセージを無視する
        ignore_direct_messages: プライベートチャットを無視する
        only_allowed_groups: 許可されたグループのみ参加する
        allowed_group_ids: 参加を許可するグループIDのリスト
    """

    bot_token: str
    api_root: str = DEFAULT_API_ROOT
    ignore_bot_messages: bool = False
    ignore_direct_messages: bool = False
    only_allowed_groups: bool = False
    allowed_group_ids: list[str] = field(default_factory=list)


@dataclass
class LLMConfig:
    """LLM設定（LiteLLMのcompletionに渡すdict）"""

    model: str
    temperature: float = 0.7
    max_tokens: int = 1000


@dataclass
class TemplatesConfig:
    """プロンプトテンプレートの上書き設定"""

    should_respond: str | None = None
    message_handler: str | None = None


@dataclass
class PersonaConfig:
    """ペルソナ設定"""

    name: str
    bio: str = ""
    templates: TemplatesConfig = field(default_factory=TemplatesConfig)


@dataclass
class MemoryConfig:
    """記憶設定"""

    database_path: str
    recent_message_count: int = 20


@dataclass
class InterestConfig:
    """チャットごとの関心状態の設定"""

    max_messages_per_chat: int = 50
    handler_timeout_seconds: float = 300.0


@dataclass
class LoggingConfig:
    """ログ設定"""

    level: str = "INFO"
    format: str = DEFAULT_LOG_FORMAT
    loggers: dict[str, str] | None = None
    debug_llm_messages: bool = False


@dataclass
class Config:
    """アプリケーション設定"""

    telegram: TelegramConfig
    llm: dict[str, LLMConfig]
    persona: PersonaConfig
    memory: MemoryConfig
    interest: InterestConfig = field(default_factory=InterestConfig)
    logging: LoggingConfig | None = None
