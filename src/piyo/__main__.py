"""アプリケーションのエントリポイント"""

import asyncio
import logging
import os
import signal
import sys
from pathlib import Path

from piyo.application.services import GroupAuthorizer, MemoryStateComposer
from piyo.application.use_cases import HandleMessageUseCase
from piyo.config import Config, ConfigError, LoggingConfig, load_config
from piyo.domain.entities import ModelClass
from piyo.domain.services import InterestTracker, ResponseDecisionEngine, stable_id
from piyo.infrastructure.llm import (
    LiteLLMGenerationService,
    LiteLLMImageDescriptionService,
    LLMClient,
)
from piyo.infrastructure.persistence import DatabaseManager, SQLiteMemoryStore
from piyo.infrastructure.telegram import (
    TelegramAppRunner,
    TelegramEventAdapter,
    TelegramMessagingService,
    create_application,
)
from piyo.presentation import register_handlers

CONFIG_PATH_ENV = "PIYO_CONFIG"
DEFAULT_CONFIG_PATH = "config.yaml"

# Default logging for early startup
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def configure_logging(config: LoggingConfig | None) -> None:
    """Configure logging based on config.

    Args:
        config: Logging configuration. If None, uses defaults.
    """
    if config is None:
        return

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, config.level.upper(), logging.INFO))

    if root_logger.handlers:
        formatter = logging.Formatter(config.format)
        for handler in root_logger.handlers:
            handler.setFormatter(formatter)

    for logger_name, logger_level in (config.loggers or {}).items():
        logging.getLogger(logger_name).setLevel(
            getattr(logging, logger_level.upper(), logging.INFO)
        )
        logger.debug("Set logger '%s' to level %s", logger_name, logger_level.upper())


def build_generation_service(config: Config) -> LiteLLMGenerationService:
    """Build the generation service from the ``llm`` section.

    ``small``, ``medium`` and ``large`` entries select clients per model
    class. Missing entries fall back to ``default``.
    """
    default_client = LLMClient(config.llm["default"])
    clients = {
        model_class: LLMClient(config.llm[model_class.value])
        for model_class in ModelClass
        if model_class.value in config.llm
    }
    return LiteLLMGenerationService(
        default_client,
        clients,
        debug_llm_messages=bool(config.logging and config.logging.debug_llm_messages),
    )


def resolve_config_path() -> Path:
    """設定ファイルのパスを環境変数から解決する"""
    return Path(os.environ.get(CONFIG_PATH_ENV, DEFAULT_CONFIG_PATH))


async def main() -> None:
    """アプリケーションを起動する"""
    config_path = resolve_config_path()
    if not config_path.exists():
        logger.error("%s not found", config_path)
        sys.exit(1)

    try:
        config = load_config(config_path)
    except ConfigError as e:
        logger.error("Failed to load config: %s", e)
        sys.exit(1)

    configure_logging(config.logging)

    application = create_application(config.telegram)

    # Resolve bot identity
    messaging_service = TelegramMessagingService(application.bot)
    bot_user = await messaging_service.get_bot_user()
    agent_id = stable_id(bot_user.id)
    logger.info("Bot user: %s (%s), agent ID: %s", bot_user.name, bot_user.id, agent_id)

    # Initialize database
    db_manager = DatabaseManager(config.memory.database_path)
    await db_manager.create_tables()
    memory_store = SQLiteMemoryStore(db_manager.get_session)

    # Build LLM services
    generation_service = build_generation_service(config)
    vision_config = config.llm.get("vision")
    image_description_service = (
        LiteLLMImageDescriptionService(LLMClient(vision_config))
        if vision_config is not None
        else None
    )

    interest_tracker = InterestTracker(
        max_messages=config.interest.max_messages_per_chat,
        handler_timeout_seconds=config.interest.handler_timeout_seconds,
    )
    state_composer = MemoryStateComposer(
        memory_store,
        config.persona,
        recent_message_count=config.memory.recent_message_count,
    )
    decision_engine = ResponseDecisionEngine(
        generation_service,
        interest_tracker,
        bot_user.name,
        should_respond_template=config.persona.templates.should_respond,
    )

    use_case = HandleMessageUseCase(
        messaging_service=messaging_service,
        memory_store=memory_store,
        state_composer=state_composer,
        decision_engine=decision_engine,
        generation_service=generation_service,
        interest_tracker=interest_tracker,
        telegram_config=config.telegram,
        persona=config.persona,
        agent_id=agent_id,
        bot_user_id=bot_user.id,
        image_description_service=image_description_service,
    )
    authorizer = GroupAuthorizer(
        messaging_service=messaging_service,
        interest_tracker=interest_tracker,
        telegram_config=config.telegram,
        bot_user_id=bot_user.id,
    )

    register_handlers(
        application,
        use_case,
        TelegramEventAdapter(),
        authorizer,
        interest_tracker,
        bot_user.id,
    )

    runner = TelegramAppRunner(application)

    logger.info("Starting %s...", config.persona.name)
    await runner.start()

    # Setup signal handlers for graceful shutdown
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def shutdown_handler() -> None:
        logger.info("Received shutdown signal...")
        stop_event.set()

    loop.add_signal_handler(signal.SIGINT, shutdown_handler)
    loop.add_signal_handler(signal.SIGTERM, shutdown_handler)

    await stop_event.wait()

    logger.info("Shutting down...")

    closed = await runner.close(timeout=5.0)
    if not closed:
        logger.warning("Runner close timed out")

    await db_manager.close()

    logger.info("Shutdown complete")


def run() -> None:
    """Run the async main function."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Shutting down...")


if __name__ == "__main__":
    run()
