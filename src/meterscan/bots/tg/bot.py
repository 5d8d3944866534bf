"""Main entry point for the Telegram bot."""

import asyncio
import logging

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from tortoise import Tortoise

from meterscan.bots.tg.handlers import capture, common, history
from meterscan.bots.tg.sessions import SessionRegistry
from meterscan.config import settings
from meterscan.core.db import TORTOISE_ORM
from meterscan.core.repositories.consumer import ConsumerRepository
from meterscan.core.repositories.reading import ReadingRepository
from meterscan.services.history import RepositoryHistoryGateway
from meterscan.services.recognition import create_recognition_engine

logger = logging.getLogger(__name__)


async def on_startup(dispatcher: Dispatcher, bot: Bot):
    """Actions on bot startup."""
    logger.info("Initializing database...")
    await Tortoise.init(config=TORTOISE_ORM)
    logger.info("Database initialized.")

    history_gateway = RepositoryHistoryGateway(
        consumer_repo=ConsumerRepository(),
        reading_repo=ReadingRepository(),
    )
    recognizer = create_recognition_engine()
    dispatcher["history_gateway"] = history_gateway
    dispatcher["sessions"] = SessionRegistry(
        recognizer=recognizer, history=history_gateway
    )
    logger.info(f"Services injected into dispatcher (OCR engine: {recognizer.name}).")

    logger.info("Deleting webhook and dropping pending updates...")
    await bot.delete_webhook(drop_pending_updates=True)
    logger.info("Bot started.")


async def on_shutdown(bot: Bot):
    """Actions on bot shutdown."""
    logger.info("Closing connections...")
    await Tortoise.close_connections()
    await bot.session.close()
    logger.info("Connections closed.")


async def main():
    """Initializes and starts the bot."""
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )
    logger.info("Starting bot initialization...")

    bot = Bot(
        token=settings.BOT_TOKEN,
        default=DefaultBotProperties(parse_mode="HTML"),
    )
    dp = Dispatcher()

    dp.startup.register(on_startup)
    dp.shutdown.register(on_shutdown)

    dp.include_router(common.router)
    dp.include_router(capture.router)
    dp.include_router(history.router)

    await dp.start_polling(bot, dispatcher=dp)


def run():
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        logger.info("Bot stopped manually.")


if __name__ == "__main__":
    run()
