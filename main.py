import asyncio
import logging
import sys
from aiogram import Bot, Dispatcher
from aiogram.fsm.storage.memory import MemoryStorage
from aiogram.fsm.storage.redis import RedisStorage
from config import Config
from handlers import common, quiz
from services.answer_validator import AnswerValidator
from services.google_sheets import ResultsSheetService
from services.question_source import QuestionSource
from services.quiz_api import QuizApiClient
from services.redis_service import RedisService

# Logging setup
logging.basicConfig(
    level=getattr(logging, Config.LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stdout)]
)

logger = logging.getLogger(__name__)


async def main():
    """Bot entry point."""
    try:
        Config.validate()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    redis_service = RedisService()
    await redis_service.connect()

    quiz_api = QuizApiClient()
    question_source = QuestionSource(quiz_api, randomize=Config.RANDOMIZE_QUESTIONS)
    validator = AnswerValidator(quiz_api)
    results_sheet = ResultsSheetService()

    bot = Bot(token=Config.TELEGRAM_TOKEN)

    # FSM state goes to Redis when it is reachable
    if redis_service.redis_client:
        try:
            storage = RedisStorage.from_url(Config.REDIS_URL)
        except Exception as e:
            logger.warning(f"Could not create RedisStorage, using memory: {e}")
            storage = MemoryStorage()
    else:
        storage = MemoryStorage()
        logger.warning("Using MemoryStorage instead of Redis")

    dp = Dispatcher(storage=storage)
    dp["redis_service"] = redis_service
    dp["quiz_api"] = quiz_api
    dp["question_source"] = question_source
    dp["validator"] = validator
    dp["results_sheet"] = results_sheet

    dp.include_router(common.router)
    dp.include_router(quiz.router)

    logger.info("Bot started")

    try:
        await dp.start_polling(bot, skip_updates=True)
    finally:
        await bot.session.close()
        await quiz_api.close()
        await storage.close()
        await redis_service.disconnect()
        logger.info("Bot stopped")


def run():
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Stopped by user")
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    run()
