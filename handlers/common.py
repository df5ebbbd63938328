import logging

from aiogram import Router
from aiogram.filters import Command
from aiogram.filters.callback_data import CallbackData
from aiogram.types import Message, InlineKeyboardMarkup, InlineKeyboardButton
from aiogram.fsm.context import FSMContext
from config import Config
from handlers.states import QuizStates
from services.redis_service import RedisService

logger = logging.getLogger(__name__)

router = Router()

CATEGORY_TITLES = {
    "safety": "🦺 Safety knowledge",
    "violation": "🚫 Violation identification",
}


class CategoryCallback(CallbackData, prefix="category"):
    category: str


def category_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(
            text=CATEGORY_TITLES.get(category, category),
            callback_data=CategoryCallback(category=category).pack()
        )]
        for category in Config.QUIZ_CATEGORIES
    ])


@router.message(Command("start"))
async def cmd_start(message: Message, state: FSMContext, redis_service: RedisService):
    """Handles /start: offers the quiz categories."""
    if await redis_service.has_active_session(message.chat.id):
        await message.answer(
            "⚠️ You already have a quiz in progress. "
            "Continue answering it or send /cancel to abandon it."
        )
        return

    await state.clear()
    await state.set_state(QuizStates.CHOOSE_CATEGORY)

    welcome_message = (
        "👷 Welcome to the safety training quiz.\n\n"
        f"📝 Each quiz has up to {Config.QUESTIONS_PER_QUIZ} questions worth 100 points in total.\n"
        "↔️ You can move between questions; a submitted answer is final.\n"
        f"🎯 {Config.PASS_SCORE} points are needed to pass.\n\n"
        "👉 Choose a category to begin."
    )
    await message.answer(welcome_message, reply_markup=category_keyboard())
    logger.info(f"User {message.from_user.id} opened the category menu")


@router.message(Command("cancel"))
async def cmd_cancel(message: Message, state: FSMContext, redis_service: RedisService):
    """Handles /cancel: abandons the current quiz without recording it."""
    await redis_service.delete_session(message.chat.id)
    await state.clear()
    await message.answer("🛑 Quiz cancelled. Send /start to begin again.")
    logger.info(f"User {message.from_user.id} cancelled the quiz")
