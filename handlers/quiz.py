import logging
from datetime import datetime
from typing import Optional, Sequence, Tuple

import pytz
from aiogram import Router
from aiogram.exceptions import TelegramBadRequest
from aiogram.filters.callback_data import CallbackData
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, InlineKeyboardButton, InlineKeyboardMarkup

from config import Config
from handlers.common import CATEGORY_TITLES, CategoryCallback
from handlers.states import QuizStates
from middlewares.submission_lock import SubmissionLockMiddleware
from models import AnswerRecord, Question, QuestionType, QuizResult, SubmissionResult
from services.answer_validator import AnswerValidator, ValidationUnavailableError
from services.google_sheets import ResultsSheetService
from services.question_source import QuestionLoadError, QuestionSource
from services.quiz_api import QuizApiClient, QuizApiError
from services.quiz_engine import (
    EmptySelectionError,
    QuizEngine,
    QuizError,
    ResubmissionError,
    SessionState,
)
from services.redis_service import RedisService

logger = logging.getLogger(__name__)

router = Router()
router.callback_query.middleware(SubmissionLockMiddleware())

TYPE_HINTS = {
    QuestionType.SINGLE: "single choice",
    QuestionType.MULTIPLE: "multiple choice",
    QuestionType.BOOLEAN: "true / false",
}


class OptionCallback(CallbackData, prefix="option"):
    question_index: int
    option: int


class NavCallback(CallbackData, prefix="nav"):
    action: str  # "prev", "next", "submit" or "finish"


# ---- rendering -------------------------------------------------------------

def option_label(index: int) -> str:
    return chr(ord("A") + index) if index < 26 else str(index + 1)


def format_time(milliseconds: int) -> str:
    seconds = max(0, milliseconds) // 1000
    minutes, seconds = divmod(seconds, 60)
    return f"{minutes:02d}:{seconds:02d}"


def toggle_selection(question: Question, current: Sequence[int], option: int) -> Tuple[int, ...]:
    """Multiple choice toggles an option; single/boolean replaces the selection."""
    if question.type is QuestionType.MULTIPLE:
        if option in current:
            return tuple(i for i in current if i != option)
        return tuple(current) + (option,)
    return (option,)


def _option_marker(question: Question, index: int, selected: Sequence[int], record: Optional[AnswerRecord]) -> str:
    if record is None:
        return "☑️" if index in selected else "⬜"
    if question.has_answer_key:
        if index in question.correct_indices():
            return "✅"
        return "❌" if index in selected else "▫️"
    return "🔘" if index in selected else "▫️"


def render_question(engine: QuizEngine) -> Tuple[str, InlineKeyboardMarkup]:
    question = engine.current_question()
    index = engine.current_index
    total = engine.total_questions
    record = engine.get_answer(index)
    selected = record.selected_answers if record else engine.get_draft(index)

    lines = [
        f"❓ Question {index + 1}/{total} · {TYPE_HINTS[question.type]}",
        "",
        question.prompt,
        "",
    ]
    for i, option in enumerate(question.options):
        lines.append(f"{_option_marker(question, i, selected, record)} {option_label(i)}. {option}")

    if record is not None:
        lines.append("")
        lines.append(f"✅ Correct (+{record.score})" if record.is_correct else "❌ Incorrect")
        if question.explanation:
            lines.append(f"💡 {question.explanation}")

    lines.append("")
    lines.append(f"📊 Score: {engine.total_score} · Answered: {engine.progress_percentage()}%")

    rows = []
    open_for_answers = record is None and engine.state is not SessionState.COMPLETED
    if open_for_answers:
        buttons = [
            InlineKeyboardButton(
                text=option_label(i),
                callback_data=OptionCallback(question_index=index, option=i).pack()
            )
            for i in range(len(question.options))
        ]
        rows.extend(buttons[i:i + 4] for i in range(0, len(buttons), 4))

    nav = []
    if index > 0:
        nav.append(InlineKeyboardButton(text="◀️ Back", callback_data=NavCallback(action="prev").pack()))
    if open_for_answers:
        nav.append(InlineKeyboardButton(text="📨 Submit", callback_data=NavCallback(action="submit").pack()))
    if index < total - 1:
        nav.append(InlineKeyboardButton(text="Next ▶️", callback_data=NavCallback(action="next").pack()))
    rows.append(nav)
    rows.append([InlineKeyboardButton(text="🏁 Finish quiz", callback_data=NavCallback(action="finish").pack())])

    return "\n".join(lines), InlineKeyboardMarkup(inline_keyboard=rows)


def render_result(result: QuizResult, passed: bool) -> str:
    lines = [
        "🏆 Passed!" if passed else "📚 Not passed yet, keep practising.",
        "",
        f"Score: {result.total_score} / {result.max_score} (pass mark {Config.PASS_SCORE})",
        f"Correct: {result.correct_count} · Wrong: {result.wrong_count}",
        f"Accuracy: {result.accuracy_rate}%",
        f"Time: {format_time(result.total_time)}",
    ]
    if result.unanswered_count:
        lines.append(f"⚠️ {result.unanswered_count} unanswered question(s) were counted as wrong.")

    if len(result.category_stats) > 1:
        lines.append("")
        lines.append("By topic:")
        for category, entry in result.category_stats.items():
            lines.append(f"• {category}: {entry.correct}/{entry.total}")

    review = [a for a in result.answers if a.record is None or not a.record.is_correct]
    if review:
        lines.append("")
        lines.append("Review:")
        for outcome in review:
            status = "not answered" if outcome.record is None else "wrong"
            line = f"{outcome.index + 1}. {outcome.question.prompt} ({status})"
            if outcome.question.has_answer_key:
                answer = ", ".join(option_label(i) for i in outcome.question.correct_indices())
                line += f" → correct: {answer}"
            lines.append(line)
    return "\n".join(lines)


def submission_notice(result: SubmissionResult) -> str:
    if result.is_correct:
        return f"✅ Correct! +{result.score}"
    return "❌ Incorrect"


# ---- engine storage ----------------------------------------------------------

async def load_engine(
    chat_id: int,
    state: FSMContext,
    redis_service: RedisService,
    question_source: QuestionSource,
    validator: AnswerValidator,
) -> Optional[QuizEngine]:
    data = await state.get_data()
    snapshot = data.get("engine") or await redis_service.get_session(chat_id)
    if not snapshot:
        return None
    return QuizEngine.from_dict(snapshot, question_source=question_source, validator=validator)


async def save_engine(chat_id: int, state: FSMContext, redis_service: RedisService, engine: QuizEngine):
    snapshot = engine.to_dict()
    await state.update_data(engine=snapshot)
    await redis_service.set_session(chat_id, snapshot)


async def refresh_question(callback: CallbackQuery, engine: QuizEngine):
    text, keyboard = render_question(engine)
    try:
        await callback.message.edit_text(text, reply_markup=keyboard)
    except TelegramBadRequest as e:
        # "message is not modified" when nothing visible changed
        logger.debug(f"Question message not edited: {e}")


# ---- handlers -----------------------------------------------------------------

@router.callback_query(QuizStates.CHOOSE_CATEGORY, CategoryCallback.filter())
async def start_quiz(
    callback: CallbackQuery,
    callback_data: CategoryCallback,
    state: FSMContext,
    question_source: QuestionSource,
    validator: AnswerValidator,
    redis_service: RedisService,
):
    """Loads questions for the chosen category and shows the first one."""
    chat_id = callback.message.chat.id
    category = callback_data.category

    engine = QuizEngine(category, question_source=question_source, validator=validator)
    try:
        await engine.init_quiz()
    except QuestionLoadError as e:
        logger.error(f"Could not start '{category}' quiz for chat {chat_id}: {e}")
        await callback.answer()
        await callback.message.answer("⚠️ No questions are available for this category right now.")
        return

    await save_engine(chat_id, state, redis_service, engine)
    await state.set_state(QuizStates.ANSWERING)

    await callback.message.edit_text(
        f"🚀 {CATEGORY_TITLES.get(category, category)}: {engine.total_questions} questions.\n"
        "Select your answer, then press Submit. Submitted answers cannot be changed."
    )
    text, keyboard = render_question(engine)
    await callback.message.answer(text, reply_markup=keyboard)
    await callback.answer()
    logger.info(f"Chat {chat_id} started '{category}' quiz ({engine.loaded_from})")


@router.callback_query(QuizStates.ANSWERING, OptionCallback.filter())
async def select_option(
    callback: CallbackQuery,
    callback_data: OptionCallback,
    state: FSMContext,
    question_source: QuestionSource,
    validator: AnswerValidator,
    redis_service: RedisService,
):
    """Toggles an option in the current question's draft."""
    chat_id = callback.message.chat.id
    engine = await load_engine(chat_id, state, redis_service, question_source, validator)
    if engine is None:
        await callback.answer("⚠️ Quiz session not found. Send /start.", show_alert=True)
        return

    if callback_data.question_index != engine.current_index:
        await callback.answer("ℹ️ This question is no longer on screen.", show_alert=True)
        return

    question = engine.current_question()
    selection = toggle_selection(question, engine.get_draft(), callback_data.option)
    try:
        saved = engine.save_draft(selection)
    except QuizError as e:
        await callback.answer(f"⚠️ {e}", show_alert=True)
        return

    if not saved:
        await callback.answer("ℹ️ This question has already been submitted.")
        return

    await save_engine(chat_id, state, redis_service, engine)
    await refresh_question(callback, engine)
    await callback.answer()


@router.callback_query(QuizStates.ANSWERING, NavCallback.filter())
async def navigate(
    callback: CallbackQuery,
    callback_data: NavCallback,
    state: FSMContext,
    question_source: QuestionSource,
    validator: AnswerValidator,
    redis_service: RedisService,
    results_sheet: ResultsSheetService,
    quiz_api: Optional[QuizApiClient] = None,
):
    """Back / next / submit / finish buttons."""
    chat_id = callback.message.chat.id
    engine = await load_engine(chat_id, state, redis_service, question_source, validator)
    if engine is None:
        await callback.answer("⚠️ Quiz session not found. Send /start.", show_alert=True)
        return

    action = callback_data.action
    if action in ("prev", "next"):
        moved = engine.go_to_previous() if action == "prev" else engine.go_to_next()
        await save_engine(chat_id, state, redis_service, engine)
        if not moved:
            await callback.answer("ℹ️ There is no question in that direction.")
            return
        await refresh_question(callback, engine)
        await callback.answer()
    elif action == "submit":
        await submit_current(callback, state, engine, redis_service)
    elif action == "finish":
        await finish_quiz(callback, state, engine, redis_service, results_sheet, quiz_api)
    else:
        logger.warning(f"Unknown navigation action {action!r} from chat {chat_id}")
        await callback.answer()


async def submit_current(
    callback: CallbackQuery,
    state: FSMContext,
    engine: QuizEngine,
    redis_service: RedisService,
):
    chat_id = callback.message.chat.id
    try:
        result = await engine.submit_answer(engine.get_draft())
    except EmptySelectionError:
        await callback.answer("✍️ Select an answer before submitting.", show_alert=True)
        return
    except ResubmissionError:
        await callback.answer("ℹ️ This question has already been submitted.", show_alert=True)
        return
    except ValidationUnavailableError as e:
        logger.error(f"Answer from chat {chat_id} could not be validated: {e}")
        await callback.answer("⚠️ Your answer could not be checked right now. Please try again.", show_alert=True)
        return
    except QuizError as e:
        await callback.answer(f"⚠️ {e}", show_alert=True)
        return

    await save_engine(chat_id, state, redis_service, engine)
    await refresh_question(callback, engine)
    await callback.answer(submission_notice(result))

    if engine.go_to_next():
        await save_engine(chat_id, state, redis_service, engine)
        text, keyboard = render_question(engine)
        await callback.message.answer(text, reply_markup=keyboard)
    elif engine.is_quiz_complete():
        await callback.message.answer("🏁 All questions answered. Press «Finish quiz» to see your result.")


async def finish_quiz(
    callback: CallbackQuery,
    state: FSMContext,
    engine: QuizEngine,
    redis_service: RedisService,
    results_sheet: ResultsSheetService,
    quiz_api: Optional[QuizApiClient],
):
    """Finalises the quiz, records the result and shows the summary."""
    chat_id = callback.message.chat.id
    result = engine.get_quiz_result()
    passed = result.passed(Config.PASS_SCORE)

    user = callback.from_user
    if user.username:
        display_name = user.username
    else:
        display_name = " ".join(part for part in (user.first_name, user.last_name) if part).strip()

    try:
        tz = pytz.timezone(Config.TIMEZONE)
        test_date = datetime.now(tz).strftime("%Y-%m-%d %H:%M")
        results_sheet.write_result(
            user_id=user.id,
            display_name=display_name,
            test_date=test_date,
            result=result,
            passed=passed,
        )
    except Exception as e:
        logger.error(f"Failed to record result for chat {chat_id}: {e}")
        await callback.message.answer("⚠️ Your result could not be saved. Please tell your supervisor.")

    if quiz_api is not None:
        try:
            await quiz_api.post_event(
                "quiz_completed",
                category=result.category,
                score=result.total_score,
                accuracyRate=result.accuracy_rate,
                totalTime=result.total_time,
            )
        except QuizApiError as e:
            logger.warning(f"Completion event not delivered: {e}")

    try:
        await callback.message.edit_reply_markup(reply_markup=None)
    except TelegramBadRequest as e:
        logger.debug(f"Keyboard not removed: {e}")

    await callback.message.answer(render_result(result, passed))
    await callback.answer()

    await redis_service.delete_session(chat_id)
    await state.clear()
    logger.info(
        f"Chat {chat_id} finished '{result.category}' quiz: "
        f"{result.total_score}/{result.max_score}, passed={passed}"
    )
