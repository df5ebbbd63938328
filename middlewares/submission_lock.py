"""Serialises quiz callbacks per chat."""
import logging
from typing import Any, Awaitable, Callable, Dict, Set

from aiogram import BaseMiddleware
from aiogram.types import CallbackQuery

logger = logging.getLogger(__name__)


class SubmissionLockMiddleware(BaseMiddleware):
    """Drops a chat's callback while its previous one is still being handled.

    A submission awaits remote validation; without this a double tap could
    start a second submission from the same stored snapshot.
    """

    def __init__(self):
        super().__init__()
        self._busy: Set[int] = set()

    async def __call__(
        self,
        handler: Callable[[CallbackQuery, Dict[str, Any]], Awaitable[Any]],
        event: CallbackQuery,
        data: Dict[str, Any]
    ) -> Any:
        chat_id = event.message.chat.id if event.message else event.from_user.id

        if chat_id in self._busy:
            logger.info(f"Ignoring callback {event.data!r} from chat {chat_id}: previous action in progress")
            await event.answer("⏳ Still processing your previous action...")
            return None

        self._busy.add(chat_id)
        try:
            return await handler(event, data)
        finally:
            self._busy.discard(chat_id)
