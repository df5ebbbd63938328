from aiogram.fsm.state import StatesGroup, State


class QuizStates(StatesGroup):
    CHOOSE_CATEGORY = State()
    ANSWERING = State()
