import random
from typing import List, Optional, Sequence
from models import Question


def select_questions(
    questions: Sequence[Question],
    count: int,
    randomize: bool,
    rng: Optional[random.Random] = None
) -> List[Question]:
    """
    Picks the questions for one session.

    The remote source and the embedded fallback set both go through here so
    a session looks the same whichever path produced it:
    1. Copy the pool (the caller's list is never reordered)
    2. Shuffle it if requested
    3. Keep the first ``count`` items
    """
    if not questions or count <= 0:
        return []

    pool = list(questions)
    if randomize:
        (rng or random).shuffle(pool)

    return pool[:count]
