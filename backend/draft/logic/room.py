"""Room code generation and the season/week draw for new sessions."""

import random
import string

CODE_LENGTH = 6
CODE_ALPHABET = string.ascii_uppercase + string.digits

FIRST_SEASON = 2021  # first 18-week regular season
COMPLETED_SEASON_WEEKS = 18


def generate_code(rng: random.Random) -> str:
    """Return a short shareable room code such as ``"K7Q2ZD"``."""
    return "".join(rng.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))


def build_week_pool(current_season: int, current_season_completed_weeks: int) -> dict[int, int]:
    """Map each candidate season to the last week whose games are complete.

    Past seasons contribute all 18 weeks. The current season contributes
    only its completed weeks, and is left out entirely before week 1 ends.
    """
    if not 0 <= current_season_completed_weeks <= COMPLETED_SEASON_WEEKS:
        raise ValueError(
            f"current_season_completed_weeks must be 0-{COMPLETED_SEASON_WEEKS}, "
            f"got {current_season_completed_weeks}"
        )
    pool = dict.fromkeys(range(FIRST_SEASON, current_season), COMPLETED_SEASON_WEEKS)
    if current_season_completed_weeks > 0:
        pool[current_season] = current_season_completed_weeks
    if not pool:
        raise ValueError(f"no completed weeks available up to season {current_season}")
    return pool


def draw_season_week(pool: dict[int, int], rng: random.Random) -> tuple[int, int]:
    """Pick a (season, week) pair uniformly over every completed week in the pool."""
    candidates = [(season, week) for season, last_week in sorted(pool.items()) for week in range(1, last_week + 1)]
    return rng.choice(candidates)
