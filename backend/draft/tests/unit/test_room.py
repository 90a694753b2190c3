import random
import re

import pytest

from draft.logic.room import CODE_LENGTH, build_week_pool, draw_season_week, generate_code


class TestGenerateCode:
    def test_code_is_uppercase_alphanumeric(self):
        code = generate_code(random.Random(1))
        assert re.fullmatch(rf"[A-Z0-9]{{{CODE_LENGTH}}}", code)

    def test_same_seed_same_code(self):
        assert generate_code(random.Random(3)) == generate_code(random.Random(3))


class TestBuildWeekPool:
    def test_past_seasons_get_18_weeks(self):
        pool = build_week_pool(2025, 0)
        assert pool == {2021: 18, 2022: 18, 2023: 18, 2024: 18}

    def test_current_season_capped_at_completed_weeks(self):
        pool = build_week_pool(2025, 6)
        assert pool[2025] == 6

    def test_completed_weeks_out_of_range_rejected(self):
        with pytest.raises(ValueError, match="current_season_completed_weeks"):
            build_week_pool(2025, 19)

    def test_empty_pool_rejected(self):
        with pytest.raises(ValueError, match="no completed weeks"):
            build_week_pool(2021, 0)


class TestDrawSeasonWeek:
    def test_week_never_exceeds_season_cap(self):
        pool = {2024: 18, 2025: 3}
        rng = random.Random(11)
        for _ in range(500):
            season, week = draw_season_week(pool, rng)
            assert season in pool
            assert 1 <= week <= pool[season]

    def test_every_candidate_reachable(self):
        pool = {2025: 2}
        rng = random.Random(5)
        drawn = {draw_season_week(pool, rng) for _ in range(100)}
        assert drawn == {(2025, 1), (2025, 2)}
