from types import SimpleNamespace

import pytest

from pickem.constants import GameStatus
from pickem.utils.scoring import PickScorer


def score(selected, home_score, away_score, spread, is_lock=False):
    return PickScorer.calculate_pick_result(selected, "Home", "Away", home_score, away_score, spread, is_lock)


def test_straight_up_win_loss_and_push():
    assert score("Home", 24, 17, 0).points == 20
    assert score("Away", 24, 17, 0).points == 0
    assert score("Home", 20, 20, 0).result == "push"
    assert score("Home", 20, 20, 0).points == 10


def test_spread_decides_cover():
    # Home favored by 7 and wins by 7: push
    assert score("Home", 27, 20, -7).result == "push"
    # Home favored by 7.5 and wins by 7: away covers
    assert score("Away", 27, 20, -7.5).result == "win"
    assert score("Home", 27, 20, -7.5).result == "loss"


@pytest.mark.parametrize("home_score,expected_points", [
    (10, 20),   # covered by 10, no bonus
    (11, 21),   # covered by 11
    (20, 23),   # covered by 20
    (29, 25),   # covered by 29
    (45, 25),
])
def test_margin_bonus_tiers(home_score, expected_points):
    assert score("Home", home_score, 0, 0).points == expected_points


def test_lock_doubles_bonus_only():
    outcome = score("Home", 30, 0, 0, is_lock=True)
    assert outcome.bonus_points == 10
    assert outcome.points == 30
    assert score("Home", 5, 0, 0, is_lock=True).points == 20
    assert score("Away", 5, 0, 0, is_lock=True).points == 0


def test_unknown_team_raises():
    with pytest.raises(ValueError):
        score("Nobody", 10, 0, 0)


def test_score_if_final_skips_unfinished_games():
    game = SimpleNamespace(home_team="Home", away_team="Away", home_score=None,
                           away_score=None, spread=0, status=GameStatus.SCHEDULED)
    assert PickScorer.score_if_final("Home", game) is None

    game.status = GameStatus.COMPLETED
    assert PickScorer.score_if_final("Home", game) is None

    game.home_score, game.away_score = 14, 3
    assert PickScorer.score_if_final("Home", game).points == 21
