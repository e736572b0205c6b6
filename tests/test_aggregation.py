import pytest

from pickem.data_models.leaderboard import ScoredPick, WeeklyPerformance
from pickem.utils.aggregation import (
    aggregate_weeks, consistency_score, season_trend, summarize_season, tally_picks
)


def week(number, points, wins=0, losses=0, pushes=0, lock_wins=0, lock_losses=0, picks_made=None):
    return WeeklyPerformance(
        week=number,
        points=points,
        wins=wins,
        losses=losses,
        pushes=pushes,
        lock_wins=lock_wins,
        lock_losses=lock_losses,
        picks_made=picks_made if picks_made is not None else wins + losses + pushes,
    )


def test_empty_season_has_zero_average_and_no_extremes():
    breakdown = summarize_season("u1", "Sam", 2024, [])

    assert breakdown.weeks_played == 0
    assert breakdown.average_points == 0
    assert breakdown.total_points == 0
    assert breakdown.best_week is None
    assert breakdown.worst_week is None
    assert breakdown.consistency_score is None
    assert breakdown.trend is None
    assert breakdown.win_pct == 0.0


def test_summary_totals_and_average():
    weeks = [
        week(1, 60, wins=3, losses=2),
        week(2, 40, wins=2, losses=3, lock_wins=1),
        week(3, 80, wins=4, losses=1, lock_losses=1),
    ]

    breakdown = summarize_season("u1", "Sam", 2024, weeks)

    assert breakdown.total_points == 180
    assert breakdown.total_picks == 15
    assert breakdown.average_points == pytest.approx(60.0)
    assert breakdown.win_pct == pytest.approx(9 / 15)
    assert breakdown.lock_win_pct == pytest.approx(0.5)


def test_weeks_are_ordered_and_best_worst_pick_earliest_on_ties():
    weeks = [week(4, 50), week(2, 70), week(1, 30), week(3, 70), week(5, 30)]

    breakdown = summarize_season("u1", "Sam", 2024, weeks)

    assert [w.week for w in breakdown.weeks] == [1, 2, 3, 4, 5]
    assert breakdown.best_week.week == 2
    assert breakdown.worst_week.week == 1


def test_consistency_score_uses_population_stdev():
    # mean 50, pstdev 10 -> 100 - 20
    assert consistency_score([40, 60]) == pytest.approx(80.0)
    assert consistency_score([50, 50, 50]) == pytest.approx(100.0)


def test_consistency_score_is_floored_and_undefined_cases_are_none():
    assert consistency_score([0, 0, 300]) == 0.0
    assert consistency_score([]) is None
    assert consistency_score([0, 0]) is None


@pytest.mark.parametrize("points,expected", [
    ([10, 10, 10, 50, 50, 50], "improving"),
    ([50, 50, 50, 10, 10, 10], "declining"),
    ([20, 30, 40], "steady"),
    ([20, 30], None),
])
def test_season_trend_compares_first_and_last_three_weeks(points, expected):
    weeks = [week(i + 1, p) for i, p in enumerate(points)]
    assert season_trend(weeks) == expected


def test_aggregate_weeks_sums_counters():
    totals = aggregate_weeks([week(1, 10, wins=1, pushes=1), week(2, 25, wins=1, losses=1)])
    assert totals.points == 35
    assert totals.wins == 2
    assert totals.pushes == 1
    assert totals.picks_made == 4


def test_tally_picks_counts_results_and_unscored_picks():
    picks = [
        ScoredPick("u1", 2024, 1, is_lock=True, result="win", points=30),
        ScoredPick("u1", 2024, 1, is_lock=True, result="loss", points=0),
        ScoredPick("u1", 2024, 1, is_lock=False, result="push", points=10),
        ScoredPick("u1", 2024, 1, is_lock=False, result=None, points=0),
    ]

    counts = tally_picks(picks)

    assert counts == {
        'wins': 1, 'losses': 1, 'pushes': 1,
        'lock_wins': 1, 'lock_losses': 1,
        'points': 40, 'picks_made': 4,
    }
