"""
Season drill-down aggregation over a user's weekly performances.
"""

import statistics
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from pickem.constants import LeaderboardConstants, PickResult
from pickem.data_models.leaderboard import ScoredPick, SeasonBreakdown, WeeklyPerformance
from pickem.data_models.leaderboard import win_percentage


@dataclass(frozen=True)
class WeekTotals:
    """Counters summed across weeks."""
    points: int = 0
    wins: int = 0
    losses: int = 0
    pushes: int = 0
    lock_wins: int = 0
    lock_losses: int = 0
    picks_made: int = 0


def aggregate_weeks(weeks: Iterable[WeeklyPerformance]) -> WeekTotals:
    totals = dict(points=0, wins=0, losses=0, pushes=0, lock_wins=0, lock_losses=0, picks_made=0)
    for week in weeks:
        for name in totals:
            totals[name] += getattr(week, name) or 0
    return WeekTotals(**totals)


def tally_picks(picks: Iterable[ScoredPick]) -> dict:
    """
    Count results for a set of picks.

    picks_made counts every pick passed in; unscored picks add nothing else.
    """
    counts = dict(wins=0, losses=0, pushes=0, lock_wins=0, lock_losses=0, points=0, picks_made=0)
    for pick in picks:
        counts['picks_made'] += 1
        counts['points'] += pick.points or 0
        if pick.result == PickResult.WIN:
            counts['wins'] += 1
            if pick.is_lock:
                counts['lock_wins'] += 1
        elif pick.result == PickResult.LOSS:
            counts['losses'] += 1
            if pick.is_lock:
                counts['lock_losses'] += 1
        elif pick.result == PickResult.PUSH:
            counts['pushes'] += 1
    return counts


def consistency_score(points: Sequence[float]) -> Optional[float]:
    """
    100 minus the coefficient of variation (as a percent), floored at 0.

    Uses the population standard deviation. Undefined (None) for an empty
    sequence or a zero mean.
    """
    if not points:
        return None
    mean = statistics.fmean(points)
    if mean == 0:
        return None
    return max(0.0, 100 - 100 * statistics.pstdev(points) / mean)


def season_trend(weeks: Sequence[WeeklyPerformance], window: int = LeaderboardConstants.TREND_WINDOW) -> Optional[str]:
    """Compare the last `window` weeks against the first `window` weeks."""
    if len(weeks) < window:
        return None
    early = statistics.fmean(week.points for week in weeks[:window])
    recent = statistics.fmean(week.points for week in weeks[-window:])
    if recent > early:
        return "improving"
    if recent < early:
        return "declining"
    return "steady"


def summarize_season(
    user_id: str,
    display_name: str,
    season: int,
    weeks: Iterable[WeeklyPerformance]
) -> SeasonBreakdown:
    """Build a SeasonBreakdown; weeks are ordered by week number first."""
    ordered = tuple(sorted(weeks, key=lambda week: week.week))
    totals = aggregate_weeks(ordered)

    best_week = worst_week = None
    if ordered:
        # max/min return the first extreme they meet, i.e. the earliest week
        best_week = max(ordered, key=lambda week: week.points)
        worst_week = min(ordered, key=lambda week: week.points)

    return SeasonBreakdown(
        user_id=user_id,
        display_name=display_name,
        season=season,
        weeks=ordered,
        total_points=totals.points,
        total_picks=totals.picks_made,
        average_points=totals.points / len(ordered) if ordered else 0.0,
        best_week=best_week,
        worst_week=worst_week,
        win_pct=win_percentage(totals.wins, totals.losses),
        lock_win_pct=win_percentage(totals.lock_wins, totals.lock_losses),
        consistency_score=consistency_score([week.points for week in ordered]),
        trend=season_trend(ordered),
    )
