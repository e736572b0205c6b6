"""
Leaderboard data models.

Immutable data transfer objects for weekly performances, ranked leaderboard
rows and per-user season drill-downs.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple


def win_percentage(wins: int, losses: int) -> float:
    """Wins over decided games, 0.0 when nothing has been decided."""
    decided = wins + losses
    if decided <= 0:
        return 0.0
    return wins / decided


@dataclass(frozen=True)
class WeeklyPerformance:
    """One user's scored outcome for one week."""
    week: int
    wins: int = 0
    losses: int = 0
    pushes: int = 0
    lock_wins: int = 0
    lock_losses: int = 0
    points: int = 0
    picks_made: int = 0

    @property
    def record(self) -> str:
        return f"{self.wins}-{self.losses}-{self.pushes}"

    @property
    def lock_record(self) -> str:
        return f"{self.lock_wins}-{self.lock_losses}"


@dataclass(frozen=True)
class LeaderboardEntry:
    """Single leaderboard row. rank and is_tied are assigned by ranking."""
    user_id: str
    display_name: str
    total_points: int
    wins: int = 0
    losses: int = 0
    pushes: int = 0
    lock_wins: int = 0
    lock_losses: int = 0
    total_picks: int = 0
    payment_status: str = "No Payment"
    rank: int = 0
    is_tied: bool = False

    @property
    def win_pct(self) -> float:
        """Wins over decided picks; pushes are excluded."""
        return win_percentage(self.wins, self.losses)

    @property
    def lock_win_pct(self) -> float:
        return win_percentage(self.lock_wins, self.lock_losses)

    @property
    def record(self) -> str:
        return f"{self.wins}-{self.losses}-{self.pushes}"

    @property
    def lock_record(self) -> str:
        return f"{self.lock_wins}-{self.lock_losses}"


@dataclass(frozen=True)
class LeaderboardPage:
    """Paginated leaderboard data."""
    entries: List[LeaderboardEntry]
    current_page: int
    total_pages: int
    total_players: int
    season: int
    leaderboard_type: str
    viewer_is_admin: bool = False
    week: Optional[int] = None


@dataclass(frozen=True)
class SeasonBreakdown:
    """Drill-down statistics for one user's season."""
    user_id: str
    display_name: str
    season: int
    weeks: Tuple[WeeklyPerformance, ...] = field(default_factory=tuple)
    total_points: int = 0
    total_picks: int = 0
    average_points: float = 0.0
    best_week: Optional[WeeklyPerformance] = None
    worst_week: Optional[WeeklyPerformance] = None
    win_pct: float = 0.0
    lock_win_pct: float = 0.0
    consistency_score: Optional[float] = None  # None when undefined (no weeks or zero mean)
    trend: Optional[str] = None  # 'improving', 'declining', 'steady'

    @property
    def weeks_played(self) -> int:
        return len(self.weeks)


@dataclass(frozen=True)
class ScoredPick:
    """A pick with its result resolved; result is None until the game is final."""
    user_id: str
    season: int
    week: int
    is_lock: bool
    result: Optional[str]
    points: int
    source: str = "authenticated"  # or 'anonymous'

    @property
    def is_scored(self) -> bool:
        return self.result is not None
