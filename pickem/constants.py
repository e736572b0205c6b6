"""
Pick'em-wide constants.

Scoring values, record categories and display settings used throughout
the codebase.
"""

class ScoringConstants:
    """Points awarded for a pick against the spread."""

    WIN_POINTS = 20
    PUSH_POINTS = 10
    LOSS_POINTS = 0

    # (minimum cover margin, bonus) checked in order
    MARGIN_BONUS_TIERS = (
        (29, 5),
        (20, 3),
        (11, 1),
    )

    # Lock picks double the margin bonus, never the base points
    LOCK_BONUS_MULTIPLIER = 2


class PickResult:
    """Stored values for a scored pick."""

    WIN = "win"
    LOSS = "loss"
    PUSH = "push"


class GameStatus:
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class PaymentStatus:
    """LeagueSafe payment states; NO_PAYMENT is used when no record exists."""

    PAID = "Paid"
    NOT_PAID = "NotPaid"
    PENDING = "Pending"
    NO_PAYMENT = "No Payment"


class MergeCategory:
    """Record categories considered by a user merge."""

    PICKS = "picks"
    PAYMENTS = "payments"
    ANONYMOUS_PICKS = "anonymous_picks"
    EMAILS = "emails"

    ALL = (PICKS, PAYMENTS, ANONYMOUS_PICKS, EMAILS)


class EmailType:
    PRIMARY = "primary"
    LEAGUESAFE = "leaguesafe"
    ALTERNATE = "alternate"
    MERGED = "merged"

    ALL = (PRIMARY, LEAGUESAFE, ALTERNATE, MERGED)


class LeaderboardConstants:
    SEASON = "season"
    WEEKLY = "weekly"

    DEFAULT_PAGE_SIZE = 10
    MAX_PAGE_SIZE = 50
    DEFAULT_CACHE_TTL = 180  # 3 minutes
    CACHE_MAX_SIZE = 500

    # Number of weeks compared at each end of a season for the trend
    TREND_WINDOW = 3


class UIConstants:
    """Constants for Discord UI elements."""

    DEFAULT_EMBED_COLOR = 0x4B3621  # Brown
    GOLD_RANK_COLOR = 0xC9A04E
    ERROR_COLOR = 0xe74c3c
    SUCCESS_COLOR = 0x2ecc71
    WARNING_COLOR = 0xf39c12

    TROPHY_EMOJI = "🏆"
    LOCK_EMOJI = "🔒"
    TIE_MARKER = "="

    MERGE_CONFIRMATION_TEXT = "MERGE"
    MAX_CONFLICTS_DISPLAYED = 10


# Runtime-tunable values stored in the configurations table
DEFAULT_RUNTIME_CONFIG = {
    'leaderboard.page_size': LeaderboardConstants.DEFAULT_PAGE_SIZE,
    'leaderboard.cache_ttl': LeaderboardConstants.DEFAULT_CACHE_TTL,
    'season.current': None,  # falls back to Config.CURRENT_SEASON
}
