"""
User merge data models.

Keyed record snapshots read from the database, and the preview/result
objects produced when merging one user account into another.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple, Union

from pickem.constants import MergeCategory


def normalize_email(email: str) -> str:
    return email.strip().lower()


@dataclass(frozen=True)
class PickRecord:
    record_id: int
    season: int
    week: int

    @property
    def natural_key(self) -> Tuple[int, int]:
        return (self.season, self.week)


@dataclass(frozen=True)
class PaymentRecord:
    record_id: int
    season: int

    @property
    def natural_key(self) -> int:
        return self.season


@dataclass(frozen=True)
class EmailRecord:
    record_id: int
    email: str
    email_type: str = "alternate"
    is_primary: bool = False

    @property
    def natural_key(self) -> str:
        return normalize_email(self.email)


@dataclass(frozen=True)
class MergeRecords:
    """Every mergeable record one user owns, grouped by category."""
    user_id: str
    picks: Tuple[PickRecord, ...] = ()
    payments: Tuple[PaymentRecord, ...] = ()
    anonymous_picks: Tuple[PickRecord, ...] = ()
    emails: Tuple[EmailRecord, ...] = ()
    account_email: Optional[str] = None

    def for_category(self, category: str) -> Tuple[Union[PickRecord, PaymentRecord, EmailRecord], ...]:
        if category not in MergeCategory.ALL:
            raise ValueError(f"Unknown merge category: {category}")
        return getattr(self, category)


@dataclass(frozen=True)
class MergeCounts:
    picks: int = 0
    payments: int = 0
    anonymous_picks: int = 0
    emails: int = 0

    def get(self, category: str) -> int:
        if category not in MergeCategory.ALL:
            raise ValueError(f"Unknown merge category: {category}")
        return getattr(self, category)

    @property
    def total(self) -> int:
        return self.picks + self.payments + self.anonymous_picks + self.emails


@dataclass(frozen=True)
class MergeConflict:
    """A natural-key collision between source and target records."""
    category: str
    description: str
    season: Optional[int] = None
    week: Optional[int] = None
    email: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'type': self.category,
            'season': self.season,
            'week': self.week,
            'email': self.email,
            'description': self.description,
        }


@dataclass(frozen=True)
class MergePreview:
    source_user_id: str
    target_user_id: str
    transferable: MergeCounts
    conflicts: Tuple[MergeConflict, ...] = ()
    target_counts: MergeCounts = field(default_factory=MergeCounts)

    @property
    def has_conflicts(self) -> bool:
        return len(self.conflicts) > 0

    def conflict_count(self, category: str) -> int:
        return sum(1 for conflict in self.conflicts if conflict.category == category)

    def projected_total(self, category: str) -> int:
        """Records the target will own in a category after the merge."""
        return self.target_counts.get(category) + self.transferable.get(category)


@dataclass(frozen=True)
class MergeResult:
    success: bool
    source_user_id: str
    target_user_id: str
    picks_merged: int = 0
    payments_merged: int = 0
    anonymous_picks_merged: int = 0
    emails_merged: int = 0
    conflicts_detected: bool = False
    conflict_details: Tuple[MergeConflict, ...] = ()
    history_id: Optional[int] = None


@dataclass(frozen=True)
class MergeHistoryEntry:
    history_id: int
    source_user_id: str
    target_user_id: str
    source_user_email: str
    source_user_display_name: str
    merged_by: Optional[str]
    merge_reason: Optional[str]
    picks_merged: int
    payments_merged: int
    anonymous_picks_merged: int
    emails_merged: int
    conflicts_detected: bool
    merged_at: datetime
