"""
Merge conflict classification.

A source record is transferable unless the target already owns a record
with the same natural key in the same category:

    picks, anonymous_picks  -> (season, week)
    payments                -> season
    emails                  -> normalized email address

Two keys cross category lines. A source anonymous pick also collides with
the target's authenticated picks for the same week. A source email also
collides with the target's account address.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence, Set, Tuple

from pickem.constants import MergeCategory
from pickem.data_models.merge import (
    MergeConflict, MergeCounts, MergePreview, MergeRecords, normalize_email
)
from pickem.utils.exceptions import MergeValidationError


@dataclass(frozen=True)
class CategorySplit:
    category: str
    transferable: Tuple
    conflicting: Tuple
    conflicts: Tuple[MergeConflict, ...]


def _describe_conflict(category: str, key) -> MergeConflict:
    if category == MergeCategory.PICKS:
        season, week = key
        return MergeConflict(
            category=category,
            description=f"Both users have picks for Week {week}, {season}",
            season=season,
            week=week,
        )
    if category == MergeCategory.ANONYMOUS_PICKS:
        season, week = key
        return MergeConflict(
            category=category,
            description=f"Target already has picks for Week {week}, {season}; anonymous picks stay with the source",
            season=season,
            week=week,
        )
    if category == MergeCategory.PAYMENTS:
        return MergeConflict(
            category=category,
            description=f"Both users have payment records for {key}",
            season=key,
        )
    return MergeConflict(
        category=category,
        description=f"Both users already have the email {key}",
        email=key,
    )


def split_category(
    category: str,
    source: Sequence,
    target: Sequence,
    extra_target_keys: Iterable = ()
) -> CategorySplit:
    """Partition one category's source records into transferable and conflicting."""
    target_keys = {record.natural_key for record in target}
    target_keys.update(extra_target_keys)

    transferable = []
    conflicting = []
    # Insertion-ordered so conflicts are reported in source order
    collided: Dict[object, None] = {}
    for record in source:
        if record.natural_key in target_keys:
            conflicting.append(record)
            collided.setdefault(record.natural_key, None)
        else:
            transferable.append(record)

    return CategorySplit(
        category=category,
        transferable=tuple(transferable),
        conflicting=tuple(conflicting),
        conflicts=tuple(_describe_conflict(category, key) for key in collided),
    )


def _cross_category_keys(target: MergeRecords, category: str) -> Set:
    if category == MergeCategory.ANONYMOUS_PICKS:
        return {record.natural_key for record in target.picks}
    if category == MergeCategory.EMAILS and target.account_email:
        return {normalize_email(target.account_email)}
    return set()


def split_all(source: MergeRecords, target: MergeRecords) -> Dict[str, CategorySplit]:
    if source.user_id == target.user_id:
        raise MergeValidationError("Cannot merge a user with itself")
    return {
        category: split_category(
            category,
            source.for_category(category),
            target.for_category(category),
            _cross_category_keys(target, category)
        )
        for category in MergeCategory.ALL
    }


def classify_merge(source: MergeRecords, target: MergeRecords) -> MergePreview:
    """Build a read-only MergePreview from both users' record snapshots."""
    splits = split_all(source, target)

    conflicts: List[MergeConflict] = []
    for category in MergeCategory.ALL:
        conflicts.extend(splits[category].conflicts)

    return MergePreview(
        source_user_id=source.user_id,
        target_user_id=target.user_id,
        transferable=MergeCounts(**{
            category: len(splits[category].transferable)
            for category in MergeCategory.ALL
        }),
        conflicts=tuple(conflicts),
        target_counts=MergeCounts(**{
            category: len(target.for_category(category))
            for category in MergeCategory.ALL
        }),
    )
