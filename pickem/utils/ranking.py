"""
Leaderboard ranking with deterministic tie-breaking.

Sort order is total points, then win percentage, then lock win percentage
(all descending), then display name and user id (ascending). The displayed
rank only looks at points: every entry in a points tie shows the position
of the first entry of that tie group, so [50, 50, 30] ranks as 1, 1, 3.
"""

from dataclasses import replace
from itertools import groupby
from typing import Iterable, List

from pickem.constants import PaymentStatus
from pickem.data_models.leaderboard import LeaderboardEntry, win_percentage


def is_paid(entry: LeaderboardEntry) -> bool:
    return (entry.payment_status or "").strip().lower() == PaymentStatus.PAID.lower()


def sort_key(entry: LeaderboardEntry):
    return (
        -entry.total_points,
        -entry.win_pct,
        -entry.lock_win_pct,
        entry.display_name,
        entry.user_id,
    )


class RankingUtility:
    """Shared ranking logic for season and weekly leaderboards."""

    @staticmethod
    def visible_entries(entries: Iterable[LeaderboardEntry], viewer_is_admin: bool) -> List[LeaderboardEntry]:
        """Admins see everyone; other viewers only see paid entries."""
        if viewer_is_admin:
            return list(entries)
        return [entry for entry in entries if is_paid(entry)]

    @staticmethod
    def rank(entries: Iterable[LeaderboardEntry], viewer_is_admin: bool = True) -> List[LeaderboardEntry]:
        """
        Return a new, sorted list of entries with rank and is_tied assigned.

        Filtering happens before ranking, so a non-admin ranking has no gaps
        left by hidden entries. The input entries are not modified.
        """
        ordered = sorted(
            RankingUtility.visible_entries(entries, viewer_is_admin),
            key=sort_key
        )

        ranked = []
        position = 1
        for _, group in groupby(ordered, key=lambda entry: entry.total_points):
            members = list(group)
            tied = len(members) > 1
            for entry in members:
                ranked.append(replace(entry, rank=position, is_tied=tied))
            position += len(members)
        return ranked

    @staticmethod
    def paginate(entries: List[LeaderboardEntry], page: int, page_size: int):
        """Slice one page; returns (page_entries, total_pages)."""
        if page < 1:
            raise ValueError("page must be a positive integer")
        if page_size < 1:
            raise ValueError("page_size must be a positive integer")
        total_pages = (len(entries) + page_size - 1) // page_size if entries else 1
        offset = (page - 1) * page_size
        return entries[offset:offset + page_size], total_pages


rank = RankingUtility.rank
