"""
Leaderboard service.

Builds season and weekly leaderboards and per-user season breakdowns from
scored picks, with a TTL cache in front of the database.
"""

from collections import defaultdict
from typing import Dict, List, Optional
import asyncio
import time
import logging

from pickem.constants import LeaderboardConstants
from pickem.database.database import Database
from pickem.data_models.leaderboard import LeaderboardPage, LeaderboardEntry, SeasonBreakdown
from pickem.data_models.payloads import LeaderboardRowPayload, UserPayload, parse_payload
from pickem.services.base import BaseService
from pickem.services.configuration import ConfigurationService
from pickem.utils.aggregation import summarize_season, tally_picks
from pickem.utils.exceptions import UserNotFoundError
from pickem.utils.ranking import RankingUtility

logger = logging.getLogger(__name__)


class LeaderboardService(BaseService):
    """Service for leaderboard queries and ranking with caching."""

    def __init__(self, db: Database, config_service: ConfigurationService):
        super().__init__(db.session_factory)
        self.db = db
        self.config_service = config_service
        # TTL cache for leaderboard pages
        self._cache = {}
        self._cache_timestamps = {}
        self._cache_max_size = LeaderboardConstants.CACHE_MAX_SIZE
        self._cache_lock = asyncio.Lock()

    @property
    def cache_ttl(self) -> float:
        return self.config_service.get('leaderboard.cache_ttl', LeaderboardConstants.DEFAULT_CACHE_TTL)

    @property
    def default_page_size(self) -> int:
        return self.config_service.get('leaderboard.page_size', LeaderboardConstants.DEFAULT_PAGE_SIZE)

    async def _get_cached(self, key: tuple):
        async with self._cache_lock:
            timestamp = self._cache_timestamps.get(key)
            if timestamp is None or time.time() - timestamp >= self.cache_ttl:
                return None
            return self._cache[key]

    async def _store(self, key: tuple, value):
        async with self._cache_lock:
            self._cache[key] = value
            self._cache_timestamps[key] = time.time()
            self._cleanup_cache_locked()

    def _cleanup_cache_locked(self):
        """Remove expired entries and enforce size limits. Caller holds the lock."""
        current_time = time.time()
        expired_keys = [
            key for key, timestamp in self._cache_timestamps.items()
            if current_time - timestamp >= self.cache_ttl
        ]
        for key in expired_keys:
            self._cache.pop(key, None)
            self._cache_timestamps.pop(key, None)

        # Enforce size limit by removing oldest entries
        if len(self._cache) > self._cache_max_size:
            sorted_keys = sorted(self._cache_timestamps.items(), key=lambda x: x[1])
            for key, _ in sorted_keys[:len(self._cache) - self._cache_max_size]:
                self._cache.pop(key, None)
                self._cache_timestamps.pop(key, None)

    async def invalidate_cache(self):
        """Clears the entire leaderboard cache."""
        async with self._cache_lock:
            self._cache.clear()
            self._cache_timestamps.clear()
        logger.info("Leaderboard cache cleared.")

    async def get_season_leaderboard(
        self,
        season: int,
        viewer_is_admin: bool = False,
        page: int = 1,
        page_size: Optional[int] = None,
        force_refresh: bool = False
    ) -> LeaderboardPage:
        """Ranked season totals, one page at a time."""
        return await self._get_page(
            LeaderboardConstants.SEASON, season, None, viewer_is_admin, page, page_size, force_refresh
        )

    async def get_weekly_leaderboard(
        self,
        season: int,
        week: int,
        viewer_is_admin: bool = False,
        page: int = 1,
        page_size: Optional[int] = None,
        force_refresh: bool = False
    ) -> LeaderboardPage:
        """Ranked totals for a single week."""
        if week < 0:
            raise ValueError("week must be zero or a positive integer")
        return await self._get_page(
            LeaderboardConstants.WEEKLY, season, week, viewer_is_admin, page, page_size, force_refresh
        )

    async def _get_page(
        self,
        leaderboard_type: str,
        season: int,
        week: Optional[int],
        viewer_is_admin: bool,
        page: int,
        page_size: Optional[int],
        force_refresh: bool = False
    ) -> LeaderboardPage:
        page_size = page_size or self.default_page_size
        if not isinstance(page, int) or page < 1:
            raise ValueError("page must be a positive integer")
        if not isinstance(page_size, int) or page_size < 1 or page_size > LeaderboardConstants.MAX_PAGE_SIZE:
            raise ValueError(f"page_size must be between 1 and {LeaderboardConstants.MAX_PAGE_SIZE}")

        cache_key = (leaderboard_type, season, week, viewer_is_admin, page, page_size)
        cached = None if force_refresh else await self._get_cached(cache_key)
        if cached is not None:
            return cached

        entries = await self.execute_with_retry(lambda: self._load_entries(season, week))
        ranked = RankingUtility.rank(entries, viewer_is_admin=viewer_is_admin)
        page_entries, total_pages = RankingUtility.paginate(ranked, page, page_size)

        leaderboard_page = LeaderboardPage(
            entries=page_entries,
            current_page=page,
            total_pages=total_pages,
            total_players=len(ranked),
            season=season,
            leaderboard_type=leaderboard_type,
            viewer_is_admin=viewer_is_admin,
            week=week
        )
        await self._store(cache_key, leaderboard_page)
        return leaderboard_page

    async def _load_entries(self, season: int, week: Optional[int]) -> List[LeaderboardEntry]:
        """Unranked entries for every active user with at least one pick in scope."""
        users = {user.id: user for user in await self.db.get_active_users()}
        picks = await self.db.get_scored_picks(season, week=week)
        payment_statuses = await self.db.get_payment_statuses(season)

        by_user: Dict[str, list] = defaultdict(list)
        for pick in picks:
            if pick.user_id in users:
                by_user[pick.user_id].append(pick)

        entries = []
        for user_id, user_picks in by_user.items():
            counts = tally_picks(user_picks)
            row = {
                'user_id': user_id,
                'display_name': users[user_id].display_name,
                'total_points': counts['points'],
                'total_picks': counts['picks_made'],
                'payment_status': payment_statuses.get(user_id),
                **counts,
            }
            entries.append(parse_payload(LeaderboardRowPayload, row).to_domain())

        logger.debug(f"Built {len(entries)} leaderboard entries for season {season} week {week}")
        return entries

    async def get_user_breakdown(self, user_id: str, season: int) -> SeasonBreakdown:
        """
        Season drill-down for one user.

        Raises:
            UserNotFoundError: If no user has this id
        """
        user = await self.db.get_user(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        profile = parse_payload(UserPayload, user)

        weeks = await self.db.get_weekly_performances(user_id, season)
        return summarize_season(profile.id, profile.display_name, season, weeks)

    async def find_user(self, query: str) -> Optional[UserPayload]:
        """Look a user up by id, email or display name."""
        user = await self.db.find_user(query)
        if user is None:
            return None
        return parse_payload(UserPayload, user)
