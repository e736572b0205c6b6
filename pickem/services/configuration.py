"""
Configuration management service for the pick'em bot.

Provides async runtime configuration with in-memory caching, an audit trail
and defaults for keys that were never set.
"""

import json
import logging
from typing import Any, Dict, Optional
from sqlalchemy import select
from pickem.constants import DEFAULT_RUNTIME_CONFIG, LeaderboardConstants
from pickem.services.base import BaseService
from pickem.database.models import Configuration, AuditLog

logger = logging.getLogger(__name__)


def _validate_page_size(value):
    if not isinstance(value, int) or isinstance(value, bool) or not 1 <= value <= LeaderboardConstants.MAX_PAGE_SIZE:
        raise ValueError(f"leaderboard.page_size must be an integer between 1 and {LeaderboardConstants.MAX_PAGE_SIZE}")


def _validate_cache_ttl(value):
    if not isinstance(value, (int, float)) or isinstance(value, bool) or value < 0:
        raise ValueError("leaderboard.cache_ttl must be a non-negative number of seconds")


def _validate_season(value):
    if value is not None and (not isinstance(value, int) or isinstance(value, bool) or value < 1900):
        raise ValueError("season.current must be a year such as 2025, or null")


VALIDATORS = {
    'leaderboard.page_size': _validate_page_size,
    'leaderboard.cache_ttl': _validate_cache_ttl,
    'season.current': _validate_season,
}


class ConfigurationService(BaseService):
    """Manages runtime configuration with simple caching and audit trail."""

    def __init__(self, session_factory):
        super().__init__(session_factory)
        self._cache: Dict[str, Any] = {}

    async def load_all(self):
        """Load all configurations from database into memory with error handling."""
        new_cache = dict(DEFAULT_RUNTIME_CONFIG)
        async with self.get_session() as session:
            result = await session.execute(select(Configuration))
            configs = result.scalars().all()

            for config in configs:
                try:
                    new_cache[config.key] = json.loads(config.value)
                except json.JSONDecodeError:
                    logger.warning(f"Invalid JSON for config key '{config.key}', skipping")
                    continue

        self._cache = new_cache
        logger.info(f"Loaded {len(self._cache)} configuration parameters")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by key.

        Args:
            key: Configuration key (e.g., 'leaderboard.page_size')
            default: Value used when the key is unset and has no built-in default

        Returns:
            Configuration value or default
        """
        value = self._cache.get(key, DEFAULT_RUNTIME_CONFIG.get(key))
        return default if value is None else value

    @staticmethod
    def parse_value(raw: str) -> Any:
        """Parse a value typed by an admin: JSON if it parses, otherwise the plain string."""
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            return raw

    async def set(self, key: str, value: Any, user_id: int):
        """
        Set configuration value and persist to database with cache consistency.

        Args:
            key: Configuration key
            value: Configuration value (will be JSON-encoded)
            user_id: Discord user ID for audit trail

        Raises:
            ValueError: If the value is not valid for a known key
        """
        validator = VALIDATORS.get(key)
        if validator:
            validator(value)

        async with self.get_session() as session:
            result = await session.execute(
                select(Configuration).where(Configuration.key == key)
            )
            config = result.scalar_one_or_none()

            if config:
                old_value = config.value
                config.value = json.dumps(value)
            else:
                old_value = None
                config = Configuration(
                    key=key,
                    value=json.dumps(value)
                )
                session.add(config)

            old_value_parsed = None
            if old_value:
                try:
                    old_value_parsed = json.loads(old_value)
                except json.JSONDecodeError:
                    old_value_parsed = {"error": "invalid JSON", "raw": old_value}

            session.add(AuditLog(
                user_id=user_id,
                action='config_set',
                details=json.dumps({
                    'key': key,
                    'old_value': old_value_parsed,
                    'new_value': value
                })
            ))

        logger.info(f"Config '{key}' set to {value!r} by {user_id}")
        # Reload so the cache reflects exactly what was committed
        await self.load_all()

    def list_all(self) -> Dict[str, Any]:
        return self._cache.copy()

    def get_current_season(self, fallback: int) -> int:
        season: Optional[int] = self.get('season.current')
        return season if season is not None else fallback
