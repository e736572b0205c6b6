"""
Services package for the pick'em bot.

Leaderboards, user merges and runtime configuration.
"""

from .base import BaseService
from .configuration import ConfigurationService
from .leaderboard import LeaderboardService
from .user_merge import UserMergeService

__all__ = ['BaseService', 'ConfigurationService', 'LeaderboardService', 'UserMergeService']
