"""
Centralized error embeds for consistent error handling across the pick'em bot.
"""

import discord
from typing import Optional

from pickem.utils.exceptions import PickemException


class ErrorEmbeds:
    """Centralized error embed factory for consistent error handling."""

    @staticmethod
    def user_not_found(query: Optional[str] = None) -> discord.Embed:
        """Create embed for when a user lookup finds nobody."""
        if query:
            description = f"No user matches `{query}`.\n\nTry an email address or the exact display name."
        else:
            description = "That user could not be found."
        return discord.Embed(
            title="User Not Found",
            description=description,
            color=discord.Color.red()
        )

    @staticmethod
    def no_picks(season: int, week: Optional[int] = None) -> discord.Embed:
        """Create embed for an empty leaderboard."""
        scope = f"Week {week}, {season}" if week is not None else f"the {season} season"
        return discord.Embed(
            title="No Picks Yet",
            description=f"Nobody has scored picks for {scope}.",
            color=discord.Color.orange()
        )

    @staticmethod
    def from_exception(error: PickemException) -> discord.Embed:
        """Create embed from a pick'em exception's user-facing message."""
        return discord.Embed(
            title="Request Failed",
            description=error.user_message,
            color=discord.Color.red()
        )

    @staticmethod
    def command_error(error: str) -> discord.Embed:
        """Create embed for general command errors."""
        return discord.Embed(
            title="Command Error",
            description=f"An error occurred: {error}\n\nPlease try again or contact an administrator.",
            color=discord.Color.red()
        )

    @staticmethod
    def invalid_input(message: str) -> discord.Embed:
        """Create embed for invalid user input."""
        return discord.Embed(
            title="Invalid Input",
            description=message,
            color=discord.Color.red()
        )

    @staticmethod
    def permission_denied() -> discord.Embed:
        """Create embed for permission errors."""
        return discord.Embed(
            title="Permission Denied",
            description="You don't have permission to perform this action.",
            color=discord.Color.red()
        )
