import discord
from discord import app_commands
from discord.ext import commands
from typing import Optional
from pickem.views.leaderboard import LeaderboardView
from pickem.utils.embeds import build_breakdown_embed, build_leaderboard_embed
from pickem.utils.error_embeds import ErrorEmbeds
from pickem.utils.exceptions import PickemException
from pickem.utils.permissions import is_admin
import logging

logger = logging.getLogger(__name__)

class LeaderboardCog(commands.Cog):
    """Season and weekly leaderboards and player breakdowns"""

    def __init__(self, bot):
        self.bot = bot
        self.leaderboard_service = bot.leaderboard_service

    async def _send_leaderboard(self, interaction: discord.Interaction, season: int, week: Optional[int] = None):
        viewer_is_admin = is_admin(interaction)
        if week is None:
            page_data = await self.leaderboard_service.get_season_leaderboard(season, viewer_is_admin=viewer_is_admin)
        else:
            page_data = await self.leaderboard_service.get_weekly_leaderboard(season, week, viewer_is_admin=viewer_is_admin)

        if not page_data.entries:
            await interaction.followup.send(embed=ErrorEmbeds.no_picks(season, week))
            return

        view = LeaderboardView(self.leaderboard_service, page_data)
        await interaction.followup.send(embed=build_leaderboard_embed(page_data), view=view)

    @app_commands.command(name="leaderboard", description="View the season leaderboard")
    @app_commands.describe(season="Season year (defaults to the current season)")
    async def leaderboard(self, interaction: discord.Interaction, season: Optional[int] = None):
        """Display the season leaderboard."""
        await interaction.response.defer()

        try:
            await self._send_leaderboard(interaction, season or self.bot.current_season)
        except PickemException as e:
            await interaction.followup.send(embed=ErrorEmbeds.from_exception(e))
        except ValueError as e:
            await interaction.followup.send(embed=ErrorEmbeds.invalid_input(str(e)))
        except Exception as e:
            logger.error(f"Error in leaderboard command: {e}", exc_info=True)
            await interaction.followup.send(embed=ErrorEmbeds.command_error("An error occurred while fetching leaderboard data. Please try again later."))

    @app_commands.command(name="leaderboard-week", description="View the leaderboard for a single week")
    @app_commands.describe(week="Week number", season="Season year (defaults to the current season)")
    async def leaderboard_week(
        self,
        interaction: discord.Interaction,
        week: app_commands.Range[int, 0, 25],
        season: Optional[int] = None
    ):
        """Display one week's leaderboard."""
        await interaction.response.defer()

        try:
            await self._send_leaderboard(interaction, season or self.bot.current_season, week)
        except PickemException as e:
            await interaction.followup.send(embed=ErrorEmbeds.from_exception(e))
        except ValueError as e:
            await interaction.followup.send(embed=ErrorEmbeds.invalid_input(str(e)))
        except Exception as e:
            logger.error(f"Error in weekly leaderboard command: {e}", exc_info=True)
            await interaction.followup.send(embed=ErrorEmbeds.command_error("An error occurred while fetching leaderboard data. Please try again later."))

    @app_commands.command(name="breakdown", description="Week-by-week breakdown of a player's season")
    @app_commands.describe(user="Email or display name", season="Season year (defaults to the current season)")
    async def breakdown(self, interaction: discord.Interaction, user: str, season: Optional[int] = None):
        """Display a player's season drill-down."""
        await interaction.response.defer()

        try:
            profile = await self.leaderboard_service.find_user(user)
            if profile is None:
                await interaction.followup.send(embed=ErrorEmbeds.user_not_found(user))
                return

            breakdown = await self.leaderboard_service.get_user_breakdown(
                profile.id, season or self.bot.current_season
            )
            await interaction.followup.send(embed=build_breakdown_embed(breakdown))
        except PickemException as e:
            await interaction.followup.send(embed=ErrorEmbeds.from_exception(e))
        except Exception as e:
            logger.error(f"Error in breakdown command: {e}", exc_info=True)
            await interaction.followup.send(embed=ErrorEmbeds.command_error("An error occurred while building the breakdown. Please try again later."))

async def setup(bot):
    await bot.add_cog(LeaderboardCog(bot))
