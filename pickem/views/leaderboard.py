"""
Leaderboard view components.

Paginated season and weekly leaderboards with a refresh button. Every fetch
goes through a RequestTracker so a slow response never overwrites a newer page.
"""

import logging
import discord
from discord.ui import View, Button
from typing import Optional

from pickem.constants import LeaderboardConstants
from pickem.data_models.leaderboard import LeaderboardPage
from pickem.data_models.request_state import RequestTracker
from pickem.utils.embeds import build_leaderboard_embed
from pickem.utils.exceptions import PickemException

logger = logging.getLogger(__name__)


class LeaderboardView(View):
    """Paginated leaderboard view."""

    def __init__(
        self,
        leaderboard_service,
        page_data: LeaderboardPage,
        *,
        timeout: int = 900
    ):
        super().__init__(timeout=timeout)
        self.leaderboard_service = leaderboard_service
        self.leaderboard_type = page_data.leaderboard_type
        self.season = page_data.season
        self.week: Optional[int] = page_data.week
        self.viewer_is_admin = page_data.viewer_is_admin
        self.current_page = page_data.current_page
        self.total_pages = page_data.total_pages
        self.tracker: RequestTracker[LeaderboardPage] = RequestTracker()

        self._update_buttons()

    def _update_buttons(self):
        """Update button states based on current page."""
        self.clear_items()

        prev_button = Button(
            label="Previous",
            style=discord.ButtonStyle.primary,
            disabled=self.current_page <= 1,
            custom_id="leaderboard:prev"
        )
        prev_button.callback = self.previous_page
        self.add_item(prev_button)

        page_indicator = Button(
            label=f"Page {self.current_page}/{self.total_pages}",
            style=discord.ButtonStyle.secondary,
            disabled=True
        )
        self.add_item(page_indicator)

        next_button = Button(
            label="Next",
            style=discord.ButtonStyle.primary,
            disabled=self.current_page >= self.total_pages,
            custom_id="leaderboard:next"
        )
        next_button.callback = self.next_page
        self.add_item(next_button)

        refresh_button = Button(
            label="Refresh",
            style=discord.ButtonStyle.secondary,
            emoji="🔄",
            custom_id="leaderboard:refresh"
        )
        refresh_button.callback = self.refresh
        self.add_item(refresh_button)

    async def previous_page(self, interaction: discord.Interaction):
        await interaction.response.defer()
        if self.current_page > 1:
            await self._update_leaderboard(interaction, self.current_page - 1)

    async def next_page(self, interaction: discord.Interaction):
        await interaction.response.defer()
        if self.current_page < self.total_pages:
            await self._update_leaderboard(interaction, self.current_page + 1)

    async def refresh(self, interaction: discord.Interaction):
        await interaction.response.defer()
        await self._update_leaderboard(interaction, self.current_page, force_refresh=True)

    async def fetch_page(self, page: int, force_refresh: bool = False) -> LeaderboardPage:
        if self.leaderboard_type == LeaderboardConstants.WEEKLY:
            return await self.leaderboard_service.get_weekly_leaderboard(
                self.season, self.week,
                viewer_is_admin=self.viewer_is_admin,
                page=page,
                force_refresh=force_refresh
            )
        return await self.leaderboard_service.get_season_leaderboard(
            self.season,
            viewer_is_admin=self.viewer_is_admin,
            page=page,
            force_refresh=force_refresh
        )

    async def load(self, page: int, force_refresh: bool = False) -> Optional[LeaderboardPage]:
        """
        Fetch a page through the tracker.

        Returns the page if it is still the newest request when it arrives,
        None if a newer request superseded it. Errors from the newest request
        propagate; errors from superseded ones are dropped.
        """
        request_id = self.tracker.begin({'page': page, 'force_refresh': force_refresh})
        try:
            page_data = await self.fetch_page(page, force_refresh)
        except Exception as e:
            if self.tracker.fail(request_id, e):
                raise
            logger.debug(f"Dropped error from superseded leaderboard request {request_id}: {e}")
            return None

        if not self.tracker.resolve(request_id, page_data):
            logger.debug(f"Discarded stale leaderboard response {request_id}")
            return None

        self.current_page = page_data.current_page
        self.total_pages = page_data.total_pages
        self._update_buttons()
        return page_data

    async def _update_leaderboard(self, interaction: discord.Interaction, page: int, force_refresh: bool = False):
        """Fetch and display a leaderboard page."""
        try:
            page_data = await self.load(page, force_refresh)
            if page_data is None:
                return

            await interaction.followup.edit_message(
                message_id=interaction.message.id,
                embed=build_leaderboard_embed(page_data),
                view=self
            )
        except PickemException as e:
            await interaction.followup.send(e.user_message, ephemeral=True)
        except Exception as e:
            logger.error(f"Error updating leaderboard: {e}", exc_info=True)
            await interaction.followup.send(f"Error updating leaderboard: {e}", ephemeral=True)
