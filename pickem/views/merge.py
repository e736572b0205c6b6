"""
Merge preview view.

Shows a merge preview with refresh, confirm and cancel buttons. Confirming
opens a modal that asks for the confirmation word and an optional reason.
"""

import logging
import discord
from discord.ui import View, Button
from typing import Optional

from pickem.constants import UIConstants
from pickem.data_models.merge import MergePreview
from pickem.data_models.request_state import RequestTracker
from pickem.ui.admin_confirmation_modal import AdminConfirmationModal
from pickem.utils.embeds import build_merge_preview_embed, build_merge_result_embed
from pickem.utils.error_embeds import ErrorEmbeds
from pickem.utils.exceptions import PickemException

logger = logging.getLogger(__name__)


class MergePreviewView(View):
    """Preview and confirm a merge of one user into another."""

    def __init__(
        self,
        merge_service,
        source_user_id: str,
        target_user_id: str,
        source_name: str,
        target_name: str,
        admin_discord_id: int,
        *,
        timeout: int = 600
    ):
        super().__init__(timeout=timeout)
        self.merge_service = merge_service
        self.source_user_id = source_user_id
        self.target_user_id = target_user_id
        self.source_name = source_name
        self.target_name = target_name
        self.admin_discord_id = admin_discord_id
        self.tracker: RequestTracker[MergePreview] = RequestTracker()
        self.completed = False

        self._update_buttons()

    def _update_buttons(self):
        self.clear_items()

        confirm_button = Button(
            label="Confirm Merge",
            style=discord.ButtonStyle.danger,
            disabled=self.completed or self.tracker.state.data is None,
            custom_id="merge:confirm"
        )
        confirm_button.callback = self.confirm
        self.add_item(confirm_button)

        refresh_button = Button(
            label="Refresh Preview",
            style=discord.ButtonStyle.secondary,
            disabled=self.completed,
            custom_id="merge:refresh"
        )
        refresh_button.callback = self.refresh
        self.add_item(refresh_button)

        cancel_button = Button(
            label="Cancel",
            style=discord.ButtonStyle.secondary,
            disabled=self.completed,
            custom_id="merge:cancel"
        )
        cancel_button.callback = self.cancel
        self.add_item(cancel_button)

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        """Only the admin who requested the preview can act on it."""
        if interaction.user.id != self.admin_discord_id:
            await interaction.response.send_message(embed=ErrorEmbeds.permission_denied(), ephemeral=True)
            return False
        return True

    async def load_preview(self) -> Optional[MergePreview]:
        """Fetch a preview through the tracker; None if a newer request superseded it."""
        request_id = self.tracker.begin((self.source_user_id, self.target_user_id))
        try:
            preview = await self.merge_service.preview_merge(self.source_user_id, self.target_user_id)
        except Exception as e:
            if self.tracker.fail(request_id, e):
                raise
            return None

        if not self.tracker.resolve(request_id, preview):
            logger.debug(f"Discarded stale merge preview {request_id}")
            return None
        self._update_buttons()
        return preview

    def build_embed(self, preview: MergePreview) -> discord.Embed:
        return build_merge_preview_embed(preview, self.source_name, self.target_name)

    async def refresh(self, interaction: discord.Interaction):
        await interaction.response.defer()
        try:
            preview = await self.load_preview()
            if preview is None:
                return
            await interaction.followup.edit_message(
                message_id=interaction.message.id,
                embed=self.build_embed(preview),
                view=self
            )
        except PickemException as e:
            await interaction.followup.send(embed=ErrorEmbeds.from_exception(e), ephemeral=True)

    async def confirm(self, interaction: discord.Interaction):
        modal = AdminConfirmationModal(
            title="Confirm User Merge",
            confirmation_text=UIConstants.MERGE_CONFIRMATION_TEXT,
            callback=self._execute_merge
        )
        await interaction.response.send_modal(modal)

    async def _execute_merge(self, interaction: discord.Interaction, reason: Optional[str]):
        await interaction.response.defer()
        try:
            result = await self.merge_service.merge_users(
                self.source_user_id,
                self.target_user_id,
                merged_by=str(interaction.user.id),
                merge_reason=reason
            )
        except PickemException as e:
            await interaction.followup.send(embed=ErrorEmbeds.from_exception(e), ephemeral=True)
            return

        self.completed = True
        self._update_buttons()
        self.stop()
        await interaction.followup.edit_message(
            message_id=interaction.message.id,
            embed=build_merge_result_embed(result, self.source_name, self.target_name),
            view=self
        )

    async def cancel(self, interaction: discord.Interaction):
        self.completed = True
        self._update_buttons()
        self.stop()
        await interaction.response.edit_message(content="Merge cancelled.", view=self)
