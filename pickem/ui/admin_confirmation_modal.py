"""
Admin confirmation modal.

Confirmation dialog for destructive admin operations: the admin has to type
a confirmation word, and may leave a reason that is stored with the change.
"""

import discord
from typing import Callable, Awaitable, Optional


class AdminConfirmationModal(discord.ui.Modal):
    """Modal for confirming destructive admin operations"""

    def __init__(
        self,
        title: str,
        confirmation_text: str,
        callback: Callable[[discord.Interaction, Optional[str]], Awaitable[None]],
        ask_reason: bool = True
    ):
        super().__init__(title=title, timeout=300)
        self.confirmation_text = confirmation_text
        self.on_confirmed = callback

        self.confirmation_input = discord.ui.TextInput(
            label=f'Type "{confirmation_text}" to confirm',
            placeholder=confirmation_text,
            required=True,
            max_length=len(confirmation_text) + 10
        )
        self.add_item(self.confirmation_input)

        self.reason_input = None
        if ask_reason:
            self.reason_input = discord.ui.TextInput(
                label="Reason (optional)",
                style=discord.TextStyle.paragraph,
                required=False,
                max_length=500
            )
            self.add_item(self.reason_input)

    @property
    def reason(self) -> Optional[str]:
        if self.reason_input is None:
            return None
        return self.reason_input.value.strip() or None

    async def on_submit(self, interaction: discord.Interaction):
        """Handle modal submission with validation"""
        user_input = self.confirmation_input.value.strip()

        if user_input != self.confirmation_text:
            await interaction.response.send_message(
                f"❌ **Confirmation Failed**\n"
                f"You typed: `{user_input}`\n"
                f"Required: `{self.confirmation_text}`\n"
                f"Operation cancelled for safety.",
                ephemeral=True
            )
            return

        await self.on_confirmed(interaction, self.reason)

    async def on_error(self, interaction: discord.Interaction, error: Exception):
        """Handle modal errors gracefully"""
        message = (
            f"❌ **Modal Error**\n"
            f"An error occurred during confirmation: {str(error)}\n"
            f"Operation cancelled."
        )
        if interaction.response.is_done():
            await interaction.followup.send(message, ephemeral=True)
        else:
            await interaction.response.send_message(message, ephemeral=True)
