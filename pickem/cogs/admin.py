import discord
from discord import app_commands
from discord.ext import commands
from typing import Optional
import logging

from pickem.constants import DEFAULT_RUNTIME_CONFIG, EmailType, UIConstants
from pickem.views.merge import MergePreviewView
from pickem.utils.embeds import build_merge_history_embed
from pickem.utils.error_embeds import ErrorEmbeds
from pickem.utils.exceptions import PickemException
from pickem.utils.permissions import admin_only

logger = logging.getLogger(__name__)

EMAIL_TYPE_CHOICES = [
    app_commands.Choice(name=email_type, value=email_type)
    for email_type in EmailType.ALL if email_type != EmailType.MERGED
]

class AdminCog(commands.Cog):
    """Admin commands for user merges, emails and runtime configuration"""

    def __init__(self, bot):
        self.bot = bot
        self.leaderboard_service = bot.leaderboard_service
        self.merge_service = bot.merge_service
        self.config_service = bot.config_service

    async def _resolve(self, interaction: discord.Interaction, query: str):
        """Find a user or tell the admin nobody matched."""
        profile = await self.leaderboard_service.find_user(query)
        if profile is None:
            await interaction.followup.send(embed=ErrorEmbeds.user_not_found(query), ephemeral=True)
        return profile

    @app_commands.command(name="admin-merge-preview", description="Preview merging one user into another")
    @app_commands.describe(
        source="User to merge away (email or display name)",
        target="User that keeps the records (email or display name)"
    )
    @admin_only()
    async def merge_preview(self, interaction: discord.Interaction, source: str, target: str):
        await interaction.response.defer(ephemeral=True)

        try:
            source_profile = await self._resolve(interaction, source)
            if source_profile is None:
                return
            target_profile = await self._resolve(interaction, target)
            if target_profile is None:
                return

            view = MergePreviewView(
                self.merge_service,
                source_profile.id,
                target_profile.id,
                f"{source_profile.display_name} ({source_profile.email})",
                f"{target_profile.display_name} ({target_profile.email})",
                admin_discord_id=interaction.user.id
            )
            preview = await view.load_preview()
            await interaction.followup.send(embed=view.build_embed(preview), view=view, ephemeral=True)
        except PickemException as e:
            await interaction.followup.send(embed=ErrorEmbeds.from_exception(e), ephemeral=True)
        except Exception as e:
            logger.error(f"Error in merge preview: {e}", exc_info=True)
            await interaction.followup.send(embed=ErrorEmbeds.command_error("Could not build the merge preview."), ephemeral=True)

    @app_commands.command(name="admin-merge-history", description="Show accounts merged into a user")
    @app_commands.describe(user="Email or display name")
    @admin_only()
    async def merge_history(self, interaction: discord.Interaction, user: str):
        await interaction.response.defer(ephemeral=True)

        try:
            profile = await self._resolve(interaction, user)
            if profile is None:
                return
            entries = await self.merge_service.get_merge_history(profile.id)
            await interaction.followup.send(
                embed=build_merge_history_embed(entries, profile.display_name),
                ephemeral=True
            )
        except PickemException as e:
            await interaction.followup.send(embed=ErrorEmbeds.from_exception(e), ephemeral=True)

    @app_commands.command(name="admin-user-search", description="Search users by email")
    @app_commands.describe(fragment="Part of an email address")
    @admin_only()
    async def user_search(self, interaction: discord.Interaction, fragment: str):
        await interaction.response.defer(ephemeral=True)

        users = await self.merge_service.search_users_by_email(fragment)
        if not users:
            await interaction.followup.send(embed=ErrorEmbeds.user_not_found(fragment), ephemeral=True)
            return

        lines = [
            f"`{user.id}` {user.display_name or 'Unknown User'} - {user.email}"
            + ("" if user.is_active else " (merged)")
            for user in users
        ]
        embed = discord.Embed(
            title=f"Users matching '{fragment}'",
            description="\n".join(lines),
            color=UIConstants.DEFAULT_EMBED_COLOR
        )
        await interaction.followup.send(embed=embed, ephemeral=True)

    @app_commands.command(name="admin-find-duplicates", description="List accounts that may belong to the same person")
    @app_commands.describe(user="Email or display name")
    @admin_only()
    async def find_duplicates(self, interaction: discord.Interaction, user: str):
        await interaction.response.defer(ephemeral=True)

        try:
            profile = await self._resolve(interaction, user)
            if profile is None:
                return
            candidates = await self.merge_service.find_potential_duplicates(profile.id)
        except PickemException as e:
            await interaction.followup.send(embed=ErrorEmbeds.from_exception(e), ephemeral=True)
            return

        embed = discord.Embed(
            title=f"Possible duplicates of {profile.display_name}",
            color=UIConstants.DEFAULT_EMBED_COLOR
        )
        if candidates:
            embed.description = "\n".join(
                f"`{candidate.id}` {candidate.display_name or 'Unknown User'} - {candidate.email}"
                for candidate in candidates
            )
            embed.set_footer(text="Use /admin-merge-preview to compare two accounts")
        else:
            embed.description = "No likely duplicates found."
        await interaction.followup.send(embed=embed, ephemeral=True)

    @app_commands.command(name="admin-emails", description="List a user's email addresses")
    @app_commands.describe(user="Email or display name")
    @admin_only()
    async def list_emails(self, interaction: discord.Interaction, user: str):
        await interaction.response.defer(ephemeral=True)

        profile = await self._resolve(interaction, user)
        if profile is None:
            return
        emails = await self.merge_service.get_user_emails(profile.id)

        embed = discord.Embed(
            title=f"Emails - {profile.display_name}",
            description=f"Account email: {profile.email}",
            color=UIConstants.DEFAULT_EMBED_COLOR
        )
        for email in emails:
            label = f"#{email.id} {email.email}"
            if email.is_primary:
                label += " ⭐"
            embed.add_field(name=label, value=email.source or email.email_type, inline=False)
        await interaction.followup.send(embed=embed, ephemeral=True)

    @app_commands.command(name="admin-email-add", description="Link an email address to a user")
    @app_commands.describe(user="Email or display name", email="Address to add", email_type="Kind of address")
    @app_commands.choices(email_type=EMAIL_TYPE_CHOICES)
    @admin_only()
    async def add_email(
        self,
        interaction: discord.Interaction,
        user: str,
        email: str,
        email_type: Optional[app_commands.Choice[str]] = None
    ):
        await interaction.response.defer(ephemeral=True)

        try:
            profile = await self._resolve(interaction, user)
            if profile is None:
                return
            added = await self.merge_service.add_email_to_user(
                profile.id,
                email,
                email_type.value if email_type else EmailType.ALTERNATE,
                added_by=str(interaction.user.id)
            )
            await interaction.followup.send(f"✅ Added {added.email} to {profile.display_name}.", ephemeral=True)
        except PickemException as e:
            await interaction.followup.send(embed=ErrorEmbeds.from_exception(e), ephemeral=True)

    @app_commands.command(name="admin-email-remove", description="Remove a linked email address")
    @app_commands.describe(email_id="Id shown by /admin-emails")
    @admin_only()
    async def remove_email(self, interaction: discord.Interaction, email_id: int):
        await interaction.response.defer(ephemeral=True)

        try:
            if await self.merge_service.remove_email_from_user(email_id):
                await interaction.followup.send(f"✅ Removed email #{email_id}.", ephemeral=True)
            else:
                await interaction.followup.send(embed=ErrorEmbeds.invalid_input(f"No email with id {email_id}."), ephemeral=True)
        except PickemException as e:
            await interaction.followup.send(embed=ErrorEmbeds.from_exception(e), ephemeral=True)

    @app_commands.command(name="admin-email-primary", description="Make a linked email the user's primary")
    @app_commands.describe(user="Email or display name", email_id="Id shown by /admin-emails")
    @admin_only()
    async def set_primary_email(self, interaction: discord.Interaction, user: str, email_id: int):
        await interaction.response.defer(ephemeral=True)

        profile = await self._resolve(interaction, user)
        if profile is None:
            return
        if await self.merge_service.set_primary_email(profile.id, email_id):
            await interaction.followup.send(f"✅ Email #{email_id} is now primary for {profile.display_name}.", ephemeral=True)
        else:
            await interaction.followup.send(
                embed=ErrorEmbeds.invalid_input(f"Email #{email_id} does not belong to {profile.display_name}."),
                ephemeral=True
            )

    @app_commands.command(name="admin-config", description="View or set a runtime configuration value")
    @app_commands.describe(key="Configuration key", value="New value (JSON); omit to view")
    @admin_only()
    async def config(self, interaction: discord.Interaction, key: str, value: Optional[str] = None):
        await interaction.response.defer(ephemeral=True)

        if value is None:
            await interaction.followup.send(f"`{key}` = `{self.config_service.get(key)!r}`", ephemeral=True)
            return

        try:
            parsed = self.config_service.parse_value(value)
            await self.config_service.set(key, parsed, interaction.user.id)
        except ValueError as e:
            await interaction.followup.send(embed=ErrorEmbeds.invalid_input(str(e)), ephemeral=True)
            return

        if key.startswith('leaderboard.'):
            await self.leaderboard_service.invalidate_cache()
        await interaction.followup.send(f"✅ `{key}` set to `{parsed!r}`.", ephemeral=True)

    @config.autocomplete('key')
    async def config_key_autocomplete(self, interaction: discord.Interaction, current: str):
        keys = sorted(set(DEFAULT_RUNTIME_CONFIG) | set(self.config_service.list_all()))
        return [
            app_commands.Choice(name=key, value=key)
            for key in keys if current.lower() in key.lower()
        ][:25]

async def setup(bot):
    await bot.add_cog(AdminCog(bot))
