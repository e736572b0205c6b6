"""
Admin detection for slash commands.

An admin is the bot owner, a member holding the configured admin role, or a
member with the guild administrator permission.
"""

import discord
from discord import app_commands

from pickem.config import Config


def is_admin(interaction: discord.Interaction) -> bool:
    user = interaction.user
    if user.id == Config.OWNER_DISCORD_ID:
        return True
    # DMs give a plain User with no roles or guild permissions
    if not isinstance(user, discord.Member):
        return False
    if user.guild_permissions.administrator:
        return True
    return any(role.name == Config.ADMIN_ROLE_NAME for role in user.roles)


def admin_only():
    """app_commands check restricting a command to admins."""
    return app_commands.check(is_admin)
