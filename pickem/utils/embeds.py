"""
Shared embed utilities for the pick'em bot.

Embed builders used by both cogs and views so a refreshed message renders
exactly like the original one.
"""

import discord
from typing import List

from pickem.constants import LeaderboardConstants, MergeCategory, UIConstants
from pickem.data_models.leaderboard import LeaderboardPage, SeasonBreakdown
from pickem.data_models.merge import MergeHistoryEntry, MergePreview, MergeResult
from pickem.utils.ranking import is_paid

CATEGORY_LABELS = {
    MergeCategory.PICKS: "Picks",
    MergeCategory.PAYMENTS: "Payments",
    MergeCategory.ANONYMOUS_PICKS: "Anonymous Picks",
    MergeCategory.EMAILS: "Emails",
}


def format_rank(rank: int, is_tied: bool) -> str:
    return f"{UIConstants.TIE_MARKER}{rank}" if is_tied else str(rank)


def build_leaderboard_embed(page_data: LeaderboardPage) -> discord.Embed:
    """Build formatted leaderboard embed."""
    if page_data.leaderboard_type == LeaderboardConstants.WEEKLY:
        title = f"{UIConstants.TROPHY_EMOJI} Week {page_data.week} Leaderboard - {page_data.season}"
    else:
        title = f"{UIConstants.TROPHY_EMOJI} {page_data.season} Season Leaderboard"

    embed = discord.Embed(title=title, color=UIConstants.GOLD_RANK_COLOR)

    if not page_data.entries:
        embed.description = "No scored picks yet."
        return embed

    # Compact table for Discord's width
    lines = ["```"]
    lines.append(f"{'#':<4} {'Player':<16} {'Pts':>5} {'W-L-P':>8} {'Lock':>5}")
    lines.append("-" * 42)
    for entry in page_data.entries:
        name = entry.display_name[:15]
        if page_data.viewer_is_admin and not is_paid(entry):
            name = f"{name[:13]}*"
        lines.append(
            f"{format_rank(entry.rank, entry.is_tied):<4} {name:<16} "
            f"{entry.total_points:>5} {entry.record:>8} {entry.lock_record:>5}"
        )
    lines.append("```")
    embed.description = "\n".join(lines)

    footer = f"Page {page_data.current_page}/{page_data.total_pages} | Players: {page_data.total_players}"
    if page_data.viewer_is_admin:
        footer += " | * = not paid"
    embed.set_footer(text=footer)
    return embed


def build_breakdown_embed(breakdown: SeasonBreakdown) -> discord.Embed:
    """Build the season drill-down embed for one user."""
    embed = discord.Embed(
        title=f"{breakdown.display_name} - {breakdown.season} Season",
        color=UIConstants.DEFAULT_EMBED_COLOR
    )

    if not breakdown.weeks:
        embed.description = "No picks recorded this season."
        return embed

    consistency = "n/a" if breakdown.consistency_score is None else f"{breakdown.consistency_score:.0f}/100"
    embed.add_field(
        name="Season",
        value=(
            f"**Points:** {breakdown.total_points}\n"
            f"**Picks:** {breakdown.total_picks}\n"
            f"**Avg/Week:** {breakdown.average_points:.1f}\n"
            f"**Win %:** {breakdown.win_pct:.1%}\n"
            f"**Lock Win %:** {breakdown.lock_win_pct:.1%}"
        ),
        inline=True
    )
    embed.add_field(
        name="Form",
        value=(
            f"**Best:** Week {breakdown.best_week.week} ({breakdown.best_week.points} pts)\n"
            f"**Worst:** Week {breakdown.worst_week.week} ({breakdown.worst_week.points} pts)\n"
            f"**Consistency:** {consistency}\n"
            f"**Trend:** {(breakdown.trend or 'n/a').title()}"
        ),
        inline=True
    )

    lines = ["```"]
    lines.append(f"{'Wk':<4} {'Pts':>4} {'W-L-P':>8} {'Lock':>5}")
    for week in breakdown.weeks:
        lines.append(f"{week.week:<4} {week.points:>4} {week.record:>8} {week.lock_record:>5}")
    lines.append("```")
    # Embed field values cap at 1024 characters
    embed.add_field(name="Weekly", value="\n".join(lines)[:1024], inline=False)
    return embed


def build_merge_preview_embed(preview: MergePreview, source_name: str, target_name: str) -> discord.Embed:
    """Build the merge preview embed shown before an admin confirms."""
    embed = discord.Embed(
        title="User Merge Preview",
        description=f"Merge **{source_name}** into **{target_name}**",
        color=UIConstants.WARNING_COLOR if preview.has_conflicts else UIConstants.DEFAULT_EMBED_COLOR
    )

    lines = []
    for category in MergeCategory.ALL:
        lines.append(
            f"**{CATEGORY_LABELS[category]}:** {preview.transferable.get(category)} to move, "
            f"{preview.conflict_count(category)} conflicts "
            f"(target will have {preview.projected_total(category)})"
        )
    embed.add_field(name="Records", value="\n".join(lines), inline=False)

    if preview.has_conflicts:
        shown: List[str] = [
            f"- {conflict.description}"
            for conflict in preview.conflicts[:UIConstants.MAX_CONFLICTS_DISPLAYED]
        ]
        hidden = len(preview.conflicts) - len(shown)
        if hidden > 0:
            shown.append(f"...and {hidden} more")
        embed.add_field(
            name=f"Conflicts ({len(preview.conflicts)}) - left on the source account",
            value="\n".join(shown)[:1024],
            inline=False
        )

    embed.set_footer(text="The source account will be deactivated after the merge.")
    return embed


def build_merge_result_embed(result: MergeResult, source_name: str, target_name: str) -> discord.Embed:
    embed = discord.Embed(
        title="User Merge Complete",
        description=f"**{source_name}** was merged into **{target_name}**",
        color=UIConstants.SUCCESS_COLOR
    )
    embed.add_field(
        name="Moved",
        value=(
            f"**Picks:** {result.picks_merged}\n"
            f"**Payments:** {result.payments_merged}\n"
            f"**Anonymous Picks:** {result.anonymous_picks_merged}\n"
            f"**Emails:** {result.emails_merged}"
        ),
        inline=True
    )
    if result.conflicts_detected:
        embed.add_field(
            name="Conflicts",
            value=f"{len(result.conflict_details)} left on the source account",
            inline=True
        )
    if result.history_id is not None:
        embed.set_footer(text=f"Merge history #{result.history_id}")
    return embed


def build_merge_history_embed(entries: List[MergeHistoryEntry], user_name: str) -> discord.Embed:
    embed = discord.Embed(
        title=f"Merge History - {user_name}",
        color=UIConstants.DEFAULT_EMBED_COLOR
    )
    if not entries:
        embed.description = "No accounts have been merged into this user."
        return embed

    for entry in entries[:10]:
        merged_at = entry.merged_at.strftime('%Y-%m-%d %H:%M') if entry.merged_at else "unknown"
        value = (
            f"{entry.source_user_email}\n"
            f"{entry.picks_merged} picks, {entry.payments_merged} payments, "
            f"{entry.anonymous_picks_merged} anon, {entry.emails_merged} emails"
        )
        if entry.conflicts_detected:
            value += "\nConflicts left on source"
        if entry.merge_reason:
            value += f"\nReason: {entry.merge_reason[:200]}"
        embed.add_field(
            name=f"{entry.source_user_display_name} ({merged_at})",
            value=value,
            inline=False
        )
    return embed
