import json
from collections import defaultdict
from typing import Optional, List, Dict
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy import select, update, func, or_
from sqlalchemy.exc import SQLAlchemyError
from contextlib import asynccontextmanager

from pickem.config import Config
from pickem.constants import EmailType, MergeCategory, PaymentStatus
from pickem.database.models import (
    Base, User, Game, Pick, AnonymousPick, LeagueSafePayment, UserEmail, UserMergeHistory
)
from pickem.data_models.leaderboard import ScoredPick, WeeklyPerformance
from pickem.data_models.merge import (
    MergeRecords, MergeResult, MergeHistoryEntry, normalize_email
)
from pickem.data_models.payloads import (
    WeeklyPerformancePayload, PickRecordPayload, PaymentRecordPayload,
    EmailRecordPayload, parse_payload, parse_payloads
)
from pickem.utils.aggregation import tally_picks
from pickem.utils.exceptions import (
    UserNotFoundError, MergeValidationError, EmailValidationError, DatabaseError
)
from pickem.utils.logger import setup_logger
from pickem.utils.merge_conflicts import split_all
from pickem.utils.scoring import PickScorer

# Highest priority first when a user has several payment rows for a season
PAYMENT_STATUS_PRIORITY = [PaymentStatus.PAID, PaymentStatus.PENDING, PaymentStatus.NOT_PAID]


class Database:
    def __init__(self, database_url: Optional[str] = None):
        self.logger = setup_logger(__name__)
        self.database_url = database_url
        self.engine = None
        self.async_session = None

    async def initialize(self):
        """Initialize the database connection and create tables"""
        self.logger.info("Initializing database...")

        database_url = self.database_url or Config.get_async_database_url()

        self.engine = create_async_engine(
            database_url,
            echo=Config.DEBUG,
            future=True
        )

        self.async_session = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False
        )

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        self.logger.info("Database initialized successfully")

    @property
    def session_factory(self):
        return self.async_session

    @asynccontextmanager
    async def get_session(self):
        """Get a database session"""
        async with self.async_session() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    @asynccontextmanager
    async def transaction(self):
        """
        Create a transaction boundary for atomic operations.

        All operations within the context are committed together on success,
        or rolled back together on failure. Exceptions must be allowed to
        propagate out of the context for rollback to occur.
        """
        async with self.async_session() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    async def close(self):
        """Close the database connection"""
        if self.engine:
            await self.engine.dispose()
            self.logger.info("Database connection closed")

    # User operations
    async def get_user(self, user_id: str) -> Optional[User]:
        async with self.get_session() as session:
            return await session.get(User, user_id)

    async def get_user_by_discord_id(self, discord_id: int) -> Optional[User]:
        async with self.get_session() as session:
            result = await session.execute(
                select(User).where(User.discord_id == discord_id)
            )
            return result.scalar_one_or_none()

    async def find_user(self, query: str) -> Optional[User]:
        """Resolve a user by id, account/alternate email, or display name (case-insensitive)"""
        query = query.strip()
        async with self.get_session() as session:
            user = await session.get(User, query)
            if user:
                return user

            email = normalize_email(query)
            result = await session.execute(
                select(User).where(func.lower(User.email) == email)
            )
            user = result.scalar_one_or_none()
            if user:
                return user

            result = await session.execute(
                select(User)
                .join(UserEmail, UserEmail.user_id == User.id)
                .where(func.lower(UserEmail.email) == email)
                .limit(1)
            )
            user = result.scalar_one_or_none()
            if user:
                return user

            # Prefer the active account when a merged one shares the name
            result = await session.execute(
                select(User)
                .where(func.lower(User.display_name) == query.lower())
                .order_by(User.is_active.desc())
                .limit(1)
            )
            return result.scalar_one_or_none()

    async def get_active_users(self) -> List[User]:
        async with self.get_session() as session:
            result = await session.execute(
                select(User).where(User.is_active == True)
            )
            return list(result.scalars().all())

    async def search_users_by_email(self, fragment: str, limit: int = 10) -> List[User]:
        """Search account and alternate emails; results are de-duplicated"""
        pattern = f"%{fragment.strip().lower()}%"
        async with self.get_session() as session:
            main_result = await session.execute(
                select(User).where(func.lower(User.email).like(pattern)).limit(limit)
            )
            users = list(main_result.scalars().all())

            alt_result = await session.execute(
                select(User)
                .join(UserEmail, UserEmail.user_id == User.id)
                .where(func.lower(UserEmail.email).like(pattern))
                .limit(limit)
            )
            seen = {user.id for user in users}
            for user in alt_result.scalars().all():
                if user.id not in seen:
                    seen.add(user.id)
                    users.append(user)
            return users

    async def find_potential_duplicates(
        self,
        display_name: Optional[str] = None,
        email: Optional[str] = None,
        exclude_user_id: Optional[str] = None,
        limit: int = 20
    ) -> List[User]:
        """
        Active users that may be the same person as the given name or email.

        Matches display names and account emails containing the name, account
        emails on the same email domain, and linked emails containing either
        the name or the email. Results are de-duplicated, account matches
        first.
        """
        display_name = (display_name or "").strip().lower()
        email = normalize_email(email or "")
        if not display_name and not email:
            return []

        conditions = []
        if display_name:
            name_pattern = f"%{display_name}%"
            conditions.append(func.lower(User.display_name).like(name_pattern))
            conditions.append(func.lower(User.email).like(name_pattern))
        domain = email.split('@', 1)[1] if '@' in email else ""
        if domain:
            conditions.append(func.lower(User.email).like(f"%@{domain}"))

        linked_conditions = [
            func.lower(UserEmail.email).like(f"%{term}%")
            for term in (display_name, email) if term
        ]

        async with self.get_session() as session:
            users: List[User] = []
            if conditions:
                account_query = select(User).where(User.is_active == True).where(or_(*conditions))
                if exclude_user_id is not None:
                    account_query = account_query.where(User.id != exclude_user_id)
                account_result = await session.execute(account_query.order_by(User.display_name, User.id).limit(limit))
                users.extend(account_result.scalars().all())

            linked_query = (
                select(User)
                .join(UserEmail, UserEmail.user_id == User.id)
                .where(User.is_active == True)
                .where(or_(*linked_conditions))
            )
            if exclude_user_id is not None:
                linked_query = linked_query.where(User.id != exclude_user_id)
            linked_result = await session.execute(linked_query.order_by(User.display_name, User.id).limit(limit))

            seen = {user.id for user in users}
            for user in linked_result.scalars().all():
                if user.id not in seen:
                    seen.add(user.id)
                    users.append(user)
            return users[:limit]

    # Scored pick queries
    async def get_scored_picks(
        self,
        season: int,
        week: Optional[int] = None,
        user_id: Optional[str] = None
    ) -> List[ScoredPick]:
        """
        Get picks for a season with results resolved.

        Combines a user's own picks with anonymous picks assigned to them
        and shown on the leaderboard. Authenticated picks take precedence:
        an assigned anonymous pick is dropped when the same user already has
        an authenticated pick for that season and week. Picks without a
        stored result are scored on the fly when their game is final.
        """
        async with self.get_session() as session:
            pick_query = (
                select(Pick, Game)
                .outerjoin(Game, Pick.game_id == Game.id)
                .where(Pick.season == season)
            )
            anon_query = (
                select(AnonymousPick, Game)
                .outerjoin(Game, AnonymousPick.game_id == Game.id)
                .where(AnonymousPick.season == season)
                .where(AnonymousPick.assigned_user_id.isnot(None))
                .where(AnonymousPick.show_on_leaderboard == True)
            )
            if week is not None:
                pick_query = pick_query.where(Pick.week == week)
                anon_query = anon_query.where(AnonymousPick.week == week)
            if user_id is not None:
                pick_query = pick_query.where(Pick.user_id == user_id)
                anon_query = anon_query.where(AnonymousPick.assigned_user_id == user_id)

            pick_rows = (await session.execute(pick_query)).all()
            anon_rows = (await session.execute(anon_query)).all()

        scored = []
        authenticated_weeks = set()
        for pick, game in pick_rows:
            authenticated_weeks.add((pick.user_id, pick.season, pick.week))
            if pick.result is not None and pick.points_earned is not None:
                result, points = pick.result, pick.points_earned
            else:
                result, points = self._score_live(pick, game)
            scored.append(ScoredPick(
                user_id=pick.user_id,
                season=pick.season,
                week=pick.week,
                is_lock=bool(pick.is_lock),
                result=result,
                points=points,
                source="authenticated"
            ))

        for anon_pick, game in anon_rows:
            if (anon_pick.assigned_user_id, anon_pick.season, anon_pick.week) in authenticated_weeks:
                continue
            result, points = self._score_live(anon_pick, game)
            scored.append(ScoredPick(
                user_id=anon_pick.assigned_user_id,
                season=anon_pick.season,
                week=anon_pick.week,
                is_lock=bool(anon_pick.is_lock),
                result=result,
                points=points,
                source="anonymous"
            ))

        return scored

    def _score_live(self, pick, game):
        """Score a pick from its game; (None, 0) when it cannot be scored yet"""
        if game is None:
            self.logger.warning(f"Game {pick.game_id} not found for pick {pick.id}")
            return None, 0
        try:
            outcome = PickScorer.score_if_final(pick.selected_team, game, bool(pick.is_lock))
        except ValueError as e:
            self.logger.warning(f"Could not score pick {pick.id}: {e}")
            return None, 0
        if outcome is None:
            return None, 0
        return outcome.result, outcome.points

    async def get_weekly_performances(self, user_id: str, season: int) -> List[WeeklyPerformance]:
        """Per-week results for one user's season, ordered by week"""
        picks = await self.get_scored_picks(season, user_id=user_id)

        by_week: Dict[int, list] = defaultdict(list)
        for pick in picks:
            by_week[pick.week].append(pick)

        return [
            parse_payload(WeeklyPerformancePayload, {'week': week, **tally_picks(week_picks)}).to_domain()
            for week, week_picks in sorted(by_week.items())
        ]

    async def get_payment_statuses(self, season: int) -> Dict[str, str]:
        """Map user_id -> best payment status for the season"""
        async with self.get_session() as session:
            result = await session.execute(
                select(LeagueSafePayment.user_id, LeagueSafePayment.status)
                .where(LeagueSafePayment.season == season)
                .where(LeagueSafePayment.user_id.isnot(None))
            )
            statuses: Dict[str, str] = {}
            for user_id, status in result.all():
                current = statuses.get(user_id)
                if current is None or self._status_priority(status) < self._status_priority(current):
                    statuses[user_id] = status
            return statuses

    @staticmethod
    def _status_priority(status: str) -> int:
        try:
            return PAYMENT_STATUS_PRIORITY.index(status)
        except ValueError:
            return len(PAYMENT_STATUS_PRIORITY)

    # Merge queries
    async def get_merge_records(self, user_id: str, session: Optional[AsyncSession] = None) -> MergeRecords:
        """Snapshot of every mergeable record a user owns, keyed for conflict detection"""
        if session is None:
            async with self.get_session() as own_session:
                return await self._load_merge_records(own_session, user_id)
        return await self._load_merge_records(session, user_id)

    async def _load_merge_records(self, session: AsyncSession, user_id: str) -> MergeRecords:
        picks = await session.execute(
            select(Pick.id, Pick.season, Pick.week)
            .where(Pick.user_id == user_id)
            .order_by(Pick.season, Pick.week, Pick.id)
        )
        payments = await session.execute(
            select(LeagueSafePayment.id, LeagueSafePayment.season)
            .where(LeagueSafePayment.user_id == user_id)
            .order_by(LeagueSafePayment.season, LeagueSafePayment.id)
        )
        anonymous = await session.execute(
            select(AnonymousPick.id, AnonymousPick.season, AnonymousPick.week)
            .where(AnonymousPick.assigned_user_id == user_id)
            .order_by(AnonymousPick.season, AnonymousPick.week, AnonymousPick.id)
        )
        emails = await session.execute(
            select(UserEmail.id, UserEmail.email, UserEmail.email_type, UserEmail.is_primary)
            .where(UserEmail.user_id == user_id)
            .order_by(UserEmail.id)
        )
        account_email = await session.scalar(select(User.email).where(User.id == user_id))
        return MergeRecords(
            user_id=user_id,
            picks=tuple(p.to_domain() for p in parse_payloads(PickRecordPayload, picks.all())),
            payments=tuple(p.to_domain() for p in parse_payloads(PaymentRecordPayload, payments.all())),
            anonymous_picks=tuple(p.to_domain() for p in parse_payloads(PickRecordPayload, anonymous.all())),
            emails=tuple(p.to_domain() for p in parse_payloads(EmailRecordPayload, emails.all())),
            account_email=account_email,
        )

    async def execute_merge(
        self,
        source_user_id: str,
        target_user_id: str,
        merged_by: Optional[str] = None,
        merge_reason: Optional[str] = None
    ) -> MergeResult:
        """
        Merge the source user into the target user in a single transaction.

        Transferable records move to the target; conflicting records stay on
        the source. The source is deactivated and an audit row is written.
        """
        if source_user_id == target_user_id:
            raise MergeValidationError("Cannot merge a user with itself")

        try:
            async with self.transaction() as session:
                source = await session.get(User, source_user_id)
                if source is None:
                    raise UserNotFoundError(source_user_id)
                target = await session.get(User, target_user_id)
                if target is None:
                    raise UserNotFoundError(target_user_id)
                if not source.is_active:
                    raise MergeValidationError(f"{source.display_name or source.email} has already been merged")
                if not target.is_active:
                    raise MergeValidationError(f"{target.display_name or target.email} is inactive and cannot receive a merge")

                splits = split_all(
                    await self._load_merge_records(session, source_user_id),
                    await self._load_merge_records(session, target_user_id)
                )

                pick_ids = [r.record_id for r in splits[MergeCategory.PICKS].transferable]
                if pick_ids:
                    await session.execute(
                        update(Pick).where(Pick.id.in_(pick_ids)).values(user_id=target_user_id)
                    )

                payment_ids = [r.record_id for r in splits[MergeCategory.PAYMENTS].transferable]
                if payment_ids:
                    await session.execute(
                        update(LeagueSafePayment)
                        .where(LeagueSafePayment.id.in_(payment_ids))
                        .values(user_id=target_user_id)
                    )

                anon_ids = [r.record_id for r in splits[MergeCategory.ANONYMOUS_PICKS].transferable]
                if anon_ids:
                    await session.execute(
                        update(AnonymousPick)
                        .where(AnonymousPick.id.in_(anon_ids))
                        .values(assigned_user_id=target_user_id)
                    )

                merged_source = f"Merged from user: {source.display_name or source.email}"
                email_ids = [r.record_id for r in splits[MergeCategory.EMAILS].transferable]
                for email_row in (await session.execute(
                    select(UserEmail).where(UserEmail.id.in_(email_ids))
                )).scalars().all():
                    email_row.user_id = target_user_id
                    if email_row.email_type == EmailType.PRIMARY:
                        email_row.email_type = EmailType.MERGED
                    email_row.is_primary = False
                    email_row.source = email_row.source or merged_source
                    email_row.source_user_id = source_user_id
                emails_merged = len(email_ids)

                # Keep the source's login address reachable on the target
                target_emails = {
                    normalize_email(email) for email in (await session.execute(
                        select(UserEmail.email).where(UserEmail.user_id == target_user_id)
                    )).scalars().all()
                }
                target_emails.add(normalize_email(target.email))
                if normalize_email(source.email) not in target_emails:
                    session.add(UserEmail(
                        user_id=target_user_id,
                        email=normalize_email(source.email),
                        email_type=EmailType.MERGED,
                        is_primary=False,
                        source=merged_source,
                        source_user_id=source_user_id,
                        added_by=merged_by or target_user_id
                    ))
                    emails_merged += 1

                source.is_active = False
                source.merged_into_id = target_user_id

                conflicts = tuple(
                    conflict
                    for category in MergeCategory.ALL
                    for conflict in splits[category].conflicts
                )
                history = UserMergeHistory(
                    target_user_id=target_user_id,
                    source_user_id=source_user_id,
                    source_user_email=source.email,
                    source_user_display_name=source.display_name,
                    merged_by=merged_by,
                    merge_reason=merge_reason,
                    picks_merged=len(pick_ids),
                    payments_merged=len(payment_ids),
                    anonymous_picks_merged=len(anon_ids),
                    emails_merged=emails_merged,
                    conflicts_detected=bool(conflicts),
                    conflict_details=json.dumps([conflict.to_dict() for conflict in conflicts])
                )
                session.add(history)
                await session.flush()

                self.logger.info(
                    f"Merged user {source_user_id} into {target_user_id}: "
                    f"{len(pick_ids)} picks, {len(payment_ids)} payments, "
                    f"{len(anon_ids)} anonymous picks, {emails_merged} emails, "
                    f"{len(conflicts)} conflicts left on source"
                )

                return MergeResult(
                    success=True,
                    source_user_id=source_user_id,
                    target_user_id=target_user_id,
                    picks_merged=len(pick_ids),
                    payments_merged=len(payment_ids),
                    anonymous_picks_merged=len(anon_ids),
                    emails_merged=emails_merged,
                    conflicts_detected=bool(conflicts),
                    conflict_details=conflicts,
                    history_id=history.id
                )
        except SQLAlchemyError as e:
            self.logger.error(f"Merge of {source_user_id} into {target_user_id} failed: {e}", exc_info=True)
            raise DatabaseError("user merge", str(e)) from e

    async def get_merge_history(self, user_id: str) -> List[MergeHistoryEntry]:
        """Merges into a user, newest first"""
        async with self.get_session() as session:
            result = await session.execute(
                select(UserMergeHistory)
                .where(UserMergeHistory.target_user_id == user_id)
                .order_by(UserMergeHistory.merged_at.desc(), UserMergeHistory.id.desc())
            )
            return [
                MergeHistoryEntry(
                    history_id=row.id,
                    source_user_id=row.source_user_id,
                    target_user_id=row.target_user_id,
                    source_user_email=row.source_user_email,
                    source_user_display_name=row.source_user_display_name or "Unknown User",
                    merged_by=row.merged_by,
                    merge_reason=row.merge_reason,
                    picks_merged=row.picks_merged or 0,
                    payments_merged=row.payments_merged or 0,
                    anonymous_picks_merged=row.anonymous_picks_merged or 0,
                    emails_merged=row.emails_merged or 0,
                    conflicts_detected=bool(row.conflicts_detected),
                    merged_at=row.merged_at
                )
                for row in result.scalars().all()
            ]

    # Email operations
    async def get_user_emails(self, user_id: str) -> List[UserEmail]:
        """Primary email first, then in the order they were added"""
        async with self.get_session() as session:
            result = await session.execute(
                select(UserEmail)
                .where(UserEmail.user_id == user_id)
                .order_by(UserEmail.is_primary.desc(), UserEmail.created_at, UserEmail.id)
            )
            return list(result.scalars().all())

    async def add_user_email(
        self,
        user_id: str,
        email: str,
        email_type: str = EmailType.ALTERNATE,
        added_by: Optional[str] = None,
        notes: Optional[str] = None
    ) -> UserEmail:
        if email_type not in EmailType.ALL:
            raise EmailValidationError(f"Unknown email type '{email_type}'")
        email = normalize_email(email)
        if '@' not in email:
            raise EmailValidationError(f"'{email}' is not a valid email address")

        async with self.transaction() as session:
            if await session.get(User, user_id) is None:
                raise UserNotFoundError(user_id)
            existing = await session.execute(
                select(UserEmail.id)
                .where(UserEmail.user_id == user_id)
                .where(func.lower(UserEmail.email) == email)
            )
            if existing.first() is not None:
                raise EmailValidationError(f"{email} is already linked to this user")

            user_email = UserEmail(
                user_id=user_id,
                email=email,
                email_type=email_type,
                is_primary=email_type == EmailType.PRIMARY,
                added_by=added_by,
                notes=notes
            )
            session.add(user_email)
            await session.flush()
            return user_email

    async def remove_user_email(self, email_id: int) -> bool:
        async with self.transaction() as session:
            user_email = await session.get(UserEmail, email_id)
            if user_email is None:
                return False
            if user_email.is_primary:
                raise EmailValidationError("Cannot remove primary email address")
            await session.delete(user_email)
            return True

    async def set_primary_email(self, user_id: str, email_id: int) -> bool:
        async with self.transaction() as session:
            user_email = await session.get(UserEmail, email_id)
            if user_email is None or user_email.user_id != user_id:
                return False
            await session.execute(
                update(UserEmail)
                .where(UserEmail.user_id == user_id)
                .values(is_primary=False)
            )
            user_email.is_primary = True
            return True
