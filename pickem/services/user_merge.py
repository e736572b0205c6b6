"""
User merge service.

Previews and executes merges of duplicate user accounts, and manages the
alternate email addresses that tie those accounts together.
"""

import logging
from typing import List, Optional

from pickem.database.database import Database
from pickem.database.models import User, UserEmail
from pickem.data_models.merge import MergeHistoryEntry, MergePreview, MergeResult
from pickem.services.base import BaseService
from pickem.utils.exceptions import MergeValidationError, UserNotFoundError
from pickem.utils.merge_conflicts import classify_merge

logger = logging.getLogger(__name__)


class UserMergeService(BaseService):
    """Admin operations for merging users and managing their emails."""

    def __init__(self, db: Database, leaderboard_service=None):
        super().__init__(db.session_factory)
        self.db = db
        self.leaderboard_service = leaderboard_service

    async def _require_user(self, user_id: str) -> User:
        user = await self.db.get_user(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    async def preview_merge(self, source_user_id: str, target_user_id: str) -> MergePreview:
        """
        Show what a merge would move and which records collide, without writing.

        Raises:
            MergeValidationError: If source and target are the same user
            UserNotFoundError: If either user does not exist
        """
        if source_user_id == target_user_id:
            raise MergeValidationError("Cannot merge a user with itself")
        await self._require_user(source_user_id)
        await self._require_user(target_user_id)

        source_records = await self.db.get_merge_records(source_user_id)
        target_records = await self.db.get_merge_records(target_user_id)
        preview = classify_merge(source_records, target_records)

        logger.info(
            f"Merge preview {source_user_id} -> {target_user_id}: "
            f"{preview.transferable.total} transferable, {len(preview.conflicts)} conflicts"
        )
        return preview

    async def merge_users(
        self,
        source_user_id: str,
        target_user_id: str,
        merged_by: Optional[str] = None,
        merge_reason: Optional[str] = None
    ) -> MergeResult:
        """Merge source into target, then drop cached leaderboards."""
        result = await self.db.execute_merge(source_user_id, target_user_id, merged_by, merge_reason)
        if self.leaderboard_service is not None:
            await self.leaderboard_service.invalidate_cache()
        return result

    async def search_users_by_email(self, fragment: str, limit: int = 10) -> List[User]:
        if not fragment or not fragment.strip():
            return []
        return await self.db.search_users_by_email(fragment, limit)

    async def find_potential_duplicates(
        self,
        user_id: Optional[str] = None,
        display_name: Optional[str] = None,
        email: Optional[str] = None,
        limit: int = 20
    ) -> List[User]:
        """
        Candidate accounts to merge.

        With a user_id, that user's display name and account email are the
        search terms and the user itself is left out of the results.

        Raises:
            UserNotFoundError: If user_id does not exist
        """
        if user_id is not None:
            user = await self._require_user(user_id)
            display_name = display_name or user.display_name
            email = email or user.email
        duplicates = await self.db.find_potential_duplicates(display_name, email, user_id, limit)
        logger.debug(f"Found {len(duplicates)} potential duplicates for {user_id or display_name or email}")
        return duplicates

    async def get_user_emails(self, user_id: str) -> List[UserEmail]:
        return await self.db.get_user_emails(user_id)

    async def add_email_to_user(
        self,
        user_id: str,
        email: str,
        email_type: str = "alternate",
        added_by: Optional[str] = None,
        notes: Optional[str] = None
    ) -> UserEmail:
        user_email = await self.db.add_user_email(user_id, email, email_type, added_by, notes)
        logger.info(f"Added {email_type} email {user_email.email} to user {user_id}")
        return user_email

    async def remove_email_from_user(self, email_id: int) -> bool:
        removed = await self.db.remove_user_email(email_id)
        if removed:
            logger.info(f"Removed email {email_id}")
        return removed

    async def set_primary_email(self, user_id: str, email_id: int) -> bool:
        return await self.db.set_primary_email(user_id, email_id)

    async def get_merge_history(self, user_id: str) -> List[MergeHistoryEntry]:
        return await self.db.get_merge_history(user_id)
