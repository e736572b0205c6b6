"""
Shared pytest fixtures for pick'em tests.

Database fixtures run against a throwaway aiosqlite file per test.
"""

import pytest

from pickem.config import Config
from pickem.constants import GameStatus
from pickem.database.database import Database
from pickem.database.models import (
    User, Game, Pick, AnonymousPick, LeagueSafePayment, UserEmail
)
from pickem.services.configuration import ConfigurationService
from pickem.services.leaderboard import LeaderboardService
from pickem.services.user_merge import UserMergeService


@pytest.fixture(autouse=True)
def log_dir(tmp_path, monkeypatch):
    """Keep log files out of the working tree."""
    monkeypatch.setattr(Config, 'LOG_DIR', str(tmp_path / "logs"))


@pytest.fixture
async def db(tmp_path):
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'pickem_test.db'}")
    await database.initialize()
    yield database
    await database.close()


@pytest.fixture
async def config_service(db):
    service = ConfigurationService(db.session_factory)
    await service.load_all()
    return service


@pytest.fixture
async def leaderboard_service(db, config_service):
    return LeaderboardService(db, config_service)


@pytest.fixture
async def merge_service(db, leaderboard_service):
    return UserMergeService(db, leaderboard_service)


class Seeder:
    """Small helpers for inserting rows in tests."""

    def __init__(self, db: Database):
        self.db = db

    async def add(self, *rows):
        async with self.db.transaction() as session:
            session.add_all(rows)
        return rows[0] if len(rows) == 1 else rows

    async def user(self, user_id: str, display_name: str, email: str = None, **kwargs) -> User:
        return await self.add(User(
            id=user_id,
            display_name=display_name,
            email=email or f"{user_id}@example.com",
            **kwargs
        ))

    async def game(self, game_id: int, week: int, home_score=None, away_score=None,
                   spread: float = 0.0, season: int = 2024, home="Home", away="Away") -> Game:
        final = home_score is not None and away_score is not None
        return await self.add(Game(
            id=game_id,
            season=season,
            week=week,
            home_team=home,
            away_team=away,
            home_score=home_score,
            away_score=away_score,
            spread=spread,
            status=GameStatus.COMPLETED if final else GameStatus.SCHEDULED
        ))

    async def pick(self, user_id: str, game: Game, selected_team: str, is_lock: bool = False,
                   result=None, points=None) -> Pick:
        return await self.add(Pick(
            user_id=user_id,
            game_id=game.id,
            season=game.season,
            week=game.week,
            selected_team=selected_team,
            is_lock=is_lock,
            result=result,
            points_earned=points
        ))

    async def anonymous_pick(self, game: Game, selected_team: str, assigned_user_id=None,
                             show_on_leaderboard: bool = True, is_lock: bool = False) -> AnonymousPick:
        return await self.add(AnonymousPick(
            email="anon@example.com",
            name="Anon",
            assigned_user_id=assigned_user_id,
            game_id=game.id,
            season=game.season,
            week=game.week,
            selected_team=selected_team,
            is_lock=is_lock,
            show_on_leaderboard=show_on_leaderboard
        ))

    async def payment(self, user_id: str, season: int = 2024, status: str = "Paid") -> LeagueSafePayment:
        return await self.add(LeagueSafePayment(
            user_id=user_id,
            season=season,
            leaguesafe_owner_name=user_id,
            leaguesafe_email=f"{user_id}@example.com",
            status=status,
            is_matched=True
        ))

    async def email(self, user_id: str, email: str, email_type: str = "alternate",
                    is_primary: bool = False) -> UserEmail:
        return await self.add(UserEmail(
            user_id=user_id,
            email=email,
            email_type=email_type,
            is_primary=is_primary
        ))


@pytest.fixture
def seed(db):
    return Seeder(db)
