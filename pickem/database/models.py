import uuid

from sqlalchemy import (
    Column, Integer, BigInteger, String, DateTime, Boolean, Text, Float,
    ForeignKey, UniqueConstraint, Index
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

from pickem.constants import EmailType, GameStatus

Base = declarative_base()


def generate_uuid() -> str:
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = 'users'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    email = Column(String(255), nullable=False, unique=True, index=True)
    display_name = Column(String(100))
    is_admin = Column(Boolean, default=False)
    discord_id = Column(BigInteger, unique=True, nullable=True, index=True)

    # Merged accounts stay in the table, inactive, pointing at the survivor
    is_active = Column(Boolean, default=True)
    merged_into_id = Column(String(36), ForeignKey('users.id'), nullable=True)

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    picks = relationship("Pick", back_populates="user", foreign_keys="Pick.user_id")
    emails = relationship("UserEmail", back_populates="user", foreign_keys="UserEmail.user_id")
    payments = relationship("LeagueSafePayment", back_populates="user")

    def __repr__(self):
        return f"<User(id='{self.id}', email='{self.email}', display_name='{self.display_name}')>"


class Game(Base):
    __tablename__ = 'games'

    id = Column(Integer, primary_key=True)
    season = Column(Integer, nullable=False)
    week = Column(Integer, nullable=False)
    home_team = Column(String(100), nullable=False)
    away_team = Column(String(100), nullable=False)
    home_score = Column(Integer, nullable=True)
    away_score = Column(Integer, nullable=True)
    spread = Column(Float, nullable=False, default=0.0)  # Home line, negative = home favored
    status = Column(String(20), nullable=False, default=GameStatus.SCHEDULED)
    kickoff_time = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    __table_args__ = (Index('ix_games_season_week', 'season', 'week'),)

    def __repr__(self):
        return f"<Game(week={self.week}, season={self.season}, '{self.away_team} @ {self.home_team}', status='{self.status}')>"


class Pick(Base):
    __tablename__ = 'picks'

    id = Column(Integer, primary_key=True)
    user_id = Column(String(36), ForeignKey('users.id'), nullable=False, index=True)
    game_id = Column(Integer, ForeignKey('games.id'), nullable=False)
    season = Column(Integer, nullable=False)
    week = Column(Integer, nullable=False)
    selected_team = Column(String(100), nullable=False)
    is_lock = Column(Boolean, default=False)
    submitted = Column(Boolean, default=True)

    # Filled in once the game is scored; NULL means not yet scored
    result = Column(String(10), nullable=True)
    points_earned = Column(Integer, nullable=True)

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="picks", foreign_keys=[user_id])
    game = relationship("Game")

    __table_args__ = (
        UniqueConstraint('user_id', 'game_id'),
        Index('ix_picks_user_season_week', 'user_id', 'season', 'week'),
    )

    def __repr__(self):
        return f"<Pick(user_id='{self.user_id}', week={self.week}, season={self.season}, team='{self.selected_team}')>"


class AnonymousPick(Base):
    """Picks submitted without an account, later assigned to a user by an admin."""
    __tablename__ = 'anonymous_picks'

    id = Column(Integer, primary_key=True)
    email = Column(String(255), nullable=False)
    name = Column(String(100), nullable=False)
    assigned_user_id = Column(String(36), ForeignKey('users.id'), nullable=True, index=True)
    game_id = Column(Integer, ForeignKey('games.id'), nullable=False)
    season = Column(Integer, nullable=False)
    week = Column(Integer, nullable=False)
    selected_team = Column(String(100), nullable=False)
    is_lock = Column(Boolean, default=False)
    show_on_leaderboard = Column(Boolean, default=True)

    submitted_at = Column(DateTime, default=func.now())

    game = relationship("Game")

    def __repr__(self):
        return f"<AnonymousPick(email='{self.email}', week={self.week}, assigned_user_id='{self.assigned_user_id}')>"


class LeagueSafePayment(Base):
    __tablename__ = 'leaguesafe_payments'

    id = Column(Integer, primary_key=True)
    user_id = Column(String(36), ForeignKey('users.id'), nullable=True, index=True)
    season = Column(Integer, nullable=False)
    leaguesafe_owner_name = Column(String(200), nullable=False)
    leaguesafe_email = Column(String(255), nullable=False)
    entry_fee = Column(Float, default=0.0)
    paid = Column(Float, default=0.0)
    pending = Column(Float, default=0.0)
    owes = Column(Float, default=0.0)
    status = Column(String(20), nullable=False)  # Paid, NotPaid, Pending
    is_matched = Column(Boolean, default=False)

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="payments")

    def __repr__(self):
        return f"<LeagueSafePayment(season={self.season}, owner='{self.leaguesafe_owner_name}', status='{self.status}')>"


class UserEmail(Base):
    __tablename__ = 'user_emails'

    id = Column(Integer, primary_key=True)
    user_id = Column(String(36), ForeignKey('users.id'), nullable=False, index=True)
    email = Column(String(255), nullable=False)
    email_type = Column(String(20), nullable=False, default=EmailType.ALTERNATE)
    is_primary = Column(Boolean, default=False)
    source = Column(String(255), nullable=True)
    source_user_id = Column(String(36), nullable=True)
    added_by = Column(String(36), nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="emails", foreign_keys=[user_id])

    __table_args__ = (UniqueConstraint('user_id', 'email'),)

    def __repr__(self):
        return f"<UserEmail(user_id='{self.user_id}', email='{self.email}', type='{self.email_type}')>"


class UserMergeHistory(Base):
    __tablename__ = 'user_merge_history'

    id = Column(Integer, primary_key=True)
    target_user_id = Column(String(36), ForeignKey('users.id'), nullable=False, index=True)
    source_user_id = Column(String(36), nullable=False)
    source_user_email = Column(String(255), nullable=False)
    source_user_display_name = Column(String(100))
    merged_by = Column(String(36), nullable=True)
    merge_reason = Column(Text, nullable=True)

    picks_merged = Column(Integer, default=0)
    payments_merged = Column(Integer, default=0)
    anonymous_picks_merged = Column(Integer, default=0)
    emails_merged = Column(Integer, default=0)
    conflicts_detected = Column(Boolean, default=False)
    conflict_details = Column(Text, nullable=True)  # JSON list

    merged_at = Column(DateTime, default=func.now())

    def __repr__(self):
        return f"<UserMergeHistory(source='{self.source_user_id}', target='{self.target_user_id}')>"


class Configuration(Base):
    __tablename__ = 'configurations'

    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=False)  # JSON-encoded
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Configuration(key='{self.key}', value='{self.value}')>"


class AuditLog(Base):
    __tablename__ = 'audit_logs'

    id = Column(Integer, primary_key=True)
    user_id = Column(BigInteger, nullable=False)  # Discord user ID of the actor
    action = Column(String(50), nullable=False)
    details = Column(Text, nullable=True)  # JSON-encoded
    created_at = Column(DateTime, default=func.now())

    def __repr__(self):
        return f"<AuditLog(action='{self.action}', user_id={self.user_id})>"
