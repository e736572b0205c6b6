"""
Validation boundary between raw database rows and domain objects.

Rows coming back from queries are validated here before any computation
touches them. Missing numeric counters are treated as zero so a single
incomplete record cannot block a whole leaderboard; anything structurally
wrong (no week number, no user id, non-numeric counters) raises
PayloadValidationError.
"""

import logging
from typing import Any, Iterable, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from pickem.constants import EmailType, PaymentStatus
from pickem.data_models.leaderboard import LeaderboardEntry, WeeklyPerformance
from pickem.data_models.merge import EmailRecord, PaymentRecord, PickRecord
from pickem.utils.exceptions import PayloadValidationError

logger = logging.getLogger(__name__)

P = TypeVar('P', bound='Payload')


class Payload(BaseModel):
    model_config = ConfigDict(from_attributes=True, extra='ignore')


class CounterPayload(Payload):
    """Base for payloads carrying win/loss/points counters."""

    wins: int = 0
    losses: int = 0
    pushes: int = 0
    lock_wins: int = 0
    lock_losses: int = 0

    @field_validator(
        'wins', 'losses', 'pushes', 'lock_wins', 'lock_losses',
        'points', 'picks_made', 'total_points', 'total_picks',
        mode='before', check_fields=False
    )
    @classmethod
    def missing_counter_is_zero(cls, value: Any, info) -> Any:
        if value is None:
            logger.warning(f"{cls.__name__}.{info.field_name} missing; treating as 0")
            return 0
        return value


class UserPayload(Payload):
    id: str = Field(min_length=1)
    email: str
    display_name: str = "Unknown User"
    is_admin: bool = False
    is_active: bool = True

    @field_validator('display_name', mode='before')
    @classmethod
    def blank_name_is_unknown(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return "Unknown User"
        return value


class WeeklyPerformancePayload(CounterPayload):
    week: int = Field(ge=0)
    points: int = 0
    picks_made: int = 0

    def to_domain(self) -> WeeklyPerformance:
        return WeeklyPerformance(
            week=self.week,
            wins=self.wins,
            losses=self.losses,
            pushes=self.pushes,
            lock_wins=self.lock_wins,
            lock_losses=self.lock_losses,
            points=self.points,
            picks_made=self.picks_made,
        )


class LeaderboardRowPayload(CounterPayload):
    user_id: str = Field(min_length=1)
    display_name: str = "Unknown User"
    total_points: int = 0
    total_picks: int = 0
    payment_status: Optional[str] = None

    @field_validator('display_name', mode='before')
    @classmethod
    def blank_name_is_unknown(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return "Unknown User"
        return value

    def to_domain(self) -> LeaderboardEntry:
        return LeaderboardEntry(
            user_id=self.user_id,
            display_name=self.display_name,
            total_points=self.total_points,
            wins=self.wins,
            losses=self.losses,
            pushes=self.pushes,
            lock_wins=self.lock_wins,
            lock_losses=self.lock_losses,
            total_picks=self.total_picks,
            payment_status=self.payment_status or PaymentStatus.NO_PAYMENT,
        )


class PickRecordPayload(Payload):
    id: int
    season: int
    week: int

    def to_domain(self) -> PickRecord:
        return PickRecord(record_id=self.id, season=self.season, week=self.week)


class PaymentRecordPayload(Payload):
    id: int
    season: int

    def to_domain(self) -> PaymentRecord:
        return PaymentRecord(record_id=self.id, season=self.season)


class EmailRecordPayload(Payload):
    id: int
    email: str = Field(min_length=3)
    email_type: str = EmailType.ALTERNATE
    is_primary: bool = False

    @field_validator('email_type', mode='before')
    @classmethod
    def unknown_type_is_alternate(cls, value: Any) -> Any:
        if value not in EmailType.ALL:
            return EmailType.ALTERNATE
        return value

    def to_domain(self) -> EmailRecord:
        return EmailRecord(
            record_id=self.id,
            email=self.email,
            email_type=self.email_type,
            is_primary=self.is_primary,
        )


def parse_payload(model: Type[P], raw: Any) -> P:
    """Validate one raw row (mapping, SQLAlchemy Row or ORM object)."""
    if hasattr(raw, '_mapping'):
        raw = dict(raw._mapping)
    try:
        return model.model_validate(raw)
    except ValidationError as e:
        raise PayloadValidationError(model.__name__, str(e)) from e


def parse_payloads(model: Type[P], rows: Iterable[Any]) -> List[P]:
    return [parse_payload(model, row) for row in rows]
