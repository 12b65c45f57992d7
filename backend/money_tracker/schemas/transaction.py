import re
from datetime import datetime, timezone
from typing import Any, List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_serializer,
    field_validator,
)

from money_tracker.core.config import settings

NAME_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500
DATETIME_MESSAGE = "Datetime must be a valid ISO 8601 date"

_datetime_adapter = TypeAdapter(datetime)
# Calendar date first (YYYY-MM-DD); rules out bare epoch strings like "1700000000"
_ISO_DATE_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}")


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken as UTC; aware ones are converted"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class TransactionCreate(BaseModel):
    name: str
    description: Optional[str] = ""
    price: float = Field(..., allow_inf_nan=False)
    datetime: datetime

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        value = value.strip()
        if not 1 <= len(value) <= NAME_MAX_LENGTH:
            raise ValueError(f"Name must be between 1 and {NAME_MAX_LENGTH} characters")
        return value

    @field_validator("description")
    @classmethod
    def validate_description(cls, value: Optional[str]) -> str:
        value = (value or "").strip()
        if len(value) > DESCRIPTION_MAX_LENGTH:
            raise ValueError(f"Description must be at most {DESCRIPTION_MAX_LENGTH} characters")
        return value

    @field_validator("price", mode="before")
    @classmethod
    def reject_boolean_price(cls, value: Any) -> Any:
        # bool is an int subclass and would otherwise become 1.0 or 0.0
        if isinstance(value, bool):
            raise ValueError("Price must be a valid number")
        return value

    @field_validator("price")
    @classmethod
    def validate_price(cls, value: float) -> float:
        if abs(value) > settings.MAX_TRANSACTION_AMOUNT:
            limit = f"{settings.MAX_TRANSACTION_AMOUNT:,.0f}"
            raise ValueError(f"Price must be between -{limit} and {limit}")
        return value

    @field_validator("datetime", mode="before")
    @classmethod
    def parse_datetime(cls, value: Any) -> datetime:
        # Only ISO 8601 strings (or datetimes from Python callers), no epoch numbers
        if isinstance(value, datetime):
            return value
        if not isinstance(value, str) or not _ISO_DATE_PREFIX.match(value):
            raise ValueError(DATETIME_MESSAGE)
        try:
            return _datetime_adapter.validate_python(value)
        except ValidationError:
            raise ValueError(DATETIME_MESSAGE)

    @field_validator("datetime")
    @classmethod
    def normalize_datetime(cls, value: datetime) -> datetime:
        return as_utc(value)


class TransactionResponse(BaseModel):
    id: int
    user_id: int
    name: str
    description: str
    price: float
    datetime: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("datetime")
    def serialize_datetime(self, value: datetime, _info):
        # SQLite hands back naive values; everything is stored as UTC
        return as_utc(value).isoformat()


class Pagination(BaseModel):
    total: int
    limit: int
    offset: int
    has_more: bool = Field(..., alias="hasMore")

    model_config = ConfigDict(populate_by_name=True)


class TransactionListResponse(BaseModel):
    transactions: List[TransactionResponse]
    pagination: Pagination


class DeleteResponse(BaseModel):
    success: bool = True
    deleted: TransactionResponse


class SummaryResponse(BaseModel):
    count: int
    income: float
    expenses: float
    balance: float
    latest: Optional[TransactionResponse] = None
