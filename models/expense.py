# models/expense.py
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class ExtractedExpense(BaseModel):
    """
    Expense fields pulled from a transcript.
    amount and date stay None when unknown: ask the user, never assume 0 or today.
    currency stays None when not stated; the caller applies the user's default.
    """

    amount: Optional[float] = Field(None, ge=0, description="The amount of the expense")
    currency: Optional[str] = Field(None, description="ISO currency code, None when not stated")
    description: Optional[str] = Field(None, description="What the expense was for")
    merchant_name: Optional[str] = Field(None, description="Where the money was spent")
    category: Optional[str] = Field(None, description="The category of the expense")
    date: Optional[str] = Field(None, description="ISO date YYYY-MM-DD")
    time: Optional[str] = Field(None, description="HH:MM if mentioned")
    confidence: Optional[float] = Field(None, description="Extraction confidence 0.0-1.0")

    @field_validator("currency", mode="before")
    @classmethod
    def normalize_currency(cls, v):
        if v is None:
            return None
        return str(v).strip().upper() or None

    @field_validator("date", mode="before")
    @classmethod
    def validate_date(cls, v):
        if v is None or v == "":
            return None
        if isinstance(v, datetime):
            return v.date().isoformat()
        if isinstance(v, date):
            return v.isoformat()
        try:
            # Try to parse common date formats
            from dateutil import parser
            return parser.parse(str(v)).date().isoformat()
        except (ValueError, OverflowError):
            # Unparseable dates are unknown, not today
            return None

    @field_validator("confidence", mode="before")
    @classmethod
    def clamp_confidence(cls, v):
        if v is None:
            return None
        return min(max(float(v), 0.0), 1.0)
