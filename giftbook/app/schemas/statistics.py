"""
Statistics Schemas.

Totals are exact Decimal sums of whole amounts; averages are rounded
half-up to the configured number of places.
"""

from datetime import date
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel

from giftbook.app.schemas.ledger import Amount, Average

ZERO = Decimal(0)


class OverallStatistics(BaseModel):
    """Owner-wide totals, counts and averages."""
    received_total: Amount = ZERO
    received_count: int = 0
    received_average: Average = ZERO

    sent_total: Amount = ZERO
    sent_count: int = 0
    sent_average: Average = ZERO

    total_amount: Amount = ZERO
    total_count: int = 0
    average_amount: Average = ZERO


class YearlyStatistics(BaseModel):
    """Per calendar year of event_date."""
    year: int
    received_total: Amount
    received_count: int
    sent_total: Amount
    sent_count: int
    difference: Amount


class MonthlyStatistics(BaseModel):
    """Per (year, month) of event_date."""
    year: int
    month: int
    received_total: Amount
    received_count: int
    sent_total: Amount
    sent_count: int


class CounterpartyStatistics(BaseModel):
    """Per (counterparty_name, relation) pair."""
    counterparty_name: str
    relation: Optional[str]
    received_total: Amount
    received_count: int
    sent_total: Amount
    sent_count: int
    balance: Amount
    last_event_date: date
    last_event_type: str


class EventTypeStatistics(BaseModel):
    """Per event type."""
    event_type: str
    received_total: Amount
    received_count: int
    sent_total: Amount
    sent_count: int
    average_received: Average
    average_sent: Average


class RelationStatistics(BaseModel):
    """Per relation; entries without one share the unspecified bucket."""
    relation: str
    received_total: Amount
    received_count: int
    sent_total: Amount
    sent_count: int
    average_received: Average
    average_sent: Average
