"""
Ledger enumerations.
"""

import enum


class TransactionType(str, enum.Enum):
    """
    Direction of a ledger entry.

    Values:
        RECEIVED: Money given to the owner (default)
        SENT: Money given by the owner
    """
    RECEIVED = "RECEIVED"
    SENT = "SENT"
