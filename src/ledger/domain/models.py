from dataclasses import dataclass
from decimal import Decimal
from datetime import datetime
from typing import Any, Dict, Optional, Union
from ledger.domain.enums import TransactionType

TransactionId = Union[int, str]

@dataclass
class Transaction:
    """Core domain model representing a single income or expense record"""
    amount: Decimal
    description: str
    category: str
    type: TransactionType
    date: datetime
    id: Optional[TransactionId] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serializable view of the record, keyed the way API consumers expect"""
        return {
            "id": self.id,
            "amount": self.amount,
            "description": self.description,
            "category": self.category,
            "type": self.type.value,
            "date": self.date.isoformat(),
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        sign = "+" if self.type == TransactionType.INCOME else "-"
        return f"Transaction({self.date:%Y-%m-%d}, {self.description[:30]}, {sign}${self.amount})"
