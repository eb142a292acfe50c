from dataclasses import dataclass
from datetime import date


@dataclass
class Transaction:
    id: int
    label: str
    date: date
    amount: float  # negative for expenses, positive for income
    category_id: int
    user_id: int  # always the owner of category_id

    @property
    def is_expense(self) -> bool:
        return self.amount < 0

    def to_dict(self) -> dict:
        """Convert transaction to a JSON-friendly dictionary."""
        return {
            "id": self.id,
            "label": self.label,
            "date": self.date.isoformat(),
            "amount": self.amount,
            "category_id": self.category_id,
            "user_id": self.user_id,
        }
