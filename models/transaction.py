from dataclasses import dataclass
from typing import Optional


@dataclass
class Transaction:
    id: str
    amount: float
    kind: str               # 'income' | 'expense'
    date: str               # 'YYYY-MM-DD' (legacy rows may hold a full timestamp)
    account_id: str
    description: str = ""
    category_id: Optional[str] = None
    is_recurring: bool = False
    recurring_id: Optional[str] = None
    is_transfer: bool = False
    linked_transaction_id: Optional[str] = None
    is_projected: bool = False

    @property
    def signed_amount(self) -> float:
        return self.amount if self.kind == "income" else -self.amount
