from dataclasses import dataclass
from typing import Optional


@dataclass
class RecurringRule:
    id: str
    amount: float
    kind: str               # 'income' | 'expense'
    account_id: str
    description: str
    frequency: str          # 'daily' | 'weekly' | 'monthly' | 'yearly'
    start_date: str         # 'YYYY-MM-DD', anchor of the series
    next_due_date: str      # first occurrence not yet materialized
    interval: int = 1
    end_date: Optional[str] = None
    active: bool = True
    is_transfer: bool = False
    to_account_id: Optional[str] = None   # transfers only
    category_id: Optional[str] = None
