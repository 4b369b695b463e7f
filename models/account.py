from dataclasses import dataclass


@dataclass
class Account:
    id: str
    name: str
    kind: str = "checking"      # 'checking' | 'savings' | 'cash' | 'credit'
    include_in_total: bool = True
