from dataclasses import dataclass


@dataclass
class Category:
    id: str
    name: str
    kind: str               # 'income' | 'expense' | 'both'
    color: str = "#888888"
    is_system: bool = False
