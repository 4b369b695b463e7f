from dataclasses import dataclass, field


@dataclass
class AccountGroup:
    id: str
    name: str
    account_ids: list[str] = field(default_factory=list)
