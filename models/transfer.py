from dataclasses import dataclass, replace
from typing import Optional
from uuid import uuid4

from models.transaction import Transaction


@dataclass(frozen=True)
class Transfer:
    """Money moving between two accounts, stored as two linked rows.

    `debit` is the expense on the source account, `credit` the income on
    the destination. Build pairs through `Transfer.create` so the
    back-references always point at each other.
    """
    debit: Transaction
    credit: Transaction

    def __post_init__(self):
        if self.debit.linked_transaction_id != self.credit.id or \
                self.credit.linked_transaction_id != self.debit.id:
            raise ValueError("Transfer legs must reference each other.")

    @classmethod
    def create(
        cls,
        from_account_id: str,
        to_account_id: str,
        amount: float,
        date: str,
        description: str = "",
        recurring_id: Optional[str] = None,
        category_id: Optional[str] = None,
    ) -> "Transfer":
        debit_id, credit_id = str(uuid4()), str(uuid4())
        common = dict(
            amount=amount,
            date=date,
            description=description,
            category_id=category_id,
            is_recurring=recurring_id is not None,
            recurring_id=recurring_id,
            is_transfer=True,
        )
        debit = Transaction(
            id=debit_id, kind="expense", account_id=from_account_id,
            linked_transaction_id=credit_id, **common,
        )
        credit = Transaction(
            id=credit_id, kind="income", account_id=to_account_id,
            linked_transaction_id=debit_id, **common,
        )
        return cls(debit=debit, credit=credit)

    @classmethod
    def from_legs(cls, first: Transaction, second: Transaction) -> "Transfer":
        """Order two stored legs into (debit, credit)."""
        if first.kind == "expense":
            return cls(debit=replace(first), credit=replace(second))
        return cls(debit=replace(second), credit=replace(first))

    @property
    def ids(self) -> tuple[str, str]:
        return self.debit.id, self.credit.id

    @property
    def amount(self) -> float:
        return self.debit.amount

    @property
    def date(self) -> str:
        return self.debit.date

    @property
    def from_account_id(self) -> str:
        return self.debit.account_id

    @property
    def to_account_id(self) -> str:
        return self.credit.account_id
