from uuid import uuid4

from models.account import Account
from models.account_group import AccountGroup
from services.ledger_store import LedgerStore


class AccountService:
    def __init__(self, store: LedgerStore):
        self._store = store

    def get_all(self) -> list[Account]:
        return self._store.list_accounts()

    def get_by_id(self, account_id: str) -> Account | None:
        return self._store.get_account(account_id)

    def create(
        self,
        name: str,
        kind: str = "checking",
        include_in_total: bool = True,
        account_id: str | None = None,
    ) -> Account:
        name = name.strip()
        self._check_unique_name(name)
        account = self._store.add_account(Account(
            id=account_id or str(uuid4()),
            name=name,
            kind=kind,
            include_in_total=include_in_total,
        ))
        if self._store.selected_account_id is None:
            self._store.set_selected_account(account.id)
        return account

    def update(self, account_id: str, **changes) -> Account:
        if "name" in changes:
            changes["name"] = changes["name"].strip()
            self._check_unique_name(changes["name"], exclude_id=account_id)
        return self._store.update_account(account_id, changes)

    def delete(self, account_id: str):
        """Delete the account. Its transactions are kept as orphans."""
        self._store.delete_account(account_id)

    def select(self, account_id: str):
        self._store.set_selected_account(account_id)

    @property
    def selected_account_id(self) -> str | None:
        return self._store.selected_account_id

    # ── Groups ───────────────────────────────────────────────────────────────

    def get_groups(self) -> list[AccountGroup]:
        return self._store.list_groups()

    def create_group(self, name: str, account_ids: list[str]) -> AccountGroup:
        return self._store.add_group(AccountGroup(
            id=str(uuid4()), name=name.strip(), account_ids=list(account_ids),
        ))

    def update_group(self, group_id: str, **changes) -> AccountGroup:
        return self._store.update_group(group_id, changes)

    def delete_group(self, group_id: str):
        self._store.delete_group(group_id)

    # ── Helpers ──────────────────────────────────────────────────────────────

    def _check_unique_name(self, name: str, exclude_id: str | None = None):
        if not name:
            raise ValueError("Account name cannot be empty.")
        for account in self._store.list_accounts():
            if account.name == name and account.id != exclude_id:
                raise ValueError(f"An account named '{name}' already exists.")
