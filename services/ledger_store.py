"""In-memory system of record for accounts, transactions, recurring rules,
categories, account groups and savings goals.

Every mutation goes through this class and is announced to observers
(persistence sync, UI) after the in-memory change is applied. Readers get
copies, so nothing outside the store can change a record without a
matching event.
"""
from dataclasses import dataclass, field, fields, replace
from typing import Callable, Iterable

import structlog

from models.account import Account
from models.account_group import AccountGroup
from models.category import Category
from models.recurring_rule import RecurringRule
from models.savings_goal import SavingsGoal
from models.transaction import Transaction
from services.errors import TransferError
from services.validation import (
    validate_account,
    validate_category,
    validate_rule,
    validate_transaction,
)
from utils.constants import DEFAULT_RESET_DAY

log = structlog.get_logger(__name__)

COLLECTIONS = ("accounts", "transactions", "rules", "categories", "groups", "goals")


@dataclass
class StoreEvent:
    action: str             # 'add' | 'update' | 'remove' | 'replace' | 'setting'
    collection: str         # one of COLLECTIONS, or 'settings'
    records: list = field(default_factory=list)
    ids: list[str] = field(default_factory=list)


def apply_patch(record, patch: dict):
    allowed = {f.name for f in fields(record)}
    unknown = set(patch) - allowed
    if unknown:
        raise ValueError(f"Unknown field(s): {', '.join(sorted(unknown))}")
    if "id" in patch and patch["id"] != record.id:
        raise ValueError("Record id cannot change.")
    return replace(record, **patch)


class LedgerStore:
    def __init__(self):
        self._accounts: dict[str, Account] = {}
        self._transactions: dict[str, Transaction] = {}
        self._rules: dict[str, RecurringRule] = {}
        self._categories: dict[str, Category] = {}
        self._groups: dict[str, AccountGroup] = {}
        self._goals: dict[str, SavingsGoal] = {}
        self._selected_account_id: str | None = None
        self._reset_day: int = DEFAULT_RESET_DAY
        self._observers: list[Callable[[StoreEvent], None]] = []

    # ── Observers ────────────────────────────────────────────────────────────

    def subscribe(self, observer: Callable[[StoreEvent], None]) -> Callable[[], None]:
        self._observers.append(observer)
        return lambda: self._observers.remove(observer)

    def _emit(self, action: str, collection: str, records: Iterable = (), ids: Iterable[str] = ()):
        event = StoreEvent(
            action=action,
            collection=collection,
            records=[replace(r) for r in records],
            ids=list(ids),
        )
        for observer in list(self._observers):
            try:
                observer(event)
            except Exception:
                # Observers are side effects; the local change stands.
                log.exception("store_observer_failed", action=action, collection=collection)

    # ── Transactions ─────────────────────────────────────────────────────────

    def list_transactions(self, account_id: str | None = None) -> list[Transaction]:
        return [
            replace(t) for t in self._transactions.values()
            if account_id is None or t.account_id == account_id
        ]

    def get_transaction(self, tx_id: str) -> Transaction | None:
        tx = self._transactions.get(tx_id)
        return replace(tx) if tx else None

    def append_transaction(self, tx: Transaction) -> Transaction:
        validate_transaction(tx)
        if tx.id in self._transactions:
            raise ValueError(f"Transaction {tx.id} already exists.")
        self._transactions[tx.id] = replace(tx, is_projected=False)
        self._emit("add", "transactions", [tx], [tx.id])
        return replace(tx)

    def update_transaction(self, tx_id: str, patch: dict) -> Transaction:
        return self.update_transactions({tx_id: patch})[0]

    def update_transactions(self, patches: dict[str, dict]) -> list[Transaction]:
        """Apply several patches as one change: all validate or none apply."""
        updated = []
        for tx_id, patch in patches.items():
            current = self._transactions.get(tx_id)
            if current is None:
                raise KeyError(f"Unknown transaction: {tx_id}")
            new = apply_patch(current, patch)
            validate_transaction(new)
            updated.append(new)
        if not updated:
            return []
        for tx in updated:
            self._transactions[tx.id] = tx
        self._emit("update", "transactions", updated, [t.id for t in updated])
        return [replace(t) for t in updated]

    def remove_transaction(self, tx_id: str) -> Transaction:
        tx = self._transactions.get(tx_id)
        if tx is None:
            raise KeyError(f"Unknown transaction: {tx_id}")
        if tx.linked_transaction_id and tx.linked_transaction_id in self._transactions:
            raise TransferError(
                f"Transaction {tx_id} is one side of a transfer; remove both legs together."
            )
        return self.remove_transactions([tx_id])[0]

    def remove_transactions(self, tx_ids: Iterable[str]) -> list[Transaction]:
        ids = list(dict.fromkeys(tx_ids))
        missing = [i for i in ids if i not in self._transactions]
        if missing:
            raise KeyError(f"Unknown transaction(s): {', '.join(missing)}")
        removed = [self._transactions.pop(i) for i in ids]
        if removed:
            self._emit("remove", "transactions", removed, ids)
        return removed

    # ── Recurring rules ──────────────────────────────────────────────────────

    def list_rules(self) -> list[RecurringRule]:
        return [replace(r) for r in self._rules.values()]

    def get_rule(self, rule_id: str) -> RecurringRule | None:
        rule = self._rules.get(rule_id)
        return replace(rule) if rule else None

    def add_rule(self, rule: RecurringRule) -> RecurringRule:
        validate_rule(rule)
        if rule.id in self._rules:
            raise ValueError(f"Recurring rule {rule.id} already exists.")
        self._rules[rule.id] = replace(rule)
        self._emit("add", "rules", [rule], [rule.id])
        return replace(rule)

    def update_rule(self, rule_id: str, patch: dict) -> RecurringRule:
        current = self._rules.get(rule_id)
        if current is None:
            raise KeyError(f"Unknown recurring rule: {rule_id}")
        new = apply_patch(current, patch)
        validate_rule(new)
        self._rules[rule_id] = new
        self._emit("update", "rules", [new], [rule_id])
        return replace(new)

    def remove_rule(self, rule_id: str) -> RecurringRule:
        rule = self._rules.pop(rule_id, None)
        if rule is None:
            raise KeyError(f"Unknown recurring rule: {rule_id}")
        self._emit("remove", "rules", [rule], [rule_id])
        return rule

    # ── Accounts ─────────────────────────────────────────────────────────────

    def list_accounts(self) -> list[Account]:
        return [replace(a) for a in self._accounts.values()]

    def get_account(self, account_id: str) -> Account | None:
        account = self._accounts.get(account_id)
        return replace(account) if account else None

    def add_account(self, account: Account) -> Account:
        validate_account(account)
        if account.id in self._accounts:
            raise ValueError(f"Account {account.id} already exists.")
        self._accounts[account.id] = replace(account)
        self._emit("add", "accounts", [account], [account.id])
        return replace(account)

    def update_account(self, account_id: str, patch: dict) -> Account:
        current = self._accounts.get(account_id)
        if current is None:
            raise KeyError(f"Unknown account: {account_id}")
        new = apply_patch(current, patch)
        validate_account(new)
        self._accounts[account_id] = new
        self._emit("update", "accounts", [new], [account_id])
        return replace(new)

    def delete_account(self, account_id: str) -> Account:
        """Remove an account. Its transactions stay behind as orphans."""
        account = self._accounts.pop(account_id, None)
        if account is None:
            raise KeyError(f"Unknown account: {account_id}")
        self._emit("remove", "accounts", [account], [account_id])
        if self._selected_account_id == account_id:
            remaining = next(iter(self._accounts), None)
            self.set_selected_account(remaining)
        return account

    @property
    def selected_account_id(self) -> str | None:
        return self._selected_account_id

    def set_selected_account(self, account_id: str | None):
        if account_id is not None and account_id not in self._accounts:
            raise KeyError(f"Unknown account: {account_id}")
        self._selected_account_id = account_id
        self._emit("setting", "settings", ids=["selected_account_id"])

    # ── Categories ───────────────────────────────────────────────────────────

    def list_categories(self) -> list[Category]:
        return [replace(c) for c in self._categories.values()]

    def get_category(self, category_id: str) -> Category | None:
        category = self._categories.get(category_id)
        return replace(category) if category else None

    def add_category(self, category: Category) -> Category:
        validate_category(category)
        if category.id in self._categories:
            raise ValueError(f"Category {category.id} already exists.")
        self._categories[category.id] = replace(category)
        self._emit("add", "categories", [category], [category.id])
        return replace(category)

    def update_category(self, category_id: str, patch: dict) -> Category:
        current = self._categories.get(category_id)
        if current is None:
            raise KeyError(f"Unknown category: {category_id}")
        new = apply_patch(current, patch)
        validate_category(new)
        self._categories[category_id] = new
        self._emit("update", "categories", [new], [category_id])
        return replace(new)

    def delete_category(self, category_id: str) -> Category:
        """Remove a category. Transactions keep their category_id."""
        category = self._categories.pop(category_id, None)
        if category is None:
            raise KeyError(f"Unknown category: {category_id}")
        self._emit("remove", "categories", [category], [category_id])
        return category

    # ── Account groups ───────────────────────────────────────────────────────

    def list_groups(self) -> list[AccountGroup]:
        return [replace(g, account_ids=list(g.account_ids)) for g in self._groups.values()]

    def get_group(self, group_id: str) -> AccountGroup | None:
        group = self._groups.get(group_id)
        return replace(group, account_ids=list(group.account_ids)) if group else None

    def add_group(self, group: AccountGroup) -> AccountGroup:
        if not group.id or not group.name.strip():
            raise ValueError("Group id and name are required.")
        if group.id in self._groups:
            raise ValueError(f"Account group {group.id} already exists.")
        self._groups[group.id] = replace(group, account_ids=list(group.account_ids))
        self._emit("add", "groups", [group], [group.id])
        return self.get_group(group.id)

    def update_group(self, group_id: str, patch: dict) -> AccountGroup:
        current = self._groups.get(group_id)
        if current is None:
            raise KeyError(f"Unknown account group: {group_id}")
        new = apply_patch(current, patch)
        if not new.name.strip():
            raise ValueError("Group name cannot be empty.")
        new.account_ids = list(new.account_ids)
        self._groups[group_id] = new
        self._emit("update", "groups", [new], [group_id])
        return self.get_group(group_id)

    def delete_group(self, group_id: str) -> AccountGroup:
        group = self._groups.pop(group_id, None)
        if group is None:
            raise KeyError(f"Unknown account group: {group_id}")
        self._emit("remove", "groups", [group], [group_id])
        return group

    # ── Savings goals ────────────────────────────────────────────────────────

    def list_goals(self) -> list[SavingsGoal]:
        return [replace(g) for g in self._goals.values()]

    def get_goal(self, goal_id: str) -> SavingsGoal | None:
        goal = self._goals.get(goal_id)
        return replace(goal) if goal else None

    def add_goal(self, goal: SavingsGoal) -> SavingsGoal:
        if goal.id in self._goals:
            raise ValueError(f"Savings goal {goal.id} already exists.")
        self._goals[goal.id] = replace(goal)
        self._emit("add", "goals", [goal], [goal.id])
        return replace(goal)

    def update_goal(self, goal_id: str, patch: dict) -> SavingsGoal:
        current = self._goals.get(goal_id)
        if current is None:
            raise KeyError(f"Unknown savings goal: {goal_id}")
        new = apply_patch(current, patch)
        self._goals[goal_id] = new
        self._emit("update", "goals", [new], [goal_id])
        return replace(new)

    def delete_goal(self, goal_id: str) -> SavingsGoal:
        goal = self._goals.pop(goal_id, None)
        if goal is None:
            raise KeyError(f"Unknown savings goal: {goal_id}")
        self._emit("remove", "goals", [goal], [goal_id])
        return goal

    # ── Settings ─────────────────────────────────────────────────────────────

    @property
    def reset_day(self) -> int:
        return self._reset_day

    def set_reset_day(self, day: int):
        if isinstance(day, bool) or not isinstance(day, int) or not 1 <= day <= 28:
            raise ValueError("Reset day must be between 1 and 28.")
        self._reset_day = day
        self._emit("setting", "settings", ids=["reset_day"])

    # ── Read helpers ─────────────────────────────────────────────────────────

    def resolve_account_ids(self, account_filter) -> set[str] | None:
        """Turn an account filter into a set of account ids.

        None or 'all' means every account (returns None); a group id
        expands to its members; a single account id or an iterable of
        ids is taken as given.
        """
        if account_filter is None or account_filter == "all":
            return None
        if isinstance(account_filter, str):
            group = self._groups.get(account_filter)
            if group is not None:
                return set(group.account_ids)
            return {account_filter}
        return set(account_filter)

    def get_balance(self, account_id: str | None = None) -> float:
        """Balance for an account, 'all', or the selected account.

        With no argument the selected account is used, falling back to
        every account when nothing is selected. Transfer legs count as
        ordinary income/expense rows, so they cancel out across all
        accounts.
        """
        target = account_id or self._selected_account_id
        ids = self.resolve_account_ids(target)
        return sum(
            t.signed_amount for t in self._transactions.values()
            if ids is None or t.account_id in ids
        )

    # ── Bulk ─────────────────────────────────────────────────────────────────

    def replace_all(
        self,
        transactions: Iterable[Transaction] = (),
        rules: Iterable[RecurringRule] = (),
        groups: Iterable[AccountGroup] = (),
        goals: Iterable[SavingsGoal] = (),
        accounts: Iterable[Account] | None = None,
        categories: Iterable[Category] | None = None,
    ):
        """Swap whole collections in one step (backup restore, initial load).

        Accounts and categories are only replaced when given; everything
        is validated before anything changes.
        """
        transactions = list(transactions)
        rules = list(rules)
        for tx in transactions:
            validate_transaction(tx)
        for rule in rules:
            validate_rule(rule)
        if accounts is not None:
            accounts = list(accounts)
            for account in accounts:
                validate_account(account)
        if categories is not None:
            categories = list(categories)
            for category in categories:
                validate_category(category)

        self._transactions = {t.id: replace(t, is_projected=False) for t in transactions}
        self._rules = {r.id: replace(r) for r in rules}
        self._groups = {g.id: replace(g, account_ids=list(g.account_ids)) for g in groups}
        self._goals = {g.id: replace(g) for g in goals}
        if accounts is not None:
            self._accounts = {a.id: replace(a) for a in accounts}
            if self._selected_account_id not in self._accounts:
                self._selected_account_id = next(iter(self._accounts), None)
        if categories is not None:
            self._categories = {c.id: replace(c) for c in categories}

        self._emit("replace", "transactions", self._transactions.values())
        self._emit("replace", "rules", self._rules.values())
        self._emit("replace", "groups", self._groups.values())
        self._emit("replace", "goals", self._goals.values())
        if accounts is not None:
            self._emit("replace", "accounts", self._accounts.values())
        if categories is not None:
            self._emit("replace", "categories", self._categories.values())
        log.info(
            "store_replaced",
            transactions=len(self._transactions),
            rules=len(self._rules),
            categories=len(self._categories),
            groups=len(self._groups),
            goals=len(self._goals),
        )
