from datetime import timedelta

import structlog

from models.recurring_rule import RecurringRule
from models.transaction import Transaction
from services.errors import InvalidRuleError
from services.ledger_store import LedgerStore, apply_patch
from services.recurrence_engine import RecurrenceEngine
from services.validation import validate_rule
from utils.date_helpers import days_between, format_date, parse_date, shift_date

log = structlog.get_logger(__name__)

PROPAGATED_FIELDS = ("amount", "description", "category_id", "account_id", "to_account_id")


class RuleEditPropagator:
    """Applies a rule edit to the rule and to everything it already created."""

    def __init__(self, store: LedgerStore, engine: RecurrenceEngine):
        self._store = store
        self._engine = engine

    def apply_rule_edit(self, rule_id: str, patch: dict) -> RecurringRule:
        old = self._store.get_rule(rule_id)
        if old is None:
            raise KeyError(f"Unknown recurring rule: {rule_id}")

        rule_patch = dict(patch)
        new = apply_patch(old, rule_patch)
        new_start = parse_date(new.start_date)
        if new_start is None:
            raise InvalidRuleError(rule_id, f"invalid start date {new.start_date!r}")
        days_diff = days_between(parse_date(old.start_date), new_start)
        # The cursor moves with the rows it follows.
        if days_diff and "next_due_date" not in rule_patch:
            cursor = parse_date(new.next_due_date)
            if cursor is not None:
                rule_patch["next_due_date"] = format_date(cursor + timedelta(days=days_diff))
                new = apply_patch(old, rule_patch)
        validate_rule(new)

        staged = {
            name: getattr(new, name) for name in PROPAGATED_FIELDS
            if name in patch and getattr(new, name) != getattr(old, name)
        }
        if staged or days_diff:
            children = [t for t in self._store.list_transactions() if t.recurring_id == rule_id]
            patches = {
                child.id: self._child_patch(child, staged, days_diff) for child in children
            }
            patches = {tx_id: p for tx_id, p in patches.items() if p}
            self._store.update_transactions(patches)
            log.info(
                "rule_edit_propagated",
                rule_id=rule_id,
                fields=sorted(staged),
                days_shift=days_diff,
                transactions=len(patches),
            )

        updated = self._store.update_rule(rule_id, rule_patch)
        self._engine.materialize_due()
        return self._store.get_rule(rule_id) or updated

    @staticmethod
    def _child_patch(child: Transaction, staged: dict, days_diff: int) -> dict:
        patch = {}
        if "amount" in staged:
            patch["amount"] = staged["amount"]
        if "description" in staged:
            patch["description"] = staged["description"]
        if "category_id" in staged:
            patch["category_id"] = staged["category_id"]
        # Transfer credits live on the destination account.
        if child.is_transfer and child.kind == "income":
            if "to_account_id" in staged:
                patch["account_id"] = staged["to_account_id"]
        elif "account_id" in staged:
            patch["account_id"] = staged["account_id"]
        if days_diff:
            patch["date"] = shift_date(child.date, days_diff)
        return patch
