from datetime import timedelta
from uuid import uuid4

import structlog

from models.recurring_rule import RecurringRule
from services.edit_propagation import RuleEditPropagator
from services.ledger_store import LedgerStore
from services.notifier import Notifier
from services.recurrence_engine import RecurrenceEngine
from services.validation import validate_rule
from utils.date_helpers import end_after_occurrences, format_date, parse_date

log = structlog.get_logger(__name__)


class RecurringService:
    """Rule lifecycle as the UI sees it. Every add or edit re-runs the engine."""

    def __init__(
        self,
        store: LedgerStore,
        engine: RecurrenceEngine,
        propagator: RuleEditPropagator,
        notifier: Notifier | None = None,
    ):
        self._store = store
        self._engine = engine
        self._propagator = propagator
        self._notifier = notifier

    def get_all(self) -> list[RecurringRule]:
        return self._store.list_rules()

    def get_active(self) -> list[RecurringRule]:
        return [r for r in self._store.list_rules() if r.active]

    def get_by_id(self, rule_id: str) -> RecurringRule | None:
        return self._store.get_rule(rule_id)

    def create(
        self,
        amount: float,
        kind: str,
        account_id: str,
        description: str,
        frequency: str,
        start_date: str,
        interval: int = 1,
        end_date: str | None = None,
        occurrences: int | None = None,
        to_account_id: str | None = None,
        is_transfer: bool = False,
        category_id: str | None = None,
        rule_id: str | None = None,
    ) -> RecurringRule:
        """Add a rule and materialize whatever is already due.

        `occurrences` is an alternative to `end_date`: the series stops
        after that many runs.
        """
        if occurrences is not None:
            start = parse_date(start_date)
            if start is None:
                raise ValueError("Invalid start date.")
            end_date = format_date(end_after_occurrences(start, frequency, occurrences, interval))
        return self._add(RecurringRule(
            id=rule_id or str(uuid4()),
            amount=amount,
            kind="expense" if is_transfer else kind,
            account_id=account_id,
            description=description,
            frequency=frequency,
            start_date=start_date,
            next_due_date=start_date,
            interval=interval,
            end_date=end_date,
            active=True,
            is_transfer=is_transfer,
            to_account_id=to_account_id,
            category_id=category_id,
        ))

    def _add(self, rule: RecurringRule) -> RecurringRule:
        self._store.add_rule(rule)
        log.info("rule_created", rule_id=rule.id, frequency=rule.frequency, interval=rule.interval)
        self._engine.materialize_due()
        self._saved("Recurring transaction saved.")
        return self._store.get_rule(rule.id)

    def update(self, rule_id: str, patch: dict) -> RecurringRule:
        """Edit a rule and carry the change onto its existing transactions."""
        rule = self._propagator.apply_rule_edit(rule_id, patch)
        self._saved("Recurring transaction updated.")
        return rule

    def update_from(self, rule_id: str, patch: dict, effective_date: str) -> RecurringRule:
        """Apply an edit to future occurrences only.

        The current rule ends the day before `effective_date` and keeps its
        history untouched; a new rule with the edited values starts on
        `effective_date`. Rows the old rule already created on or after
        that date move to the new rule as they are, so they are not
        created a second time. Returns the new rule.
        """
        old = self._store.get_rule(rule_id)
        if old is None:
            raise KeyError(f"Unknown recurring rule: {rule_id}")
        effective = parse_date(effective_date)
        if effective is None:
            raise ValueError("Invalid effective date.")
        effective_str = format_date(effective)

        values = {
            "amount": old.amount,
            "kind": old.kind,
            "account_id": old.account_id,
            "description": old.description,
            "frequency": old.frequency,
            "interval": old.interval,
            "end_date": old.end_date,
            "to_account_id": old.to_account_id,
            "is_transfer": old.is_transfer,
            "category_id": old.category_id,
        }
        values.update({k: v for k, v in patch.items() if k in values})
        if values["is_transfer"]:
            values["kind"] = "expense"
        new = RecurringRule(
            id=str(uuid4()), start_date=effective_str, next_due_date=effective_str, **values,
        )
        # Nothing is written unless the new rule is valid.
        validate_rule(new)
        new_id = new.id

        self._store.update_rule(rule_id, {"end_date": format_date(effective - timedelta(days=1))})
        moved = {
            t.id: {"recurring_id": new_id}
            for t in self._store.list_transactions()
            if t.recurring_id == rule_id and t.date[:10] >= effective_str
        }
        self._store.update_transactions(moved)
        log.info("rule_split", rule_id=rule_id, new_rule_id=new_id,
                 effective_date=effective_str, moved=len(moved))
        return self._add(new)

    def set_active(self, rule_id: str, active: bool) -> RecurringRule:
        rule = self._store.update_rule(rule_id, {"active": active})
        if active:
            self._engine.materialize_due()
        return self._store.get_rule(rule_id) or rule

    def delete(self, rule_id: str):
        """Remove the rule. Transactions it already created stay in the ledger."""
        self._store.remove_rule(rule_id)
        log.info("rule_deleted", rule_id=rule_id)
        self._saved("Recurring transaction deleted.")

    def _saved(self, message: str):
        if self._notifier:
            self._notifier.notify("saved", message)
