"""Turns due occurrences of recurring rules into ledger transactions.

`collect_due` is pure: given a rule, the current transactions and "now" it
returns the batch of dates to create and the rule's new cursor.
`RecurrenceEngine.materialize_due` commits those batches to the store.
Running it twice with the same "now" creates nothing the second time: the
cursor has moved past every materialized date, and duplicate detection
catches anything the cursor does not.
"""
import threading
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Iterable, Optional
from uuid import uuid4

import structlog

from models.recurring_rule import RecurringRule
from models.transaction import Transaction
from services.ledger_store import LedgerStore
from services.notifier import Notifier
from services.transfer_service import TransferCoordinator
from services.validation import validate_rule
from utils.date_helpers import advance, format_date, parse_date, same_day, today

log = structlog.get_logger(__name__)


@dataclass
class DueBatch:
    rule_id: str
    dates: list[str] = field(default_factory=list)
    # (date, matching transaction id, 'strict' | 'loose')
    duplicates: list[tuple[str, str, str]] = field(default_factory=list)
    next_due_date: str = ""
    active: bool = True
    changed: bool = False


def find_duplicate(
    rule: RecurringRule, date_str: str, transactions: Iterable[Transaction]
) -> tuple[str, Transaction] | None:
    """Look for an existing transaction standing for this occurrence.

    Strict: tagged with the rule's id on the same day. Loose: any row on
    that day matching amount, account, type and trimmed description,
    which is how rows saved before tagging existed are recognised.
    Returns ('strict' | 'loose', tx) or None.
    """
    description = rule.description.strip()
    loose = None
    for tx in transactions:
        if not same_day(tx.date, date_str):
            continue
        if tx.recurring_id == rule.id:
            return "strict", tx
        if loose is None and (
            tx.amount == rule.amount
            and tx.account_id == rule.account_id
            and tx.kind == rule.kind
            and tx.description.strip() == description
        ):
            loose = tx
    if loose is not None:
        return "loose", loose
    return None


def collect_due(rule: RecurringRule, transactions: Iterable[Transaction], now: date) -> DueBatch:
    """Work out which occurrences of `rule` are due on or before `now`."""
    transactions = list(transactions)
    batch = DueBatch(rule_id=rule.id, next_due_date=rule.next_due_date, active=rule.active)
    if not rule.active:
        return batch

    cursor = parse_date(rule.next_due_date)
    end = parse_date(rule.end_date) if rule.end_date else None
    advanced = False

    while cursor <= now:
        if end and cursor > end:
            break
        date_str = format_date(cursor)
        match = find_duplicate(rule, date_str, transactions)
        if match is None:
            batch.dates.append(date_str)
        else:
            batch.duplicates.append((date_str, match[1].id, match[0]))
        cursor = advance(cursor, rule.frequency, rule.interval)
        advanced = True

    batch.next_due_date = format_date(cursor)
    batch.active = not (end and cursor > end)
    batch.changed = advanced or batch.active != rule.active
    return batch


class RecurrenceEngine:
    def __init__(
        self,
        store: LedgerStore,
        transfers: TransferCoordinator,
        clock: Callable[[], date] = today,
        notifier: Optional[Notifier] = None,
    ):
        self._store = store
        self._transfers = transfers
        self._clock = clock
        self._notifier = notifier
        self._lock = threading.RLock()

    def materialize_due(
        self, now: date | None = None, rule_ids: Iterable[str] | None = None
    ) -> list[Transaction]:
        """Create every missing occurrence up to `now` (default: the clock).

        All active rules are validated before anything is written; a
        malformed rule raises InvalidRuleError and nothing changes.
        Returns the transactions created, transfer legs included.
        """
        now = now or self._clock()
        with self._lock:
            rules = [r for r in self._store.list_rules() if r.active]
            if rule_ids is not None:
                wanted = set(rule_ids)
                rules = [r for r in rules if r.id in wanted]
            for rule in rules:
                validate_rule(rule)

            created: list[Transaction] = []
            for rule in rules:
                batch = collect_due(rule, self._store.list_transactions(), now)
                created.extend(self._commit(rule, batch))

        if created:
            log.info("recurring_materialized", count=len(created), now=format_date(now))
            if self._notifier:
                self._notifier.notify("saved", f"{len(created)} recurring transaction(s) added.")
        return created

    def _commit(self, rule: RecurringRule, batch: DueBatch) -> list[Transaction]:
        for date_str, tx_id, match in batch.duplicates:
            if match == "loose":
                log.warning("duplicate_suppressed_loose", rule_id=rule.id, date=date_str, tx_id=tx_id)
            else:
                log.debug("duplicate_suppressed", rule_id=rule.id, date=date_str, tx_id=tx_id)

        created: list[Transaction] = []
        for date_str in batch.dates:
            if rule.is_transfer:
                transfer = self._transfers.create_transfer(
                    rule.account_id,
                    rule.to_account_id,
                    rule.amount,
                    date_str,
                    rule.description,
                    recurring_id=rule.id,
                    category_id=rule.category_id,
                )
                created.extend([transfer.debit, transfer.credit])
            else:
                created.append(self._store.append_transaction(Transaction(
                    id=str(uuid4()),
                    amount=rule.amount,
                    kind=rule.kind,
                    date=date_str,
                    account_id=rule.account_id,
                    description=rule.description,
                    category_id=rule.category_id,
                    is_recurring=True,
                    recurring_id=rule.id,
                )))
            log.debug("rule_materialized", rule_id=rule.id, date=date_str)

        if batch.changed:
            self._store.update_rule(
                rule.id, {"next_due_date": batch.next_due_date, "active": batch.active}
            )
            if not batch.active:
                log.info("rule_ended", rule_id=rule.id, end_date=rule.end_date)
        return created
