"""Read-only forecast of occurrences that have not been materialized yet.

Unlike the recurrence engine this never touches the store: each call walks
from the rule's cursor with its own local date, so results are a pure
function of the inputs and can be restarted at will.
"""
from datetime import date
from typing import Iterable, Iterator

from models.recurring_rule import RecurringRule
from models.transaction import Transaction
from utils.date_helpers import advance, format_date, parse_date


def projected_id(rule_id: str, date_str: str, leg: str = "") -> str:
    suffix = f"-{leg}" if leg else ""
    return f"proj-{rule_id}-{date_str}{suffix}"


def _legs(rule: RecurringRule, date_str: str, account_ids: set[str] | None) -> Iterator[Transaction]:
    common = dict(
        amount=rule.amount,
        date=date_str,
        description=rule.description,
        category_id=rule.category_id,
        is_recurring=True,
        recurring_id=rule.id,
        is_projected=True,
    )
    if not rule.is_transfer:
        if account_ids is None or rule.account_id in account_ids:
            yield Transaction(
                id=projected_id(rule.id, date_str), kind=rule.kind,
                account_id=rule.account_id, **common,
            )
        return

    # A transfer is a debit and a credit; together they net to zero.
    debit_id = projected_id(rule.id, date_str, "debit")
    credit_id = projected_id(rule.id, date_str, "credit")
    if account_ids is None or rule.account_id in account_ids:
        yield Transaction(
            id=debit_id, kind="expense", account_id=rule.account_id,
            is_transfer=True, linked_transaction_id=credit_id, **common,
        )
    if account_ids is None or rule.to_account_id in account_ids:
        yield Transaction(
            id=credit_id, kind="income", account_id=rule.to_account_id,
            is_transfer=True, linked_transaction_id=debit_id, **common,
        )


def occurrence_dates(rule: RecurringRule, window_start: date, window_end: date) -> Iterator[date]:
    """Yield the rule's unmaterialized dates in [window_start, window_end)."""
    cursor = parse_date(rule.next_due_date)
    if cursor is None or not rule.active:
        return
    end = parse_date(rule.end_date) if rule.end_date else None
    while cursor < window_end:
        if end and cursor > end:
            return
        if cursor >= window_start:
            yield cursor
        cursor = advance(cursor, rule.frequency, rule.interval)


def project(
    rules: Iterable[RecurringRule],
    window_start: date,
    window_end: date,
    account_ids: Iterable[str] | None = None,
) -> Iterator[Transaction]:
    """Lazily yield projected transactions for [window_start, window_end).

    Walks each active rule from max(cursor, window_start) with the same
    `advance` the recurrence engine uses, so projected dates line up with
    what will later be materialized. `account_ids` None means every
    account.
    """
    wanted = set(account_ids) if account_ids is not None else None
    for rule in rules:
        for occurrence in occurrence_dates(rule, window_start, window_end):
            yield from _legs(rule, format_date(occurrence), wanted)


def project_sorted(
    rules: Iterable[RecurringRule],
    window_start: date,
    window_end: date,
    account_ids: Iterable[str] | None = None,
) -> list[Transaction]:
    return sorted(
        project(rules, window_start, window_end, account_ids),
        key=lambda t: (t.date, t.id),
    )
