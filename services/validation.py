import math

from models.account import Account
from models.category import Category
from models.recurring_rule import RecurringRule
from models.transaction import Transaction
from services.errors import InvalidRuleError
from utils.constants import ACCOUNT_KINDS, CATEGORY_KINDS, FREQUENCIES, TRANSACTION_KINDS
from utils.date_helpers import parse_date


def is_amount(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value > 0


def validate_transaction(tx: Transaction):
    if not tx.id:
        raise ValueError("Transaction id cannot be empty.")
    if tx.kind not in TRANSACTION_KINDS:
        raise ValueError(f"Invalid type: {tx.kind}")
    if not is_amount(tx.amount):
        raise ValueError(f"Amount must be a positive number, got {tx.amount!r}.")
    if not parse_date(tx.date):
        raise ValueError(f"Invalid date {tx.date!r}. Use YYYY-MM-DD.")


def validate_rule(rule: RecurringRule):
    """Raise InvalidRuleError when the rule cannot be materialized safely."""
    if not rule.id:
        raise InvalidRuleError(rule.id, "id cannot be empty")
    if not is_amount(rule.amount):
        raise InvalidRuleError(rule.id, f"amount must be a positive number, got {rule.amount!r}")
    if rule.kind not in TRANSACTION_KINDS:
        raise InvalidRuleError(rule.id, f"invalid type {rule.kind!r}")
    if rule.frequency not in FREQUENCIES:
        raise InvalidRuleError(rule.id, f"invalid frequency {rule.frequency!r}")
    if isinstance(rule.interval, bool) or not isinstance(rule.interval, int) or rule.interval < 1:
        raise InvalidRuleError(rule.id, f"interval must be an integer >= 1, got {rule.interval!r}")
    start = parse_date(rule.start_date)
    if start is None:
        raise InvalidRuleError(rule.id, f"invalid start date {rule.start_date!r}")
    next_due = parse_date(rule.next_due_date)
    if next_due is None:
        raise InvalidRuleError(rule.id, f"invalid next due date {rule.next_due_date!r}")
    if next_due < start:
        raise InvalidRuleError(rule.id, "next due date is before the start date")
    if rule.end_date and parse_date(rule.end_date) is None:
        raise InvalidRuleError(rule.id, f"invalid end date {rule.end_date!r}")
    if not rule.account_id:
        raise InvalidRuleError(rule.id, "account is required")
    if rule.is_transfer:
        if not rule.to_account_id:
            raise InvalidRuleError(rule.id, "transfer needs a destination account")
        if rule.to_account_id == rule.account_id:
            raise InvalidRuleError(rule.id, "cannot transfer to the same account")


def validate_account(account: Account):
    if not account.id:
        raise ValueError("Account id cannot be empty.")
    if not account.name.strip():
        raise ValueError("Account name cannot be empty.")
    if account.kind not in ACCOUNT_KINDS:
        raise ValueError(
            f"Invalid account type '{account.kind}'. "
            f"Must be one of: {', '.join(ACCOUNT_KINDS)}."
        )


def validate_category(category: Category):
    if not category.id:
        raise ValueError("Category id cannot be empty.")
    if not category.name.strip():
        raise ValueError("Category name cannot be empty.")
    if category.kind not in CATEGORY_KINDS:
        raise ValueError(
            f"Invalid category type '{category.kind}'. "
            f"Must be one of: {', '.join(CATEGORY_KINDS)}."
        )
