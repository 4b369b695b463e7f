"""Export and import all user data (accounts, transactions, recurring
rules, categories, account groups, savings goals) as JSON or CSV-in-ZIP.
"""
import csv
import io
import json
import zipfile
from dataclasses import asdict, fields
from datetime import datetime

import structlog

from models.account import Account
from models.account_group import AccountGroup
from models.category import Category
from models.recurring_rule import RecurringRule
from models.savings_goal import SavingsGoal
from models.transaction import Transaction
from services.ledger_store import LedgerStore
from utils.constants import EXPORT_VERSION

log = structlog.get_logger(__name__)

# snapshot key -> model
SECTIONS = {
    "accounts": Account,
    "transactions": Transaction,
    "recurring_transactions": RecurringRule,
    "categories": Category,
    "account_groups": AccountGroup,
    "savings_goals": SavingsGoal,
}


def _to_dict(record) -> dict:
    data = asdict(record)
    data.pop("is_projected", None)
    return data


def _from_dict(model, data: dict):
    """Build a model from a loose dict, ignoring keys it does not know."""
    if not isinstance(data, dict):
        raise ValueError(f"Expected an object for {model.__name__}, got {type(data).__name__}.")
    known = {f.name for f in fields(model)}
    try:
        return model(**{k: v for k, v in data.items() if k in known})
    except TypeError as e:
        raise ValueError(f"Invalid {model.__name__} record: {e}") from e


class DataService:
    def __init__(self, store: LedgerStore):
        self._store = store

    # ── Export ────────────────────────────────────────────────────────────────

    def export_snapshot(self, version: str = EXPORT_VERSION) -> dict:
        """Return a full export dict (caller writes to disk)."""
        return {
            "version": version,
            "exported_at": datetime.now().isoformat(),
            "accounts": [_to_dict(a) for a in self._store.list_accounts()],
            "transactions": [_to_dict(t) for t in self._store.list_transactions()],
            "recurring_transactions": [_to_dict(r) for r in self._store.list_rules()],
            "categories": [_to_dict(c) for c in self._store.list_categories()],
            "account_groups": [_to_dict(g) for g in self._store.list_groups()],
            "savings_goals": [_to_dict(g) for g in self._store.list_goals()],
        }

    def export_json_file(self, path: str) -> dict:
        data = self.export_snapshot()
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        log.info("export_written", path=path, transactions=len(data["transactions"]))
        return data

    def export_csv_zip(self, path: str) -> None:
        """Write a ZIP archive containing one CSV per entity type."""
        data = self.export_snapshot()
        with zipfile.ZipFile(path, "w", zipfile.ZIP_DEFLATED) as zf:
            for key in SECTIONS:
                rows = data[key]
                if not rows:
                    continue
                if key == "account_groups":
                    rows = [{**g, "account_ids": ";".join(g["account_ids"])} for g in rows]
                buf = io.StringIO()
                writer = csv.DictWriter(buf, fieldnames=list(rows[0].keys()))
                writer.writeheader()
                writer.writerows(rows)
                zf.writestr(f"{key}.csv", buf.getvalue())
        log.info("export_zip_written", path=path)

    # ── Import ────────────────────────────────────────────────────────────────

    def import_snapshot(self, data: dict) -> dict:
        """Replace the store contents with a previously exported snapshot.

        Collections missing from the snapshot are emptied, with two
        exceptions: accounts are kept unless the snapshot has some, and
        categories are kept unless the snapshot carries a categories list.
        The version field is carried through untouched. Returns counts of
        the imported records.
        """
        if not isinstance(data, dict) or not isinstance(data.get("transactions"), list):
            raise ValueError("Invalid backup file: missing transactions.")

        parsed = {
            key: [_from_dict(model, item) for item in data.get(key) or []]
            for key, model in SECTIONS.items()
        }
        self._store.replace_all(
            transactions=parsed["transactions"],
            rules=parsed["recurring_transactions"],
            groups=parsed["account_groups"],
            goals=parsed["savings_goals"],
            accounts=parsed["accounts"] if data.get("accounts") else None,
            categories=parsed["categories"] if isinstance(data.get("categories"), list) else None,
        )
        stats = {key: len(records) for key, records in parsed.items()}
        log.info("import_applied", version=data.get("version"), **stats)
        return {"version": data.get("version"), **stats}

    def import_json_file(self, path: str) -> dict:
        with open(path, "r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid backup file: {e}") from e
        return self.import_snapshot(data)
