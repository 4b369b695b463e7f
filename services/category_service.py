from uuid import uuid4

from models.category import Category
from services.ledger_store import LedgerStore
from services.notifier import Notifier
from utils.constants import DEFAULT_CATEGORY_COLOR


class CategoryService:
    def __init__(self, store: LedgerStore, notifier: Notifier | None = None):
        self._store = store
        self._notifier = notifier

    def get_all(self) -> list[Category]:
        return sorted(self._store.list_categories(), key=lambda c: c.name.lower())

    def get_by_id(self, category_id: str) -> Category | None:
        return self._store.get_category(category_id)

    def get_for_kind(self, kind: str) -> list[Category]:
        """Categories usable on an income or expense transaction."""
        return [c for c in self.get_all() if c.kind in (kind, "both")]

    def create(self, name: str, kind: str, color: str = DEFAULT_CATEGORY_COLOR) -> Category:
        name = name.strip()
        self._check_unique_name(name)
        category = self._store.add_category(Category(
            id=str(uuid4()), name=name, kind=kind, color=color,
        ))
        self._saved("Category saved.")
        return category

    def update(self, category_id: str, **changes) -> Category:
        if "name" in changes:
            changes["name"] = changes["name"].strip()
            self._check_unique_name(changes["name"], exclude_id=category_id)
        category = self._store.update_category(category_id, changes)
        self._saved("Category updated.")
        return category

    def delete(self, category_id: str):
        """Delete a category. Transactions that used it keep the id."""
        category = self._store.get_category(category_id)
        if category and category.is_system:
            raise ValueError("System categories cannot be deleted.")
        self._store.delete_category(category_id)
        self._saved("Category deleted.")

    def _check_unique_name(self, name: str, exclude_id: str | None = None):
        if not name:
            raise ValueError("Category name cannot be empty.")
        for category in self._store.list_categories():
            if category.name.lower() == name.lower() and category.id != exclude_id:
                raise ValueError(f"A category named '{name}' already exists.")

    def _saved(self, message: str):
        if self._notifier:
            self._notifier.notify("saved", message)
