from datetime import date

import pytest

from conftest import make_rule
from models.category import Category
from services.errors import InvalidRuleError
from services.notifier import Notifier
from utils.app_config import get_db_folder, get_log_level, load_config, set_db_folder


class TestAccountService:
    def test_create_selects_first_account(self, services, store):
        store.delete_account("acc1")
        store.delete_account("acc2")
        account = services.accounts.create("  Wallet ", kind="cash")
        assert account.name == "Wallet"
        assert services.accounts.selected_account_id == account.id

    def test_names_are_unique(self, services):
        with pytest.raises(ValueError):
            services.accounts.create("Checking")
        with pytest.raises(ValueError):
            services.accounts.update("acc2", name="Checking")

    def test_groups(self, services):
        group = services.accounts.create_group("Cash", ["acc1"])
        services.accounts.update_group(group.id, account_ids=["acc1", "acc2"])
        assert services.accounts.get_groups()[0].account_ids == ["acc1", "acc2"]
        services.accounts.delete_group(group.id)
        assert services.accounts.get_groups() == []


class TestCategoryService:
    def test_create_and_filter_by_kind(self, services):
        services.categories.create("Salary", "income")
        services.categories.create(" Groceries ", "expense", "#f59e0b")
        services.categories.create("Other", "both")
        assert [c.name for c in services.categories.get_for_kind("expense")] == ["Groceries", "Other"]
        assert [c.name for c in services.categories.get_all()] == ["Groceries", "Other", "Salary"]

    def test_names_are_unique_ignoring_case(self, services):
        food = services.categories.create("Food", "expense")
        with pytest.raises(ValueError):
            services.categories.create("food", "expense")
        services.categories.update(food.id, name="Food", color="#000000")
        assert services.categories.get_by_id(food.id).color == "#000000"

    @pytest.mark.parametrize("name, kind", [(" ", "expense"), ("Misc", "transfer")])
    def test_validation(self, services, name, kind):
        with pytest.raises(ValueError):
            services.categories.create(name, kind)

    def test_system_categories_cannot_be_deleted(self, services, store):
        store.add_category(Category(id="1", name="Salary", kind="income", is_system=True))
        with pytest.raises(ValueError):
            services.categories.delete("1")

    def test_delete_keeps_transaction_category(self, services, store):
        gifts = services.categories.create("Gifts", "income")
        tx = services.transactions.create_income_expense(
            "acc1", "income", 20.0, "2024-05-02", "Birthday", category_id=gifts.id,
        )
        services.categories.delete(gifts.id)
        assert services.categories.get_all() == []
        assert store.get_transaction(tx.id).category_id == gifts.id


class TestTransactionService:
    def test_create_normalizes_date(self, services, store):
        tx = services.transactions.create_income_expense(
            "acc1", "income", 20.0, "2024-05-02T10:00:00Z", "Refund",
        )
        assert store.get_transaction(tx.id).date == "2024-05-02"

    def test_invalid_date(self, services):
        with pytest.raises(ValueError):
            services.transactions.create_income_expense("acc1", "income", 20.0, "soon")

    def test_filters_and_running_balance(self, services):
        services.transactions.create_income_expense("acc1", "income", 100.0, "2024-05-01", "Pay")
        services.transactions.create_income_expense("acc1", "expense", 30.0, "2024-05-03", "Food")
        services.transactions.create_income_expense("acc1", "expense", 5.0, "2024-04-28", "Coffee")
        assert [t.description for t in services.transactions.get_for_account("acc1", month="2024-05")] \
            == ["Pay", "Food"]
        assert [t.description for t in services.transactions.get_for_account(
            "acc1", kind_filter="expense", search="coff")] == ["Coffee"]
        balances = [b for _, b in services.transactions.get_with_running_balance("acc1")]
        assert balances == [-5.0, 95.0, 65.0]


class TestRecurringService:
    def test_create_materializes_due_dates(self, services, store):
        rule = services.recurring.create(
            amount=50.0, kind="expense", account_id="acc1", description="Phone",
            frequency="monthly", start_date="2024-04-10",
        )
        assert rule.next_due_date == "2024-06-10"
        assert len(store.list_transactions()) == 2

    def test_occurrences_set_end_date(self, services, store):
        rule = services.recurring.create(
            amount=50.0, kind="expense", account_id="acc1", description="Loan",
            frequency="monthly", start_date="2024-01-01", occurrences=3,
        )
        assert rule.end_date == "2024-03-01"
        assert rule.active is False
        assert len(store.list_transactions()) == 3

    def test_transfer_rule_kind_is_expense(self, services):
        rule = services.recurring.create(
            amount=50.0, kind="income", account_id="acc1", description="Save",
            frequency="monthly", start_date="2024-07-01", is_transfer=True, to_account_id="acc2",
        )
        assert rule.kind == "expense"

    def test_update_from_splits_rule(self, services, store):
        store.add_rule(make_rule())
        services.engine.materialize_due()
        new_rule = services.recurring.update_from("rule-1", {"amount": 150.0}, "2024-04-01")

        old = store.get_rule("rule-1")
        assert old.end_date == "2024-03-31"
        assert new_rule.start_date == "2024-04-01"
        assert new_rule.amount == 150.0
        # history before the split keeps the old amount
        old_rows = [t for t in store.list_transactions() if t.recurring_id == "rule-1"]
        assert sorted(t.date for t in old_rows) == ["2024-01-01", "2024-02-01", "2024-03-01"]
        assert {t.amount for t in old_rows} == {100.0}
        # occurrences already on the ledger move to the new rule instead of being created twice
        moved = [t for t in store.list_transactions() if t.recurring_id == new_rule.id]
        assert len(moved) == 3
        assert len(store.list_transactions()) == 6
        assert store.get_rule("rule-1").active is False

    def test_invalid_split_changes_nothing(self, services, store):
        store.add_rule(make_rule(frequency="daily", start_date="2024-05-30", next_due_date="2024-05-30"))
        services.engine.materialize_due()
        assert len(store.list_transactions()) == 3

        with pytest.raises(InvalidRuleError):
            services.recurring.update_from("rule-1", {"amount": -5}, "2024-05-31")

        assert store.get_rule("rule-1").end_date is None
        assert {t.recurring_id for t in store.list_transactions()} == {"rule-1"}
        assert [r.id for r in store.list_rules()] == ["rule-1"]

    def test_split_keeps_category(self, services, store):
        store.add_rule(make_rule(category_id="2"))
        services.engine.materialize_due()
        new_rule = services.recurring.update_from("rule-1", {"amount": 150.0}, "2024-07-01")
        assert new_rule.category_id == "2"

    def test_rows_carry_rule_category(self, services, store):
        services.recurring.create(
            amount=50.0, kind="expense", account_id="acc1", description="Bus pass",
            frequency="monthly", start_date="2024-05-01", category_id="4",
        )
        assert {t.category_id for t in store.list_transactions()} == {"4"}

    def test_pause_and_resume(self, services, store):
        store.add_rule(make_rule(next_due_date="2024-06-01"))
        services.recurring.set_active("rule-1", False)
        services.engine.materialize_due()
        assert store.list_transactions() == []
        services.recurring.set_active("rule-1", True)
        assert len(store.list_transactions()) == 1

    def test_delete_keeps_history(self, services, store):
        store.add_rule(make_rule())
        services.engine.materialize_due(now=date(2024, 2, 1))
        services.recurring.delete("rule-1")
        assert services.recurring.get_by_id("rule-1") is None
        assert len(store.list_transactions()) == 2


class TestSavingsGoals:
    def test_progress_and_contribute(self, services):
        goal = services.goals.create("Bike", 400.0)
        goal = services.goals.contribute(goal.id, 100.0)
        assert goal.progress == 25.0
        assert goal.remaining == 300.0
        goal = services.goals.contribute(goal.id, 500.0)
        assert goal.progress == 100.0
        assert goal.remaining == 0.0

    @pytest.mark.parametrize("kwargs", [
        {"name": " ", "target_amount": 10.0},
        {"name": "X", "target_amount": 0},
        {"name": "X", "target_amount": 10.0, "current_amount": -1},
        {"name": "X", "target_amount": 10.0, "deadline": "someday"},
    ])
    def test_validation(self, services, kwargs):
        with pytest.raises(ValueError):
            services.goals.create(**kwargs)

    def test_update_and_delete(self, services):
        goal = services.goals.create("Trip", 900.0)
        services.goals.update(goal.id, name="Big trip", deadline="2025-01-01")
        assert services.goals.get_all()[0].name == "Big trip"
        with pytest.raises(ValueError):
            services.goals.contribute(goal.id, 0)
        services.goals.delete(goal.id)
        assert services.goals.get_all() == []


class TestNotifier:
    def test_history_and_listeners(self):
        notifier = Notifier()
        seen = []
        notifier.subscribe(seen.append)
        notifier.notify("info", "hello")
        assert notifier.last.message == "hello"
        assert seen[0].kind == "info"

    def test_broken_listener_is_ignored(self):
        notifier = Notifier()
        notifier.subscribe(lambda note: 1 / 0)
        notifier.notify("saved", "ok")
        assert len(notifier.history) == 1

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            Notifier().notify("warning", "nope")


class TestAppConfig:
    def test_missing_or_corrupt_file(self, tmp_path):
        assert load_config(tmp_path / "missing.json") == {}
        broken = tmp_path / "config.json"
        broken.write_text("{oops", encoding="utf-8")
        assert load_config(broken) == {}
        assert get_log_level(broken) == "INFO"

    def test_db_folder_round_trip(self, tmp_path):
        path = tmp_path / "nested" / "config.json"
        set_db_folder("/data/budget", path)
        assert get_db_folder(path) == "/data/budget"
        set_db_folder(None, path)
        assert get_db_folder(path) is None
