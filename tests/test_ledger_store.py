import pytest

from conftest import make_rule, make_tx
from models.account import Account
from models.account_group import AccountGroup
from services.errors import InvalidRuleError


class TestTransactions:
    def test_readers_return_copies(self, store):
        store.append_transaction(make_tx())
        tx = store.get_transaction("tx-1")
        tx.amount = 1.0
        assert store.get_transaction("tx-1").amount == 50.0

    def test_duplicate_id_rejected(self, store):
        store.append_transaction(make_tx())
        with pytest.raises(ValueError):
            store.append_transaction(make_tx())

    def test_invalid_transaction_rejected(self, store):
        with pytest.raises(ValueError):
            store.append_transaction(make_tx(amount=0))
        with pytest.raises(ValueError):
            store.append_transaction(make_tx(kind="transfer"))

    def test_batch_update_is_all_or_nothing(self, store):
        store.append_transaction(make_tx(id="a"))
        store.append_transaction(make_tx(id="b"))
        with pytest.raises(ValueError):
            store.update_transactions({"a": {"amount": 10.0}, "b": {"amount": -1}})
        assert store.get_transaction("a").amount == 50.0

    def test_patch_cannot_change_id_or_add_fields(self, store):
        store.append_transaction(make_tx())
        with pytest.raises(ValueError):
            store.update_transaction("tx-1", {"id": "other"})
        with pytest.raises(ValueError):
            store.update_transaction("tx-1", {"category": "food"})

    def test_unknown_ids(self, store):
        assert store.get_transaction("missing") is None
        with pytest.raises(KeyError):
            store.update_transaction("missing", {"amount": 1.0})
        with pytest.raises(KeyError):
            store.remove_transaction("missing")

    def test_projected_flag_never_stored(self, store):
        store.append_transaction(make_tx(is_projected=True))
        assert store.get_transaction("tx-1").is_projected is False


class TestBalances:
    def test_balance_precedence(self, store):
        store.append_transaction(make_tx(id="a", kind="income", amount=100.0, account_id="acc1"))
        store.append_transaction(make_tx(id="b", kind="expense", amount=30.0, account_id="acc1"))
        store.append_transaction(make_tx(id="c", kind="income", amount=5.0, account_id="acc2"))
        assert store.get_balance("acc2") == 5.0
        assert store.get_balance("all") == 75.0
        # selected account
        assert store.get_balance() == 70.0
        store.set_selected_account(None)
        assert store.get_balance() == 75.0

    def test_group_filter(self, store):
        store.add_account(Account(id="acc3", name="Cash", kind="cash"))
        store.add_group(AccountGroup(id="grp", name="Liquid", account_ids=["acc1", "acc3"]))
        store.append_transaction(make_tx(id="a", kind="income", amount=10.0, account_id="acc1"))
        store.append_transaction(make_tx(id="b", kind="income", amount=20.0, account_id="acc2"))
        store.append_transaction(make_tx(id="c", kind="income", amount=40.0, account_id="acc3"))
        assert store.resolve_account_ids("grp") == {"acc1", "acc3"}
        assert store.get_balance("grp") == 50.0


class TestAccounts:
    def test_deleting_selected_account_moves_pointer(self, store):
        store.delete_account("acc1")
        assert store.selected_account_id == "acc2"
        store.delete_account("acc2")
        assert store.selected_account_id is None

    def test_deleting_account_keeps_transactions(self, store):
        store.append_transaction(make_tx())
        store.delete_account("acc1")
        assert store.get_transaction("tx-1").account_id == "acc1"

    def test_select_unknown_account(self, store):
        with pytest.raises(KeyError):
            store.set_selected_account("nope")

    def test_invalid_account_kind(self, store):
        with pytest.raises(ValueError):
            store.add_account(Account(id="x", name="X", kind="crypto"))


class TestRules:
    def test_invalid_rule_rejected(self, store):
        with pytest.raises(InvalidRuleError):
            store.add_rule(make_rule(frequency="hourly"))
        with pytest.raises(InvalidRuleError):
            store.add_rule(make_rule(next_due_date="2023-12-01"))
        with pytest.raises(InvalidRuleError):
            store.add_rule(make_rule(is_transfer=True, to_account_id="acc1"))

    def test_reset_day_bounds(self, store):
        store.set_reset_day(28)
        assert store.reset_day == 28
        with pytest.raises(ValueError):
            store.set_reset_day(29)


class TestObservers:
    def test_events_follow_mutations(self, store):
        events = []
        store.subscribe(events.append)
        store.append_transaction(make_tx())
        store.update_transaction("tx-1", {"amount": 60.0})
        store.remove_transaction("tx-1")
        assert [(e.action, e.collection) for e in events] == [
            ("add", "transactions"), ("update", "transactions"), ("remove", "transactions"),
        ]
        assert events[1].records[0].amount == 60.0
        assert events[2].ids == ["tx-1"]

    def test_failing_observer_does_not_roll_back(self, store):
        def broken(event):
            raise RuntimeError("network down")

        store.subscribe(broken)
        store.append_transaction(make_tx())
        assert store.get_transaction("tx-1") is not None

    def test_unsubscribe(self, store):
        events = []
        unsubscribe = store.subscribe(events.append)
        unsubscribe()
        store.append_transaction(make_tx())
        assert events == []


class TestReplaceAll:
    def test_replaces_collections(self, store):
        store.append_transaction(make_tx())
        store.replace_all(transactions=[make_tx(id="new")], rules=[make_rule()])
        assert [t.id for t in store.list_transactions()] == ["new"]
        assert [r.id for r in store.list_rules()] == ["rule-1"]
        # accounts untouched when not given
        assert len(store.list_accounts()) == 2

    def test_validates_before_changing_anything(self, store):
        store.append_transaction(make_tx())
        with pytest.raises(ValueError):
            store.replace_all(transactions=[make_tx(id="ok"), make_tx(id="bad", amount=-1)])
        assert [t.id for t in store.list_transactions()] == ["tx-1"]

    def test_replacing_accounts_fixes_selection(self, store):
        store.replace_all(accounts=[Account(id="z", name="Other")])
        assert store.selected_account_id == "z"
