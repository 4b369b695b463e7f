from uuid import uuid4

from models.savings_goal import SavingsGoal
from services.ledger_store import LedgerStore, apply_patch
from services.notifier import Notifier
from services.validation import is_amount
from utils.constants import DEFAULT_GOAL_COLOR
from utils.date_helpers import parse_date


class SavingsGoalService:
    """Savings goals sit beside the ledger; they never create transactions."""

    def __init__(self, store: LedgerStore, notifier: Notifier | None = None):
        self._store = store
        self._notifier = notifier

    def get_all(self) -> list[SavingsGoal]:
        return self._store.list_goals()

    def create(
        self,
        name: str,
        target_amount: float,
        current_amount: float = 0.0,
        deadline: str | None = None,
        color: str = DEFAULT_GOAL_COLOR,
    ) -> SavingsGoal:
        goal = SavingsGoal(
            id=str(uuid4()),
            name=name.strip(),
            target_amount=target_amount,
            current_amount=current_amount,
            deadline=deadline,
            color=color,
        )
        self._validate(goal)
        goal = self._store.add_goal(goal)
        self._saved(f"Goal '{goal.name}' saved.")
        return goal

    def update(self, goal_id: str, **changes) -> SavingsGoal:
        current = self._store.get_goal(goal_id)
        if current is None:
            raise KeyError(f"Unknown savings goal: {goal_id}")
        if "name" in changes:
            changes["name"] = changes["name"].strip()
        candidate = apply_patch(current, changes)
        self._validate(candidate)
        goal = self._store.update_goal(goal_id, changes)
        self._saved(f"Goal '{goal.name}' updated.")
        return goal

    def contribute(self, goal_id: str, amount: float) -> SavingsGoal:
        if not is_amount(amount):
            raise ValueError("Contribution must be positive.")
        goal = self._store.get_goal(goal_id)
        if goal is None:
            raise KeyError(f"Unknown savings goal: {goal_id}")
        return self.update(goal_id, current_amount=goal.current_amount + amount)

    def delete(self, goal_id: str):
        self._store.delete_goal(goal_id)

    def _validate(self, goal: SavingsGoal):
        if not goal.name:
            raise ValueError("Goal name cannot be empty.")
        if not is_amount(goal.target_amount):
            raise ValueError("Target amount must be positive.")
        if isinstance(goal.current_amount, bool) or not isinstance(goal.current_amount, (int, float)) \
                or goal.current_amount < 0:
            raise ValueError("Current amount must be 0 or greater.")
        if goal.deadline and not parse_date(goal.deadline):
            raise ValueError("Invalid deadline.")

    def _saved(self, message: str):
        if self._notifier:
            self._notifier.notify("saved", message)
