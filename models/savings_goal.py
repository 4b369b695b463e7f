from dataclasses import dataclass
from typing import Optional

from utils.constants import DEFAULT_GOAL_COLOR


@dataclass
class SavingsGoal:
    id: str
    name: str
    target_amount: float
    current_amount: float = 0.0
    deadline: Optional[str] = None   # 'YYYY-MM-DD'
    color: str = DEFAULT_GOAL_COLOR

    @property
    def progress(self) -> float:
        """Percent of target reached, capped at 100."""
        if self.target_amount <= 0:
            return 0.0
        return min(100.0, self.current_amount / self.target_amount * 100)

    @property
    def remaining(self) -> float:
        return max(0.0, self.target_amount - self.current_amount)
