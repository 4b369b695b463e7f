class InvalidRuleError(ValueError):
    """A recurring rule whose data cannot produce correct ledger entries."""

    def __init__(self, rule_id, message: str):
        super().__init__(f"Recurring rule {rule_id}: {message}")
        self.rule_id = rule_id


class TransferError(ValueError):
    """A transfer pair could not be created, changed or removed as a unit."""
