"""Domain errors raised by reminder lifecycle and recurrence code."""


class InvalidTransition(ValueError):
    """Requested status change is not allowed from the reminder's current status."""

    def __init__(self, reminder_id: int | None, current: str, target: str):
        self.reminder_id = reminder_id
        self.current = current
        self.target = target
        super().__init__(f"Reminder {reminder_id}: cannot go from {current} to {target}")


class DuplicateOccurrence(Exception):
    """The next occurrence of a recurring reminder already exists (job ran twice)."""

    def __init__(self, parent_id: int, existing_id: int):
        self.parent_id = parent_id
        self.existing_id = existing_id
        super().__init__(f"Next occurrence of reminder {parent_id} already exists as {existing_id}")
