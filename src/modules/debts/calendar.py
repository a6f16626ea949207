"""Due-date normalization for monthly billing."""

from dataclasses import dataclass
from datetime import date

from src.shared.utils.dates import days_in_month


@dataclass(frozen=True)
class DueDate:
    """A student's due day resolved against one evaluation date."""

    payment_due: int
    last_day: int
    effective_due: int
    current_day: int

    @property
    def is_past_due(self) -> bool:
        return self.current_day >= self.effective_due

    @property
    def days_overdue(self) -> int:
        return max(0, self.current_day - self.effective_due)

    @property
    def days_until_due(self) -> int:
        return max(0, self.effective_due - self.current_day)


def normalize_due_date(payment_due: int, today: date) -> DueDate:
    """
    Resolve the nominal due day (1-31) for today's month.

    A due day past the end of the month falls on the month's last day, so
    payment_due=31 is due on Apr 30 and on Feb 28 (Feb 29 in leap years).
    """
    if isinstance(payment_due, bool) or not isinstance(payment_due, int):
        raise ValueError(f"payment_due must be an integer, got {payment_due!r}")
    if not 1 <= payment_due <= 31:
        raise ValueError(f"payment_due must be between 1 and 31, got {payment_due}")

    last_day = days_in_month(today.year, today.month)
    return DueDate(
        payment_due=payment_due,
        last_day=last_day,
        effective_due=min(payment_due, last_day),
        current_day=today.day,
    )
