"""Queue wait-time estimators.

An estimator maps the number of machines already at a workstation to an
estimated wait in milliseconds, or ``None`` when there is no queue. The value
is computed once at check-in and stored on the record; it is never refreshed
as the queue moves.
"""

from collections.abc import Callable

WaitTimeEstimator = Callable[[int], int | None]

MS_PER_MINUTE = 60 * 1000


class LinearWaitEstimator:
    """Every machine ahead adds a fixed service time.

    This is a placeholder policy, not a model of the service-time
    distribution.
    """

    def __init__(self, minutes_per_machine: int = 15) -> None:
        if minutes_per_machine < 0:
            raise ValueError("minutes_per_machine must be non-negative")
        self.minutes_per_machine = minutes_per_machine

    def __call__(self, machines_ahead: int) -> int | None:
        if machines_ahead <= 0:
            return None
        return machines_ahead * self.minutes_per_machine * MS_PER_MINUTE

    def __repr__(self) -> str:
        return f"LinearWaitEstimator(minutes_per_machine={self.minutes_per_machine})"
