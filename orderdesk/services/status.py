"""
Order Status State Machine

Two transition tables over the same four states:

    permissive (default)  any known status from any status, the way the
                          kitchen screens have always worked
    strict                NEW -> PREPARING -> READY -> COMPLETED, one step
                          at a time, no reversal

Unknown statuses are always rejected with ``InvalidStatus``.
"""

from typing import Any

from orderdesk.errors import InvalidStatus, InvalidTransition
from orderdesk.models import OrderStatus

STATUS_FLOW = [
    OrderStatus.NEW,
    OrderStatus.PREPARING,
    OrderStatus.READY,
    OrderStatus.COMPLETED,
]

PERMISSIVE_TRANSITIONS = {status: frozenset(STATUS_FLOW) for status in STATUS_FLOW}

STRICT_TRANSITIONS = {
    status: frozenset(STATUS_FLOW[i + 1:i + 2]) for i, status in enumerate(STATUS_FLOW)
}


class StatusMachine:
    def __init__(self, strict: bool = False):
        self.strict = strict
        self.transitions = STRICT_TRANSITIONS if strict else PERMISSIVE_TRANSITIONS

    @staticmethod
    def parse(value: Any) -> OrderStatus:
        """Turn caller input into an ``OrderStatus``. Only exact values match."""
        if isinstance(value, OrderStatus):
            return value
        allowed = [s.value for s in STATUS_FLOW]
        if not isinstance(value, str):
            raise InvalidStatus(value, allowed)
        try:
            return OrderStatus(value)
        except ValueError:
            raise InvalidStatus(value, allowed)

    def allowed_targets(self, current: OrderStatus) -> list[OrderStatus]:
        return [s for s in STATUS_FLOW if s in self.transitions[current]]

    def check(self, current: OrderStatus, target: Any) -> OrderStatus:
        """Return the parsed target if moving there from ``current`` is legal."""
        target = self.parse(target)
        if target not in self.transitions[current]:
            raise InvalidTransition(
                current.value,
                target.value,
                [s.value for s in self.allowed_targets(current)],
            )
        return target
