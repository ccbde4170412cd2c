"""Explicit status transition tables for the workflow entities."""

from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Generic, TypeVar

from stockledger.core.exceptions import InvalidTransitionError, UnknownStatusError

S = TypeVar("S", bound=Enum)


class StateMachine(Generic[S]):
    """
    Transition table for one entity: current status -> allowed next statuses.

    Every workflow operation consults the table before it mutates anything.
    Statuses missing from the table are terminal.
    """

    def __init__(
        self,
        entity: str,
        status_type: type[S],
        transitions: Mapping[S, Iterable[S]],
    ):
        self.entity = entity
        self.status_type = status_type
        self._transitions: dict[S, frozenset[S]] = {
            status: frozenset(transitions.get(status, ())) for status in status_type
        }

    def parse(self, value: str | S) -> S:
        """Parse a caller-supplied status string, rejecting unknown values."""
        if isinstance(value, self.status_type):
            return value
        try:
            return self.status_type(value)
        except ValueError:
            raise UnknownStatusError(self.entity, str(value)) from None

    def allowed_from(self, current: S) -> frozenset[S]:
        return self._transitions[current]

    def can_transition(self, current: S, target: S) -> bool:
        return target in self._transitions[current]

    def is_terminal(self, status: S) -> bool:
        return not self._transitions[status]

    def ensure_transition(
        self,
        entity_id: int | None,
        current: S,
        target: S | str,
        action: str | None = None,
    ) -> S:
        """Raise InvalidTransitionError unless current -> target is in the table."""
        target = self.parse(target)
        if not self.can_transition(current, target):
            raise InvalidTransitionError(
                self.entity, entity_id, current.value, action or target.value
            )
        return target

    def ensure_in(
        self,
        entity_id: int | None,
        current: S,
        allowed: Iterable[S],
        action: str,
    ) -> None:
        """Guard for operations that do not change status (item edits, updates)."""
        if current not in set(allowed):
            raise InvalidTransitionError(self.entity, entity_id, current.value, action)
