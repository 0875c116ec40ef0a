"""
Generic field store for form sessions.

FormState holds the current values of a dataclass-typed form and exposes a
single-field setter and a bulk setter. Every mutation notifies the
subscribers with the names of the fields that changed; there is no
validation here.
"""

import copy
import logging
from dataclasses import fields, is_dataclass
from typing import Any, Callable, Generic, Iterable, TypeVar

from eventform.models import UnknownFieldError

logger = logging.getLogger("eventform.form_state")

T = TypeVar("T")

ChangeCallback = Callable[[tuple[str, ...]], None]


class FormState(Generic[T]):
    """
    Mutable store over one dataclass instance.

    Usage:
        >>> state = FormState(EventValues())
        >>> unsubscribe = state.subscribe(lambda changed: print(changed))
        >>> state.set("name", "Swap party")
        ('name',)
    """

    def __init__(self, values: T):
        if not is_dataclass(values) or isinstance(values, type):
            raise TypeError("FormState requires a dataclass instance")
        self._values: T = values
        self._field_names = tuple(f.name for f in fields(values))
        self._subscribers: list[ChangeCallback] = []

    @property
    def field_names(self) -> tuple[str, ...]:
        return self._field_names

    @property
    def values(self) -> T:
        """Live values. Mutate only through set() / set_all()."""
        return self._values

    def get(self, name: str) -> Any:
        self._check_field(name)
        return getattr(self._values, name)

    def set(self, name: str, value: Any) -> None:
        """Update exactly one field."""
        self._check_field(name)
        setattr(self._values, name, value)
        self._notify((name,))

    def set_all(self, values: T) -> None:
        """Replace every field at once."""
        if type(values) is not type(self._values):
            raise TypeError(
                f"Expected {type(self._values).__name__}, got {type(values).__name__}"
            )
        self._values = values
        self._notify(self._field_names)

    def snapshot(self) -> T:
        """Deep copy of the current values."""
        return copy.deepcopy(self._values)

    def subscribe(self, callback: ChangeCallback) -> Callable[[], None]:
        """
        Register a callback run after every mutation.

        Returns:
            Function that removes the callback again
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _check_field(self, name: str) -> None:
        if name not in self._field_names:
            raise UnknownFieldError(name)

    def _notify(self, changed: Iterable[str]) -> None:
        changed = tuple(changed)
        for callback in list(self._subscribers):
            try:
                callback(changed)
            except Exception as e:
                logger.error(f"State subscriber failed for {changed}: {e}")
