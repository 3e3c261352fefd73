"""
Literal-or-callback configuration values.

Several behavior options accept either a fixed value or a callable
(save filter, option query filter, default option reference, default
attributes). Each is normalized into a ValueSource once, at configuration
time, and resolved through the same ``resolve(*context)`` call.

Example:
    >>> as_source(1).resolve(owner)
    1
    >>> as_source(lambda owner: owner.language_id).resolve(owner)
    2
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Union


@dataclass(frozen=True)
class LiteralSource:
    """A fixed value; context is ignored."""

    value: Any

    @property
    def is_callback(self) -> bool:
        return False

    def resolve(self, *context: Any) -> Any:
        return self.value


@dataclass(frozen=True)
class CallbackSource:
    """A callable invoked with the resolution context."""

    fn: Callable[..., Any]

    @property
    def is_callback(self) -> bool:
        return True

    def resolve(self, *context: Any) -> Any:
        return self.fn(*context)


ValueSource = Union[LiteralSource, CallbackSource]


def as_source(value: Any) -> ValueSource | None:
    """Wrap a configured value, keeping None and existing sources as-is."""
    if value is None or isinstance(value, (LiteralSource, CallbackSource)):
        return value
    if callable(value):
        return CallbackSource(value)
    return LiteralSource(value)
