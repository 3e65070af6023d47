"""
Outcome values for command validation steps.

Helpers return ``Ok`` or ``Err`` instead of raising, and a command can hand
an ``Err`` back from ``execute``; the dispatcher turns it into a notice.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorKind(Enum):
    NOT_LINKED = "not_linked"
    MISSING_ARGUMENT = "missing_argument"
    NOT_FOUND = "not_found"
    UPSTREAM = "upstream"


@dataclass(frozen=True)
class Ok:
    value: Any = None


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    message: str


def not_linked(is_self=True):
    if is_self:
        return Err(ErrorKind.NOT_LINKED, "You don't have a linked Last.fm account. Use `link` first.")
    return Err(ErrorKind.NOT_LINKED, "That user doesn't have a linked Last.fm account.")
