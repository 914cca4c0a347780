"""
Terminal outcomes of command pipelines.

Every pipeline run ends in exactly one ActionOutcome which maps to
exactly one reply in the invoking channel.
"""

from dataclasses import dataclass
from enum import Enum


class OutcomeKind(Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    UNAUTHORIZED = "unauthorized"
    MISSING_TARGET = "missing_target"
    USAGE = "usage"


@dataclass(frozen=True)
class ActionOutcome:
    """Terminal state of a pipeline and the reply it produces."""

    kind: OutcomeKind
    message: str

    @classmethod
    def success(cls, message: str) -> "ActionOutcome":
        return cls(OutcomeKind.SUCCESS, message)

    @classmethod
    def failure(cls, message: str) -> "ActionOutcome":
        return cls(OutcomeKind.FAILURE, message)

    @classmethod
    def unauthorized(cls, message: str) -> "ActionOutcome":
        return cls(OutcomeKind.UNAUTHORIZED, message)

    @classmethod
    def missing_target(cls, message: str) -> "ActionOutcome":
        return cls(OutcomeKind.MISSING_TARGET, message)

    @classmethod
    def usage(cls, message: str) -> "ActionOutcome":
        return cls(OutcomeKind.USAGE, message)

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS
