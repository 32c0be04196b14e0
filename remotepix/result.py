"""Result values returned by upload commands."""
from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

from .exceptions import RemotepixError

T = TypeVar("T")

# Success value reported when no image was found and a normal paste ran instead
PASSTHROUGH = "passthrough"


@dataclass(frozen=True)
class Success(Generic[T]):
    """Successful outcome carrying a value."""
    value: T

    @property
    def is_passthrough(self) -> bool:
        return self.value == PASSTHROUGH


@dataclass(frozen=True)
class Failure:
    """Failed outcome carrying the error that ended the operation."""
    error: RemotepixError

    @property
    def message(self) -> str:
        return self.error.message


Outcome = Union[Success[Any], Failure]


def success(value: T) -> Success[T]:
    return Success(value)


def failure(error: RemotepixError) -> Failure:
    return Failure(error)


def is_success(outcome: Outcome) -> bool:
    return isinstance(outcome, Success)


def is_failure(outcome: Outcome) -> bool:
    return isinstance(outcome, Failure)
