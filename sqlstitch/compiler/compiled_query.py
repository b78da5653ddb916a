from __future__ import annotations

from dataclasses import dataclass
from typing import Generic

from sqlstitch.errors import ArgumentBindingError
from sqlstitch.types import A, Accessor, Value

# ==================================================
# Compiled Output
# ==================================================

_BINDING_ERRORS = (KeyError, IndexError, AttributeError, TypeError)


@dataclass(frozen=True)
class CompiledQuery(Generic[A]):
    """
    Represents the result of linearizing a fragment tree.
    The accessor at index k feeds placeholder ${offset + k}.
    """
    sql: str
    accessors: tuple[Accessor[A], ...] = ()
    offset: int = 1

    @property
    def param_count(self) -> int:
        return len(self.accessors)

    def bind(self, args: A) -> list[Value]:
        """
        Resolves every accessor against the argument value, in placeholder order.
        """
        values: list[Value] = []
        for index, accessor in enumerate(self.accessors):
            try:
                values.append(accessor(args))
            except _BINDING_ERRORS as exc:
                raise ArgumentBindingError(self.offset + index, exc) from exc
        return values
