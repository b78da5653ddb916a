from typing import Any, Protocol, Sequence, runtime_checkable

from sqlstitch.types import Value

# ==================================================
# Connection Capability
# ==================================================


@runtime_checkable
class Connection(Protocol):
    """
    Anything able to run a linearized statement and return its rows.
    """

    async def execute_statement(self, name: str, sql: str, values: Sequence[Value]) -> Sequence[Any]:
        """
        Executes ``sql`` with ``values`` bound to ``$1 .. $n``.
        ``name`` is stable across calls of the same bound query so the
        connection can reuse a prepared statement.
        """
        ...
