"""Error types raised by the clique-mining engine.

All errors are deterministic for a given input, so none of them is retried.
Each one carries the offending value so a failed run can be diagnosed without
rerunning it.
"""

from typing import Any


class CliqueMiningError(Exception):
    """Base class for every error raised by cliquebeam."""


class ConfigurationError(CliqueMiningError, ValueError):
    """A configuration value is out of range or inconsistent.

    Attributes:
        field: Name of the offending option (None for cross-field problems)
        value: The rejected value
    """

    def __init__(self, message: str, *, field: str | None = None, value: Any = None) -> None:
        super().__init__(message)
        self.field = field
        self.value = value


class InvalidEdgeError(CliqueMiningError, ValueError):
    """An edge does not satisfy the TypeSpec. Fatal at graph construction.

    Attributes:
        edge: The rejected (node_a, type_a, node_b, type_b, relation) tuple
    """

    def __init__(self, message: str, *, edge: tuple[Any, ...] | None = None) -> None:
        super().__init__(message)
        self.edge = edge


class UnknownNodeError(CliqueMiningError, KeyError):
    """A node id is absent from the graph."""

    def __init__(self, node_id: Any) -> None:
        super().__init__(node_id)
        self.node_id = node_id

    def __str__(self) -> str:
        return f"Unknown node: {self.node_id!r}"


class InvalidExpansionError(CliqueMiningError, RuntimeError):
    """A node was added to a candidate that already contains it.

    This is a programming-contract violation; correct search code never raises it.
    """

    def __init__(self, node_id: int) -> None:
        super().__init__(f"Node {node_id} is already part of the candidate")
        self.node_id = node_id
