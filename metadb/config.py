"""Configuration types shared by the server."""

from __future__ import annotations

from dataclasses import dataclass

EXPERIMENTAL = False

MAX_PATH_NODES = 16

_EMPTY_PATH = ("",) * MAX_PATH_NODES


@dataclass(frozen=True)
class JSONPath:
    """A path into a JSON column, with room for a fixed number of nodes."""

    schema: str
    table: str
    column: str
    path: tuple[str, ...] = _EMPTY_PATH

    def __post_init__(self) -> None:
        if len(self.path) != MAX_PATH_NODES:
            raise ValueError(f"JSON path must have exactly {MAX_PATH_NODES} slots")

    def append(self, node: str) -> JSONPath:
        """Return a new path with node added after the last node."""
        try:
            i = self.path.index("")
        except ValueError:
            raise ValueError(f"JSON path exceeds limit of {MAX_PATH_NODES} nodes") from None
        nodes = self.path[:i] + (node,) + ("",) * (MAX_PATH_NODES - i - 1)
        return JSONPath(self.schema, self.table, self.column, nodes)


def new_json_path(schema: str, table: str, column: str, path: str) -> JSONPath:
    """Build a JSONPath from a dotted path such as ``$.a.b``; the first element is dropped."""
    nodes: tuple[str, ...] = ()
    if path:
        nodes = tuple(path.split(".")[1:])
        if len(nodes) > MAX_PATH_NODES:
            raise ValueError(f"JSON path exceeds limit of {MAX_PATH_NODES} nodes")
    return JSONPath(schema, table, column, nodes + ("",) * (MAX_PATH_NODES - len(nodes)))