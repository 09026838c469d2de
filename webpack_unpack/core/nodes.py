"""ESTree syntax node model."""

from typing import Any, Iterator, Optional

# Fields that carry node metadata rather than child nodes
_META_FIELDS = ("type", "start", "end")


class Node:
    """A node of an ESTree syntax tree.

    The node kind's fields are plain attributes. Child nodes are ``Node``
    instances, or lists of them where absent elements are ``None``.
    """

    def __init__(self, type: str, start: int = 0, end: int = 0, **fields: Any):
        self.type = type
        self.start = start
        self.end = end
        for name, value in fields.items():
            setattr(self, name, value)

    def __repr__(self) -> str:
        return f"<Node {self.type} [{self.start}:{self.end}]>"

    def get(self, name: str, default: Any = None) -> Any:
        """Return a field value, or ``default`` when the node has no such field."""
        return self.__dict__.get(name, default)

    def fields(self) -> Iterator[tuple[str, Any]]:
        """Iterate over ``(name, value)`` pairs of the node's fields in source order."""
        for name, value in self.__dict__.items():
            if name not in _META_FIELDS:
                yield name, value

    def child_items(self) -> Iterator[tuple[str, "Node"]]:
        """Iterate over ``(field_name, child)`` pairs, flattening list fields."""
        for name, value in self.fields():
            if isinstance(value, Node):
                yield name, value
            elif isinstance(value, list):
                for item in value:
                    if isinstance(item, Node):
                        yield name, item

    def children(self) -> Iterator["Node"]:
        for _, child in self.child_items():
            yield child

    @classmethod
    def from_dict(cls, data: dict) -> "Node":
        """Build a node tree from ESTree JSON (as produced by acorn).

        Conversion is iterative so deeply nested expressions (long string
        concatenations in minified code) do not exhaust the interpreter stack.
        """
        if not is_estree_dict(data):
            raise TypeError("expected an ESTree node dict with a string 'type'")

        root = cls._shell(data)
        pending = [(root, data)]
        while pending:
            node, raw = pending.pop()
            for name, value in raw.items():
                if name in _META_FIELDS:
                    continue
                setattr(node, name, cls._convert(value, pending))
        return root

    @classmethod
    def _shell(cls, raw: dict) -> "Node":
        return cls(raw["type"], raw.get("start", 0), raw.get("end", 0))

    @classmethod
    def _convert(cls, value: Any, pending: list) -> Any:
        if is_estree_dict(value):
            node = cls._shell(value)
            pending.append((node, value))
            return node
        if isinstance(value, list):
            return [cls._convert(item, pending) for item in value]
        if isinstance(value, dict):
            return dict(value)
        return value

    def to_dict(self, renames: Optional[dict[int, str]] = None) -> dict:
        """Serialize back to ESTree JSON.

        Args:
            renames: Optional side-table mapping ``id(identifier_node)`` to a
                replacement name. The tree itself is left untouched.
        """
        data: dict[str, Any] = {"type": self.type, "start": self.start, "end": self.end}
        for name, value in self.fields():
            data[name] = _serialize(value, renames)

        if renames and self.type == "Identifier" and id(self) in renames:
            data["name"] = renames[id(self)]
        elif self.type == "Property" and data.get("shorthand"):
            # A renamed shorthand value no longer matches its key
            value = data.get("value") or {}
            if value.get("type") == "AssignmentPattern":
                value = value.get("left") or {}
            key = data.get("key") or {}
            if value.get("name") != key.get("name"):
                data["shorthand"] = False
        return data


def _serialize(value: Any, renames: Optional[dict[int, str]]) -> Any:
    if isinstance(value, Node):
        return value.to_dict(renames)
    if isinstance(value, list):
        return [_serialize(item, renames) for item in value]
    return value


def is_estree_dict(value: Any) -> bool:
    """Check whether a value looks like an ESTree node in JSON form."""
    return isinstance(value, dict) and isinstance(value.get("type"), str)


def node_type(value: Any) -> Optional[str]:
    """Return the node kind of ``value``, or None if it is not a node."""
    if isinstance(value, Node):
        return value.type
    return None


def element(nodes: Any, index: int) -> Optional[Node]:
    """Return ``nodes[index]`` if it exists and is a node, else None."""
    if not isinstance(nodes, list) or not -len(nodes) <= index < len(nodes):
        return None
    item = nodes[index]
    return item if isinstance(item, Node) else None
