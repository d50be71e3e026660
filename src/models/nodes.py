"""
Document AST node models

The node shapes (type names, field names and optionality) are the contract a
downstream renderer depends on. Every node serializes through to_dict(), which
emits camelCase wire keys and drops fields that are absent (None).

Example:
    >>> Code(lang="python", value="print(1)", label="demo", identifier="demo").to_dict()
    {'type': 'code', 'lang': 'python', 'value': 'print(1)', 'label': 'demo', 'identifier': 'demo'}
"""

from dataclasses import dataclass, field, fields
from typing import Any, ClassVar, Dict, Iterator, List, Optional, Union

# Sentinel for "number lines to match the included source"
LINENO_MATCH = "match"


def _wire(name: str) -> Dict[str, str]:
    """Field metadata naming the serialized key"""
    return {"wire": name}


def _serialize(value: Any) -> Any:
    if isinstance(value, Node):
        return value.to_dict()
    if isinstance(value, list):
        return [_serialize(item) for item in value]
    if isinstance(value, dict):
        return {key: _serialize(item) for key, item in value.items()}
    return value


@dataclass
class Node:
    """Base class for all AST nodes"""
    type: ClassVar[str] = "node"

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.type}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            data[f.metadata.get("wire", f.name)] = _serialize(value)
        return data

    def walk(self) -> Iterator["Node"]:
        """Depth-first iteration over this node and its descendants"""
        yield self
        for child in getattr(self, "children", None) or []:
            yield from child.walk()


@dataclass
class Text(Node):
    type: ClassVar[str] = "text"
    value: str = ""


@dataclass
class Cite(Node):
    """Inline citation of a bibliography entry"""
    type: ClassVar[str] = "cite"
    label: str = ""
    identifier: Optional[str] = None
    children: Optional[List[Node]] = None
    error: Optional[bool] = None


@dataclass
class Paragraph(Node):
    type: ClassVar[str] = "paragraph"
    children: List[Node] = field(default_factory=list)


@dataclass
class Heading(Node):
    type: ClassVar[str] = "heading"
    depth: int = 1
    children: List[Node] = field(default_factory=list)
    label: Optional[str] = None
    identifier: Optional[str] = None


@dataclass
class Code(Node):
    type: ClassVar[str] = "code"
    lang: Optional[str] = None
    value: str = ""
    class_name: Optional[str] = field(default=None, metadata=_wire("class"))
    emphasize_lines: Optional[List[int]] = field(default=None, metadata=_wire("emphasizeLines"))
    show_line_numbers: Optional[bool] = field(default=None, metadata=_wire("showLineNumbers"))
    starting_line_number: Optional[Union[int, str]] = field(default=None, metadata=_wire("startingLineNumber"))
    filename: Optional[str] = None
    label: Optional[str] = None
    identifier: Optional[str] = None
    executable: Optional[bool] = None


@dataclass
class Caption(Node):
    type: ClassVar[str] = "caption"
    children: List[Node] = field(default_factory=list)


@dataclass
class Container(Node):
    type: ClassVar[str] = "container"
    kind: str = "code"
    label: Optional[str] = None
    identifier: Optional[str] = None
    children: List[Node] = field(default_factory=list)


@dataclass
class Output(Node):
    """Execution output placeholder; data stays empty until the cell runs"""
    type: ClassVar[str] = "output"
    id: str = ""
    data: List[Any] = field(default_factory=list)


@dataclass
class Block(Node):
    type: ClassVar[str] = "block"
    label: Optional[str] = None
    identifier: Optional[str] = None
    children: List[Node] = field(default_factory=list)
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def tags(self) -> Optional[List[str]]:
        return self.data.get("tags")


@dataclass
class Root(Node):
    type: ClassVar[str] = "root"
    children: List[Node] = field(default_factory=list)


@dataclass(frozen=True)
class Bare:
    """Builder result: the node stands alone and carries its own label"""
    node: Node

    def nodes(self) -> List[Node]:
        return [self.node]


@dataclass(frozen=True)
class Wrapped:
    """Builder result: the node moved inside a labelled container"""
    container: Container

    def nodes(self) -> List[Node]:
        return [self.container]


BuildResult = Union[Bare, Wrapped]
