"""
Directive specification and invocation models

A directive is declared once (DirectiveSpec) with a typed argument, an
ordered option schema and a body, and is invoked many times while parsing
(DirectiveInvocation). Option values are coerced against the schema before a
directive's run function ever sees them (DirectiveData).
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, Optional, Tuple

from .diagnostics import SourceNode

if TYPE_CHECKING:
    from .diagnostics import DiagnosticSink
    from .nodes import Node


class OptionType(Enum):
    """Declared type of a directive argument, option or body"""
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    LIST = "list"    # list of strings


@dataclass(frozen=True)
class OptionSpec:
    """
    Schema entry for one directive option

    Attributes:
        type: Declared value type
        doc: Human-readable description
        aliases: Alternative option names (e.g., "name" for "label")
        sentinels: String values that bypass coercion and are kept verbatim
                   (e.g., "match" for a line-number option)
    """
    type: OptionType
    doc: str = ""
    aliases: Tuple[str, ...] = ()
    sentinels: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ArgSpec:
    type: OptionType = OptionType.STRING
    doc: str = ""


@dataclass(frozen=True)
class BodySpec:
    type: OptionType = OptionType.STRING
    doc: str = ""


@dataclass(frozen=True)
class DirectiveData:
    """
    Coerced directive input handed to a run function

    Attributes:
        name: Name the directive was invoked under (may be an alias)
        arg: Coerced argument, or None
        options: Coerced options keyed by canonical option name; options that
                 failed coercion are absent
        body: Raw body text, or None
        node: Source location for diagnostics
        context: Ambient document values (e.g., the page's language)
    """
    name: str
    arg: Any
    options: Mapping[str, Any]
    body: Optional[str]
    node: SourceNode
    context: Mapping[str, Any] = field(default_factory=dict)


RunFunction = Callable[[DirectiveData, "DiagnosticSink"], List["Node"]]


@dataclass(frozen=True)
class DirectiveSpec:
    """
    Specification for a directive

    Immutable once registered. The registry maps the name and every alias
    to this spec.

    Attributes:
        name: Primary directive name
        run: Node-building function (data, sink) -> list of nodes
        doc: Human-readable description
        aliases: Alternative names (e.g., "code-block" for "code")
        arg: Argument spec, or None if the directive takes no argument
        options: Ordered option schema, canonical name -> OptionSpec
        body: Body spec, or None if the directive takes no body
        examples: Example usage strings
    """
    name: str
    run: RunFunction
    doc: str = ""
    aliases: Tuple[str, ...] = ()
    arg: Optional[ArgSpec] = None
    options: Mapping[str, OptionSpec] = field(default_factory=dict)
    body: Optional[BodySpec] = None
    examples: Tuple[str, ...] = ()

    @property
    def names(self) -> Tuple[str, ...]:
        return (self.name, *self.aliases)

    def matches(self, directive_name: str) -> bool:
        """Check if this spec handles a directive name (primary or alias)"""
        return directive_name in self.names

    def option_resolve(self, option_name: str) -> Optional[str]:
        """
        Map an option name or alias to its canonical name

        Returns:
            Canonical option name, or None for an unknown option
        """
        if option_name in self.options:
            return option_name
        for canonical, option in self.options.items():
            if option_name in option.aliases:
                return canonical
        return None


@dataclass
class DirectiveInvocation:
    """
    One occurrence of a directive in source text, before validation

    Attributes:
        spec: Resolved directive spec
        name: Name as written in the source
        arg: Raw argument text ("" when absent)
        options: Raw option map as written (strings, or YAML values)
        body: Raw body text
        node: Source location for diagnostics
    """
    spec: DirectiveSpec
    name: str
    arg: str = ""
    options: Dict[str, Any] = field(default_factory=dict)
    body: str = ""
    node: SourceNode = field(default_factory=lambda: SourceNode(name="directive"))
