"""
File-scoped diagnostics

Authoring mistakes never abort a build. They are recorded against the file
being processed (and the source node that caused them), carried on the page
result, and mirrored to the log.
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from loguru import logger


class Severity(Enum):
    """Diagnostic severity"""
    WARNING = "warning"    # recoverable, a default is substituted
    ERROR = "error"        # uncoercible input, the field resolves to None


@dataclass(frozen=True)
class SourceNode:
    """
    Location of the construct a diagnostic refers to

    Attributes:
        name: Directive or macro name (e.g., "code-block", "'")
        line: 1-based source line
        option: Offending option name, when the problem is option-scoped
    """
    name: str
    line: int = 0
    option: Optional[str] = None

    def option_select(self, option: str) -> "SourceNode":
        """Narrow this node to one of its options"""
        return SourceNode(name=self.name, line=self.line, option=option)


@dataclass
class Diagnostic:
    severity: Severity
    message: str
    file: str
    line: int = 0
    source: Optional[str] = None
    option: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "severity": self.severity.value,
            "message": self.message,
            "file": self.file,
            "line": self.line,
        }
        if self.source:
            data["source"] = self.source
        if self.option:
            data["option"] = self.option
        return data


@dataclass
class DiagnosticSink:
    """
    Collects diagnostics for a single file

    Attributes:
        file: Path of the file being processed (used in messages)
        messages: Diagnostics in emission order
    """
    file: str = "<memory>"
    messages: List[Diagnostic] = field(default_factory=list)

    def warn(self, message: str, node: Optional[SourceNode] = None, source: Optional[str] = None) -> None:
        self._add(Severity.WARNING, message, node, source)

    def error(self, message: str, node: Optional[SourceNode] = None, source: Optional[str] = None) -> None:
        self._add(Severity.ERROR, message, node, source)

    def _add(self, severity: Severity, message: str, node: Optional[SourceNode], source: Optional[str]) -> None:
        diagnostic = Diagnostic(
            severity=severity,
            message=message,
            file=self.file,
            line=node.line if node else 0,
            source=source,
            option=node.option if node else None,
        )
        self.messages.append(diagnostic)
        logger.warning(f"{self.file}:{diagnostic.line} {severity.value}: {message}")

    @property
    def warnings(self) -> List[Diagnostic]:
        return [d for d in self.messages if d.severity is Severity.WARNING]

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self.messages if d.severity is Severity.ERROR]
