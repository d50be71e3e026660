"""
Parser-specific data models

Type-safe structures for parser operations and return values.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class FenceMatch:
    """
    An opening fence found in markdown source

    Returned by MarkdownParser.fence_find() when a line opens a fenced block.

    Attributes:
        marker: Fence characters as written (e.g., "```", "::::")
        name: Directive name for ```{name} fences, "" for plain code fences
        info: Text after the fence or directive name (argument or language)
        line_index: 0-based index of the opening line

    Example:
        For the line "```{code-block} python" at index 4:
        FenceMatch(marker="```", name="code-block", info="python", line_index=4)
    """
    marker: str
    name: str
    info: str
    line_index: int

    @property
    def is_directive(self) -> bool:
        return bool(self.name)


@dataclass
class ExtractedOptions:
    """
    Result of splitting a directive body into options and content

    Returned by MarkdownParser.options_extract(). Options come either from
    ":key: value" lines or from a "---" delimited YAML block at the start of
    the body.

    Attributes:
        options: Raw option values (strings from option lines, typed values
                 from YAML; a bare ":flag:" is True)
        body: Remaining body text
        yaml_error: Parse error message when the YAML block was malformed

    Example:
        Input body: ":linenos:\\n:caption: Demo\\n\\nprint(1)"
        Result: ExtractedOptions(
            options={"linenos": True, "caption": "Demo"},
            body="print(1)"
        )
    """
    options: Dict[str, Any]
    body: str
    yaml_error: str = ""


@dataclass
class SplitFrontmatter:
    """
    Result of separating YAML front matter from a page

    Attributes:
        frontmatter: Parsed front matter (empty when absent)
        lines: Remaining source lines
        offset: Number of lines consumed by the front matter block
    """
    frontmatter: Dict[str, Any]
    lines: List[str] = field(default_factory=list)
    offset: int = 0
