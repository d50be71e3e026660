"""
Option coercion for directive arguments and options

Raw option values arrive either as text (":lineno-start: 5") or as YAML
values from an option block. Every value is coerced against the directive's
declared OptionType by a single function, option_coerce(), which returns a
tagged result instead of raising. Run functions therefore only ever see
typed values.

Example:
    >>> option_coerce("5", OptionSpec(type=OptionType.NUMBER)).value
    5
    >>> option_coerce("five", OptionSpec(type=OptionType.NUMBER)).message
    'expected a number, got "five"'
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

import yaml

from ..models.diagnostics import DiagnosticSink, SourceNode
from ..models.directives import OptionSpec, OptionType
from ..models.nodes import LINENO_MATCH


class OptionTypeError(ValueError):
    """Raised by a converter when a raw value cannot take the declared type"""
    pass


@dataclass(frozen=True)
class Coerced:
    """
    Tagged coercion result

    Attributes:
        value: Coerced value, or None when absent or uncoercible
        message: Diagnostic text when coercion failed
    """
    value: Any = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.message is None


def boolean_coerce(value: Any) -> Optional[bool]:
    """Truthy values become True; falsy values are dropped, never False"""
    return True if value else None


def number_coerce(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise OptionTypeError(f"expected a number, got {str(value).lower()}")
    if isinstance(value, (int, float)):
        return int(value) if float(value).is_integer() else value
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            raise OptionTypeError(f'expected a number, got "{value}"')
        return int(number) if number.is_integer() else number
    raise OptionTypeError(f"expected a number, got {type(value).__name__}")


def string_coerce(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool):
        # A bare ":flag:" on a string option carries no text
        return "" if value else None
    if isinstance(value, (str, int, float)):
        return str(value)
    raise OptionTypeError(f"expected a string, got {type(value).__name__}")


def option_coerce(
    value: Any,
    spec: OptionSpec,
    sink: Optional[DiagnosticSink] = None,
    node: Optional[SourceNode] = None,
) -> Coerced:
    """
    Coerce one raw value against its option spec

    Args:
        value: Raw value (text from an option line, or a YAML value)
        spec: Declared option spec
        sink: Diagnostic sink used by list coercion for its own warnings
        node: Source location for those warnings

    Returns:
        Coerced result; failures carry a message and a None value
    """
    if isinstance(value, str) and value.strip() in spec.sentinels:
        return Coerced(value=value.strip())
    try:
        if spec.type is OptionType.BOOLEAN:
            return Coerced(value=boolean_coerce(value))
        if spec.type is OptionType.NUMBER:
            return Coerced(value=number_coerce(value))
        if spec.type is OptionType.STRING:
            return Coerced(value=string_coerce(value))
        if spec.type is OptionType.LIST:
            return Coerced(value=tags_parse(value, sink or DiagnosticSink(), node))
    except OptionTypeError as e:
        return Coerced(value=None, message=str(e))
    return Coerced(value=None, message=f"unsupported option type {spec.type}")


def tags_parse(
    value: Any, sink: DiagnosticSink, node: Optional[SourceNode] = None
) -> Optional[List[str]]:
    """
    Parse a list-of-strings option (cell tags)

    Rules, in order:
        1. falsy input -> None
        2. "[...]" string -> parsed as YAML and re-parsed; failure is an error
        3. plain string -> split on commas/whitespace, empties dropped
        4. anything else that is not a list -> None
        5. list of strings -> trimmed, empties dropped
        6. list holding a non-string -> warning, None

    Examples:
        "remove-input, hide-cell" -> ["remove-input", "hide-cell"]
        "[a, b]"                  -> ["a", "b"]
        42                        -> None
        ["x", 3]                  -> None (warning)
    """
    if not value:
        return None
    if isinstance(value, str) and value.startswith('[') and value.endswith(']'):
        try:
            loaded = yaml.safe_load(value)
        except yaml.YAMLError:
            sink.error("Could not load tags for code-cell directive", node, source="code-cell:tags")
            return None
        return tags_parse(loaded, sink, node)
    if isinstance(value, str):
        tags = [tag.strip() for tag in re.split(r'[,\s]', value)]
        tags = [tag for tag in tags if tag]
        return tags if tags else None
    if not isinstance(value, list):
        return None
    if not all(isinstance(tag, str) for tag in value):
        sink.warn("tags in code-cell directive must be a list of strings", node, source="code-cell:tags")
        return None
    tags = [tag.strip() for tag in value if tag.strip()]
    return tags if tags else None


def emphasizeLines_parse(value: Optional[str]) -> Optional[List[int]]:
    """
    Parse "3,5" into [3, 5]; entries that are not integers are dropped

    Returns:
        List of line numbers, or None when nothing usable was given
    """
    if not value:
        return None
    lines = []
    for entry in str(value).split(','):
        entry = entry.strip()
        if re.fullmatch(r'-?\d+', entry):
            lines.append(int(entry))
    return lines or None


def codeBlockOptions_get(
    options: Mapping[str, Any],
    sink: DiagnosticSink,
    node: Optional[SourceNode] = None,
    default_filename: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Resolve the display options shared by code-like directives

    Applies the cross-option rules on top of per-option coercion:
        - lineno-start and number-lines together -> one warning
        - showLineNumbers only when some numbering option is set
        - number-lines wins over lineno-start when > 1; lineno-match wins
          over both; values <= 1 are dropped
        - filename "false" (any case) suppresses the default filename

    Args:
        options: Coerced directive options
        sink: Diagnostic sink for the current file
        node: Directive location
        default_filename: Filename to show when none was given

    Returns:
        Keyword arguments for the Code node (emphasize_lines,
        show_line_numbers, starting_line_number, filename)
    """
    if options.get('lineno-start') is not None and options.get('number-lines') is not None:
        sink.warn(
            'Cannot use both "lineno-start" and "number-lines"',
            node.option_select('number-lines') if node else None,
            source="code-block:options",
        )
    emphasize_lines = emphasizeLines_parse(options.get('emphasize-lines'))
    number_lines = options.get('number-lines')
    lineno_start = options.get('lineno-start')
    lineno_match = options.get('lineno-match') or lineno_start == LINENO_MATCH

    show_line_numbers = (
        True
        if options.get('linenos') or lineno_start or lineno_match or number_lines
        else None
    )

    starting_line_number: Any
    if isinstance(number_lines, (int, float)) and number_lines > 1:
        starting_line_number = number_lines
    else:
        starting_line_number = lineno_start
    if lineno_match:
        starting_line_number = LINENO_MATCH
    elif not isinstance(starting_line_number, (int, float)) or starting_line_number <= 1:
        starting_line_number = None

    filename = options.get('filename')
    if isinstance(filename, str) and filename.lower() == 'false':
        filename = None
    elif not filename and default_filename:
        filename = default_filename

    return {
        'emphasize_lines': emphasize_lines,
        'show_line_numbers': show_line_numbers,
        'starting_line_number': starting_line_number,
        'filename': filename,
    }
