"""
Parser for fenced directive markup

Transforms markdown-flavoured source into a document tree.

The parser operates line by line:
1. Front matter: a leading "---" YAML block is split off
2. Scanning: headings, label targets, paragraphs and fenced blocks
3. Directives: ```{name} fences are resolved in the DirectiveRegistry,
   their options extracted and coerced, and the directive run

Directive syntax:

    ```{code-block} python
    :label: hello
    :caption: Saying hello

    print("hello")
    ```

Options may also be given as a YAML block at the start of the body:

    ```{code-cell} python
    ---
    tags: [remove-input]
    ---
    print("hello")
    ```

Backtick, tilde and colon fences are accepted; a fence closes on a line of
the same character at least as long as the opening one.

Example:
    >>> root = MarkdownParser("```{code} python\\nprint(1)\\n```").parse()
    >>> root.children[0].lang
    'python'
"""

import re
from typing import Any, Dict, List, Mapping, Optional

import yaml

from ..models.diagnostics import DiagnosticSink, SourceNode
from ..models.directives import DirectiveInvocation
from ..models.nodes import Code, Heading, Node, Paragraph, Root, Text
from ..models.parser import ExtractedOptions, FenceMatch, SplitFrontmatter
from .directives import DirectiveRegistry
from .inline import inline_parse
from .labels import label_normalize

FENCE_OPEN = re.compile(
    r'^(?P<indent> {0,3})(?P<marker>`{3,}|~{3,}|:{3,})'
    r'(?:\{(?P<name>[\w-]+)\})?[ \t]*(?P<info>.*?)\s*$'
)
OPTION_LINE = re.compile(r'^:(?P<name>[\w-]+):(?:[ \t]+(?P<value>.*?))?\s*$')
HEADING = re.compile(r'^(?P<hashes>#{1,6})[ \t]+(?P<text>.*?)(?:[ \t]+#+)?\s*$')
TARGET = re.compile(r'^\((?P<label>[^()]+)\)=\s*$')


class MarkdownParser:
    """
    Parser for fenced directive markup

    Handles:
    - YAML front matter (title, language)
    - ATX headings and (label)= targets
    - Paragraphs with inline {cite} roles
    - Plain fenced code blocks
    - Directive fences dispatched through a DirectiveRegistry
    """

    def __init__(
        self,
        source: str,
        registry: Optional[DirectiveRegistry] = None,
        sink: Optional[DiagnosticSink] = None,
        debug: bool = False,
        context: Optional[Mapping[str, Any]] = None,
    ):
        """
        Initialize parser with source text

        Args:
            source: Raw page source
            registry: DirectiveRegistry resolving directive names; a registry
                      with the built-in directives is created if omitted
            sink: Diagnostic sink for the current file
            debug: Enable debug output for parser operations
            context: Ambient values for directives (e.g., project language);
                     page front matter overrides them

        Attributes:
            frontmatter: Parsed front matter, filled by parse()
            paragraph_lines: Lines of the paragraph being collected
            pending_label: Label from a (label)= target awaiting its node
        """
        self.source = source
        self.registry = registry if registry is not None else DirectiveRegistry()
        self.sink = sink if sink is not None else DiagnosticSink()
        self.debug = debug
        self.context: Dict[str, Any] = dict(context or {})
        self.frontmatter: Dict[str, Any] = {}
        self.root = Root()
        self.paragraph_lines: List[str] = []
        self.pending_label: Optional[str] = None

    def frontmatter_split(self, lines: List[str]) -> SplitFrontmatter:
        """
        Separate a leading "---" YAML block from the page

        Malformed front matter is reported and ignored; the block is still
        removed from the page body.
        """
        if not lines or lines[0].strip() != '---':
            return SplitFrontmatter(frontmatter={}, lines=lines, offset=0)
        for index in range(1, len(lines)):
            if lines[index].strip() == '---':
                text = '\n'.join(lines[1:index])
                try:
                    loaded = yaml.safe_load(text) or {}
                except yaml.YAMLError as e:
                    self.sink.error(f"Invalid front matter: {e}", SourceNode(name="frontmatter", line=1))
                    loaded = {}
                if not isinstance(loaded, dict):
                    self.sink.error("Front matter must be a mapping", SourceNode(name="frontmatter", line=1))
                    loaded = {}
                return SplitFrontmatter(frontmatter=loaded, lines=lines[index + 1:], offset=index + 1)
        return SplitFrontmatter(frontmatter={}, lines=lines, offset=0)

    def parse(self) -> Root:
        """
        Parse source text into a document tree

        Returns:
            Root node. Returns an empty root for empty/whitespace-only source.
        """
        split = self.frontmatter_split(self.source.splitlines())
        self.frontmatter = split.frontmatter
        language = self.language_get()
        if language:
            self.context['language'] = language

        lines = split.lines
        index = 0
        while index < len(lines):
            line = lines[index]
            line_number = split.offset + index + 1

            fence = self.fence_find(line, index)
            if fence:
                self.paragraph_flush()
                closing = self.fence_findClosing(lines, fence, line_number)
                body_lines = lines[index + 1:closing]
                self.nodes_add(self.fence_process(fence, body_lines, line_number))
                index = closing + 1
                continue

            target = TARGET.match(line)
            if target:
                self.paragraph_flush()
                self.pending_label = target.group('label')
                index += 1
                continue

            heading = HEADING.match(line)
            if heading:
                self.paragraph_flush()
                self.nodes_add([Heading(
                    depth=len(heading.group('hashes')),
                    children=inline_parse(heading.group('text')),
                )])
                index += 1
                continue

            if not line.strip():
                self.paragraph_flush()
            else:
                self.paragraph_lines.append(line.strip())
            index += 1

        self.paragraph_flush()
        return self.root

    def language_get(self) -> Optional[str]:
        """
        Page language from front matter "language" or "kernelspec.language"

        A kernelspec that is not a mapping is reported and ignored.
        """
        node = SourceNode(name="frontmatter", line=1)
        language = self.frontmatter.get('language')
        if not language:
            kernelspec = self.frontmatter.get('kernelspec')
            if isinstance(kernelspec, dict):
                language = kernelspec.get('language')
            elif kernelspec is not None:
                self.sink.warn("kernelspec in front matter must be a mapping", node, source="parser:frontmatter")
        if language is None or isinstance(language, (dict, list)):
            return None
        return str(language)

    @property
    def title(self) -> Optional[str]:
        """Page title: front matter title, else the first heading's text"""
        if self.frontmatter.get('title'):
            return str(self.frontmatter['title'])
        for node in self.root.children:
            if isinstance(node, Heading):
                return ''.join(c.value for c in node.children if isinstance(c, Text)).strip() or None
        return None

    def fence_find(self, line: str, index: int) -> Optional[FenceMatch]:
        """
        Check whether a line opens a fenced block

        Colon fences only open directives; backtick fences with a backtick
        in their info string are not fences.
        """
        match = FENCE_OPEN.match(line)
        if not match:
            return None
        marker = match.group('marker')
        name = match.group('name') or ''
        info = match.group('info') or ''
        if marker.startswith(':') and not name:
            return None
        if marker.startswith('`') and '`' in info:
            return None
        return FenceMatch(marker=marker, name=name, info=info, line_index=index)

    def fence_findClosing(self, lines: List[str], fence: FenceMatch, line_number: int) -> int:
        """
        Find the line closing a fence

        Returns:
            Index of the closing line; len(lines) when the fence runs to the
            end of the document (reported as a warning)
        """
        char = fence.marker[0]
        for index in range(fence.line_index + 1, len(lines)):
            stripped = lines[index].strip()
            if len(stripped) >= len(fence.marker) and stripped == char * len(stripped):
                return index
        self.sink.warn(
            f"Fence '{fence.marker}' opened at line {line_number} is never closed",
            SourceNode(name=fence.name or "code", line=line_number),
            source="parser:fence",
        )
        return len(lines)

    def options_extract(self, body_lines: List[str]) -> ExtractedOptions:
        """
        Split directive body lines into options and content

        Note: leading and trailing blank lines of the content are removed;
        inner blank lines and indentation are preserved verbatim.
        """
        options: Dict[str, Any] = {}
        yaml_error = ""
        index = 0

        if body_lines and body_lines[0].strip() == '---':
            for end in range(1, len(body_lines)):
                if body_lines[end].strip() == '---':
                    try:
                        loaded = yaml.safe_load('\n'.join(body_lines[1:end])) or {}
                    except yaml.YAMLError as e:
                        loaded = {}
                        yaml_error = str(e)
                    if isinstance(loaded, dict):
                        options = {str(key): value for key, value in loaded.items()}
                    elif not yaml_error:
                        yaml_error = "option block must be a mapping"
                    index = end + 1
                    break
        else:
            while index < len(body_lines):
                match = OPTION_LINE.match(body_lines[index])
                if not match:
                    break
                value = match.group('value')
                options[match.group('name')] = value if value else True
                index += 1

        content = body_lines[index:]
        while content and not content[0].strip():
            content = content[1:]
        while content and not content[-1].strip():
            content = content[:-1]
        return ExtractedOptions(options=options, body='\n'.join(content), yaml_error=yaml_error)

    def fence_process(self, fence: FenceMatch, body_lines: List[str], line_number: int) -> List[Node]:
        """Turn one fenced block into nodes"""
        if not fence.is_directive:
            language = fence.info.split()[0] if fence.info.split() else None
            return [Code(lang=language, value='\n'.join(body_lines))]

        node = SourceNode(name=fence.name, line=line_number)
        spec = self.registry.resolve(fence.name)
        if spec is None:
            self.sink.warn(f"Unknown directive: {fence.name}", node, source="parser:directives")
            return []

        extracted = self.options_extract(body_lines)
        if extracted.yaml_error:
            self.sink.error(
                f'Invalid option block for directive "{fence.name}": {extracted.yaml_error}',
                node,
                source=f"{spec.name}:options",
            )
        invocation = DirectiveInvocation(
            spec=spec,
            name=fence.name,
            arg=fence.info,
            options=extracted.options,
            body=extracted.body,
            node=node,
        )
        return self.registry.invoke(invocation, self.sink, self.context)

    def nodes_add(self, nodes: List[Node]) -> None:
        """Append nodes; a pending (label)= target goes to the first one if it is unlabelled"""
        for node in nodes:
            if self.pending_label:
                normalized = label_normalize(self.pending_label)
                if normalized and hasattr(node, 'identifier') and getattr(node, 'identifier') is None:
                    node.label = normalized.label
                    node.identifier = normalized.identifier
                self.pending_label = None
            self.root.children.append(node)

    def paragraph_flush(self) -> None:
        if not self.paragraph_lines:
            return
        text = '\n'.join(self.paragraph_lines)
        self.paragraph_lines = []
        self.nodes_add([Paragraph(children=inline_parse(text))])
