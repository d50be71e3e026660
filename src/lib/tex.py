r"""
Reader for legacy LaTeX sources

Turns LaTeX text into the same document tree the markdown reader produces.
Character macros go through the MacroTranslator; a handful of structural
macros (sectioning, citations, labels) map to nodes; document-setup macros
are consumed silently. Any other macro is reported, and its braced argument
is kept as plain text.

Example:
    >>> root = TexParser(r"Caf\'{e} \dag").parse()
    >>> root.children[0].children[0].value
    'Café †'
"""

from typing import Any, Dict, List, Optional

from ..models.diagnostics import DiagnosticSink, SourceNode
from ..models.nodes import Heading, Node, Paragraph, Root, Text
from .inline import cites_make
from .labels import label_normalize
from .macros import MacroTranslator

SECTIONS: Dict[str, int] = {
    'section': 1,
    'subsection': 2,
    'subsubsection': 3,
}

CITES = {'cite', 'citep', 'citet', 'citealp'}

# Formatting wrappers whose argument flows through as text
PASSTHROUGH = {'emph', 'textbf', 'textit', 'texttt', 'textsc', 'textrm', 'underline'}

# Document setup, consumed together with its arguments
SETUP = {
    'documentclass', 'usepackage', 'maketitle', 'author', 'date', 'begin', 'end',
    'bibliography', 'bibliographystyle', 'tableofcontents', 'newpage', 'noindent',
}


class TexParser:
    """
    Parser for LaTeX source text

    Handles:
    - Paragraphs separated by blank lines or \par
    - Comments (% to end of line)
    - Character macros through an injected MacroTranslator
    - \section / \subsection / \subsubsection headings with \label
    - \cite{a,b} citations
    - Brace groups, ~ (no-break space) and \\ (line break)
    """

    def __init__(
        self,
        source: str,
        translator: Optional[MacroTranslator] = None,
        sink: Optional[DiagnosticSink] = None,
        debug: bool = False,
    ) -> None:
        """
        Initialize parser with source text

        Args:
            source: LaTeX source
            translator: Character macro translator (default table if omitted)
            sink: Diagnostic sink for the current file
            debug: Enable debug output

        Attributes:
            position: Current character position in source
            line_number: Current line number (for diagnostics)
            depth: Open brace groups
            root: Tree being built
            paragraph: Currently open paragraph, if any
            frontmatter: Values gathered from \title
        """
        self.source = source
        self.translator = translator or MacroTranslator()
        self.sink = sink if sink is not None else DiagnosticSink()
        self.debug = debug
        self.position = 0
        self.line_number = 1
        self.depth = 0
        self.root = Root()
        self.paragraph: Optional[Paragraph] = None
        self.frontmatter: Dict[str, Any] = {}

    # -- paragraph state -------------------------------------------------

    def paragraph_open(self) -> None:
        if self.paragraph is None:
            self.paragraph = Paragraph()
            self.root.children.append(self.paragraph)

    def paragraph_close(self) -> None:
        if self.paragraph is not None:
            children = self.paragraph.children
            if children and isinstance(children[0], Text):
                children[0].value = children[0].value.lstrip()
            if children and isinstance(children[-1], Text):
                children[-1].value = children[-1].value.rstrip()
            self.paragraph.children = [
                child for child in children if not (isinstance(child, Text) and not child.value)
            ]
        self.paragraph = None

    def text(self, value: Optional[str]) -> None:
        if not value:
            return
        self.paragraph_open()
        children = self.paragraph.children
        if children and isinstance(children[-1], Text):
            if value == ' ' and children[-1].value.endswith(' '):
                return
            children[-1].value += value
        else:
            children.append(Text(value=value))

    def node_add(self, node: Node) -> None:
        self.paragraph_open()
        self.paragraph.children.append(node)

    def warn(self, message: str, node: Optional[SourceNode] = None, source: Optional[str] = None) -> None:
        self.sink.warn(message, node or SourceNode(name="tex", line=self.line_number), source=source)

    # -- scanning ----------------------------------------------------------

    def parse(self) -> Root:
        """
        Parse LaTeX source into a document tree

        Returns:
            Root node; paragraphs, headings and citations as children

        Raises:
            SyntaxError: On unbalanced braces
        """
        length = len(self.source)
        while self.position < length:
            char = self.source[self.position]
            if char == '\\':
                self.macro_read()
            elif char == '%':
                end = self.source.find('\n', self.position)
                self.position = length if end == -1 else end
            elif char == '\n':
                self.newline_read()
            elif char == '{':
                self.depth += 1
                self.position += 1
            elif char == '}':
                self.depth -= 1
                if self.depth < 0:
                    self.error("Unmatched closing brace")
                self.position += 1
            elif char == '~':
                self.text('\u00a0')
                self.position += 1
            elif char in ' \t':
                if self.paragraph is not None:
                    self.text(' ')
                while self.position < length and self.source[self.position] in ' \t':
                    self.position += 1
            else:
                start = self.position
                while self.position < length and self.source[self.position] not in '\\%\n{}~ \t':
                    self.position += 1
                self.text(self.source[start:self.position])

        if self.depth > 0:
            self.error("Unmatched brace")
        self.paragraph_close()
        return self.root

    def newline_read(self) -> None:
        """A single newline is a space; a blank line ends the paragraph"""
        self.position += 1
        self.line_number += 1
        probe = self.position
        while probe < len(self.source) and self.source[probe] in ' \t':
            probe += 1
        if probe < len(self.source) and self.source[probe] == '\n':
            self.paragraph_close()
            self.position = probe
        elif self.paragraph is not None:
            self.text(' ')

    def name_read(self) -> str:
        """Read a macro name after the backslash (control word or symbol)"""
        start = self.position
        if self.position < len(self.source) and self.source[self.position].isalpha():
            while self.position < len(self.source) and self.source[self.position].isalpha():
                self.position += 1
            name = self.source[start:self.position]
            # Control words swallow the spaces that follow them
            while self.position < len(self.source) and self.source[self.position] in ' \t':
                self.position += 1
            return name
        self.position += 1
        return self.source[start:self.position]

    def macro_read(self) -> None:
        """Dispatch one macro starting at the current backslash"""
        self.position += 1
        if self.position >= len(self.source):
            self.text('\\')
            return
        line = self.line_number
        name = self.name_read()
        node = SourceNode(name=name, line=line)

        if name == '\\':
            self.text('\n')
        elif name in (' ', '\t'):
            self.text(' ')
        elif name == 'par':
            self.paragraph_close()
        elif name in SECTIONS:
            self.heading_read(name)
        elif name in CITES:
            self.optional_skip()
            keys = self.group_read(node)
            for cite in cites_make(keys or ''):
                self.node_add(cite)
        elif name == 'label':
            self.label_apply(self.group_read(node))
        elif name == 'title':
            title = self.group_read(node)
            self.frontmatter['title'] = self.plainText_get(title or '')
        elif name in SETUP:
            self.optional_skip()
            if self.char_peek() == '{':
                self.group_read(node)
        elif name in PASSTHROUGH:
            pass
        elif self.translator.table.accent_has(name):
            argument = self.accentArgument_read(name, node)
            self.translator.macro_apply(self, name, argument, node)
        elif not self.translator.macro_apply(self, name, None, node):
            self.warn(f"Unknown macro \\{name}", node, source="tex:macros")

    def char_peek(self) -> str:
        if self.position < len(self.source):
            return self.source[self.position]
        return ''

    def optional_skip(self) -> None:
        """Skip an optional [..] argument"""
        if self.char_peek() == '[':
            end = self.source.find(']', self.position)
            if end != -1:
                self.position = end + 1

    def accentArgument_read(self, name: str, node: SourceNode) -> str:
        """
        Read the argument an accent macro applies to

        A braced group is read whole (\\t{oo}). Otherwise a control symbol
        (\\'o) takes the next character, and a control word takes the next
        character unless its table composes from an empty argument (\\o, \\l).
        """
        char = self.char_peek()
        if char == '{':
            return (self.group_read(node) or '').strip()
        if name.isalpha() and name in self.translator.table.accents_withEmpty():
            return ''
        if char and char not in ' \t\n\\{}%':
            self.position += 1
            return char
        return ''

    def brace_findMatching(self, start_pos: int) -> int:
        """
        Find matching closing brace using depth tracking

        Raises:
            SyntaxError: If EOF reached before finding matching brace
        """
        depth = 1
        pos = start_pos + 1
        while pos < len(self.source) and depth > 0:
            if self.source[pos] == '\\':
                pos += 2
                continue
            if self.source[pos] == '{':
                depth += 1
            elif self.source[pos] == '}':
                depth -= 1
            pos += 1

        if depth != 0:
            raise SyntaxError(
                f"Unmatched brace at line {self.line_number}, position {start_pos}"
            )
        return pos - 1

    def group_read(self, node: SourceNode) -> Optional[str]:
        """Read a braced argument, returning its raw content"""
        if self.char_peek() != '{':
            self.warn(f"Expected '{{' after \\{node.name}", node, source="tex:arguments")
            return None
        end = self.brace_findMatching(self.position)
        content = self.source[self.position + 1:end]
        self.line_number += content.count('\n')
        self.position = end + 1
        return content

    def inline_parse(self, source: str) -> List[Node]:
        """Parse a macro argument into inline nodes"""
        nested = TexParser(source, translator=self.translator, sink=self.sink, debug=self.debug)
        nested.line_number = self.line_number
        root = nested.parse()
        nodes: List[Node] = []
        for child in root.children:
            nodes.extend(getattr(child, 'children', []))
        return nodes

    def plainText_get(self, source: str) -> str:
        return ''.join(
            node.value for node in self.inline_parse(source) if isinstance(node, Text)
        ).strip()

    def heading_read(self, name: str) -> None:
        if self.char_peek() == '*':
            self.position += 1
        depth = SECTIONS[name]
        content = self.group_read(SourceNode(name=name, line=self.line_number))
        self.paragraph_close()
        self.root.children.append(Heading(depth=depth, children=self.inline_parse(content or '')))

    def label_apply(self, label: Optional[str]) -> None:
        """Attach \\label to the preceding heading"""
        normalized = label_normalize(label)
        if not normalized:
            return
        if self.root.children and isinstance(self.root.children[-1], Heading):
            heading = self.root.children[-1]
            heading.label = normalized.label
            heading.identifier = normalized.identifier

    def error(self, message: str) -> None:
        """
        Report parser error with source context

        Raises:
            SyntaxError: Always (this is an error reporting function)
        """
        context_start = max(0, self.position - 40)
        context_end = min(len(self.source), self.position + 40)
        context = self.source[context_start:context_end]

        raise SyntaxError(
            f"\n{message}\n"
            f"Line {self.line_number}, position {self.position}\n"
            f"Context: ...{context}...\n"
            f"         {' ' * (self.position - context_start)}^"
        )
