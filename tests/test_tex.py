"""
TeX reader tests

Tests paragraphs, comments, character macros, headings, citations and
brace errors.
"""

import pytest

from docweave.lib.macros import MacroTable, MacroTranslator
from docweave.lib.tex import TexParser
from docweave.models.diagnostics import DiagnosticSink
from docweave.models.nodes import Cite, Heading, Paragraph, Text


def paragraph_text(paragraph):
    return ''.join(child.value for child in paragraph.children if isinstance(child, Text))


class TestParagraphs:
    """Test text flow and paragraph breaks"""

    def test_empty_source(self):
        assert TexParser("").parse().children == []

    def test_single_paragraph(self):
        root = TexParser("Hello world").parse()
        assert root.children == [Paragraph(children=[Text(value="Hello world")])]

    def test_blank_line_splits_paragraphs(self):
        root = TexParser("One\n\nTwo").parse()
        assert [paragraph_text(p) for p in root.children] == ["One", "Two"]

    def test_single_newline_is_space(self):
        root = TexParser("One\ntwo").parse()
        assert paragraph_text(root.children[0]) == "One two"

    def test_par_splits_paragraphs(self):
        root = TexParser(r"One\par Two").parse()
        assert [paragraph_text(p) for p in root.children] == ["One", "Two"]

    def test_comment_removed(self):
        root = TexParser("a % hidden\nb").parse()
        assert paragraph_text(root.children[0]) == "a b"

    def test_tilde_is_no_break_space(self):
        root = TexParser("Fig.~1").parse()
        assert paragraph_text(root.children[0]) == "Fig.\u00a01"

    def test_line_break(self):
        root = TexParser(r"a\\b").parse()
        assert paragraph_text(root.children[0]) == "a\nb"


class TestCharacterMacros:
    """Test accent and symbol macros inside text"""

    def test_braced_accent(self):
        root = TexParser(r"Caf\'{e} \dag").parse()
        assert root.children[0].children[0].value == "Café †"

    def test_unbraced_accent(self):
        root = TexParser(r"Se\~nor").parse()
        assert paragraph_text(root.children[0]) == "Señor"

    def test_control_word_accent(self):
        root = TexParser(r"Fran\c{c}ais").parse()
        assert paragraph_text(root.children[0]) == "Français"

    def test_empty_argument_accent(self):
        root = TexParser(r"\o").parse()
        assert paragraph_text(root.children[0]) == "ø"

    def test_escaped_symbols(self):
        root = TexParser(r"50\% \& \$5").parse()
        assert paragraph_text(root.children[0]) == "50% & $5"

    def test_unknown_character_warns(self):
        sink = DiagnosticSink()
        TexParser(r"\'{q}", sink=sink).parse()
        assert [w.message for w in sink.warnings] == ["Unknown character q"]

    def test_unknown_macro_warns_and_keeps_argument(self):
        sink = DiagnosticSink()
        root = TexParser(r"\frobnicate{text}", sink=sink).parse()
        assert sink.warnings[0].message == "Unknown macro \\frobnicate"
        assert paragraph_text(root.children[0]) == "text"

    def test_injected_translator(self):
        translator = MacroTranslator(MacroTable(accents={}, symbols={'smiley': '☺'}))
        root = TexParser(r"\smiley", translator=translator).parse()
        assert paragraph_text(root.children[0]) == "☺"

    def test_formatting_passes_text_through(self):
        root = TexParser(r"\emph{very} \textbf{bold}").parse()
        assert paragraph_text(root.children[0]) == "very bold"


class TestStructure:
    """Test headings, labels, citations and setup macros"""

    def test_section(self):
        root = TexParser(r"\section{Intro}").parse()
        assert root.children == [Heading(depth=1, children=[Text(value="Intro")])]

    def test_subsection_depth(self):
        root = TexParser(r"\subsection*{Details}").parse()
        assert root.children[0].depth == 2

    def test_label_attaches_to_heading(self):
        root = TexParser(r"\section{Caf\'{e}}\label{sec:cafe}").parse()
        heading = root.children[0]
        assert heading.children == [Text(value="Café")]
        assert heading.label == "sec:cafe"
        assert heading.identifier == "sec:cafe"

    def test_heading_closes_paragraph(self):
        root = TexParser("Before\n\\section{After}\nText").parse()
        assert [type(node) for node in root.children] == [Paragraph, Heading, Paragraph]

    def test_cite(self):
        root = TexParser(r"See \cite{knuth84, lamport94}.").parse()
        children = root.children[0].children
        assert Cite(label="knuth84") in children
        assert Cite(label="lamport94") in children

    def test_title_goes_to_frontmatter(self):
        parser = TexParser(r"\title{Legacy \emph{notes}}")
        root = parser.parse()
        assert parser.frontmatter == {"title": "Legacy notes"}
        assert root.children == []

    def test_setup_macros_consumed(self):
        sink = DiagnosticSink()
        source = "\\documentclass[11pt]{article}\n\\usepackage{amsmath}\n\\begin{document}\nBody\n\\end{document}\n"
        root = TexParser(source, sink=sink).parse()
        assert sink.messages == []
        assert [paragraph_text(p) for p in root.children] == ["Body"]


class TestBraceErrors:
    """Test unbalanced braces"""

    def test_unclosed_group(self):
        with pytest.raises(SyntaxError) as exc_info:
            TexParser("text {open").parse()
        assert "Unmatched brace" in str(exc_info.value)

    def test_stray_closing_brace(self):
        with pytest.raises(SyntaxError) as exc_info:
            TexParser("text}").parse()
        assert "Unmatched closing brace" in str(exc_info.value)

    def test_unclosed_macro_argument(self):
        with pytest.raises(SyntaxError):
            TexParser(r"\section{Intro").parse()
