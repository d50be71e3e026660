"""
Citation renderer tests

Tests BibTeX parsing, inline rendering and resolution of Cite nodes.
"""

import asyncio

import pytest

from docweave.lib.citations import CitationError, CitationRenderer, bibtex_parse
from docweave.models.diagnostics import DiagnosticSink
from docweave.models.nodes import Cite, Paragraph, Root, Text

BIBTEX = """\
@comment{ignored entry}

@book{knuth84,
  author = {Donald E. Knuth},
  title = {The {TeX}book},
  publisher = "Addison-Wesley",
  year = 1984
}

@article{lamport94,
  author = {Lamport, Leslie and Goossens, Michel},
  title = {A Document Preparation System},
  year = {1994},
}

@inproceedings{team,
  author = {Ada Lovelace and Charles Babbage and Alan Turing},
  year = {2001},
}
"""


class TestBibtexParse:
    """Test BibTeX entry parsing"""

    def test_entries(self):
        references = bibtex_parse(BIBTEX)
        assert sorted(references) == ["knuth84", "lamport94", "team"]

    def test_fields(self):
        knuth = bibtex_parse(BIBTEX)["knuth84"]
        assert knuth.entry_type == "book"
        assert knuth.fields["title"] == "The TeXbook"
        assert knuth.fields["publisher"] == "Addison-Wesley"
        assert knuth.year == "1984"

    def test_author_family_names(self):
        references = bibtex_parse(BIBTEX)
        assert references["knuth84"].authors == ["Knuth"]
        assert references["lamport94"].authors == ["Lamport", "Goossens"]

    def test_missing_year(self):
        references = bibtex_parse("@misc{nodate, author = {A. Person}}")
        assert references["nodate"].year == "n.d."


class TestInlineRender:
    """Test inline citation text"""

    @pytest.fixture
    def renderer(self):
        return CitationRenderer(bibtex_parse(BIBTEX))

    def test_single_author(self, renderer):
        assert renderer.inline_render("knuth84") == "Knuth (1984)"

    def test_two_authors(self, renderer):
        assert renderer.inline_render("lamport94") == "Lamport & Goossens (1994)"

    def test_many_authors(self, renderer):
        assert renderer.inline_render("team") == "Lovelace et al. (2001)"

    def test_unknown_key(self, renderer):
        assert renderer.inline_render("nobody") is None

    def test_container_protocol(self, renderer):
        assert len(renderer) == 3
        assert "knuth84" in renderer


class TestCitesResolve:
    """Test resolving Cite nodes in a tree"""

    def test_resolve(self):
        renderer = CitationRenderer(bibtex_parse(BIBTEX))
        sink = DiagnosticSink()
        root = Root(children=[Paragraph(children=[Cite(label="knuth84"), Cite(label="missing")])])
        assert renderer.cites_resolve(root, sink) == 1

        found, missing = root.children[0].children
        assert found.identifier == "knuth84"
        assert found.children == [Text(value="Knuth (1984)")]
        assert missing.error is True
        assert sink.warnings[0].message == 'Could not link citation with label "missing"'


class TestBibliographyLoad:
    """Test reading bibliography files"""

    def test_load(self, tmp_path):
        bib = tmp_path / "refs.bib"
        bib.write_text(BIBTEX, encoding="utf-8")
        renderer = asyncio.run(CitationRenderer.bibliography_load([bib]))
        assert len(renderer) == 3

    def test_no_files(self):
        renderer = asyncio.run(CitationRenderer.bibliography_load([]))
        assert len(renderer) == 0

    def test_missing_file(self, tmp_path):
        with pytest.raises(CitationError):
            asyncio.run(CitationRenderer.bibliography_load([tmp_path / "absent.bib"]))
