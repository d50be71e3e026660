"""
Character macro tests

Tests table lookups and how the translator drives paragraph state.
"""

import pytest

from docweave.lib.macros import MACRO_TABLE, MacroTable, MacroTranslator
from docweave.lib.tex import TexParser
from docweave.models.diagnostics import DiagnosticSink
from docweave.models.nodes import Paragraph, Text


class TestMacroTable:
    """Test the accent and symbol tables"""

    def test_tables_are_disjoint(self):
        assert not set(MACRO_TABLE.accents) & set(MACRO_TABLE.symbols)

    def test_tables_are_read_only(self):
        with pytest.raises(TypeError):
            MACRO_TABLE.symbols['dag'] = '*'

    def test_overlap_rejected(self):
        with pytest.raises(ValueError):
            MacroTable(accents={'x': {'a': 'b'}}, symbols={'x': 'y'})

    def test_accents_with_empty_argument(self):
        assert {'o', 'l', 'i'} <= MACRO_TABLE.accents_withEmpty()


class TestTranslate:
    """Test plain lookups"""

    @pytest.mark.parametrize("name, argument, expected", [
        ("'", "o", "ó"),
        ('"', "u", "ü"),
        ("`", "e", "è"),
        ("c", "c", "ç"),
        ("~", "n", "ñ"),
        ("v", "s", "š"),
        ("o", "", "ø"),
    ])
    def test_accents(self, name, argument, expected):
        assert MacroTranslator().translate(name, argument) == expected

    @pytest.mark.parametrize("name, expected", [
        ("dag", "†"),
        ("pounds", "£"),
        ("S", "§"),
        ("textbackslash", "\\"),
    ])
    def test_symbols(self, name, expected):
        assert MacroTranslator().translate(name) == expected

    def test_unknown_character(self):
        assert MacroTranslator().translate("'", "q") is None

    def test_unknown_macro(self):
        translator = MacroTranslator()
        assert translator.translate("frobnicate") is None
        assert not translator.macro_is("frobnicate")

    def test_custom_table(self):
        translator = MacroTranslator(MacroTable(accents={}, symbols={'smiley': '☺'}))
        assert translator.translate("smiley") == "☺"
        assert translator.translate("dag") is None


class TestMacroApply:
    """Test paragraph state driven by the translator"""

    def test_accent_opens_paragraph(self):
        parser = TexParser("")
        assert MacroTranslator().macro_apply(parser, "'", "o")
        assert parser.paragraph is not None
        assert parser.paragraph.children == [Text(value="ó")]

    def test_symbol_appends_to_open_paragraph(self):
        parser = TexParser("")
        parser.text("See")
        MacroTranslator().macro_apply(parser, "dag")
        assert parser.paragraph.children == [Text(value="See†")]

    def test_accent_miss_warns_and_emits_nothing(self):
        sink = DiagnosticSink()
        parser = TexParser("", sink=sink)
        assert MacroTranslator().macro_apply(parser, "'", "q")
        assert parser.paragraph == Paragraph(children=[])
        assert sink.warnings[0].message == "Unknown character q"

    def test_unknown_name_returns_false(self):
        parser = TexParser("")
        assert not MacroTranslator().macro_apply(parser, "frobnicate")
        assert parser.paragraph is None
