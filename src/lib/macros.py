"""
LaTeX character macros

Legacy LaTeX sources write accented letters and special symbols as macros
(\\'o, \\"{u}, \\c{c}, \\dag, \\pounds). The MacroTranslator maps them to
Unicode text using a MacroTable with two disjoint parts:

- accents: macro -> (argument text -> composed character); used with the
  argument that follows the macro
- symbols: macro -> literal text; used standalone

See https://en.wikibooks.org/wiki/LaTeX/Special_Characters
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Protocol

from ..models.diagnostics import SourceNode

ACCENTS: Mapping[str, Mapping[str, str]] = MappingProxyType({
    '`': {
        'a': 'à', 'e': 'è', 'i': 'ì', 'o': 'ò', 'u': 'ù',
        'A': 'À', 'E': 'È', 'I': 'Ì', 'O': 'Ò', 'U': 'Ù',
    },
    "'": {
        'a': 'á', 'e': 'é', 'i': 'í', 'o': 'ó', 'u': 'ú', 'y': 'ý',
        'A': 'Á', 'E': 'É', 'I': 'Í', 'O': 'Ó', 'U': 'Ú', 'Y': 'Ý',
    },
    '^': {
        '': '^', 'a': 'â', 'e': 'ê', 'o': 'ô', 'i': 'î', 'u': 'û', 'y': 'ŷ',
        'A': 'Â', 'E': 'Ê', 'O': 'Ô', 'I': 'Î', 'U': 'Û', 'Y': 'Ŷ',
    },
    '"': {
        'a': 'ä', 'e': 'ë', 'o': 'ö', 'u': 'ü', 'i': 'ï', 'y': 'ÿ',
        'A': 'Ä', 'E': 'Ë', 'O': 'Ö', 'U': 'Ü', 'I': 'Ï',
    },
    'H': {'o': 'ő', 'O': 'Ő'},
    '~': {
        '': '~', 'o': 'õ', 'n': 'ñ', 'O': 'Õ', 'N': 'Ñ', 'u': 'ũ', 'U': 'Ũ',
        'e': 'ẽ', 'E': 'Ẽ', 'i': 'ĩ', 'I': 'Ĩ',
    },
    'c': {'c': 'ç', 'C': 'Ç'},
    'k': {'a': 'ą', 'A': 'Ą'},
    'l': {'': 'ł'},
    '=': {'o': 'ō', 'O': 'Ō'},
    '.': {'o': 'ȯ', 'O': 'Ȯ'},
    'd': {'u': 'ụ', 'U': 'Ụ'},
    'r': {'a': 'å', 'A': 'Å'},
    'u': {'o': 'ŏ', 'O': 'Ŏ'},
    'v': {'s': 'š', 'S': 'Š'},
    't': {'oo': 'o͡o', 'OO': 'O͡O'},
    'o': {'': 'ø'},
    'i': {'': 'ı'},
})

SYMBOLS: Mapping[str, str] = MappingProxyType({
    '%': '%',
    '$': '$',
    '&': '&',
    '{': '{',
    '}': '}',
    '_': '_',
    '#': '#',
    'P': '¶',
    'S': '§',
    'dag': '†',
    'ddag': '‡',
    'textbar': '|',
    'textgreater': '>',
    'textless': '<',
    'textendash': '–',
    'textemdash': '—',
    'texttrademark': '™',
    'textregistered': '®',
    'copyright': '©',
    'textexclamdown': '¡',
    'textquestiondown': '¿',
    'pounds': '£',
    'euro': '€',
    'textbackslash': '\\',
    'textcelsius': '℃',
    'degreeCelsius': '℃',
    'celsius': '℃',
    'aa': 'å',
    'AA': 'Å',
    'dots': '…',
    'ldots': '…',
    'textellipsis': '…',
    'textdegree': 'º',
    'textasciitilde': '~',
    'textvisiblespace': '␣',
})


@dataclass(frozen=True)
class MacroTable:
    accents: Mapping[str, Mapping[str, str]] = field(default_factory=lambda: ACCENTS)
    symbols: Mapping[str, str] = field(default_factory=lambda: SYMBOLS)

    def __post_init__(self) -> None:
        overlap = set(self.accents) & set(self.symbols)
        if overlap:
            raise ValueError(f"Macros cannot be both accents and symbols: {', '.join(sorted(overlap))}")

    def accent_has(self, name: str) -> bool:
        return name in self.accents

    def symbol_has(self, name: str) -> bool:
        return name in self.symbols

    def accents_withEmpty(self) -> set:
        """Accent macros that compose something from an empty argument (e.g., \\o)"""
        return {name for name, table in self.accents.items() if '' in table}


MACRO_TABLE = MacroTable()


class TextState(Protocol):
    """Paragraph-building state the translator writes into"""

    def paragraph_open(self) -> None: ...

    def text(self, value: Optional[str]) -> None: ...

    def warn(self, message: str, node: Optional[SourceNode] = None, source: Optional[str] = None) -> None: ...


class MacroTranslator:
    """
    Translate character macros to Unicode text

    Example:
        >>> translator = MacroTranslator()
        >>> translator.translate("'", "o")
        'ó'
        >>> translator.translate("dag")
        '†'
    """

    def __init__(self, table: MacroTable = MACRO_TABLE) -> None:
        self.table = table

    def macro_is(self, name: str) -> bool:
        return self.table.accent_has(name) or self.table.symbol_has(name)

    def translate(self, name: str, argument: Optional[str] = None) -> Optional[str]:
        """
        Look up the text for a macro

        Args:
            name: Macro name without the backslash
            argument: Argument text for accent macros

        Returns:
            Composed or literal text, None when the macro or character is unknown
        """
        if self.table.accent_has(name):
            return self.table.accents[name].get(argument or '')
        if self.table.symbol_has(name):
            return self.table.symbols[name]
        return None

    def macro_apply(
        self,
        state: TextState,
        name: str,
        argument: Optional[str] = None,
        node: Optional[SourceNode] = None,
    ) -> bool:
        """
        Emit a macro's text into the open paragraph

        An accent whose argument is not in the table is reported and emits
        nothing; the paragraph is still opened.

        Returns:
            False if the name is neither an accent nor a symbol macro
        """
        if self.table.accent_has(name):
            state.paragraph_open()
            converted = self.table.accents[name].get(argument or '')
            if not converted:
                state.warn(f"Unknown character {argument or ''}", node, source="tex:characters")
            state.text(converted)
            return True
        if self.table.symbol_has(name):
            state.paragraph_open()
            state.text(self.table.symbols[name])
            return True
        return False
