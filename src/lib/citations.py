"""
Citation renderer for a project's bibliography

A project lists BibTeX files in its configuration (or keeps *.bib files in
its root). They are read once per project into a CitationRenderer that every
page of the project shares to resolve its Cite nodes into inline text such
as "Knuth (1984)".
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

import aiofiles

from ..models.diagnostics import DiagnosticSink, SourceNode
from ..models.nodes import Cite, Node, Text
from .log import LOG

ENTRY_START = re.compile(r'@(\w+)\s*[{(]')
FIELD_START = re.compile(r'\s*([\w-]+)\s*=\s*')
IGNORED_ENTRIES = {'comment', 'string', 'preamble'}


class CitationError(Exception):
    """Raised when a bibliography file cannot be read"""
    pass


@dataclass
class Reference:
    key: str
    entry_type: str
    fields: Dict[str, str] = field(default_factory=dict)

    @property
    def authors(self) -> List[str]:
        """Family names of the authors (or editors)"""
        names = self.fields.get('author') or self.fields.get('editor') or ''
        families = []
        for name in re.split(r'\s+and\s+', names):
            name = name.strip()
            if not name:
                continue
            if ',' in name:
                families.append(name.split(',', 1)[0].strip())
            else:
                families.append(name.split()[-1])
        return families

    @property
    def year(self) -> str:
        return self.fields.get('year', 'n.d.')


def value_read(text: str, pos: int) -> Tuple[str, int]:
    """Read one field value starting at pos; returns (value, next position)"""
    if pos < len(text) and text[pos] == '{':
        depth = 1
        end = pos + 1
        while end < len(text) and depth:
            if text[end] == '{':
                depth += 1
            elif text[end] == '}':
                depth -= 1
            end += 1
        return text[pos + 1:end - 1], end
    if pos < len(text) and text[pos] == '"':
        end = pos + 1
        while end < len(text) and not (text[end] == '"' and text[end - 1] != '\\'):
            end += 1
        return text[pos + 1:end], end + 1
    end = pos
    while end < len(text) and text[end] not in ',\n}':
        end += 1
    return text[pos:end].strip(), end


def fields_parse(text: str) -> Dict[str, str]:
    fields: Dict[str, str] = {}
    pos = 0
    while True:
        match = FIELD_START.match(text, pos)
        if not match:
            break
        value, pos = value_read(text, match.end())
        value = re.sub(r'\s+', ' ', value.replace('{', '').replace('}', '')).strip()
        fields[match.group(1).lower()] = value
        comma = text.find(',', pos)
        if comma == -1:
            break
        pos = comma + 1
    return fields


def bibtex_parse(text: str) -> Dict[str, Reference]:
    """
    Parse BibTeX source into references keyed by citation key

    @comment, @string and @preamble entries are skipped.
    """
    references: Dict[str, Reference] = {}
    pos = 0
    while True:
        match = ENTRY_START.search(text, pos)
        if not match:
            break
        depth = 1
        end = match.end()
        while end < len(text) and depth:
            if text[end] in '{(':
                depth += 1
            elif text[end] in '})':
                depth -= 1
            end += 1
        pos = end
        entry_type = match.group(1).lower()
        if entry_type in IGNORED_ENTRIES:
            continue
        body = text[match.end():end - 1]
        key, _, rest = body.partition(',')
        key = key.strip()
        if key:
            references[key] = Reference(key=key, entry_type=entry_type, fields=fields_parse(rest))
    return references


class CitationRenderer:
    """
    Resolves citation keys against a loaded bibliography

    Example:
        >>> renderer = CitationRenderer(bibtex_parse('@book{knuth84, author={Donald Knuth}, year={1984}}'))
        >>> renderer.inline_render('knuth84')
        'Knuth (1984)'
    """

    def __init__(self, references: Optional[Dict[str, Reference]] = None) -> None:
        self.references: Dict[str, Reference] = references or {}

    def __len__(self) -> int:
        return len(self.references)

    def __contains__(self, key: str) -> bool:
        return key in self.references

    @classmethod
    async def bibliography_load(cls, paths: Iterable[Path]) -> "CitationRenderer":
        """
        Read BibTeX files into a renderer

        Raises:
            CitationError: If a listed file cannot be read
        """
        references: Dict[str, Reference] = {}
        for path in paths:
            try:
                async with aiofiles.open(path, 'r', encoding='utf-8') as f:
                    text = await f.read()
            except OSError as e:
                raise CitationError(f"Could not read bibliography {path}: {e}") from e
            loaded = bibtex_parse(text)
            LOG(f"Loaded {len(loaded)} references from {path}", level=2)
            references.update(loaded)
        return cls(references)

    def inline_render(self, key: str) -> Optional[str]:
        reference = self.references.get(key)
        if reference is None:
            return None
        authors = reference.authors
        if not authors:
            names = reference.fields.get('title', key)
        elif len(authors) == 1:
            names = authors[0]
        elif len(authors) == 2:
            names = f"{authors[0]} & {authors[1]}"
        else:
            names = f"{authors[0]} et al."
        return f"{names} ({reference.year})"

    def cites_resolve(self, root: Node, sink: DiagnosticSink) -> int:
        """
        Fill every Cite node in a tree with its rendered text

        Unknown keys are reported and the node is marked with error=True.

        Returns:
            Number of citations resolved
        """
        resolved = 0
        for node in root.walk():
            if not isinstance(node, Cite):
                continue
            rendered = self.inline_render(node.label)
            if rendered is None:
                sink.warn(
                    f'Could not link citation with label "{node.label}"',
                    SourceNode(name="cite"),
                    source="citations:resolve",
                )
                node.error = True
                continue
            node.identifier = node.label
            node.children = [Text(value=rendered)]
            resolved += 1
        return resolved
