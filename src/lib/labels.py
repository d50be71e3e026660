"""
Label normalization and uniqueness

A label is what the author wrote; the identifier is its normalized,
slug-safe form used for cross-references and HTML ids.

Example:
    >>> label_normalize("  My Code\\nBlock ")
    NormalizedLabel(label='My Code Block', identifier='my-code-block')
"""

import re
from typing import Dict, NamedTuple, Optional

from ..models.diagnostics import DiagnosticSink, SourceNode
from ..models.nodes import Node


class NormalizedLabel(NamedTuple):
    label: str
    identifier: str


def label_normalize(label: Optional[str]) -> Optional[NormalizedLabel]:
    """
    Normalize an author label

    Returns:
        NormalizedLabel, or None when the label is empty
    """
    if not label:
        return None
    text = re.sub(r'\s+', ' ', str(label)).strip()
    if not text:
        return None
    identifier = re.sub(r'[^a-z0-9_:.-]+', '-', text.lower()).strip('-')
    return NormalizedLabel(label=text, identifier=identifier or text.lower())


def labels_checkUnique(root: Node, sink: DiagnosticSink) -> Dict[str, Node]:
    """
    Warn about identifiers used by more than one node in a document

    Returns:
        Mapping of identifier -> first node that claimed it
    """
    seen: Dict[str, Node] = {}
    for node in root.walk():
        identifier = getattr(node, 'identifier', None)
        if not identifier or node.type == 'cite':
            continue
        if identifier in seen:
            sink.warn(
                f'Duplicate label "{identifier}"',
                SourceNode(name=node.type),
                source="labels:unique",
            )
            continue
        seen[identifier] = node
    return seen
