"""
Inline markup within paragraphs and captions

Only citation roles are recognized inline; everything else stays text.

Example:
    >>> inline_parse("As shown by {cite}`knuth84`.")
    [Text(value='As shown by '), Cite(label='knuth84', ...), Text(value='.')]
"""

import re
from typing import List

from ..models.nodes import Cite, Node, Text

CITE_ROLE = re.compile(r'\{cite(?::[pt])?\}`([^`]+)`')


def cites_make(keys: str) -> List[Node]:
    """One Cite node per comma-separated key"""
    return [Cite(label=key.strip()) for key in keys.split(',') if key.strip()]


def inline_parse(text: str) -> List[Node]:
    """Split text into Text and Cite nodes"""
    nodes: List[Node] = []
    pos = 0
    for match in CITE_ROLE.finditer(text):
        if match.start() > pos:
            nodes.append(Text(value=text[pos:match.start()]))
        nodes.extend(cites_make(match.group(1)))
        pos = match.end()
    if pos < len(text):
        nodes.append(Text(value=text[pos:]))
    return nodes
