"""
docweave - Multi-project documentation site builder

Reads markdown and legacy LaTeX sources into document trees, with directive
and character-macro tables injected into the readers, and builds them into
a site of page JSON plus a site manifest.
"""

__version__ = "1.0.0"
__author__ = "docweave developers"

from .lib import MarkdownParser, TexParser, DirectiveRegistry, BuildOrchestrator, LOG, state_connectToLogger

__all__ = [
    "MarkdownParser",
    "TexParser",
    "DirectiveRegistry",
    "BuildOrchestrator",
    "LOG",
    "state_connectToLogger",
    "__version__",
]
