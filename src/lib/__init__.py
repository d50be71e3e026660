"""
docweave library: readers, directive and macro tables, cache and build
"""

__version__ = "1.0.0"
__author__ = "docweave developers"

from .parser import MarkdownParser
from .tex import TexParser
from .directives import DirectiveRegistry
from .macros import MacroTranslator
from .cache import DocumentCache
from .build import BuildOrchestrator
from .watch import WatchTrigger
from .toc import siteConfig_load, projectConfig_load
from .log import LOG, WARN, state_connectToLogger

__all__ = [
    "MarkdownParser",
    "TexParser",
    "DirectiveRegistry",
    "MacroTranslator",
    "DocumentCache",
    "BuildOrchestrator",
    "WatchTrigger",
    "siteConfig_load",
    "projectConfig_load",
    "LOG",
    "WARN",
    "state_connectToLogger",
    "__version__",
]
