"""
Build result and cache models

Type-safe structures returned by the DocumentCache and BuildOrchestrator.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, NamedTuple, Optional

from .diagnostics import Diagnostic
from .nodes import Root


class CacheKey(NamedTuple):
    """
    Stable address of a memoized page

    Attributes:
        project: Resolved project directory
        slug: Page slug within the project
    """
    project: str
    slug: str


@dataclass
class PageResult:
    """
    Outcome of processing one page

    Attributes:
        processed: True if the page was recomputed, False if served from cache
        slug: Page slug
        file: Source file path
        title: Title from front matter or the first heading
        mdast: Document tree
        frontmatter: Page front matter
        diagnostics: File-scoped warnings and errors
        checksum: Digest of the source the tree was built from
    """
    processed: bool
    slug: str
    file: str
    title: Optional[str] = None
    mdast: Root = field(default_factory=Root)
    frontmatter: Dict[str, Any] = field(default_factory=dict)
    diagnostics: List[Diagnostic] = field(default_factory=list)
    checksum: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": "Article",
            "slug": self.slug,
            "file": self.file,
            "title": self.title,
            "frontmatter": self.frontmatter,
            "mdast": self.mdast.to_dict(),
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }


@dataclass
class CacheEntry:
    """
    Memoized processing result for one cache key

    Attributes:
        key: Cache address
        checksum: Digest of the file the result was computed from
        result: Last computed page result
        fresh: True when the latest request recomputed the entry
    """
    key: CacheKey
    checksum: str
    result: PageResult
    fresh: bool = True


@dataclass
class ProjectBuild:
    slug: str
    pages: List[PageResult] = field(default_factory=list)
    touched: int = 0
    manifest: Dict[str, Any] = field(default_factory=dict)


@dataclass
class SiteBuild:
    """
    Outcome of a full site build

    Attributes:
        projects: Builds of projects that completed
        errors: Project slug -> failure message for projects that stopped
        manifest_file: Path of the written manifest
    """
    projects: List[ProjectBuild] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)
    manifest_file: Optional[str] = None

    @property
    def touched(self) -> int:
        return sum(project.touched for project in self.projects)

    @property
    def page_count(self) -> int:
        return sum(len(project.pages) for project in self.projects)
