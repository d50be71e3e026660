"""
Site and project configuration models

A site is a list of projects; a project is an index page plus an ordered
table of contents. Entries without a file (section headings) are kept for
navigation but are not routable and never built.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional


class ProjectConfigError(Exception):
    """Raised when a site or project configuration cannot be loaded"""
    pass


@dataclass(frozen=True)
class SiteProject:
    """
    A project as configured in the site file

    Attributes:
        slug: URL segment for the project (e.g., "guide")
        path: Project directory
    """
    slug: str
    path: Path


@dataclass
class SiteConfig:
    title: Optional[str] = None
    projects: List[SiteProject] = field(default_factory=list)
    root: Path = field(default=Path("."))
    config_file: Optional[Path] = None


@dataclass(frozen=True)
class Page:
    """
    A table-of-contents entry

    Attributes:
        file: Source file, or None for a section heading
        slug: Routable slug, or None
        title: Explicit title from the configuration
        level: Nesting level in the table of contents
    """
    file: Optional[Path] = None
    slug: Optional[str] = None
    title: Optional[str] = None
    level: int = 1

    @property
    def routable(self) -> bool:
        return self.file is not None and bool(self.slug)


@dataclass
class ProjectConfig:
    """
    Loaded project configuration

    Attributes:
        path: Project directory
        file: Index source file
        index: Slug of the index page
        title: Project title
        pages: Table of contents (routable and non-routable entries)
        bibliography: BibTeX files, relative to path
        language: Ambient code language for the whole project
    """
    path: Path
    file: Path
    index: str = "index"
    title: Optional[str] = None
    pages: List[Page] = field(default_factory=list)
    bibliography: List[str] = field(default_factory=list)
    language: Optional[str] = None

    @property
    def pages_routable(self) -> List[Page]:
        return [page for page in self.pages if page.routable]

    def manifest_get(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "index": self.index,
            "pages": [
                {"slug": page.slug, "title": page.title, "level": page.level}
                for page in self.pages
            ],
        }
