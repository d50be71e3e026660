"""
Site and project configuration loader

Reads the site configuration (site.yml) and each project's table of contents
(project.yml). A project without a configuration file is discovered from the
source files in its directory.

Site configuration:

    title: Handbook
    projects:
      - slug: guide
        path: guide

Project configuration:

    title: User guide
    index: index.md
    language: python
    bibliography: [refs.bib]
    pages:
      - file: install.md
      - title: Background        # section heading, not routable
      - file: history.tex
        slug: history
        level: 2
"""

import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from ..config import AppSettings, appsettings
from ..models.site import Page, ProjectConfig, ProjectConfigError, SiteConfig, SiteProject
from .log import LOG

INDEX_CANDIDATES = ('index', 'readme', 'main')


def slug_make(text: str) -> str:
    """
    URL-safe slug from a file stem or title

    Example:
        >>> slug_make("01 Getting Started")
        '01-getting-started'
    """
    slug = re.sub(r'[^a-z0-9]+', '-', text.lower()).strip('-')
    return slug or 'page'


def yaml_load(path: Path) -> Dict[str, Any]:
    """Load and parse a YAML mapping"""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            config: Any = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ProjectConfigError(f"Failed to parse {path}: {e}")
    except OSError as e:
        raise ProjectConfigError(f"Failed to load {path}: {e}")
    if config is None:
        config = {}
    if not isinstance(config, dict):
        raise ProjectConfigError(f"{path} must contain a mapping")
    return config


def siteConfig_load(config_file: Path) -> SiteConfig:
    """
    Load the site configuration

    Project paths are resolved relative to the configuration file.

    Raises:
        ProjectConfigError: If the file is unreadable or malformed
    """
    config = yaml_load(config_file)
    root = config_file.parent
    projects: List[SiteProject] = []
    seen = set()
    for entry in config.get('projects') or []:
        if not isinstance(entry, dict) or 'path' not in entry:
            raise ProjectConfigError(f"{config_file}: each project needs a path")
        path = (root / str(entry['path'])).resolve()
        slug = str(entry.get('slug') or slug_make(path.name))
        if slug in seen:
            raise ProjectConfigError(f"{config_file}: duplicate project slug '{slug}'")
        seen.add(slug)
        projects.append(SiteProject(slug=slug, path=path))
    LOG(f"Site config {config_file}: {len(projects)} project(s)", level=2)
    return SiteConfig(
        title=config.get('title'),
        projects=projects,
        root=root,
        config_file=config_file,
    )


def sources_discover(path: Path, settings: AppSettings) -> List[Path]:
    """Source files directly inside a project directory, sorted by name"""
    return sorted(
        child for child in path.iterdir()
        if child.is_file() and child.suffix in settings.source_suffixes
    )


def page_make(entry: Any, path: Path, config_file: Path) -> Page:
    if isinstance(entry, str):
        entry = {'file': entry}
    if not isinstance(entry, dict):
        raise ProjectConfigError(f"{config_file}: invalid page entry {entry!r}")
    level = int(entry.get('level', 1))
    if 'file' not in entry:
        return Page(title=entry.get('title'), level=level)
    file = path / str(entry['file'])
    slug = str(entry.get('slug') or slug_make(file.stem))
    return Page(file=file, slug=slug, title=entry.get('title'), level=level)


def projectConfig_load(path: Path, settings: Optional[AppSettings] = None) -> ProjectConfig:
    """
    Load a project's table of contents

    Raises:
        ProjectConfigError: If the project directory or configuration is
                            missing or malformed
    """
    settings = settings or appsettings
    if not path.is_dir():
        raise ProjectConfigError(f"Project directory not found: {path}")

    config_file = path / settings.project_config_file
    if config_file.exists():
        config = yaml_load(config_file)
        sources = sources_discover(path, settings)
        index_file = path / str(config['index']) if config.get('index') else None
        if index_file is None:
            if not sources:
                raise ProjectConfigError(f"{config_file}: no index page and no sources")
            index_file = sources[0]
        pages = [page_make(entry, path, config_file) for entry in config.get('pages') or []]
        bibliography = config.get('bibliography') or []
        if isinstance(bibliography, str):
            bibliography = [bibliography]
        return ProjectConfig(
            path=path,
            file=index_file,
            index=slug_make(index_file.stem),
            title=config.get('title'),
            pages=pages,
            bibliography=[str(item) for item in bibliography],
            language=config.get('language'),
        )

    sources = sources_discover(path, settings)
    if not sources:
        raise ProjectConfigError(f"No source files found in {path}")
    index_file = next(
        (source for source in sources if source.stem.lower() in INDEX_CANDIDATES),
        sources[0],
    )
    pages = [
        Page(file=source, slug=slug_make(source.stem))
        for source in sources if source != index_file
    ]
    return ProjectConfig(
        path=path,
        file=index_file,
        index=slug_make(index_file.stem),
        title=path.name,
        pages=pages,
        bibliography=[bib.name for bib in sorted(path.glob('*.bib'))],
    )
