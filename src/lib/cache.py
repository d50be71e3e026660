"""
Memoized per-page processing

The DocumentCache owns every processed page of a build session. A page is
addressed by CacheKey(project, slug) and recomputed only when the checksum
of its source changes. Citation renderers are loaded once per project and
shared by all of that project's pages.

The cache is the only mutable state shared by concurrent page tasks. Each
key has its own asyncio.Lock, so at most one computation per key is in
flight and concurrent requests for the same key see the same outcome.
"""

import asyncio
import hashlib
import json
from pathlib import Path
from typing import Dict, Optional

import aiofiles

from ..config import AppSettings, appsettings
from ..models.build import CacheEntry, CacheKey, PageResult
from ..models.diagnostics import DiagnosticSink, SourceNode
from ..models.site import Page, ProjectConfig, SiteProject
from .citations import CitationRenderer
from .directives import DirectiveRegistry
from .labels import labels_checkUnique
from .log import LOG
from .macros import MacroTranslator
from .parser import MarkdownParser
from .tex import TexParser


class DocumentCache:
    """
    Page cache for one orchestrator

    Args:
        build_root: Build output directory (page JSON goes under its content dir)
        settings: Application settings
        registry: Directive registry handed to every markdown parser
        translator: Macro translator handed to every TeX parser

    Example:
        >>> cache = DocumentCache(Path("_build"))
        >>> result = await cache.file_process(site_project, page, project_config)
        >>> result.processed
        True
    """

    def __init__(
        self,
        build_root: Path,
        settings: AppSettings = appsettings,
        registry: Optional[DirectiveRegistry] = None,
        translator: Optional[MacroTranslator] = None,
    ) -> None:
        self.build_root = build_root
        self.settings = settings
        self.registry = registry if registry is not None else DirectiveRegistry()
        self.translator = translator if translator is not None else MacroTranslator()
        self.entries: Dict[CacheKey, CacheEntry] = {}
        self.locks: Dict[CacheKey, asyncio.Lock] = {}
        self.renderers: Dict[str, CitationRenderer] = {}
        self.loading: Dict[str, "asyncio.Task[CitationRenderer]"] = {}

    def __len__(self) -> int:
        return len(self.entries)

    def clear(self) -> None:
        """Drop all entries and citation renderers"""
        LOG(f"Clearing {len(self.entries)} cached page(s)", level=2)
        self.entries.clear()
        self.locks.clear()
        self.renderers.clear()
        self.loading.clear()

    @staticmethod
    def key_make(site_project: SiteProject, slug: str) -> CacheKey:
        return CacheKey(project=str(Path(site_project.path).resolve()), slug=slug)

    async def citationRenderer_get(self, project_config: ProjectConfig) -> CitationRenderer:
        """
        Citation renderer for a project, loaded at most once per project path

        Concurrent callers await the same load. A failed load is not kept,
        so the next build retries it.

        Raises:
            CitationError: If a bibliography file cannot be read
        """
        path = str(Path(project_config.path).resolve())
        if path in self.renderers:
            return self.renderers[path]
        task = self.loading.get(path)
        if task is None:
            files = [Path(project_config.path) / name for name in project_config.bibliography]
            task = asyncio.ensure_future(CitationRenderer.bibliography_load(files))
            self.loading[path] = task
        try:
            renderer = await asyncio.shield(task)
        finally:
            if self.loading.get(path) is task:
                del self.loading[path]
        self.renderers[path] = renderer
        return renderer

    def pageFile_get(self, site_project: SiteProject, slug: str) -> Path:
        return self.settings.contentDir_get(self.build_root) / site_project.slug / f"{slug}.json"

    async def file_process(
        self,
        site_project: SiteProject,
        page: Page,
        project_config: ProjectConfig,
    ) -> PageResult:
        """
        Process one page, or return its cached result

        Raises:
            OSError: If the source file cannot be read or the page JSON
                     cannot be written
        """
        key = self.key_make(site_project, page.slug)
        lock = self.locks.setdefault(key, asyncio.Lock())
        async with lock:
            async with aiofiles.open(page.file, 'rb') as f:
                raw = await f.read()
            checksum = hashlib.sha256(raw).hexdigest()

            entry = self.entries.get(key)
            if entry is not None and entry.checksum == checksum:
                entry.fresh = False
                LOG(f"{page.file}: unchanged", level=3)
                cached = entry.result
                return PageResult(
                    processed=False,
                    slug=cached.slug,
                    file=cached.file,
                    title=cached.title,
                    mdast=cached.mdast,
                    frontmatter=cached.frontmatter,
                    diagnostics=cached.diagnostics,
                    checksum=cached.checksum,
                )

            result = await self.page_compute(page, project_config, raw, checksum)
            await self.page_write(site_project, result)
            self.entries[key] = CacheEntry(key=key, checksum=checksum, result=result, fresh=True)
            return result

    async def page_compute(
        self,
        page: Page,
        project_config: ProjectConfig,
        raw: bytes,
        checksum: str,
    ) -> PageResult:
        """
        Parse a page by suffix, then resolve citations and check labels

        Bytes that are not valid UTF-8 are replaced and reported as a page
        error; the rest of the page is still built.
        """
        sink = DiagnosticSink(file=str(page.file))
        try:
            source = raw.decode('utf-8')
        except UnicodeDecodeError as e:
            sink.error(f"File is not valid UTF-8: {e}", SourceNode(name="file"), source="cache:decode")
            source = raw.decode('utf-8', errors='replace')
        title: Optional[str] = page.title
        if Path(page.file).suffix == '.tex':
            parser = TexParser(source, translator=self.translator, sink=sink)
            try:
                root = parser.parse()
            except SyntaxError as e:
                sink.error(str(e).strip(), SourceNode(name="tex", line=parser.line_number), source="tex:parse")
                root = parser.root
            frontmatter = parser.frontmatter
            title = title or frontmatter.get('title')
        else:
            context = {'language': project_config.language} if project_config.language else {}
            parser = MarkdownParser(source, registry=self.registry, sink=sink, context=context)
            root = parser.parse()
            frontmatter = parser.frontmatter
            title = title or parser.title

        renderer = await self.citationRenderer_get(project_config)
        renderer.cites_resolve(root, sink)
        labels_checkUnique(root, sink)
        LOG(f"Processed {page.file} ({len(sink.messages)} diagnostic(s))", level=2)
        return PageResult(
            processed=True,
            slug=page.slug,
            file=str(page.file),
            title=title,
            mdast=root,
            frontmatter=frontmatter,
            diagnostics=list(sink.messages),
            checksum=checksum,
        )

    async def page_write(self, site_project: SiteProject, result: PageResult) -> None:
        target = self.pageFile_get(site_project, result.slug)
        await asyncio.to_thread(target.parent.mkdir, parents=True, exist_ok=True)
        async with aiofiles.open(target, 'w', encoding='utf-8') as f:
            await f.write(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
