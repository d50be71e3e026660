"""
Site build orchestration

A site build fans out over projects, each project fans out over its pages,
and the site manifest is written once after every project build settles.

    site_build
      ├─ project_build(guide)      citations, then gather(index, pages...)
      ├─ project_build(reference)  citations, then gather(index, pages...)
      └─ barrier → siteManifest_write

Page processing is delegated to the DocumentCache, so a rebuild only
recomputes pages whose sources changed.
"""

import asyncio
import json
import shutil
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiofiles

from ..config import AppSettings, appsettings
from ..models.build import ProjectBuild, SiteBuild
from ..models.site import Page, SiteConfig, SiteProject
from .cache import DocumentCache
from .log import LOG, WARN, tic
from .toc import projectConfig_load


class BuildOrchestrator:
    """
    Builds every project of a site into the build root

    Example:
        >>> orchestrator = BuildOrchestrator(siteConfig_load(Path("site.yml")), Path("_build"))
        >>> result = asyncio.run(orchestrator.site_build())
        >>> result.touched
        4
    """

    def __init__(
        self,
        site_config: SiteConfig,
        build_root: Path,
        settings: AppSettings = appsettings,
        cache: Optional[DocumentCache] = None,
    ) -> None:
        self.site_config = site_config
        self.build_root = build_root
        self.settings = settings
        self.cache = cache if cache is not None else DocumentCache(build_root, settings=settings)
        self.builds = 0

    @property
    def contentDir(self) -> Path:
        return self.settings.contentDir_get(self.build_root)

    @property
    def staticDir(self) -> Path:
        return self.settings.staticDir_get(self.build_root)

    @property
    def manifestFile(self) -> Path:
        return self.settings.manifestFile_get(self.build_root)

    async def buildFiles_clean(self) -> None:
        """Remove content and static output; failures are logged, not raised"""
        for directory in (self.contentDir, self.staticDir):
            if not directory.exists():
                continue
            LOG(f"Removing {directory}", level=2)
            try:
                await asyncio.to_thread(shutil.rmtree, directory)
            except OSError as e:
                WARN(f"Could not remove {directory}: {e}")

    async def buildFolders_ensure(self) -> None:
        for directory in (self.contentDir, self.staticDir, self.manifestFile.parent):
            await asyncio.to_thread(directory.mkdir, parents=True, exist_ok=True)

    async def project_build(self, site_project: SiteProject) -> ProjectBuild:
        """
        Build one project

        The citation renderer is loaded before any page task starts. Pages
        are processed concurrently; results keep table-of-contents order
        with the index page first.

        Raises:
            ProjectConfigError: If the project configuration is unusable
            CitationError: If a bibliography file cannot be read
            OSError: If a page cannot be read or written
        """
        toc = tic()
        project_config = projectConfig_load(Path(site_project.path), self.settings)
        await self.cache.citationRenderer_get(project_config)

        pages: List[Page] = [Page(file=project_config.file, slug=project_config.index, title=project_config.title)]
        pages.extend(page for page in project_config.pages_routable if page.slug != project_config.index)
        results = await asyncio.gather(*(
            self.cache.file_process(site_project, page, project_config) for page in pages
        ))

        touched = sum(1 for result in results if result.processed)
        if touched:
            LOG(toc(f"📚 Built {touched} / {len(pages)} pages for {site_project.slug} in %s."))
        else:
            LOG(toc(f"📚 {len(pages)} pages loaded from cache for {site_project.slug} in %s."))

        manifest = project_config.manifest_get()
        manifest["slug"] = site_project.slug
        titles = {result.slug: result.title for result in results}
        manifest["title"] = manifest["title"] or titles.get(project_config.index)
        for entry in manifest["pages"]:
            if entry["slug"] in titles and not entry["title"]:
                entry["title"] = titles[entry["slug"]]
        return ProjectBuild(slug=site_project.slug, pages=list(results), touched=touched, manifest=manifest)

    async def site_build(self, clean: bool = False, force: bool = False) -> SiteBuild:
        """
        Build every project, then write the site manifest

        A failing project is recorded in the manifest's errors and does not
        stop its siblings.
        """
        toc = tic()
        if clean or force:
            await self.buildFiles_clean()
            self.cache.clear()
        await self.buildFolders_ensure()

        outcomes = await asyncio.gather(
            *(self.project_build(project) for project in self.site_config.projects),
            return_exceptions=True,
        )

        result = SiteBuild()
        for project, outcome in zip(self.site_config.projects, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                WARN(f"Project {project.slug} failed: {outcome}")
                result.errors[project.slug] = str(outcome)
            else:
                result.projects.append(outcome)

        result.manifest_file = str(await self.siteManifest_write(result))
        self.builds += 1
        LOG(toc(f"🏁 Site built: {result.touched} of {result.page_count} pages processed in %s."))
        return result

    def siteManifest_get(self, result: SiteBuild) -> Dict[str, Any]:
        return {
            "title": self.site_config.title,
            "projects": [project.manifest for project in result.projects],
            "errors": dict(result.errors),
        }

    async def siteManifest_write(self, result: SiteBuild) -> Path:
        target = self.manifestFile
        async with aiofiles.open(target, 'w', encoding='utf-8') as f:
            await f.write(json.dumps(self.siteManifest_get(result), indent=2, ensure_ascii=False))
        LOG(f"Wrote site manifest {target}", level=2)
        return target
