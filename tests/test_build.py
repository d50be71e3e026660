"""
Site build tests

Tests project fan-out, incremental rebuilds, clean/force, failure isolation
and the manifest barrier.
"""

import asyncio
import json

import pytest

from docweave.config import AppSettings
from docweave.lib.build import BuildOrchestrator
from docweave.lib.toc import siteConfig_load
from docweave.models.site import SiteProject


@pytest.fixture
def orchestrator(site, build_root):
    return BuildOrchestrator(siteConfig_load(site / "site.yml"), build_root, settings=AppSettings())


class TestProjectBuild:
    """Test building a single project"""

    def test_pages_in_order_with_index_first(self, orchestrator, site):
        project = SiteProject(slug="guide", path=site / "guide")
        build = asyncio.run(orchestrator.project_build(project))
        assert [page.slug for page in build.pages] == ["index", "install", "usage"]
        assert build.touched == 3

    def test_manifest_titles(self, orchestrator, site):
        project = SiteProject(slug="guide", path=site / "guide")
        manifest = asyncio.run(orchestrator.project_build(project)).manifest
        assert manifest["slug"] == "guide"
        assert manifest["title"] == "User guide"
        assert manifest["pages"] == [
            {"slug": "install", "title": "Installing", "level": 1},
            {"slug": None, "title": "Background", "level": 1},
            {"slug": "usage", "title": "Usage", "level": 2},
        ]

    def test_discovered_project(self, orchestrator, site):
        project = SiteProject(slug="legacy", path=site / "legacy")
        build = asyncio.run(orchestrator.project_build(project))
        assert [page.slug for page in build.pages] == ["main", "notes"]


class TestSiteBuild:
    """Test full site builds"""

    def test_first_build_touches_every_page(self, orchestrator):
        result = asyncio.run(orchestrator.site_build())
        assert result.errors == {}
        assert result.page_count == 5
        assert result.touched == 5

    def test_rebuild_without_changes(self, orchestrator):
        first = asyncio.run(orchestrator.site_build())
        second = asyncio.run(orchestrator.site_build())
        assert second.touched == 0
        assert second.page_count == first.page_count
        first_trees = [page.mdast.to_dict() for project in first.projects for page in project.pages]
        second_trees = [page.mdast.to_dict() for project in second.projects for page in project.pages]
        assert first_trees == second_trees

    def test_one_edit_touches_one_page(self, orchestrator, site):
        asyncio.run(orchestrator.site_build())
        (site / "guide" / "install.md").write_text("# Installing\n\nUse pip.\n", encoding="utf-8")
        result = asyncio.run(orchestrator.site_build())
        assert result.touched == 1
        assert [page.slug for project in result.projects for page in project.pages if page.processed] == ["install"]

    def test_force_rebuilds_everything(self, orchestrator):
        asyncio.run(orchestrator.site_build())
        result = asyncio.run(orchestrator.site_build(force=True))
        assert result.touched == 5

    def test_clean_removes_stale_output(self, orchestrator, build_root):
        asyncio.run(orchestrator.site_build())
        stale = build_root / "app/content/guide/stale.json"
        stale.write_text("{}", encoding="utf-8")
        asyncio.run(orchestrator.site_build(clean=True))
        assert not stale.exists()
        assert (build_root / "app/content/guide/install.json").exists()
        assert (build_root / "public/_static").is_dir()

    def test_manifest_written(self, orchestrator, build_root):
        result = asyncio.run(orchestrator.site_build())
        assert result.manifest_file == str(build_root / "app/config.json")
        manifest = json.loads((build_root / "app/config.json").read_text(encoding="utf-8"))
        assert manifest["title"] == "Handbook"
        assert [project["slug"] for project in manifest["projects"]] == ["guide", "legacy"]
        assert manifest["errors"] == {}

    def test_failing_project_does_not_stop_siblings(self, orchestrator, site, build_root):
        orchestrator.site_config.projects.append(SiteProject(slug="ghost", path=site / "ghost"))
        result = asyncio.run(orchestrator.site_build())
        assert list(result.errors) == ["ghost"]
        assert [project.slug for project in result.projects] == ["guide", "legacy"]
        manifest = json.loads((build_root / "app/config.json").read_text(encoding="utf-8"))
        assert "ghost" in manifest["errors"]

    def test_invalid_utf8_page_is_a_page_error(self, orchestrator, site):
        (site / "guide" / "install.md").write_bytes(b"# Caf\xe9\n\nBroken bytes.\n")
        result = asyncio.run(orchestrator.site_build())
        assert result.errors == {}
        guide = next(project for project in result.projects if project.slug == "guide")
        assert [page.slug for page in guide.pages] == ["index", "install", "usage"]
        install = next(page for page in guide.pages if page.slug == "install")
        assert [d.severity.value for d in install.diagnostics] == ["error"]

    def test_unreadable_bibliography_stops_only_its_project(self, orchestrator, site):
        (site / "guide" / "refs.bib").unlink()
        result = asyncio.run(orchestrator.site_build())
        assert list(result.errors) == ["guide"]
        assert [project.slug for project in result.projects] == ["legacy"]

    def test_manifest_written_after_all_projects(self, orchestrator, monkeypatch):
        """The manifest write waits for every project build to settle"""
        events = []
        project_build = orchestrator.project_build
        manifest_write = orchestrator.siteManifest_write

        async def tracked_build(project):
            await asyncio.sleep(0.01 if project.slug == "guide" else 0)
            build = await project_build(project)
            events.append(f"built:{project.slug}")
            return build

        async def tracked_write(result):
            events.append("manifest")
            return await manifest_write(result)

        monkeypatch.setattr(orchestrator, "project_build", tracked_build)
        monkeypatch.setattr(orchestrator, "siteManifest_write", tracked_write)
        asyncio.run(orchestrator.site_build())
        assert events[-1] == "manifest"
        assert sorted(events[:-1]) == ["built:guide", "built:legacy"]
