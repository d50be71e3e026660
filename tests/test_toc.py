"""
Configuration loader tests

Tests site configuration, configured projects and discovered projects.
"""

import pytest

from docweave.config import AppSettings
from docweave.lib.toc import projectConfig_load, siteConfig_load, slug_make
from docweave.models.site import ProjectConfigError


class TestSlugs:
    """Test slug derivation"""

    @pytest.mark.parametrize("text, expected", [
        ("index", "index"),
        ("01 Getting Started", "01-getting-started"),
        ("API_reference", "api-reference"),
        ("---", "page"),
    ])
    def test_slug_make(self, text, expected):
        assert slug_make(text) == expected


class TestSiteConfig:
    """Test loading site.yml"""

    def test_projects(self, site):
        config = siteConfig_load(site / "site.yml")
        assert config.title == "Handbook"
        assert [project.slug for project in config.projects] == ["guide", "legacy"]
        assert config.projects[0].path == (site / "guide").resolve()
        assert config.config_file == site / "site.yml"

    def test_duplicate_slug(self, tmp_path):
        config_file = tmp_path / "site.yml"
        config_file.write_text("projects:\n  - {slug: a, path: x}\n  - {slug: a, path: y}\n", encoding="utf-8")
        with pytest.raises(ProjectConfigError):
            siteConfig_load(config_file)

    def test_invalid_yaml(self, tmp_path):
        config_file = tmp_path / "site.yml"
        config_file.write_text("projects: [unclosed\n", encoding="utf-8")
        with pytest.raises(ProjectConfigError):
            siteConfig_load(config_file)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ProjectConfigError):
            siteConfig_load(tmp_path / "site.yml")


class TestProjectConfig:
    """Test loading project tables of contents"""

    def test_configured_project(self, site):
        config = projectConfig_load(site / "guide", AppSettings())
        assert config.title == "User guide"
        assert config.index == "index"
        assert config.language == "python"
        assert config.bibliography == ["refs.bib"]
        assert [page.slug for page in config.pages] == ["install", None, "usage"]
        assert [page.slug for page in config.pages_routable] == ["install", "usage"]

    def test_discovered_project(self, site):
        config = projectConfig_load(site / "legacy", AppSettings())
        assert config.file == site / "legacy" / "main.tex"
        assert config.index == "main"
        assert [page.slug for page in config.pages] == ["notes"]
        assert config.bibliography == []

    def test_discovered_bibliography(self, site):
        (site / "legacy" / "refs.bib").write_text("", encoding="utf-8")
        config = projectConfig_load(site / "legacy", AppSettings())
        assert config.bibliography == ["refs.bib"]

    def test_missing_directory(self, tmp_path):
        with pytest.raises(ProjectConfigError):
            projectConfig_load(tmp_path / "absent", AppSettings())

    def test_empty_directory(self, tmp_path):
        with pytest.raises(ProjectConfigError):
            projectConfig_load(tmp_path, AppSettings())

    def test_invalid_project_yaml(self, site):
        (site / "guide" / "project.yml").write_text("pages: [oops\n", encoding="utf-8")
        with pytest.raises(ProjectConfigError):
            projectConfig_load(site / "guide", AppSettings())
