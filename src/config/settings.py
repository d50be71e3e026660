"""
Application settings and configuration

Uses pydantic-settings for type-safe configuration via environment variables.
All settings use DOCWEAVE_ prefix (e.g., DOCWEAVE_DEFAULT_LANGUAGE=julia).

Settings can also be loaded from a .env file in the project root.
"""

from pathlib import Path
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Application configuration via environment variables.

    Environment variables use DOCWEAVE_ prefix.

    Examples:
        DOCWEAVE_BUILD_DIR=_site
        DOCWEAVE_DEFAULT_LANGUAGE=r
        DOCWEAVE_WATCH_SINGLE_FLIGHT=false
    """

    model_config = SettingsConfigDict(
        env_prefix="DOCWEAVE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Site layout
    site_config_file: str = Field(
        default="site.yml",
        description="Site configuration file name, relative to the site root",
    )

    project_config_file: str = Field(
        default="project.yml",
        description="Per-project configuration file name, relative to the project path",
    )

    source_suffixes: List[str] = Field(
        default=[".md", ".tex"],
        description="File suffixes discovered as pages when a project has no config file",
    )

    # Build output layout
    build_dir: str = Field(
        default="_build",
        description="Build output directory name; changes inside it never trigger rebuilds",
    )

    content_dir: str = Field(
        default="app/content",
        description="Processed page JSON, relative to the build root",
    )

    static_dir: str = Field(
        default="public/_static",
        description="Static assets directory, relative to the build root",
    )

    manifest_file: str = Field(
        default="app/config.json",
        description="Site manifest written once per completed build, relative to the build root",
    )

    # Parsing
    default_language: str = Field(
        default="python",
        description="Language for code cells when neither the directive nor the page names one",
    )

    # Watching
    watch_single_flight: bool = Field(
        default=True,
        description="Serialize watch-triggered rebuilds so two builds never overlap",
    )

    def contentDir_get(self, build_root: Path) -> Path:
        """Absolute content directory for a build root"""
        return build_root / self.content_dir

    def staticDir_get(self, build_root: Path) -> Path:
        """Absolute static assets directory for a build root"""
        return build_root / self.static_dir

    def manifestFile_get(self, build_root: Path) -> Path:
        """Absolute site manifest path for a build root"""
        return build_root / self.manifest_file


# Singleton instance - import this in your code
appsettings = AppSettings()
