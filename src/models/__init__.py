"""
Models package for docweave

Contains data structures and type definitions for directives, document
trees, diagnostics, site configuration and build results.
"""

from .state import ProgramState, pipeline
from .directives import DirectiveSpec, DirectiveInvocation, DirectiveData, OptionSpec, OptionType
from .diagnostics import Diagnostic, DiagnosticSink, Severity, SourceNode
from .site import SiteConfig, SiteProject, ProjectConfig, Page, ProjectConfigError
from .build import CacheKey, CacheEntry, PageResult, ProjectBuild, SiteBuild

__all__ = [
    "ProgramState",
    "pipeline",
    "DirectiveSpec",
    "DirectiveInvocation",
    "DirectiveData",
    "OptionSpec",
    "OptionType",
    "Diagnostic",
    "DiagnosticSink",
    "Severity",
    "SourceNode",
    "SiteConfig",
    "SiteProject",
    "ProjectConfig",
    "Page",
    "ProjectConfigError",
    "CacheKey",
    "CacheEntry",
    "PageResult",
    "ProjectBuild",
    "SiteBuild",
]
