#!/usr/bin/env python3
"""
docweave - Multi-project documentation site builder

Builds a site of one or more documentation projects, written in markdown
with directives or in legacy LaTeX, into page JSON plus a site manifest.

As an aside, this codebase leverages the ChRIS "plugin" concept/pattern as
general purpose python app development framework.

Philosophy:
    - Source-first: pages stay readable without building
    - Incremental: only pages whose sources changed are recomputed
    - Forgiving: authoring mistakes become diagnostics, never aborted builds

Build output (under outputdir/):
    app/content/<project>/<page>.json   processed page trees
    public/_static/                     static assets
    app/config.json                     site manifest

Usage:
    docweave inputdir/ outputdir/

Examples:
    # Build the site described by inputdir/site.yml
    docweave docs/ _build/

    # Start from scratch, then keep rebuilding on change
    docweave docs/ _build/ --clean --watch

    # Verbose output
    docweave docs/ _build/ -vv
"""

import asyncio
import sys
from pathlib import Path
from argparse import ArgumentParser, Namespace, ArgumentDefaultsHelpFormatter

from chris_plugin import chris_plugin
from .config import appsettings
from .lib import BuildOrchestrator, WatchTrigger, siteConfig_load, __version__, LOG, state_connectToLogger
from .models import ProgramState, ProjectConfigError, pipeline


# Define CLI arguments
parser = ArgumentParser(
    description="docweave - Multi-project documentation site builder",
    formatter_class=ArgumentDefaultsHelpFormatter,
)

parser.add_argument(
    "--configFile",
    default=appsettings.site_config_file,
    type=str,
    help="Site configuration file (relative to inputdir)",
)

parser.add_argument(
    "--clean",
    action="store_true",
    default=False,
    help="Remove previous build output before building",
)

parser.add_argument(
    "--force",
    action="store_true",
    default=False,
    help="Rebuild every page, ignoring cached results",
)

parser.add_argument(
    "--watch",
    action="store_true",
    default=False,
    help="Keep watching sources and rebuild on change",
)

parser.add_argument(
    "-v",
    "--verbosity",
    action="count",
    default=1,
    help="Increase output verbosity (can be repeated: -v, -vv, -vvv)",
)

parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")


def env_check(inputstate: ProgramState) -> ProgramState:
    """
    Validate environment and resolve all file paths.

    Args:
        inputstate: Initial program state with CLI options

    Returns:
        ProgramState with added fields:
            - siteConfigFile: Resolved path to the site configuration
            - buildRoot: Resolved build output root
            - envOK: True if environment is valid

    Exits:
        1 if the site configuration is not found
    """

    state = inputstate.copy()

    LOG("Checking environment...", level=2)

    config_file = state.inputdir / state.configFile
    if not config_file.exists():
        print(f"Error: Site configuration not found: {config_file}", file=sys.stderr)
        state.envOK = False
        sys.exit(1)

    state.siteConfigFile = config_file.resolve()
    LOG(f"Site configuration: {state.siteConfigFile}", level=2)

    state.buildRoot = state.outputdir.resolve()
    state.buildRoot.mkdir(parents=True, exist_ok=True)
    LOG(f"Build root: {state.buildRoot}", level=2)

    state.envOK = True
    return state


def site_build(inputstate: ProgramState) -> ProgramState:
    """
    Build every project of the site.

    Args:
        inputstate: Program state with siteConfigFile and buildRoot set

    Returns:
        ProgramState with added fields:
            - orchestrator: BuildOrchestrator (reused by content_watch)
            - buildResult: SiteBuild of the completed build

    Exits:
        1 if the site configuration cannot be loaded
    """

    state = inputstate.copy()

    try:
        site_config = siteConfig_load(state.siteConfigFile)
    except ProjectConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    LOG(f"Building {len(site_config.projects)} project(s)...", level=1)
    state.orchestrator = BuildOrchestrator(site_config, state.buildRoot)
    state.buildResult = asyncio.run(
        state.orchestrator.site_build(clean=state.clean, force=state.force)
    )
    return state


def results_report(inputstate: ProgramState) -> ProgramState:
    """
    Display build results to the user.

    Returns:
        ProgramState unchanged

    Exits:
        1 if no build result is available
    """
    state: ProgramState = inputstate.copy()
    result = state.buildResult
    if result is None:
        print("Error: Build failed", file=sys.stderr)
        sys.exit(1)

    LOG("\n✓ Build complete!", level=1)
    LOG(f"  Manifest: {result.manifest_file}", level=1)
    LOG(f"  Pages:    {result.page_count} ({result.touched} processed)", level=1)
    diagnostics = sum(len(page.diagnostics) for project in result.projects for page in project.pages)
    if diagnostics:
        LOG(f"  Diagnostics: {diagnostics}", level=1)
    for slug, error in result.errors.items():
        print(f"Project {slug} failed: {error}", file=sys.stderr)
    return state


def content_watch(inputstate: ProgramState) -> ProgramState:
    """
    Rebuild on source changes until interrupted (only with --watch).

    The orchestrator and its cache are shared with the initial build, so
    only changed pages are recomputed.
    """
    state: ProgramState = inputstate.copy()
    if not state.watch:
        return state

    async def watch_run() -> None:
        trigger = WatchTrigger(state.orchestrator, asyncio.get_running_loop())
        trigger.start()
        LOG("👀 Watching for changes (Ctrl-C to stop)...", level=1)
        try:
            await asyncio.Event().wait()
        finally:
            trigger.stop()

    try:
        asyncio.run(watch_run())
    except KeyboardInterrupt:
        LOG("Stopped watching", level=1)
    return state


@chris_plugin(
    parser=parser,
    title="docweave - Multi-project documentation site builder",
    category="Utility",
    min_memory_limit="100Mi",
    min_cpu_limit="500m",
)
def main(options: Namespace, inputdir: Path, outputdir: Path):
    """
    Main entry point - build a documentation site.

    Orchestrates the full build pipeline:
        1. env_check: Validate paths and environment
        2. site_build: Build all projects and write the site manifest
        3. results_report: Display results to user
        4. content_watch: Rebuild on change when --watch is given

    Args:
        options: CLI arguments from argparse
            - configFile: str - Site configuration filename
            - clean: bool - Remove previous build output first
            - force: bool - Ignore cached pages
            - watch: bool - Rebuild on change
            - verbosity: int - Logging verbosity level (1-3)
        inputdir: Site root directory
        outputdir: Build output root

    Note:
        This function is wrapped by @chris_plugin which handles CLI
        argument parsing and invokes this function with parsed values.
    """

    state: ProgramState = ProgramState.state_createFromNamespace(
        options=options, inputdir=inputdir, outputdir=outputdir
    )

    # Connect state to logger for entire pipeline
    state_connectToLogger(state)

    # Execute build pipeline
    pipeline(state, env_check, site_build, results_report, content_watch)


if __name__ == "__main__":
    main()  # type: ignore  # @chris_plugin decorator transforms signature
