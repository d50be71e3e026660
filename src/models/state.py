"""
Program state model and pipeline helper

Defines ProgramState dataclass for the functional pipeline pattern and
the pipeline() helper for composing transformation stages.
"""

from pathlib import Path
from argparse import Namespace
from typing import Any, Optional, Type, TypeVar, Callable
from dataclasses import dataclass, field


PS = TypeVar("PS", bound="ProgramState")


@dataclass
class ProgramState:
    """
    Central state container for the build pipeline (state bus pattern).

    This dataclass carries all program state through the functional pipeline,
    with each stage adding new fields as the build progresses.

    Pipeline stages and their state additions:
        - Initial: inputdir, outputdir, verbosity, configFile, clean, force, watch
        - env_check: siteConfigFile, buildRoot, envOK
        - site_build: orchestrator, buildResult
        - results_report: (no additions)
        - content_watch: (blocks until interrupted, no additions)

    Attributes:
        inputdir: Site root containing the site configuration
        outputdir: Base output directory for build products
        verbosity: Logging verbosity level (1-3)
        configFile: Site configuration filename (relative to inputdir)
        clean: Remove previous build output before building
        force: Rebuild everything, ignoring cached pages
        watch: Keep watching sources and rebuild on change
        envOK: Environment validation passed
        siteConfigFile: Resolved path to the site configuration
        buildRoot: Resolved build output root
        orchestrator: BuildOrchestrator shared by the initial build and watch
        buildResult: SiteBuild from the latest build
    """

    # CLI arguments
    inputdir: Optional[Path] = field(default=None)
    outputdir: Optional[Path] = field(default=None)
    verbosity: int = field(default=1)
    configFile: str = field(default="")
    clean: bool = field(default=False)
    force: bool = field(default=False)
    watch: bool = field(default=False)

    # Pipeline state
    envOK: bool = field(default=False)
    siteConfigFile: Path = field(default=Path("/"))
    buildRoot: Path = field(default=Path("/"))
    orchestrator: Optional[Any] = field(default=None)  # BuildOrchestrator at runtime
    buildResult: Optional[Any] = field(default=None)  # SiteBuild at runtime

    @classmethod
    def state_createFromNamespace(
        cls: Type["ProgramState"], options: Namespace, inputdir: Path, outputdir: Path
    ) -> "ProgramState":
        """
        Create ProgramState from argparse Namespace and directory paths.

        Args:
            options: Parsed CLI arguments (configFile, clean, etc.)
            inputdir: Site root directory
            outputdir: Build output directory

        Returns:
            ProgramState instance with all CLI options as attributes
        """
        options_dict = vars(options)

        import dataclasses
        valid_fields = {f.name for f in dataclasses.fields(cls)}

        # Keep only options that ProgramState knows about
        filtered_options = {k: v for k, v in options_dict.items() if k in valid_fields}

        merged_args = {**filtered_options, "inputdir": inputdir, "outputdir": outputdir}

        return cls(**merged_args)

    def copy(self: PS) -> PS:
        """
        Creates a shallow copy of the ProgramState instance.

        Returns:
            A new ProgramState instance.
        """
        return type(self)(**self.__dict__)


def pipeline(
    initial_state: ProgramState, *stages: Callable[[ProgramState], ProgramState]
) -> ProgramState:
    """
    Execute a functional pipeline of state transformations.

    Each stage is a function (ProgramState) -> ProgramState that receives
    the output of the previous stage and returns a new state.

    Example:
        final_state = pipeline(
            initial_state,
            env_check,
            site_build,
            results_report,
        )

    This is equivalent to:
        results_report(site_build(env_check(initial_state)))
    """
    from functools import reduce
    return reduce(lambda state, stage: stage(state), stages, initial_state)
