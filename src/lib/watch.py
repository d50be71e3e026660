"""
Rebuild on source changes

Watches the site configuration file and every project directory with a
watchdog observer. Each qualifying file event schedules its own site build
on the orchestrator's event loop; there is no debouncing or coalescing.
Events under the build output path are ignored.

With single-flight enabled (the default) rebuilds are serialized behind an
asyncio.Lock, so two builds never overlap on the shared cache.
"""

import asyncio
import contextvars
from concurrent.futures import Future
from pathlib import Path
from typing import List, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ..models.build import SiteBuild
from ..models.site import ProjectConfigError
from .build import BuildOrchestrator
from .log import LOG, WARN
from .toc import siteConfig_load


class SiteChangeHandler(FileSystemEventHandler):
    """Forwards file events to a WatchTrigger"""

    def __init__(self, trigger: "WatchTrigger") -> None:
        self.trigger = trigger

    def handle(self, path: str, is_directory: bool) -> None:
        if not is_directory:
            self.trigger.change_handle(Path(path))

    def on_modified(self, event: FileSystemEvent) -> None:
        self.handle(str(event.src_path), event.is_directory)

    def on_created(self, event: FileSystemEvent) -> None:
        self.handle(str(event.src_path), event.is_directory)

    def on_deleted(self, event: FileSystemEvent) -> None:
        self.handle(str(event.src_path), event.is_directory)

    def on_moved(self, event: FileSystemEvent) -> None:
        self.handle(str(event.dest_path), event.is_directory)


class WatchTrigger:
    """
    Schedules site rebuilds for file changes

    Args:
        orchestrator: Orchestrator (and cache) shared with the initial build
        loop: Event loop the rebuilds run on; must be running while watching
        single_flight: Serialize rebuilds (defaults to the orchestrator's
                       watch_single_flight setting)

    Example:
        >>> trigger = WatchTrigger(orchestrator, asyncio.get_running_loop())
        >>> trigger.start()
        >>> ...
        >>> trigger.stop()
    """

    def __init__(
        self,
        orchestrator: BuildOrchestrator,
        loop: asyncio.AbstractEventLoop,
        single_flight: Optional[bool] = None,
    ) -> None:
        self.orchestrator = orchestrator
        self.loop = loop
        if single_flight is None:
            single_flight = orchestrator.settings.watch_single_flight
        self.lock: Optional[asyncio.Lock] = asyncio.Lock() if single_flight else None
        self.observer: Optional[Observer] = None
        self.scheduled: List["Future[SiteBuild]"] = []
        # Logging state of the pipeline stage that created the trigger
        self.context = contextvars.copy_context()

    @property
    def buildRoot(self) -> Path:
        return self.orchestrator.build_root.resolve()

    def path_qualifies(self, path: Path) -> bool:
        """
        Whether a change at path should trigger a rebuild

        The site config file and anything inside a project directory
        qualify, unless it lies under the build output path or a build
        directory.
        """
        path = path.resolve()
        if path == self.buildRoot or self.buildRoot in path.parents:
            return False
        if self.orchestrator.settings.build_dir in path.parts:
            return False
        site_config = self.orchestrator.site_config
        if site_config.config_file is not None and path == Path(site_config.config_file).resolve():
            return True
        for project in site_config.projects:
            project_path = Path(project.path).resolve()
            if path == project_path or project_path in path.parents:
                return True
        return False

    def change_handle(self, path: Path) -> Optional["Future[SiteBuild]"]:
        """
        Schedule a rebuild for a qualifying change

        Called from the observer thread. The rebuild runs in a copy of the
        context the trigger was created in, so LOG() keeps the pipeline's
        verbosity.

        Returns:
            Future of the scheduled build, None when the change is ignored
        """
        if not self.path_qualifies(path):
            return None
        return self.context.copy().run(self.rebuild_schedule, path)

    def rebuild_schedule(self, path: Path) -> "Future[SiteBuild]":
        LOG(f"👀 Change detected: {path}")
        future = asyncio.run_coroutine_threadsafe(self.rebuild(path), self.loop)
        self.scheduled.append(future)
        future.add_done_callback(self.rebuild_done)
        return future

    def rebuild_done(self, future: "Future[SiteBuild]") -> None:
        """Forget a finished rebuild, reporting it if it failed"""
        if future in self.scheduled:
            self.scheduled.remove(future)
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            WARN(f"Rebuild failed: {error}")

    async def rebuild(self, path: Optional[Path] = None) -> SiteBuild:
        """Run one site build, behind the single-flight lock when enabled"""
        if self.lock is None:
            return await self.site_rebuild(path)
        async with self.lock:
            return await self.site_rebuild(path)

    async def site_rebuild(self, path: Optional[Path]) -> SiteBuild:
        config_file = self.orchestrator.site_config.config_file
        if path is not None and config_file is not None and path.resolve() == Path(config_file).resolve():
            try:
                self.orchestrator.site_config = siteConfig_load(Path(config_file))
            except ProjectConfigError as e:
                WARN(f"Keeping previous site configuration: {e}")
        return await self.orchestrator.site_build()

    def start(self) -> None:
        """Start watching the site config file and every project directory"""
        site_config = self.orchestrator.site_config
        handler = SiteChangeHandler(self)
        self.observer = Observer()
        if site_config.config_file is not None:
            self.observer.schedule(handler, str(Path(site_config.config_file).resolve().parent), recursive=False)
        for project in site_config.projects:
            self.observer.schedule(handler, str(Path(project.path).resolve()), recursive=True)
            LOG(f"Watching {project.path}", level=2)
        self.observer.start()

    def stop(self) -> None:
        if self.observer is not None:
            self.observer.stop()
            self.observer.join()
            self.observer = None
