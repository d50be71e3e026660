"""
Watch trigger tests

Tests which paths trigger rebuilds, scheduling onto the event loop and the
single-flight lock. The watchdog observer itself is not started.
"""

import asyncio
import threading

import pytest
from loguru import logger

from docweave.config import AppSettings
from docweave.lib import log
from docweave.lib.build import BuildOrchestrator
from docweave.lib.toc import siteConfig_load
from docweave.lib.watch import SiteChangeHandler, WatchTrigger
from docweave.models.state import ProgramState


@pytest.fixture
def orchestrator(site, build_root):
    return BuildOrchestrator(siteConfig_load(site / "site.yml"), build_root, settings=AppSettings())


@pytest.fixture
def trigger(orchestrator):
    loop = asyncio.new_event_loop()
    yield WatchTrigger(orchestrator, loop)
    loop.close()


class TestPathQualifies:
    """Test the watch boundary"""

    def test_project_file(self, trigger, site):
        assert trigger.path_qualifies(site / "guide" / "install.md")

    def test_nested_project_file(self, trigger, site):
        assert trigger.path_qualifies(site / "legacy" / "figures" / "plot.png")

    def test_site_config(self, trigger, site):
        assert trigger.path_qualifies(site / "site.yml")

    def test_unrelated_file_next_to_site_config(self, trigger, site):
        assert not trigger.path_qualifies(site / "notes.txt")

    def test_build_output_ignored(self, trigger, build_root):
        assert not trigger.path_qualifies(build_root / "app" / "config.json")

    def test_build_dir_inside_project_ignored(self, trigger, site):
        assert not trigger.path_qualifies(site / "guide" / "_build" / "index.json")


class TestScheduling:
    """Test rebuild scheduling"""

    def test_change_schedules_build(self, orchestrator, site):
        async def scenario():
            trigger = WatchTrigger(orchestrator, asyncio.get_running_loop())
            future = trigger.change_handle(site / "guide" / "install.md")
            assert future is not None
            return await asyncio.wrap_future(future)

        result = asyncio.run(scenario())
        assert result.touched == 5

    def test_ignored_change_schedules_nothing(self, trigger, build_root):
        assert trigger.change_handle(build_root / "app" / "config.json") is None
        assert trigger.scheduled == []

    def test_every_event_builds(self, orchestrator, site):
        """No coalescing: each qualifying event runs its own build"""
        async def scenario():
            trigger = WatchTrigger(orchestrator, asyncio.get_running_loop())
            futures = [trigger.change_handle(site / "guide" / "install.md") for _ in range(3)]
            return await asyncio.gather(*(asyncio.wrap_future(f) for f in futures))

        results = asyncio.run(scenario())
        assert len(results) == 3
        assert orchestrator.builds == 3

    def test_handler_skips_directories(self, trigger, site):
        handler = SiteChangeHandler(trigger)
        handler.handle(str(site / "guide"), is_directory=True)
        assert trigger.scheduled == []

    def test_site_config_change_reloads(self, orchestrator, site):
        (site / "site.yml").write_text("title: Renamed\nprojects:\n  - {slug: guide, path: guide}\n", encoding="utf-8")

        async def scenario():
            trigger = WatchTrigger(orchestrator, asyncio.get_running_loop())
            return await trigger.rebuild(site / "site.yml")

        result = asyncio.run(scenario())
        assert orchestrator.site_config.title == "Renamed"
        assert [project.slug for project in result.projects] == ["guide"]


class TestSingleFlight:
    """Test rebuild serialization"""

    def overlap_measure(self, orchestrator, monkeypatch, single_flight):
        running = []
        peak = []

        async def fake_build(clean=False, force=False):
            running.append(1)
            peak.append(len(running))
            await asyncio.sleep(0.01)
            running.pop()

        monkeypatch.setattr(orchestrator, "site_build", fake_build)

        async def scenario():
            trigger = WatchTrigger(orchestrator, asyncio.get_running_loop(), single_flight=single_flight)
            await asyncio.gather(trigger.rebuild(), trigger.rebuild(), trigger.rebuild())

        asyncio.run(scenario())
        return max(peak)

    def test_default_from_settings(self, trigger):
        assert trigger.lock is not None

    def test_serialized(self, orchestrator, monkeypatch):
        assert self.overlap_measure(orchestrator, monkeypatch, single_flight=True) == 1

    def test_overlapping_when_disabled(self, orchestrator, monkeypatch):
        assert self.overlap_measure(orchestrator, monkeypatch, single_flight=False) == 3


class TestObserverThread:
    """Test rebuilds fired from the watchdog observer thread"""

    def test_rebuild_keeps_logging_state(self, orchestrator, site, monkeypatch):
        seen = []

        async def fake_build(clean=False, force=False):
            seen.append(log._program_state.get())

        monkeypatch.setattr(orchestrator, "site_build", fake_build)
        state = ProgramState(verbosity=3)

        async def scenario():
            log.state_connectToLogger(state)
            trigger = WatchTrigger(orchestrator, asyncio.get_running_loop())
            futures = []
            thread = threading.Thread(
                target=lambda: futures.append(trigger.change_handle(site / "guide" / "install.md"))
            )
            thread.start()
            thread.join()
            await asyncio.wrap_future(futures[0])

        asyncio.run(scenario())
        assert seen == [state]

    def test_failed_rebuild_is_reported_and_forgotten(self, orchestrator, site, monkeypatch):
        async def failing_build(clean=False, force=False):
            raise OSError("disk full")

        monkeypatch.setattr(orchestrator, "site_build", failing_build)
        messages = []
        handler = logger.add(messages.append, level="WARNING", format="{message}")

        async def scenario():
            trigger = WatchTrigger(orchestrator, asyncio.get_running_loop())
            future = trigger.change_handle(site / "guide" / "install.md")
            with pytest.raises(OSError):
                await asyncio.wrap_future(future)
            return trigger

        try:
            trigger = asyncio.run(scenario())
        finally:
            logger.remove(handler)
        assert trigger.scheduled == []
        assert any("Rebuild failed: disk full" in message for message in messages)
