"""
Unit tests for the PackageScheduler.

Tests the run lifecycle: delays, run-once, repeat, dedup, cancellation,
hook ordering and error isolation.
"""

import pytest

from firedrill.core.data.game_enums import LifecycleState, RevertTiming, TriggerMode
from firedrill.core.events.events import (
    LogMessage,
    PackageCompleted,
    PackageExecuted,
    PackageReverted,
    PackageStarted,
    PackageStopped,
    PackageTriggered,
)
from firedrill.core.entities.scene import SceneEntity
from firedrill.sequencing.package import ActionSet, ColliderSet, ObjectSet, Package


def record_hooks(package, log):
    """Append (phase, name) tuples to log for every hook point."""
    package.hooks.on_started(lambda p: log.append(("started", p.name)))
    package.hooks.on_executed(lambda p: log.append(("executed", p.name)))
    package.hooks.on_completed(lambda p: log.append(("completed", p.name)))


class TestTriggering:
    """Test which trigger attempts start a run."""

    def test_zero_delay_manual_trigger_runs_synchronously(self, make_scheduler):
        lamp = SceneEntity("Lamp", active=False)
        scheduler, _ = make_scheduler([
            Package("Light", actions=ActionSet(objects=ObjectSet(turn_on=(lamp,)))),
        ])
        log = []
        record_hooks(scheduler.catalog.get(0), log)

        assert scheduler.trigger("Light")

        assert lamp.active_self
        assert log == [("started", "Light"), ("executed", "Light"), ("completed", "Light")]
        assert scheduler.has_completed_once(0)
        assert not scheduler.is_active(0)

    def test_delay_waits_for_timeline(self, make_scheduler, timeline):
        lamp = SceneEntity("Lamp", active=False)
        scheduler, _ = make_scheduler([
            Package("Light", delay_seconds=2.0,
                    actions=ActionSet(objects=ObjectSet(turn_on=(lamp,)))),
        ])

        scheduler.trigger(0)
        assert scheduler.state_of(0) is LifecycleState.DELAYING

        timeline.advance(1.5)
        assert not lamp.active_self

        timeline.advance(0.5)
        assert lamp.active_self
        assert scheduler.state_of(0) is None

    @pytest.mark.parametrize("ref", [5, -1, "Missing", "", None, True])
    def test_unknown_reference_is_ignored(self, make_scheduler, ref):
        scheduler, _ = make_scheduler([Package("Only")])

        assert not scheduler.trigger(ref)
        assert not scheduler.stop(ref)
        assert scheduler.active_ids == []

    def test_disabled_package_never_starts(self, make_scheduler):
        scheduler, _ = make_scheduler([Package("Off", enabled=False)])

        assert not scheduler.trigger(0)
        assert not scheduler.has_completed_once(0)

    def test_run_once_blocks_after_execution(self, make_scheduler):
        scheduler, _ = make_scheduler([Package("Once")])

        assert scheduler.trigger(0)
        assert not scheduler.trigger(0)

    def test_run_once_false_allows_retrigger(self, make_scheduler):
        executed = []
        scheduler, _ = make_scheduler([Package("Again", run_once=False)])
        scheduler.catalog.get(0).hooks.on_executed(lambda p: executed.append(p.id))

        assert scheduler.trigger(0)
        assert scheduler.trigger(0)
        assert executed == [0, 0]

    def test_active_run_deduplicates(self, make_scheduler, timeline):
        executed = []
        scheduler, _ = make_scheduler([Package("Slow", delay_seconds=1.0, run_once=False)])
        scheduler.catalog.get(0).hooks.on_executed(lambda p: executed.append(timeline.current_time))

        assert scheduler.trigger(0)
        timeline.advance(0.5)
        assert not scheduler.trigger(0)
        timeline.advance(1.0)

        assert executed == [1.0]

    def test_run_once_not_set_until_execution(self, make_scheduler, timeline):
        scheduler, _ = make_scheduler([Package("Slow", delay_seconds=1.0)])

        scheduler.trigger(0)
        scheduler.stop(0)

        assert not scheduler.has_completed_once(0)
        assert scheduler.trigger(0)

    def test_negative_delay_rejected(self):
        with pytest.raises(ValueError):
            Package("Broken", delay_seconds=-1.0)


class TestStopping:
    """Test cancellation of active runs."""

    def test_stop_during_delay(self, make_scheduler, timeline):
        lamp = SceneEntity("Lamp", active=False)
        scheduler, _ = make_scheduler([
            Package("Light", delay_seconds=1.0,
                    actions=ActionSet(objects=ObjectSet(turn_on=(lamp,)))),
        ])
        log = []
        record_hooks(scheduler.catalog.get(0), log)

        scheduler.trigger(0)
        assert scheduler.stop(0)
        timeline.advance(5.0)

        assert not lamp.active_self
        assert log == [("started", "Light")]
        assert not scheduler.stop(0)

    def test_stop_during_revert_skips_revert_and_completion(self, make_scheduler, timeline):
        lamp = SceneEntity("Lamp", active=False)
        scheduler, _ = make_scheduler([
            Package("Flash", actions=ActionSet(objects=ObjectSet(
                turn_on=(lamp,), auto_revert=True, revert_delay_seconds=2.0))),
        ])
        log = []
        record_hooks(scheduler.catalog.get(0), log)

        scheduler.trigger(0)
        assert scheduler.state_of(0) is LifecycleState.REVERT_PENDING
        scheduler.stop(0)
        timeline.advance(5.0)

        assert lamp.active_self
        assert ("completed", "Flash") not in log

    def test_stop_all(self, make_scheduler):
        scheduler, _ = make_scheduler([
            Package("A", delay_seconds=1.0),
            Package("B", delay_seconds=1.0),
            Package("C"),
        ])
        scheduler.trigger("A")
        scheduler.trigger("B")

        assert scheduler.active_ids == [0, 1]
        assert scheduler.stop_all() == 2
        assert scheduler.active_ids == []

    def test_hook_can_stop_its_own_run(self, make_scheduler, timeline):
        executed = []
        scheduler, _ = make_scheduler([Package("Self Stop", delay_seconds=0.5)])
        package = scheduler.catalog.get(0)
        package.hooks.on_started(lambda p: scheduler.stop(p.id))
        package.hooks.on_executed(lambda p: executed.append(p.id))

        assert scheduler.trigger(0)
        timeline.advance(1.0)

        assert executed == []
        assert not scheduler.is_active(0)

    def test_stop_in_executed_hook_still_marks_completed_once(self, make_scheduler):
        completed = []
        scheduler, _ = make_scheduler([Package("Stopper")])
        package = scheduler.catalog.get(0)
        package.hooks.on_executed(lambda p: scheduler.stop(p.id))
        package.hooks.on_completed(lambda p: completed.append(p.id))

        scheduler.trigger(0)

        assert scheduler.has_completed_once(0)
        assert completed == []
        assert not scheduler.trigger(0)


class TestRevertsAndRepeat:
    """Test the revert phase and repeating runs."""

    def test_revert_then_complete(self, make_scheduler, timeline):
        lamp = SceneEntity("Lamp", active=False)
        scheduler, _ = make_scheduler([
            Package("Flash", actions=ActionSet(objects=ObjectSet(
                turn_on=(lamp,), auto_revert=True, revert_delay_seconds=2.0))),
        ])
        log = []
        record_hooks(scheduler.catalog.get(0), log)

        scheduler.trigger(0)
        assert lamp.active_self
        assert ("completed", "Flash") not in log

        timeline.advance(2.0)
        assert not lamp.active_self
        assert log[-1] == ("completed", "Flash")
        assert not scheduler.is_active(0)

    def test_sequential_revert_timing(self, make_scheduler, timeline, registry):
        blocker = registry.collider("Door Blocker")
        lamp = SceneEntity("Lamp", active=False)
        scheduler, _ = make_scheduler([
            Package("Both", actions=ActionSet(
                objects=ObjectSet(turn_on=(lamp,), auto_revert=True, revert_delay_seconds=1.0),
                colliders=ColliderSet(disable=(blocker,), auto_revert=True, revert_delay_seconds=1.0),
            )),
        ], revert_timing=RevertTiming.SEQUENTIAL)

        scheduler.trigger(0)
        timeline.advance(1.0)
        assert not lamp.active_self
        assert not blocker.enabled

        timeline.advance(1.0)
        assert blocker.enabled

    def test_repeat_with_delay_cycles(self, make_scheduler, timeline):
        executed = []
        scheduler, _ = make_scheduler([Package("Blink", delay_seconds=1.0, repeat=True)])
        scheduler.catalog.get(0).hooks.on_executed(lambda p: executed.append(timeline.current_time))

        scheduler.trigger(0)
        timeline.advance(1.0)
        timeline.advance(4.0)

        assert executed == [1.0, 2.0, 3.0, 4.0, 5.0]

        scheduler.stop(0)
        timeline.advance(5.0)
        assert len(executed) == 5

    def test_repeat_with_revert_cycles_after_revert(self, make_scheduler, timeline):
        lamp = SceneEntity("Lamp", active=False)
        states = []
        scheduler, _ = make_scheduler([
            Package("Pulse", repeat=True, actions=ActionSet(objects=ObjectSet(
                turn_on=(lamp,), auto_revert=True, revert_delay_seconds=0.5))),
        ])
        scheduler.catalog.get(0).hooks.on_completed(lambda p: states.append(lamp.active_self))

        scheduler.trigger(0)
        timeline.advance(1.0)

        # Executions at 0.0, 0.5 and 1.0; completions at 0.5 and 1.0
        assert states == [False, False]
        assert lamp.active_self

    def test_zero_time_repeat_waits_for_next_tick(self, make_scheduler):
        executed = []
        scheduler, dispatcher = make_scheduler([Package("Spin", repeat=True)])
        scheduler.catalog.get(0).hooks.on_executed(lambda p: executed.append(p.id))

        scheduler.trigger(0)
        assert executed == [0]
        assert scheduler.is_active(0)

        dispatcher.tick(0.016)
        dispatcher.tick(0.016)
        assert executed == [0, 0, 0]

        scheduler.stop(0)
        dispatcher.tick(0.016)
        assert len(executed) == 3

    def test_repeat_ignores_run_once_between_cycles(self, make_scheduler, timeline):
        executed = []
        scheduler, _ = make_scheduler([Package("Blink", delay_seconds=1.0, repeat=True, run_once=True)])
        scheduler.catalog.get(0).hooks.on_executed(lambda p: executed.append(timeline.current_time))

        scheduler.trigger(0)
        timeline.advance(3.0)
        scheduler.stop(0)

        assert executed == [1.0, 2.0, 3.0]
        assert not scheduler.trigger(0)


class StuckEntity(SceneEntity):
    """An entity whose actuator refuses to switch it off."""

    def set_active(self, value: bool) -> None:
        if not value:
            raise RuntimeError("actuator gone")
        super().set_active(value)


class TestActuatorFailures:
    """Test that actuator errors are logged without stalling any run."""

    def errors(self, event_log):
        return [e for e in event_log if isinstance(e, LogMessage) and e.category == "ERROR"]

    def test_failed_revert_still_completes_the_run(self, make_scheduler, event_manager,
                                                   event_log, timeline):
        stuck = StuckEntity("Stuck Lamp", active=False)
        beacon = SceneEntity("Beacon", active=False)
        scheduler, _ = make_scheduler([
            Package("Flash", run_once=False, actions=ActionSet(objects=ObjectSet(
                turn_on=(stuck,), auto_revert=True, revert_delay_seconds=1.0))),
            Package("Later", delay_seconds=1.0,
                    actions=ActionSet(objects=ObjectSet(turn_on=(beacon,)))),
        ])

        scheduler.trigger("Flash")
        scheduler.trigger("Later")
        timeline.advance(1.0)
        event_manager.process_events()

        assert beacon.active_self
        assert not scheduler.is_active("Flash")
        assert scheduler.active_ids == []
        assert [e.group for e in event_log if isinstance(e, PackageReverted)] == ["objects"]
        assert any(isinstance(e, PackageCompleted) and e.package_name == "Flash" for e in event_log)
        errors = self.errors(event_log)
        assert len(errors) == 1
        assert "actuator gone" in errors[0].message
        assert "Flash" in errors[0].message

        assert scheduler.trigger("Flash")

    def test_failed_object_revert_does_not_block_collider_revert(self, make_scheduler, timeline,
                                                                 registry):
        sensor = registry.collider("Door Sensor")
        stuck = StuckEntity("Stuck Lamp", active=False)
        scheduler, _ = make_scheduler([
            Package("Both", actions=ActionSet(
                objects=ObjectSet(turn_on=(stuck,), auto_revert=True, revert_delay_seconds=1.0),
                colliders=ColliderSet(enable=(sensor,), auto_revert=True, revert_delay_seconds=1.0),
            )),
        ], revert_timing=RevertTiming.SEQUENTIAL)

        scheduler.trigger(0)
        assert sensor.enabled

        timeline.advance(2.0)
        assert not sensor.enabled
        assert not scheduler.is_active(0)

    def test_failed_actions_do_not_count_as_completed_once(self, make_scheduler, event_manager,
                                                          event_log):
        stuck = StuckEntity("Stuck Door")
        scheduler, _ = make_scheduler([
            Package("Close", actions=ActionSet(objects=ObjectSet(turn_off=(stuck,)))),
        ])

        assert scheduler.trigger("Close")
        event_manager.process_events()

        assert not scheduler.has_completed_once("Close")
        assert not scheduler.is_active("Close")
        assert len(self.errors(event_log)) == 1
        assert scheduler.trigger("Close")

    def test_successful_actions_count_as_completed_once(self, make_scheduler):
        door = SceneEntity("Door")
        scheduler, _ = make_scheduler([
            Package("Close", actions=ActionSet(objects=ObjectSet(turn_off=(door,)))),
        ])

        assert scheduler.trigger("Close")
        assert scheduler.has_completed_once("Close")
        assert not scheduler.trigger("Close")


class TestHooksAndEvents:
    """Test hook isolation and published lifecycle events."""

    def test_hook_exception_is_logged_and_isolated(self, make_scheduler, event_manager, event_log):
        calls = []
        scheduler, _ = make_scheduler([Package("Fragile")])
        package = scheduler.catalog.get(0)

        def broken(p):
            raise RuntimeError("hook failure")

        package.hooks.on_started(broken)
        package.hooks.on_started(lambda p: calls.append("second started"))
        package.hooks.on_executed(lambda p: calls.append("executed"))

        assert scheduler.trigger(0)
        event_manager.process_events()

        assert calls == ["second started", "executed"]
        errors = [e for e in event_log if isinstance(e, LogMessage) and e.category == "ERROR"]
        assert len(errors) == 1
        assert "hook failure" in errors[0].message

    def test_lifecycle_events(self, make_scheduler, event_manager, event_log, timeline):
        lamp = SceneEntity("Lamp", active=False)
        scheduler, _ = make_scheduler([
            Package("Flash", actions=ActionSet(objects=ObjectSet(
                turn_on=(lamp,), auto_revert=True, revert_delay_seconds=1.0))),
            Package("Idle", delay_seconds=1.0),
        ])

        scheduler.trigger("Flash")
        timeline.advance(1.0)
        scheduler.trigger("Idle")
        scheduler.stop("Idle")
        event_manager.process_events()

        lifecycle = [type(e) for e in event_log if not isinstance(e, LogMessage)]
        assert lifecycle == [
            PackageTriggered, PackageStarted, PackageExecuted, PackageReverted, PackageCompleted,
            PackageTriggered, PackageStarted, PackageStopped,
        ]

    def test_trigger_mode_does_not_limit_manual_trigger(self, make_scheduler):
        scheduler, _ = make_scheduler([Package("Keyed", trigger_mode=TriggerMode.KEY_POLL, key="E")])

        assert scheduler.trigger("Keyed")
