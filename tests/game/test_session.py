"""
Integration tests for TrainingSession running the bundled scenario.
"""

import random

import pytest

from firedrill.core.data.game_enums import ContactKind
from firedrill.core.entities.scene import SceneEntity
from firedrill.game.extinguish_zone import WRONG_FUMES_REASON
from firedrill.game.light_pulser import RED
from firedrill.game.scenarios.scenario_loader import ScenarioLoader, find_scenario
from firedrill.game.session import TrainingSession


FRAME = 0.5


@pytest.fixture
def session():
    return TrainingSession.from_file(find_scenario("fire_drill"), rng=random.Random(3))


def run_for(session, seconds, keys=()):
    for _ in range(int(seconds / FRAME)):
        session.tick(FRAME, keys)


class TestSessionStart:
    """Test start-up behaviour."""

    def test_start_shows_first_step_and_runs_session_packages(self, session):
        registry = session.registry

        assert session.start() == [0]
        assert session.start() == []
        assert session.dialogue.text == "A fire has started. Find the alarm button!"
        assert registry.entity("Dialogue Panel").active_self

        run_for(session, 1.0)
        assert registry.entity("Smoke").active_self

    def test_first_tick_starts_session(self, session):
        session.tick(FRAME)

        assert session.dispatcher.session_started
        assert session.dialogue.is_showing

    def test_fire_start_prompt(self, session):
        run_for(session, 3.5)

        assert session.fire_start_prompt.shown
        assert session.dialogue.text == "Press the Fire Alarm Button!"


class TestAlarmFlow:
    """Test the alarm button package and its hooks."""

    def test_alarm_button_chain(self, session):
        registry = session.registry
        session.tick(FRAME)

        assert session.trigger_enter(registry.entity("Left Hand")) == [1]

        assert registry.entity("Alarm Beacon").active_self
        assert not registry.entity("Dialogue Panel").active_self
        assert session.alarm.is_running()
        assert session.scheduler.has_completed_once("Alarm Bell")
        speaker = registry.audio_source("Ceiling Speaker")
        assert speaker.loop and speaker.is_playing
        button = registry.audio_source("Button Speaker")
        assert button.history[-1].action == "one_shot"
        assert button.history[-1].volume == pytest.approx(0.8)

    def test_alarm_starts_light_pulser(self, session):
        registry = session.registry
        session.tick(FRAME)
        session.trigger("Press Alarm")

        run_for(session, 1.0)

        light = registry.light("Corridor Light A")
        assert light.color == RED
        assert 0.2 <= light.intensity <= 4.0

    def test_hand_outside_rig_does_not_press(self, session):
        stranger = SceneEntity("Visitor", tag="PlayerHand", layer=3)

        assert session.trigger_enter(stranger) == []
        assert not session.alarm.is_running()

    def test_alarm_timeout_fails_and_requests_restart(self, session):
        session.tick(FRAME)
        session.trigger("Press Alarm")

        run_for(session, 89.5)
        assert not session.failed

        run_for(session, 0.5)
        assert session.failed
        assert session.is_game_over
        assert session.registry.entity("Failed Window").active_self
        assert not session.restart_requested

        run_for(session, 4.0)
        assert session.restart_requested


class TestCabinetAndKeys:
    """Test the key-driven cabinet package with auto-revert."""

    def test_cabinet_opens_and_reverts(self, session):
        registry = session.registry
        session.start()

        assert session.tick(FRAME, ["e"]) == [3]
        assert registry.entity("Cabinet Door Open").active_self
        assert not registry.entity("Cabinet Door Closed").active_self
        assert not registry.collider("Cabinet Trigger").enabled

        run_for(session, 7.5, keys=["e"])
        assert not registry.entity("Cabinet Door Open").active_self
        assert registry.entity("Cabinet Door Closed").active_self
        assert registry.collider("Cabinet Trigger").enabled
        assert session.dialogue.text == "Take the Class D extinguisher from the cabinet."

    def test_beacon_flash_repeats_until_stopped(self, session):
        beacon = session.registry.entity("Alarm Beacon")
        session.start()

        session.tick(FRAME, ["F"])
        run_for(session, 1.5)
        assert session.scheduler.is_active("Beacon Flash")

        assert session.stop("Beacon Flash")
        state = beacon.active_self
        run_for(session, 2.0)
        assert beacon.active_self == state

    def test_extinguisher_collision_locks_door(self, session):
        registry = session.registry

        assert session.collision_enter(registry.entity("Extinguisher")) == [5]
        assert registry.collider("Server Room Door").enabled

    def test_contact_kind_selects_packages(self, session):
        hand = session.registry.entity("Left Hand")

        assert session.contact(ContactKind.COLLISION, hand) == []
        assert session.contact(ContactKind.TRIGGER_VOLUME, hand) == [1]


class TestFireZone:
    """Test the fire zone through the session."""

    def test_extinguish(self, session):
        fumes = SceneEntity("Fumes", tag="FumesClassD")
        session.tick(FRAME)

        session.fumes_enter("Fire Zone", fumes)
        run_for(session, 3.0)

        assert session.extinguished_zones == ["Fire Zone"]
        assert not session.registry.entity("Smoke").active_self
        assert not session.failed

    def test_wrong_extinguisher(self, session):
        session.tick(FRAME)

        session.fumes_enter("Fire Zone", SceneEntity("Water", tag="FumesWater"))

        assert session.failed
        assert session.failure_reason == WRONG_FUMES_REASON
        assert not session.registry.entity("Locomotion").active_self

    def test_unknown_zone(self, session):
        with pytest.raises(KeyError):
            session.fumes_enter("Kitchen", SceneEntity("Fumes"))


class TestSessionMisc:
    """Test tutorial, logging and restart."""

    def test_tutorial_once(self, session):
        assert session.pick_up_extinguisher()
        assert not session.pick_up_extinguisher()
        assert session.dialogue.text.startswith("Aim at the base of the fire")

    def test_session_log_collects_sequence_messages(self, session, tmp_path):
        session.start()
        session.trigger("Alarm Bell")

        texts = [m.text for m in session.log_manager.get_messages()]
        assert "Session started: Server Room Fire" in texts
        assert "Started 'Alarm Bell'" in texts

        path = tmp_path / "session.txt"
        session.save_log(str(path))
        assert "Finished 'Alarm Bell'" in path.read_text(encoding="utf-8")

    def test_restart_builds_fresh_session(self, session):
        session.tick(FRAME)
        session.trigger("Press Alarm")

        fresh = session.restart()

        assert fresh is not session
        assert not fresh.alarm.is_running()
        assert not fresh.scheduler.has_completed_once("Press Alarm")
        assert fresh.timeline.current_time == 0.0

    def test_restart_needs_source_file(self):
        definition = ScenarioLoader.parse_scenario({"name": "Inline"})
        with pytest.raises(ValueError):
            TrainingSession(definition).restart()


class TestHookCommands:
    """Test validation of hook command strings."""

    @pytest.mark.parametrize("command", [
        "alarm.start",
        "dialogue.step one",
        "package.trigger Missing",
        "zone.reset Kitchen",
        "teleport.player",
        "",
    ])
    def test_invalid_commands(self, command):
        definition = ScenarioLoader.parse_scenario({
            "dialogue": {"steps": [{"text": "Hi"}]},
            "packages": [{"name": "P", "hooks": {"executed": [command]}}],
        })

        with pytest.raises(ValueError):
            TrainingSession(definition)

    def test_package_commands(self):
        definition = ScenarioLoader.parse_scenario({
            "packages": [
                {"name": "First", "hooks": {"executed": ["package.trigger Second"]}},
                {"name": "Second", "delay": 1.0, "hooks": {"started": ["package.stop Second"]}},
            ],
        })
        session = TrainingSession(definition)

        assert session.trigger("First")
        assert session.scheduler.has_completed_once("First")
        assert not session.scheduler.is_active("Second")

    def test_sessions_from_one_definition_bind_hooks_separately(self):
        definition = ScenarioLoader.parse_scenario({
            "packages": [
                {"name": "First", "run_once": False, "hooks": {"executed": ["package.trigger Second"]}},
                {"name": "Second", "run_once": False},
            ],
        })
        first = TrainingSession(definition)
        second = TrainingSession(definition)

        assert definition.catalog.get(0).hooks.executed == []
        assert len(first.catalog.get(0).hooks.executed) == 1
        assert len(second.catalog.get(0).hooks.executed) == 1

        assert second.trigger("First")
        assert second.scheduler.has_completed_once("Second")
        assert not first.scheduler.has_completed_once("Second")


class TestGestures:
    """Test the gesture stabilizer through the session."""

    def test_teleport_ray_follows_gesture(self, session):
        ray = session.registry.entity("Teleport Ray")
        session.tick(FRAME)

        session.gesture_found("Teleport Pose")
        assert ray.active_self

        assert session.gesture_lost("Teleport Pose")
        session.tick(FRAME)
        assert not ray.active_self

    def test_brief_loss_keeps_ray_visible(self, session):
        ray = session.registry.entity("Teleport Ray")
        session.tick(FRAME)

        session.gesture_found("Teleport Pose")
        session.gesture_lost("Teleport Pose")
        session.gesture_found("Teleport Pose")
        run_for(session, 2.0)

        assert ray.active_self

    def test_no_hide_scheduled_once_locomotion_is_off(self, session):
        session.tick(FRAME)
        session.gesture_found("Teleport Pose")
        session.fumes_enter("Fire Zone", SceneEntity("Water", tag="FumesWater"))

        assert not session.gesture_lost("Teleport Pose")

    def test_unknown_gesture(self, session):
        with pytest.raises(KeyError):
            session.gesture_found("Wave")

    def test_unknown_target(self):
        definition = ScenarioLoader.parse_scenario({
            "gesture_stabilizers": [{"name": "Pose", "target": "Nowhere"}],
        })

        with pytest.raises(ValueError, match="Nowhere"):
            TrainingSession(definition)
