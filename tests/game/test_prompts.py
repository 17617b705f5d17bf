"""
Tests for guidance prompts and the extinguisher tutorial.
"""

from unittest.mock import Mock

from firedrill.core.data.data_structures import Vector3
from firedrill.core.entities.scene import ParticleEmitterHandle, SceneEntity
from firedrill.game.alarm_countdown import AlarmCountdown
from firedrill.game.dialogue import StepDialogue
from firedrill.game.prompts import (
    DEFAULT_FIRE_WAIT,
    ExtinguisherTutorial,
    FireStartPrompt,
    ProximityGuidancePrompt,
)


class TestFireStartPrompt:
    """Test the raise-the-alarm prompt."""

    def test_wait_time_from_emitter(self, timeline):
        emitter = ParticleEmitterHandle("Flames", start_delay=0.5, start_lifetime=2.0)
        prompt = FireStartPrompt(timeline, fire_emitter=emitter, buffer_time=1.0)

        assert prompt.calculate_wait_time() == 3.5
        assert FireStartPrompt(timeline).calculate_wait_time() == DEFAULT_FIRE_WAIT

    def test_shows_after_wait(self, timeline):
        dialogue = StepDialogue(timeline)
        prompt = FireStartPrompt(timeline, dialogue=dialogue, message="Press it!", show_duration=4.0)

        prompt.start()
        timeline.advance(2.5)
        assert not prompt.shown

        timeline.advance(0.5)
        assert prompt.shown
        assert dialogue.text == "Press it!"

    def test_skipped_when_alarm_running(self, timeline):
        dialogue = StepDialogue(timeline)
        alarm = AlarmCountdown(timeline)
        prompt = FireStartPrompt(timeline, dialogue=dialogue, alarm=alarm)

        prompt.start()
        alarm.start()
        timeline.advance(DEFAULT_FIRE_WAIT)

        assert not prompt.shown

    def test_skipped_when_failed(self, timeline):
        dialogue = StepDialogue(timeline)
        window = SceneEntity("Failed Window")
        prompt = FireStartPrompt(timeline, dialogue=dialogue, failed_window=window)

        prompt.start()
        timeline.advance(DEFAULT_FIRE_WAIT)

        assert not prompt.shown


class TestProximityGuidancePrompt:
    """Test the distance-triggered hint."""

    def test_shows_once_when_close(self):
        dialogue = Mock()
        head = SceneEntity("Head", position=Vector3(0.0, 1.7, 0.0))
        prompt = ProximityGuidancePrompt(Vector3(3.0, 1.7, 0.0), dialogue=dialogue, player_head=head,
                                         message="Grab it", trigger_distance=1.0)

        assert not prompt.update(0.1)

        head.position = Vector3(2.5, 1.7, 0.0)
        assert prompt.update(0.1)
        dialogue.show_custom.assert_called_once_with("Grab it", 2.5)

        prompt.update(5.0)
        assert not prompt.update(0.1)
        assert dialogue.show_custom.call_count == 1

    def test_repeats_after_cooldown(self):
        dialogue = Mock()
        head = SceneEntity("Head")
        prompt = ProximityGuidancePrompt(Vector3.zero(), dialogue=dialogue, player_head=head,
                                         show_only_once=False, cooldown_seconds=1.0)

        assert prompt.update(0.1)
        assert not prompt.update(0.5)
        assert not prompt.update(0.5)
        assert prompt.update(0.1)

    def test_needs_dialogue_and_head(self):
        assert not ProximityGuidancePrompt(Vector3.zero()).update(0.1)

    def test_settings_are_clamped(self):
        prompt = ProximityGuidancePrompt(Vector3.zero(), show_for_seconds=0, trigger_distance=-1,
                                         cooldown_seconds=-5)

        assert prompt.show_for_seconds == 0.1
        assert prompt.trigger_distance == 0.1
        assert prompt.cooldown_seconds == 0.0


class TestExtinguisherTutorial:
    """Test the first pick-up message."""

    def test_only_first_pickup_shows(self):
        dialogue = Mock()
        tutorial = ExtinguisherTutorial(dialogue, message="Pull the pin", message_duration=5.0)

        assert tutorial.on_picked_up()
        assert not tutorial.on_picked_up()
        dialogue.show_custom.assert_called_once_with("Pull the pin", 5.0)
