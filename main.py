#!/usr/bin/env python3

import sys

from firedrill.core.entities import SceneEntity
from firedrill.game.scenarios import find_scenario
from firedrill.game.session import TrainingSession


FRAME_TIME = 1.0 / 30


def run_scripted_drill(session: TrainingSession) -> None:
    """Play a short, successful drill without a headset."""
    registry = session.registry
    hand = registry.entity("Left Hand")
    extinguisher = registry.entity("Extinguisher")
    fumes = SceneEntity("Class D Fumes", tag="FumesClassD")

    session.start()
    for _ in range(90):
        session.tick(FRAME_TIME)

    # Teleport towards the alarm button
    for name in session.gesture_stabilizers:
        session.gesture_found(name)
        session.tick(FRAME_TIME)
        session.gesture_lost(name)
    for _ in range(30):
        session.tick(FRAME_TIME)

    if hand is not None:
        session.trigger_enter(hand)
    session.tick(FRAME_TIME, ["E"])
    session.tick(FRAME_TIME)

    session.pick_up_extinguisher()
    if extinguisher is not None:
        session.collision_enter(extinguisher)

    zone_name = next(iter(session.fire_zones), None)
    if zone_name is not None:
        session.fumes_enter(zone_name, fumes)
        for _ in range(150):
            session.tick(FRAME_TIME)
        session.fumes_exit(zone_name, fumes)

    if session.alarm is not None:
        session.alarm.cancel()
    for _ in range(90):
        session.tick(FRAME_TIME)


def main():
    scenario_name = sys.argv[1] if len(sys.argv) > 1 else "fire_drill"

    session = TrainingSession.from_file(find_scenario(scenario_name))

    try:
        run_scripted_drill(session)
    except KeyboardInterrupt:
        print("\n\nDrill interrupted by user")
    except Exception as e:
        print(f"\n\nError: {e}")
        raise
    finally:
        for message in session.log_manager.get_messages():
            print(message.format(include_time=True))
        print(f"\nExtinguished: {', '.join(session.extinguished_zones) or 'none'}")
        print("Result:", "FAILED - " + session.failure_reason if session.failed else "PASSED")


if __name__ == "__main__":
    main()
