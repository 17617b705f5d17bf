"""Timed auto-revert of executed action groups.

Object and collider groups carry their own auto-revert flag and delay. By
default both timers start when the package executes and run side by side;
the revert phase ends when the last of them fires. ``RevertTiming.SEQUENTIAL``
starts the collider timer only after the object revert has been applied.
"""

from typing import Callable, Optional

from ..core.data import RevertTiming
from ..core.engine import Timeline
from .executor import ActionExecutor
from .package import ActionSet


GROUP_OBJECTS = "objects"
GROUP_COLLIDERS = "colliders"


class RevertScheduler:
    """Places revert callbacks on the timeline for a package run.

    Every entry is scheduled under the run's owner id, so cancelling the run's
    timeline entries also abandons any revert that has not fired yet.
    """

    def __init__(self, timeline: Timeline, executor: ActionExecutor,
                 timing: RevertTiming = RevertTiming.CONCURRENT):
        self.timeline = timeline
        self.executor = executor
        self.timing = timing

    def schedule(self,
                 owner_id: str,
                 actions: ActionSet,
                 on_reverted: Callable[[str], None],
                 on_done: Callable[[], None],
                 on_error: Optional[Callable[[str, Exception], None]] = None) -> bool:
        """Arrange the reverts an action set asks for.

        Args:
            owner_id: Timeline owner for every entry created here
            actions: The action set that was just executed
            on_reverted: Called with the group name after each revert
            on_done: Called once every requested revert has been applied
            on_error: Called with the group name and the exception when an
                actuator fails during a revert. The run still counts the group
                as reverted. Without it the exception propagates.

        Returns:
            False if nothing needs reverting (on_done is not called)
        """
        groups = self._requested_groups(actions)
        if not groups:
            return False

        if self.timing is RevertTiming.SEQUENTIAL:
            self._schedule_chain(owner_id, actions, groups, on_reverted, on_done, on_error)
        else:
            self._schedule_concurrent(owner_id, actions, groups, on_reverted, on_done, on_error)
        return True

    def _requested_groups(self, actions: ActionSet) -> list[tuple[str, float]]:
        groups = []
        if actions.objects.wants_revert:
            groups.append((GROUP_OBJECTS, actions.objects.revert_delay_seconds))
        if actions.colliders.wants_revert:
            groups.append((GROUP_COLLIDERS, actions.colliders.revert_delay_seconds))
        return groups

    def _apply(self, group: str, actions: ActionSet, on_error) -> None:
        try:
            if group == GROUP_OBJECTS:
                self.executor.revert_objects(actions.objects)
            else:
                self.executor.revert_colliders(actions.colliders)
        except Exception as e:
            if on_error is None:
                raise
            on_error(group, e)

    def _schedule_concurrent(self, owner_id, actions, groups, on_reverted, on_done, on_error) -> None:
        pending = {name for name, _ in groups}

        def make_callback(group: str) -> Callable[[], None]:
            def fire() -> None:
                self._apply(group, actions, on_error)
                pending.discard(group)
                on_reverted(group)
                if not pending:
                    on_done()
            return fire

        for group, delay in groups:
            self.timeline.schedule(delay, make_callback(group), owner_id,
                                   description=f"revert {group}")

    def _schedule_chain(self, owner_id, actions, groups, on_reverted, on_done, on_error) -> None:
        group, delay = groups[0]
        remaining = groups[1:]

        def fire() -> None:
            self._apply(group, actions, on_error)
            on_reverted(group)
            if remaining:
                self._schedule_chain(owner_id, actions, remaining, on_reverted, on_done,
                                     on_error)
            else:
                on_done()

        self.timeline.schedule(delay, fire, owner_id, description=f"revert {group}")
