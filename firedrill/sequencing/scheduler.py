"""Package lifecycle scheduling.

The PackageScheduler owns all runtime state of the sequencing engine:
which packages have completed once, and which have a run in flight. A run
moves through

    STARTED -> DELAYING -> EXECUTING -> (REVERT_PENDING ->) COMPLETED
            -> DELAYING (repeat) | FINISHED

with the two waits expressed as timeline entries owned by the run. Stopping
a run removes those entries, so nothing of it fires afterwards.

Trigger attempts that cannot start a run (unknown package, disabled,
already completed once, already running) are silently ignored; they are
normal flow in a live session rather than errors.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional, TYPE_CHECKING

from ..core.data import LifecycleState, RevertTiming
from ..core.engine import Timeline
from ..core.events import (
    LogMessage,
    PackageCompleted,
    PackageExecuted,
    PackageReverted,
    PackageStarted,
    PackageStopped,
    PackageTriggered,
)
from .catalog import PackageCatalog, PackageRef
from .executor import ActionExecutor
from .package import Package, PackageHook
from .revert import RevertScheduler

if TYPE_CHECKING:
    from ..core.events import EventManager, SessionEvent


@dataclass(eq=False)
class PackageRun:
    """Handle for one in-flight lifecycle of a package."""
    run_id: str
    package: Package
    state: LifecycleState = LifecycleState.STARTED
    cycle: int = 0
    cycle_started_at: float = 0.0
    cancelled: bool = False


class PackageScheduler:
    """Starts, advances and cancels package runs."""

    def __init__(
        self,
        catalog: PackageCatalog,
        timeline: Timeline,
        event_manager: Optional["EventManager"] = None,
        executor: Optional[ActionExecutor] = None,
        revert_timing: RevertTiming = RevertTiming.CONCURRENT,
    ):
        """Initialize the scheduler.

        Args:
            catalog: Package definitions
            timeline: Session timeline the waits are scheduled on
            event_manager: Optional bus for lifecycle and log events
            executor: Action executor (a default one is created if omitted)
            revert_timing: How object and collider revert timers relate
        """
        self.catalog = catalog
        self.timeline = timeline
        self.event_manager = event_manager
        self.executor = executor or ActionExecutor()
        self.reverts = RevertScheduler(timeline, self.executor, revert_timing)

        self._active: dict[int, PackageRun] = {}
        self._completed_once: set[int] = set()
        self._deferred: list[PackageRun] = []
        self._run_counter = 0
        self._pass_depth = 0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def trigger(self, ref: PackageRef) -> bool:
        """Start a run for a package given by id or exact name.

        Returns:
            True if a new run was started
        """
        package = self.catalog.resolve(ref)
        if package is None or not package.enabled:
            return False
        if package.run_once and package.id in self._completed_once:
            return False
        if package.id in self._active:
            return False

        self._run_counter += 1
        run = PackageRun(run_id=f"package-{package.id}-run-{self._run_counter}", package=package)
        self._active[package.id] = run
        self._publish(PackageTriggered(self.timeline.current_time, package.id, package.name))

        self._start(run)
        if self._pass_depth == 0:
            self.timeline.run_due()
        return True

    def stop(self, ref: PackageRef) -> bool:
        """Cancel the active run of a package, if any.

        No revert is applied and no further hook fires.

        Returns:
            True if a run was cancelled
        """
        package = self.catalog.resolve(ref)
        if package is None:
            return False
        run = self._active.pop(package.id, None)
        if run is None:
            return False

        run.cancelled = True
        run.state = LifecycleState.CANCELLED
        self.timeline.remove_entry(run.run_id)
        self._publish(PackageStopped(self.timeline.current_time, package.id, package.name))
        self._log(f"Stopped '{package.name}'")
        return True

    def stop_all(self) -> int:
        """Cancel every active run.

        Returns:
            Number of runs cancelled
        """
        return sum(1 for package_id in list(self._active) if self.stop(package_id))

    @contextmanager
    def dispatch_pass(self) -> Iterator[None]:
        """Group several triggers so their zero-delay steps run afterwards.

        Inside the block every triggered package goes through its started
        step immediately; execution that needs no wait happens when the
        outermost block exits, in trigger order.
        """
        self._pass_depth += 1
        try:
            yield
        finally:
            self._pass_depth -= 1
            if self._pass_depth == 0:
                self.timeline.run_due()

    def resume_deferred(self) -> int:
        """Start the next cycle of repeating runs parked since the last tick.

        A repeating package whose whole cycle took no timeline time would
        otherwise loop forever inside a single tick; such runs wait here
        until the host advances the session again.
        """
        parked, self._deferred = self._deferred, []
        resumed = 0
        for run in parked:
            if run.cancelled:
                continue
            self._begin_cycle(run)
            resumed += 1
        return resumed

    def is_active(self, ref: PackageRef) -> bool:
        package = self.catalog.resolve(ref)
        return package is not None and package.id in self._active

    def has_completed_once(self, ref: PackageRef) -> bool:
        package = self.catalog.resolve(ref)
        return package is not None and package.id in self._completed_once

    def state_of(self, ref: PackageRef) -> Optional[LifecycleState]:
        """Lifecycle state of the active run, or None when idle."""
        package = self.catalog.resolve(ref)
        if package is None:
            return None
        run = self._active.get(package.id)
        return run.state if run is not None else None

    @property
    def active_ids(self) -> list[int]:
        return sorted(self._active)

    # ------------------------------------------------------------------
    # Lifecycle steps
    # ------------------------------------------------------------------

    def _start(self, run: PackageRun) -> None:
        package = run.package
        run.state = LifecycleState.STARTED
        self._log(f"Started '{package.name}'")
        self._invoke_hooks(run, package.hooks.started, "started")
        if run.cancelled:
            return
        self._publish(PackageStarted(self.timeline.current_time, package.id, package.name))
        self._begin_cycle(run)

    def _begin_cycle(self, run: PackageRun) -> None:
        run.state = LifecycleState.DELAYING
        run.cycle += 1
        run.cycle_started_at = self.timeline.current_time
        self.timeline.schedule(
            run.package.delay_seconds,
            lambda: self._execute(run),
            run.run_id,
            description=f"execute {run.package.name}",
        )

    def _execute(self, run: PackageRun) -> None:
        if run.cancelled:
            return
        package = run.package
        run.state = LifecycleState.EXECUTING

        applied = True
        try:
            self.executor.execute(package.actions)
        except Exception as e:
            applied = False
            self._log(f"Actions of '{package.name}' failed: {e}", category="ERROR")

        self._invoke_hooks(run, package.hooks.executed, "executed")
        if applied:
            self._completed_once.add(package.id)
        if run.cancelled:
            return
        self._publish(PackageExecuted(self.timeline.current_time, package.id, package.name,
                                      cycle=run.cycle))

        scheduled = self.reverts.schedule(
            run.run_id,
            package.actions,
            on_reverted=lambda group: self._reverted(run, group),
            on_done=lambda: self._complete(run),
            on_error=lambda group, e: self._log(
                f"Revert of {group} for '{package.name}' failed: {e}", category="ERROR"),
        )
        if scheduled:
            run.state = LifecycleState.REVERT_PENDING
        else:
            self._complete(run)

    def _reverted(self, run: PackageRun, group: str) -> None:
        package = run.package
        self._log(f"Reverted {group} of '{package.name}'")
        self._publish(PackageReverted(self.timeline.current_time, package.id, package.name,
                                      group=group))

    def _complete(self, run: PackageRun) -> None:
        if run.cancelled:
            return
        package = run.package
        run.state = LifecycleState.COMPLETED
        self._invoke_hooks(run, package.hooks.completed, "completed")
        if run.cancelled:
            return
        self._publish(PackageCompleted(self.timeline.current_time, package.id, package.name,
                                       cycle=run.cycle))

        if package.repeat:
            if run.cycle_started_at == self.timeline.current_time:
                run.state = LifecycleState.DELAYING
                self._deferred.append(run)
            else:
                self._begin_cycle(run)
            return

        run.state = LifecycleState.FINISHED
        if self._active.get(package.id) is run:
            del self._active[package.id]
        self._log(f"Finished '{package.name}'")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _invoke_hooks(self, run: PackageRun, hooks: list[PackageHook], phase: str) -> None:
        for hook in list(hooks):
            if run.cancelled:
                return
            try:
                hook(run.package)
            except Exception as e:
                self._log(f"{phase} hook of '{run.package.name}' raised: {e}", category="ERROR")

    def _publish(self, event: "SessionEvent") -> None:
        if self.event_manager is not None:
            self.event_manager.publish(event, source="PackageScheduler")

    def _log(self, message: str, category: str = "SEQUENCE") -> None:
        if self.event_manager is not None:
            self.event_manager.publish(
                LogMessage(self.timeline.current_time, message, category, source="PackageScheduler"),
                source="PackageScheduler",
            )
