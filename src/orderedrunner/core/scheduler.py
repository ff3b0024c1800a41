"""Ordering-aware execution of a scheduling plan.

The first method runs to completion before any normal unit starts, and the
last method starts only after every normal unit has completed. Normal units
may run concurrently; the fan-in is a completion barrier over all of them.
"""

import logging
import time
from concurrent.futures import ALL_COMPLETED, ThreadPoolExecutor, wait
from typing import Optional

from orderedrunner.core.extractor import ParameterExtractor
from orderedrunner.core.invocation import ExecutionUnit, make_unit
from orderedrunner.core.models import RunSummary, SchedulerState, SchedulingPlan, TestMethod
from orderedrunner.core.notification import RecordingNotifier, RunNotifier
from orderedrunner.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 4


class Scheduler:
    """Runs the units of one plan, honoring first/last ordering."""

    def __init__(
        self,
        plan: SchedulingPlan,
        notifier: Optional[RunNotifier] = None,
        extractor: Optional[ParameterExtractor] = None,
        max_workers: Optional[int] = None,
    ):
        """Initialize the scheduler.

        Args:
            plan: The plan to run; consumed by a single ``run()``
            notifier: Sink receiving unit events (recording notifier if omitted)
            extractor: Parameter extractor for parameterized methods
            max_workers: Thread pool size when the plan runs in parallel
        """
        self.plan = plan
        self.notifier = notifier or RecordingNotifier()
        self.extractor = extractor or ParameterExtractor()
        self.max_workers = max_workers or DEFAULT_MAX_WORKERS
        self.state = SchedulerState.IDLE
        self.history: list[SchedulerState] = [SchedulerState.IDLE]

    def _enter(self, state: SchedulerState) -> None:
        logger.info("%s: %s -> %s", self.plan.test_class.__qualname__, self.state.value, state.value)
        self.state = state
        self.history.append(state)

    def run(self) -> RunSummary:
        """Execute the plan.

        Returns:
            RunSummary for this run when the notifier records events,
            otherwise an empty summary with the duration set

        Raises:
            RuntimeError: If this scheduler has already run
        """
        if self.state != SchedulerState.IDLE:
            raise RuntimeError("A scheduler runs its plan only once")

        start_time = time.time()

        if self.plan.first is not None:
            self._enter(SchedulerState.RUNNING_FIRST)
            self._run_sequential(self._units_for(self.plan.first))

        if self.plan.normal:
            self._enter(SchedulerState.RUNNING_NORMAL)
            units = []
            for method in self.plan.normal:
                units.extend(self._units_for(method))

            if self.plan.parallel:
                self._run_parallel(units)
            else:
                self._run_sequential(units)

        if self.plan.last is not None:
            self._enter(SchedulerState.RUNNING_LAST)
            self._run_sequential(self._units_for(self.plan.last))

        self._enter(SchedulerState.COMPLETED)

        duration_ms = int((time.time() - start_time) * 1000)
        if isinstance(self.notifier, RecordingNotifier):
            return self.notifier.summary(duration_ms=duration_ms)
        return RunSummary(duration_ms=duration_ms)

    def _units_for(self, method: TestMethod) -> list[ExecutionUnit]:
        """Resolve and bind every unit of a method.

        A configuration error is reported once for the method, which then
        contributes no units.
        """
        if method.ignored:
            self.notifier.unit_ignored(method.display_name, method.ignore_reason)
            return []

        try:
            if not method.parameterized:
                return [make_unit(method)]

            tuples = self.extractor.resolve(
                method.parameter_spec, method.arity, method_name=method.display_name
            )
            return [make_unit(method, params, index) for index, params in enumerate(tuples)]
        except ConfigurationError as e:
            logger.error("Configuration error in %s: %s", method.display_name, e)
            self.notifier.configuration_error(method.display_name, e)
            return []

    def _run_unit(self, unit: ExecutionUnit) -> None:
        # Test bodies are caught inside the unit; what reaches here was raised
        # by the notifier and must not break the ordering barriers.
        try:
            unit.run(self.notifier)
        except Exception:
            logger.exception("Notifier failed while reporting %s", unit.unit_id)

    def _run_sequential(self, units: list[ExecutionUnit]) -> None:
        for unit in units:
            self._run_unit(unit)

    def _run_parallel(self, units: list[ExecutionUnit]) -> None:
        if not units:
            return

        with ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="orderedrunner"
        ) as pool:
            futures = [pool.submit(self._run_unit, unit) for unit in units]
            wait(futures, return_when=ALL_COMPLETED)


def run_plan(
    plan: SchedulingPlan,
    notifier: Optional[RunNotifier] = None,
    extractor: Optional[ParameterExtractor] = None,
    max_workers: Optional[int] = None,
) -> RunSummary:
    """Convenience wrapper running a plan with a fresh scheduler."""
    return Scheduler(plan, notifier, extractor, max_workers).run()
