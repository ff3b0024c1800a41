"""Partitioning of test methods into first, normal and last."""

import logging
from typing import Any, Callable, Iterable, Optional

from orderedrunner.core.discovery import discover_methods
from orderedrunner.core.models import Role, SchedulingPlan, TestMethod
from orderedrunner.exceptions import ConfigurationError
from orderedrunner.markers import is_parallel

logger = logging.getLogger(__name__)


def classify(
    candidates: Iterable[TestMethod],
    test_class: Optional[type] = None,
    parallel: bool = False,
    sorter: Optional[Callable[[TestMethod], Any]] = None,
) -> SchedulingPlan:
    """Build a scheduling plan from an already filtered set of methods.

    Args:
        candidates: Test methods in discovery order
        test_class: Class the methods belong to
        parallel: Whether normal methods may run concurrently
        sorter: Optional key function ordering the normal methods

    Raises:
        ConfigurationError: If more than one method is marked first or last,
            or a method is marked both first and last
    """
    candidates = list(candidates)

    both = [m.name for m in candidates if m.marked_first and m.marked_last]
    if both:
        raise ConfigurationError(
            f"method marked both first and last: {', '.join(both)}"
        )

    firsts = [m for m in candidates if m.role == Role.FIRST]
    lasts = [m for m in candidates if m.role == Role.LAST]
    if len(firsts) > 1:
        raise ConfigurationError(
            f"multiple first: {', '.join(m.name for m in firsts)}"
        )
    if len(lasts) > 1:
        raise ConfigurationError(
            f"multiple last: {', '.join(m.name for m in lasts)}"
        )

    normal = [m for m in candidates if m.role == Role.NORMAL]
    if sorter is not None:
        normal.sort(key=sorter)

    if test_class is None and candidates:
        test_class = candidates[0].test_class

    return SchedulingPlan(
        test_class=test_class,
        first=firsts[0] if firsts else None,
        normal=tuple(normal),
        last=lasts[0] if lasts else None,
        parallel=parallel,
    )


def build_plan(
    test_class: type,
    method_filter: Optional[Callable[[TestMethod], bool]] = None,
    sorter: Optional[Callable[[TestMethod], Any]] = None,
    parallel: Optional[bool] = None,
) -> SchedulingPlan:
    """Discover, filter and classify the tests of a class.

    ``parallel`` overrides the class's ``parallel_execution`` marker when
    given.
    """
    methods = discover_methods(test_class)
    if method_filter is not None:
        methods = [m for m in methods if method_filter(m)]

    if parallel is None:
        parallel = is_parallel(test_class)

    plan = classify(methods, test_class=test_class, parallel=parallel, sorter=sorter)
    logger.info(
        "Planned %s: first=%s, %d normal, last=%s, parallel=%s",
        test_class.__qualname__,
        plan.first.name if plan.first else None,
        len(plan.normal),
        plan.last.name if plan.last else None,
        plan.parallel,
    )
    return plan
