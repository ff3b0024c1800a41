"""Data models for test methods, parameter sources and scheduling plans."""

import inspect
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

ParameterTuple = tuple


class Role(str, Enum):
    """Scheduling role of a test method."""

    FIRST = "first"
    NORMAL = "normal"
    LAST = "last"


class UnitStatus(str, Enum):
    """Outcome of an execution unit."""

    PASSED = "passed"
    FAILED = "failed"
    ERROR = "error"
    IGNORED = "ignored"


class SchedulerState(str, Enum):
    """States a scheduler moves through while running one plan."""

    IDLE = "idle"
    RUNNING_FIRST = "running_first"
    RUNNING_NORMAL = "running_normal"
    RUNNING_LAST = "running_last"
    COMPLETED = "completed"


@dataclass(frozen=True)
class InlineSource:
    """Literal values declared directly on the test method."""

    values: tuple[str, ...]


@dataclass(frozen=True)
class FileSource:
    """Parameters read from a file and turned into tuples by a mapper.

    ``mapper`` is kept as declared (class, instance or None) and only
    instantiated when the parameters are resolved.
    """

    locator: str
    mapper: Any = None
    anchor: Optional[type] = None


@dataclass(frozen=True)
class ProviderBinding:
    """A ``provide*`` attribute found on a provider class hierarchy."""

    owner: type
    name: str
    func: Callable
    is_static: bool


@dataclass(frozen=True)
class ClassSource:
    """Provider classes whose ``provide*`` methods supply parameters."""

    provider_classes: tuple[type, ...]
    bindings: tuple[ProviderBinding, ...] = ()


@dataclass(frozen=True)
class MethodBinding:
    """Result of looking up one method name in one search scope.

    ``owner`` and ``func`` are None when the lookup missed.
    """

    scope: type
    name: str
    owner: Optional[type] = None
    func: Optional[Callable] = None
    kind: str = "missing"  # static, class, instance, missing

    @property
    def found(self) -> bool:
        return self.func is not None


@dataclass(frozen=True)
class NamedMethodSource:
    """Named methods searched for in a list of scopes."""

    method_names: tuple[str, ...]
    search_scopes: tuple[type, ...]
    bindings: tuple[MethodBinding, ...] = ()


@dataclass(frozen=True)
class LambdaSource:
    """A zero-argument pull function stored as a field of the test class.

    The field is read from a fresh test class instance on every resolution,
    so fields assigned in ``__init__`` start over each time. ``supplier``
    bypasses that lookup.
    """

    field_name: str
    test_class: Optional[type] = None
    owner: Optional[type] = None
    supplier: Optional[Callable] = None


ParameterSource = InlineSource | FileSource | ClassSource | NamedMethodSource | LambdaSource


@dataclass(frozen=True)
class ParameterSpec:
    """Ordered parameter sources attached to one test method."""

    sources: tuple[ParameterSource, ...] = ()

    def of_type(self, source_type: type) -> list:
        """Return the sources of the given descriptor type, in order."""
        return [s for s in self.sources if isinstance(s, source_type)]


@dataclass(frozen=True)
class TestMethod:
    """A discovered test method and everything needed to run it."""

    __test__ = False

    test_class: type
    name: str
    func: Callable = field(compare=False, repr=False)
    role: Role = Role.NORMAL
    parameter_spec: Optional[ParameterSpec] = field(default=None, compare=False, repr=False)
    ignored: bool = False
    ignore_reason: str = ""
    marked_first: bool = field(default=False, compare=False, repr=False)
    marked_last: bool = field(default=False, compare=False, repr=False)

    @property
    def full_name(self) -> str:
        """Qualified name, e.g. ``tests.sample.Calculator.add``."""
        return f"{self.test_class.__module__}.{self.test_class.__qualname__}.{self.name}"

    @property
    def display_name(self) -> str:
        return f"{self.test_class.__qualname__}.{self.name}"

    @property
    def arity(self) -> int:
        """Number of declared parameters, excluding ``self``."""
        params = list(inspect.signature(self.func).parameters.values())
        return len(params) - 1 if params else 0

    @property
    def parameterized(self) -> bool:
        return self.parameter_spec is not None


@dataclass(frozen=True)
class SchedulingPlan:
    """Partition of a class's test methods, built once per class."""

    test_class: type
    first: Optional[TestMethod] = None
    normal: tuple[TestMethod, ...] = ()
    last: Optional[TestMethod] = None
    parallel: bool = False

    @property
    def methods(self) -> list[TestMethod]:
        """All methods in execution order."""
        ordered = []
        if self.first:
            ordered.append(self.first)
        ordered.extend(self.normal)
        if self.last:
            ordered.append(self.last)
        return ordered

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "test_class": self.test_class.__qualname__,
            "first": self.first.name if self.first else None,
            "normal": [m.name for m in self.normal],
            "last": self.last.name if self.last else None,
            "parallel": self.parallel,
        }


@dataclass
class RunSummary:
    """Aggregated outcome of one scheduler run."""

    passed: int = 0
    failed: int = 0
    errors: int = 0
    ignored: int = 0
    configuration_errors: list[str] = field(default_factory=list)
    duration_ms: int = 0

    @property
    def total(self) -> int:
        return self.passed + self.failed + self.errors

    @property
    def success(self) -> bool:
        return not (self.failed or self.errors or self.configuration_errors)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "errors": self.errors,
            "ignored": self.ignored,
            "configuration_errors": list(self.configuration_errors),
            "duration_ms": self.duration_ms,
            "success": self.success,
        }
