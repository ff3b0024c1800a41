"""Declarative markers for test classes and test methods.

Markers only attach metadata. Nothing is inspected until discovery builds
the test methods for a class.

Example::

    @parallel_execution()
    class CalculatorTests:

        @first
        def open_session(self):
            ...

        @test
        @parameter_record("1", "Hello", "true")
        @parameter_record("2", "Hi", "false")
        def greets(self, number: int, greeting: str, truth: bool):
            ...
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Optional

MARKER_ATTR = "__orderedrunner_markers__"
PARALLEL_ATTR = "__orderedrunner_parallel__"


@dataclass(frozen=True)
class ParameterRecord:
    """One ``parameter_record`` declaration.

    Any subset of the fields may be populated. Each populated field becomes
    its own parameter source.
    """

    values: tuple[str, ...] = ()
    source_types: tuple[type, ...] = ()
    method_name: str = ""
    lambda_field_name: str = ""
    default_lookup: bool = False


@dataclass(frozen=True)
class FileParameters:
    """One ``file_parameters`` declaration."""

    locator: str
    mapper: Any = None


@dataclass
class Markers:
    """Metadata collected from the decorators applied to one function."""

    test: bool = False
    first: bool = False
    last: bool = False
    ignored: bool = False
    ignore_reason: str = ""
    records: list[ParameterRecord] = field(default_factory=list)
    files: list[FileParameters] = field(default_factory=list)

    @property
    def is_test(self) -> bool:
        return self.test or self.first or self.last

    @property
    def declares_parameters(self) -> bool:
        return bool(self.records or self.files)


def get_markers(func: Callable) -> Optional[Markers]:
    """Return the markers attached to a function, if any."""
    return getattr(func, MARKER_ATTR, None)


def _markers(func: Callable) -> Markers:
    markers = get_markers(func)
    if markers is None:
        markers = Markers()
        setattr(func, MARKER_ATTR, markers)
    return markers


def test(func: Callable) -> Callable:
    """Mark a method as a normal test."""
    _markers(func).test = True
    return func


# Keep pytest from treating the marker itself as a test function.
test.__test__ = False


def first(func: Callable) -> Callable:
    """Mark a method to run before every other test of its class."""
    _markers(func).first = True
    return func


def last(func: Callable) -> Callable:
    """Mark a method to run after every other test of its class."""
    _markers(func).last = True
    return func


def ignore(reason: Any = "") -> Any:
    """Mark a test as ignored. Usable bare (``@ignore``) or with a reason."""
    if callable(reason):
        markers = _markers(reason)
        markers.ignored = True
        return reason

    def decorator(func: Callable) -> Callable:
        markers = _markers(func)
        markers.ignored = True
        markers.ignore_reason = str(reason)
        return func

    return decorator


def parallel_execution(enabled: bool = True) -> Callable[[type], type]:
    """Class decorator controlling whether normal tests run in parallel."""

    def decorator(cls: type) -> type:
        setattr(cls, PARALLEL_ATTR, bool(enabled))
        return cls

    return decorator


def is_parallel(cls: type, default: bool = False) -> bool:
    """Read the ``parallel_execution`` setting of a class (inherited)."""
    return getattr(cls, PARALLEL_ATTR, default)


def _prepend_record(func: Callable, record: ParameterRecord) -> None:
    # Decorators apply bottom-up; prepending keeps source order.
    _markers(func).records.insert(0, record)


def parameter_record(
    *values: str,
    source_types: tuple[type, ...] | list[type] = (),
    method_name: str = "",
    lambda_field_name: str = "",
) -> Callable[[Callable], Callable]:
    """Declare one parameter record. Repeatable.

    Args:
        *values: One parameter tuple, one string per method parameter
        source_types: Provider classes with static ``provide*`` methods
        method_name: Comma separated names of methods returning parameters
        lambda_field_name: Name of a zero-argument pull function on the class
    """
    record = ParameterRecord(
        values=tuple(str(v) for v in values),
        source_types=tuple(source_types),
        method_name=method_name,
        lambda_field_name=lambda_field_name,
    )

    def decorator(func: Callable) -> Callable:
        _prepend_record(func, record)
        return func

    return decorator


def parameters(
    *rows: str,
    source: Optional[type] = None,
    method: str = "",
) -> Callable[[Callable], Callable]:
    """Declare parameters with comma separated rows.

    ``@parameters("1, Hello, true", "2, Hi, false")`` declares two tuples.
    Without any argument the method ``parametersFor<TestName>`` of the test
    class is used.
    """
    records = [ParameterRecord(values=tuple(v.strip() for v in row.split(","))) for row in rows]
    if source is not None or method:
        records.append(
            ParameterRecord(
                source_types=(source,) if source is not None else (),
                method_name=method,
            )
        )
    elif not rows:
        records.append(ParameterRecord(default_lookup=True))

    def decorator(func: Callable) -> Callable:
        for record in reversed(records):
            _prepend_record(func, record)
        return func

    return decorator


def file_parameters(locator: str, mapper: Any = None) -> Callable[[Callable], Callable]:
    """Declare parameters read from ``locator``.

    The locator may be a bare path, ``file:<path>`` or
    ``classpath:<resource>``. ``mapper`` is a ``DataMapper`` class or
    instance; the identity mapper is used when omitted.
    """
    declaration = FileParameters(locator=locator, mapper=mapper)

    def decorator(func: Callable) -> Callable:
        _markers(func).files.insert(0, declaration)
        return func

    return decorator
