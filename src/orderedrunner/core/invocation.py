"""Binding of parameter tuples to test methods and unit invocation."""

import inspect
import logging
import typing
from dataclasses import dataclass, field
from typing import Any, Optional

from pydantic import TypeAdapter, ValidationError

from orderedrunner.core.models import TestMethod, UnitStatus
from orderedrunner.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class ExecutionUnit:
    """One invocation of a test method with one bound argument tuple."""

    method: TestMethod
    params: Optional[tuple] = None
    index: int = 0
    args: tuple = field(default=(), repr=False)

    @property
    def unit_id(self) -> str:
        """Identifier reported to the notifier, unique within a run."""
        if self.params is None:
            return self.method.display_name
        values = ", ".join(str(v) for v in self.params)
        return f"{self.method.display_name}[{self.index}: {values}]"

    def run(self, notifier) -> UnitStatus:
        """Invoke the test body on a fresh instance and report the outcome.

        Exceptions raised by the test body never propagate out of the unit.
        """
        notifier.unit_started(self.unit_id)
        try:
            instance = self.method.test_class()
            self.method.func(instance, *self.args)
        except AssertionError as e:
            notifier.unit_failed(self.unit_id, e)
            return UnitStatus.FAILED
        except Exception as e:
            notifier.unit_errored(self.unit_id, e)
            return UnitStatus.ERROR

        notifier.unit_succeeded(self.unit_id)
        return UnitStatus.PASSED


def _type_hints(method: TestMethod) -> dict[str, Any]:
    try:
        return typing.get_type_hints(method.func)
    except (NameError, TypeError) as e:
        logger.debug("Cannot evaluate annotations of %s: %s", method.display_name, e)
        return {}


def _coerce(value: Any, annotation: Any, name: str, method: TestMethod) -> Any:
    if not isinstance(value, str) or isinstance(annotation, str):
        return value
    if annotation in (str, Any, inspect.Parameter.empty):
        return value
    try:
        return TypeAdapter(annotation).validate_python(value)
    except ValidationError as e:
        raise ConfigurationError(
            f"cannot convert {value!r} for parameter '{name}': {e.errors()[0]['msg']}",
            method=method.display_name,
        ) from e


def bind_arguments(method: TestMethod, params: Optional[tuple]) -> tuple:
    """Bind a tuple positionally to the method's parameters.

    String values are converted to the annotated parameter type.

    Raises:
        ConfigurationError: If the tuple's arity does not match the method
    """
    params = tuple(params or ())
    if len(params) != method.arity:
        raise ConfigurationError(
            f"expected {method.arity} parameters but got {len(params)}: {params!r}",
            method=method.display_name,
        )

    signature = inspect.signature(method.func)
    declared = list(signature.parameters.values())[1:]
    try:
        signature.replace(parameters=declared).bind(*params)
    except TypeError as e:
        raise ConfigurationError(
            f"cannot bind {params!r}: {e}", method=method.display_name
        ) from e

    hints = _type_hints(method)
    return tuple(
        _coerce(value, hints.get(p.name, p.annotation), p.name, method)
        for value, p in zip(params, declared)
    )


def make_unit(
    method: TestMethod, params: Optional[tuple] = None, index: int = 0
) -> ExecutionUnit:
    """Create the execution unit for one (method, tuple) pair."""
    return ExecutionUnit(
        method=method,
        params=tuple(params) if params is not None else None,
        index=index,
        args=bind_arguments(method, params),
    )
