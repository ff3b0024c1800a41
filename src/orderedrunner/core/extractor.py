"""Parameter resolution for parameterized test methods.

Tuples are merged from five kinds of sources in a fixed order, each stage
appending to the result:

1. inline values
2. files read through a data mapper
3. ``provide*`` methods of provider classes
4. named methods (explicit names or ``parametersFor<TestName>``)
5. pull functions drained until they return ``EXHAUSTED``
"""

import inspect
import logging
from collections.abc import Iterable, Mapping
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional

from orderedrunner.core.models import (
    ClassSource,
    FileSource,
    InlineSource,
    LambdaSource,
    MethodBinding,
    NamedMethodSource,
    ParameterSpec,
    ProviderBinding,
)
from orderedrunner.core.sources import instantiate_mapper, read_locator
from orderedrunner.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Value a pull function returns once it has nothing more to supply.
EXHAUSTED = None


class Shape(str, Enum):
    """Recognized shapes of a provider's return value."""

    ARRAY_OF_TUPLES = "array_of_tuples"
    SEQUENCE_OF_TUPLES = "sequence_of_tuples"
    SEQUENCE_OF_SCALARS = "sequence_of_scalars"


def _is_tuple_like(value: Any) -> bool:
    return isinstance(value, (tuple, list))


def as_tuple(item: Any) -> tuple:
    """A tuple-like item as a tuple, anything else as a 1-tuple."""
    return tuple(item) if _is_tuple_like(item) else (item,)


def classify_shape(value: Any, origin: str) -> tuple[Shape, list]:
    """Determine the shape of a provider return value.

    Returns the shape and the materialized items.

    Raises:
        ConfigurationError: If the value has none of the recognized shapes
    """
    if (
        isinstance(value, (str, bytes, bytearray, Mapping))
        or not isinstance(value, Iterable)
    ):
        raise ConfigurationError(
            f"The return type of {origin} is {type(value).__name__}, "
            "not an array or sequence of parameter tuples"
        )

    items = list(value)
    kinds = {_is_tuple_like(item) for item in items}
    if len(kinds) > 1:
        raise ConfigurationError(
            f"The return value of {origin} mixes parameter tuples and single values"
        )

    if kinds == {False}:
        return Shape.SEQUENCE_OF_SCALARS, items
    if isinstance(value, (list, tuple)):
        return Shape.ARRAY_OF_TUPLES, items
    return Shape.SEQUENCE_OF_TUPLES, items


def normalize(value: Any, origin: str = "provider") -> list[tuple]:
    """Normalize a provider return value to a list of parameter tuples."""
    shape, items = classify_shape(value, origin)
    if shape in (Shape.ARRAY_OF_TUPLES, Shape.SEQUENCE_OF_TUPLES):
        return [tuple(item) for item in items]
    return [(item,) for item in items]


def _required_arguments(func: Callable, skip: int = 0) -> int:
    params = list(inspect.signature(func).parameters.values())[skip:]
    return sum(
        1
        for p in params
        if p.default is inspect.Parameter.empty
        and p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    )


class ParameterExtractor:
    """Resolves the parameter tuples of a method from its ParameterSpec."""

    def __init__(self, search_paths: Optional[list[Path | str]] = None):
        """Initialize the extractor.

        Args:
            search_paths: Extra directories searched for ``classpath:`` resources
        """
        self.search_paths = [Path(p) for p in (search_paths or [])]

    def resolve(
        self, spec: ParameterSpec, arity: int, method_name: str = ""
    ) -> list[tuple]:
        """Resolve every parameter tuple declared by ``spec``.

        Args:
            spec: Parameter sources of the test method
            arity: Number of parameters the test method declares
            method_name: Name used in error messages

        Returns:
            Ordered list of parameter tuples

        Raises:
            ConfigurationError: If a source is invalid, nothing was found, or
                a tuple does not match the method's arity
        """
        result: list[tuple] = []

        for source in spec.of_type(InlineSource):
            if source.values:
                result.append(tuple(source.values))

        for source in spec.of_type(FileSource):
            result.extend(self._from_file(source, method_name))

        for source in spec.of_type(ClassSource):
            result.extend(self._from_providers(source, method_name))

        for source in spec.of_type(NamedMethodSource):
            result.extend(self._from_named_methods(source, method_name))

        for source in spec.of_type(LambdaSource):
            result.extend(self._from_lambda(source, method_name))

        if not result:
            raise ConfigurationError(
                "Could not find parameters so no params were used", method=method_name or None
            )

        for index, params in enumerate(result):
            if len(params) != arity:
                raise ConfigurationError(
                    f"parameter set {index} has {len(params)} values "
                    f"but the method takes {arity}: {params!r}",
                    method=method_name or None,
                )

        logger.info("Resolved %d parameter tuples for %s", len(result), method_name)
        return result

    def _from_file(self, source: FileSource, method_name: str) -> list[tuple]:
        method = method_name or None
        mapper = instantiate_mapper(source.mapper, method=method)
        content = read_locator(source.locator, source.anchor, self.search_paths)
        try:
            rows = mapper.map(content)
        except Exception as e:
            raise ConfigurationError(
                f"Mapper {type(mapper).__name__} failed on {source.locator}: {e}",
                method=method,
            ) from e
        return [as_tuple(row) for row in rows]

    def _from_providers(self, source: ClassSource, method_name: str) -> list[tuple]:
        result = []
        for binding in source.bindings:
            result.extend(self._invoke_provider(binding, method_name))
        return result

    def _invoke_provider(self, binding: ProviderBinding, method_name: str) -> list[tuple]:
        if not binding.is_static:
            raise ConfigurationError(
                f"Parameters source method {binding.name} is not declared as static. "
                "Change it to a static method.",
                method=method_name or None,
            )
        if _required_arguments(binding.func):
            logger.debug(
                "Skipping provider %s.%s: it takes arguments",
                binding.owner.__qualname__,
                binding.name,
            )
            return []

        origin = f"{binding.name} defined in class {binding.owner.__qualname__}"
        try:
            value = binding.func()
        except Exception as e:
            raise ConfigurationError(
                f"Cannot invoke parameters source method {origin}: {e}",
                method=method_name or None,
            ) from e
        return normalize(value, origin)

    def _from_named_methods(self, source: NamedMethodSource, method_name: str) -> list[tuple]:
        result = []
        for binding in source.bindings:
            if not binding.found:
                logger.debug(
                    "No method %s could be found in class %s",
                    binding.name,
                    binding.scope.__qualname__,
                )
                continue
            result.extend(self._invoke_named(binding, method_name))

        if not result:
            logger.debug(
                "No method %s could be found in any of %s",
                ", ".join(source.method_names),
                ", ".join(s.__qualname__ for s in source.search_scopes),
            )
        return result

    def _invoke_named(self, binding: MethodBinding, method_name: str) -> list[tuple]:
        skip = 1 if binding.kind == "instance" else 0
        if _required_arguments(binding.func, skip=skip):
            logger.debug(
                "Method %s in class %s takes arguments, ignoring it",
                binding.name,
                binding.owner.__qualname__,
            )
            return []

        origin = f"{binding.name} defined in class {binding.owner.__qualname__}"
        try:
            if binding.kind == "instance":
                value = binding.func(binding.scope())
            else:
                value = binding.func()
        except Exception as e:
            raise ConfigurationError(
                f"Could not invoke method {origin}: {e}",
                method=method_name or None,
            ) from e
        return normalize(value, origin)

    def _lambda_supplier(self, source: LambdaSource, method_name: str) -> Callable:
        supplier = source.supplier
        if supplier is None and source.test_class is not None:
            try:
                instance = source.test_class()
            except Exception as e:
                raise ConfigurationError(
                    f"Cannot instantiate {source.test_class.__qualname__} "
                    f"to read field '{source.field_name}': {e}",
                    method=method_name or None,
                ) from e
            supplier = getattr(instance, source.field_name, None)

        if not callable(supplier):
            raise ConfigurationError(
                f"No zero-argument function field named '{source.field_name}'",
                method=method_name or None,
            )
        return supplier

    def _from_lambda(self, source: LambdaSource, method_name: str) -> list[tuple]:
        supplier = self._lambda_supplier(source, method_name)

        if inspect.isgeneratorfunction(supplier):
            pulled = supplier()
        else:
            pulled = iter(supplier, EXHAUSTED)

        try:
            return [as_tuple(item) for item in pulled]
        except Exception as e:
            raise ConfigurationError(
                f"Function field '{source.field_name}' failed while supplying parameters: {e}",
                method=method_name or None,
            ) from e
