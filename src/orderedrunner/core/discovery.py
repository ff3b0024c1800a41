"""Test discovery functionality.

Discovery turns the markers on a class into immutable ``TestMethod`` values.
All class hierarchy walking happens here, once per plan: provider methods and
named methods are bound to callables up front so that parameter resolution
only consults the resulting lookup tables.
"""

import inspect
import logging
from typing import Callable, Optional

from orderedrunner.core.models import (
    ClassSource,
    FileSource,
    InlineSource,
    LambdaSource,
    MethodBinding,
    NamedMethodSource,
    ParameterSpec,
    ProviderBinding,
    Role,
    TestMethod,
)
from orderedrunner.markers import Markers, get_markers

logger = logging.getLogger(__name__)

PROVIDER_PREFIX = "provide"
DEFAULT_METHOD_PREFIX = "parametersFor"


def default_method_name(test_name: str) -> str:
    """Name of the implicit parameters method for a test.

    ``fourth_test`` becomes ``parametersForFourth_test``.
    """
    if not test_name:
        return DEFAULT_METHOD_PREFIX
    return DEFAULT_METHOD_PREFIX + test_name[0].upper() + test_name[1:]


def hierarchy(cls: type) -> list[type]:
    """The class followed by its ancestors, without ``object``."""
    return [klass for klass in cls.__mro__ if klass is not object]


def _attribute_kind(raw) -> str:
    if isinstance(raw, staticmethod):
        return "static"
    if isinstance(raw, classmethod):
        return "class"
    if callable(raw):
        return "instance"
    return "missing"


def _unwrap(raw) -> Callable:
    if isinstance(raw, (staticmethod, classmethod)):
        return raw.__func__
    return raw


def _callable_for(raw, kind: str, cls: type) -> Callable:
    # A classmethod is bound to ``cls`` from the level it was found at, so
    # an override further down never replaces the ancestor's body.
    if kind == "class":
        return raw.__get__(None, cls)
    return _unwrap(raw)


def bind_providers(provider_classes: tuple[type, ...]) -> tuple[ProviderBinding, ...]:
    """Collect every ``provide*`` attribute of the provider hierarchies.

    Provider classes keep their declared order, each class is walked from
    itself up to its root, and attributes keep their definition order.
    """
    bindings = []
    for provider in provider_classes:
        found_before = len(bindings)
        for owner in hierarchy(provider):
            for name, raw in vars(owner).items():
                if not name.startswith(PROVIDER_PREFIX):
                    continue
                kind = _attribute_kind(raw)
                if kind == "missing":
                    continue
                bindings.append(
                    ProviderBinding(
                        owner=owner,
                        name=name,
                        func=_callable_for(raw, kind, provider),
                        is_static=kind in ("static", "class"),
                    )
                )
        if len(bindings) == found_before:
            logger.debug("No provider methods found in %s", provider.__qualname__)
    return tuple(bindings)


def bind_method(scope: type, name: str) -> MethodBinding:
    """Find ``name`` in the hierarchy of ``scope``, stopping at the first match."""
    for owner in hierarchy(scope):
        raw = vars(owner).get(name)
        if raw is None:
            continue
        kind = _attribute_kind(raw)
        if kind == "missing":
            continue
        return MethodBinding(
            scope=scope,
            name=name,
            owner=owner,
            func=_callable_for(raw, kind, scope),
            kind=kind,
        )

    logger.debug("No method %s could be found in class %s", name, scope.__qualname__)
    return MethodBinding(scope=scope, name=name)


def _named_source(names: tuple[str, ...], scopes: tuple[type, ...]) -> NamedMethodSource:
    bindings = tuple(bind_method(scope, name) for name in names for scope in scopes)
    return NamedMethodSource(method_names=names, search_scopes=scopes, bindings=bindings)


def _lambda_source(test_class: type, field_name: str) -> LambdaSource:
    # Fields assigned in __init__ have no class level owner; they are looked
    # up on an instance when the parameters are resolved.
    owner = next((k for k in hierarchy(test_class) if field_name in vars(k)), None)
    return LambdaSource(field_name=field_name, test_class=test_class, owner=owner)


def build_parameter_spec(
    test_class: type, test_name: str, markers: Markers
) -> Optional[ParameterSpec]:
    """Build the parameter spec of one method from its markers.

    Returns None when the method declares no parameters at all.
    """
    if not markers.declares_parameters:
        return None

    sources = []
    for record in markers.records:
        if record.values:
            sources.append(InlineSource(values=record.values))

        if record.source_types:
            sources.append(
                ClassSource(
                    provider_classes=record.source_types,
                    bindings=bind_providers(record.source_types),
                )
            )

        if record.method_name:
            names = tuple(n.strip() for n in record.method_name.split(",") if n.strip())
            scopes = record.source_types or (test_class,)
            sources.append(_named_source(names, scopes))
        elif record.source_types:
            sources.append(_named_source((default_method_name(test_name),), record.source_types))
        elif record.default_lookup:
            sources.append(_named_source((default_method_name(test_name),), (test_class,)))

        if record.lambda_field_name:
            sources.append(_lambda_source(test_class, record.lambda_field_name))

    for declaration in markers.files:
        sources.append(
            FileSource(
                locator=declaration.locator,
                mapper=declaration.mapper,
                anchor=test_class,
            )
        )

    return ParameterSpec(sources=tuple(sources))


def discover_methods(test_class: type) -> list[TestMethod]:
    """Discover the marked test methods of a class.

    Methods are returned in definition order, subclass definitions first.
    An override hides the method it overrides.
    """
    seen: set[str] = set()
    methods = []

    for owner in hierarchy(test_class):
        for name, raw in vars(owner).items():
            if name in seen:
                continue
            seen.add(name)

            func = _unwrap(raw)
            if not inspect.isfunction(func):
                continue
            markers = get_markers(func)
            if markers is None or not markers.is_test:
                continue

            if markers.first and markers.last:
                role = Role.NORMAL
            elif markers.first:
                role = Role.FIRST
            elif markers.last:
                role = Role.LAST
            else:
                role = Role.NORMAL

            methods.append(
                TestMethod(
                    test_class=test_class,
                    name=name,
                    func=func,
                    role=role,
                    parameter_spec=build_parameter_spec(test_class, name, markers),
                    ignored=markers.ignored,
                    ignore_reason=markers.ignore_reason,
                    marked_first=markers.first,
                    marked_last=markers.last,
                )
            )

    logger.debug("Discovered %d test methods in %s", len(methods), test_class.__qualname__)
    return methods
