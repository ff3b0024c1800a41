"""File backed parameter sources and data mappers."""

import csv
import io
import logging
import sys
from abc import ABC, abstractmethod
from importlib import resources
from pathlib import Path
from typing import Optional

from orderedrunner.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

SUPPORTED_PROTOCOLS = ("classpath", "file")


class DataMapper(ABC):
    """Turns raw file content into parameter tuples."""

    @abstractmethod
    def map(self, content: str) -> list[tuple]:
        """Map raw content to an ordered list of parameter tuples."""
        pass


class IdentityMapper(DataMapper):
    """One tuple per line, values separated by commas.

    Blank lines and lines starting with ``#`` are skipped.
    """

    def map(self, content: str) -> list[tuple]:
        rows = []
        for line in content.splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            rows.append(tuple(value.strip() for value in line.split(",")))
        return rows


class CsvWithHeaderMapper(DataMapper):
    """CSV content whose first row is a header."""

    def __init__(self, delimiter: str = ","):
        self.delimiter = delimiter

    def map(self, content: str) -> list[tuple]:
        reader = csv.reader(io.StringIO(content), delimiter=self.delimiter)
        rows = [tuple(value.strip() for value in row) for row in reader if row]
        return rows[1:]


def split_locator(locator: str) -> tuple[Optional[str], str]:
    """Split a locator into protocol and path.

    A locator without a colon is a bare filesystem path and has no protocol.

    Raises:
        ConfigurationError: If the protocol is not supported
    """
    if ":" not in locator:
        return None, locator

    protocol, _, path = locator.partition(":")
    if protocol not in SUPPORTED_PROTOCOLS:
        raise ConfigurationError(
            f"Unknown file access protocol '{protocol}' in '{locator}'. "
            f"Only {', '.join(repr(p) for p in SUPPORTED_PROTOCOLS)} are supported"
        )
    return protocol, path


def _read_classpath_resource(
    name: str, anchor: Optional[type], search_paths: list[Path]
) -> str:
    """Read a resource next to the anchor's module, then from search paths."""
    if anchor is not None:
        module = sys.modules.get(anchor.__module__)
        package = getattr(module, "__package__", None) or None
        if package:
            candidate = resources.files(package).joinpath(name)
            if candidate.is_file():
                return candidate.read_text(encoding="utf-8")
        module_file = getattr(module, "__file__", None)
        if module_file:
            candidate_path = Path(module_file).parent / name
            if candidate_path.is_file():
                return candidate_path.read_text(encoding="utf-8")

    for root in search_paths:
        candidate_path = Path(root) / name
        if candidate_path.is_file():
            return candidate_path.read_text(encoding="utf-8")

    raise FileNotFoundError(f"Resource not found on classpath: {name}")


def read_locator(
    locator: str,
    anchor: Optional[type] = None,
    search_paths: Optional[list[Path]] = None,
) -> str:
    """Read the raw content a locator points to.

    Raises:
        ConfigurationError: For unknown protocols or unreadable content
    """
    protocol, path = split_locator(locator)
    try:
        if protocol == "classpath":
            return _read_classpath_resource(path, anchor, list(search_paths or []))
        return Path(path).read_text(encoding="utf-8")
    except OSError as e:
        logger.error("Error while retrieving parameters from %s", locator)
        raise ConfigurationError(
            f"Could not read parameters from file: {locator} ({e})"
        ) from e


def instantiate_mapper(mapper, method: Optional[str] = None) -> DataMapper:
    """Accept a mapper class, a mapper instance, or None for the identity mapper.

    Raises:
        ConfigurationError: If the mapper cannot be created or has no map()
    """
    if mapper is None:
        return IdentityMapper()
    if isinstance(mapper, type):
        try:
            return mapper()
        except TypeError as e:
            raise ConfigurationError(
                f"Could not instantiate mapper {mapper.__name__}: {e}", method=method
            ) from e
    if not callable(getattr(mapper, "map", None)):
        raise ConfigurationError(f"Mapper {mapper!r} has no map() method", method=method)
    return mapper
