"""
orderedrunner - ordered, parameterized execution of test classes.

This package provides tools to:
- Run a designated first test before, and a last test after, all others
- Run the remaining tests of a class sequentially or in parallel
- Resolve parameter tuples from inline values, files, provider classes,
  named methods and pull functions
"""

__version__ = "0.1.0"
__author__ = "orderedrunner Team"

from orderedrunner.exceptions import ConfigurationError, OrderedRunnerError, UnitFailure
from orderedrunner.markers import (
    file_parameters,
    first,
    ignore,
    last,
    parallel_execution,
    parameter_record,
    parameters,
    test,
)

__all__ = [
    "ConfigurationError",
    "OrderedRunnerError",
    "UnitFailure",
    "file_parameters",
    "first",
    "ignore",
    "last",
    "parallel_execution",
    "parameter_record",
    "parameters",
    "test",
]
