"""Loading test classes from ``module:Class`` targets."""

import importlib
import importlib.util
import sys
from pathlib import Path

from orderedrunner.exceptions import ConfigurationError


def load_test_class(target: str, base_dir: Path | None = None) -> type:
    """Import the class named by ``target``.

    ``target`` is either ``package.module:ClassName`` or
    ``path/to/file.py:ClassName``.

    Raises:
        ConfigurationError: If the target is malformed or cannot be imported
    """
    module_part, sep, class_name = target.rpartition(":")
    if not sep or not module_part or not class_name:
        raise ConfigurationError(f"Target must look like 'module:Class', got '{target}'")

    base_dir = (base_dir or Path.cwd()).resolve()
    if str(base_dir) not in sys.path:
        sys.path.insert(0, str(base_dir))

    try:
        if module_part.endswith(".py"):
            path = (base_dir / module_part).resolve()
            module_name = path.stem
            spec = importlib.util.spec_from_file_location(module_name, path)
            if spec is None or spec.loader is None:
                raise ConfigurationError(f"Cannot load module from {path}")
            module = importlib.util.module_from_spec(spec)
            sys.modules[module_name] = module
            spec.loader.exec_module(module)
        else:
            module = importlib.import_module(module_part)
    except (ImportError, OSError) as e:
        raise ConfigurationError(f"Cannot import '{module_part}': {e}") from e

    test_class = getattr(module, class_name, None)
    if not isinstance(test_class, type):
        raise ConfigurationError(f"'{class_name}' is not a class in '{module_part}'")
    return test_class
