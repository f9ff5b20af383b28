"""
Notes Gateway - Pluggable Collaborator Loading
================================================

What:  Resolves "package.module:attribute" (or "package.module.attribute")
       strings to Python objects.
Who:   ImportSDKLoader (client identity SDK) and create_app (server credential
       verifier). Both collaborators are external to this project and selected
       from configuration.
"""

import importlib
from typing import Any


def import_string(dotted_path: str) -> Any:
    """
    Import and return the object named by `dotted_path`.

    Raises:
        ImportError: empty path, missing module, or missing attribute.
    """
    path = (dotted_path or "").strip()
    if not path:
        raise ImportError("Empty import path")

    if ":" in path:
        module_name, _, attribute = path.partition(":")
    else:
        module_name, _, attribute = path.rpartition(".")

    if not module_name or not attribute:
        raise ImportError(f"'{path}' is not a 'module:attribute' path")

    module = importlib.import_module(module_name)
    target: Any = module
    for part in attribute.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as e:
            raise ImportError(f"Module '{module_name}' has no attribute '{attribute}'") from e
    return target
