"""
wa_gateway/engine/loader.py

Purpose: Resolve the configured engine factory

- ENGINE_FACTORY is a 'package.module:callable' path
- Import errors surface at startup, not on the first /start-client
"""

import importlib
from typing import Optional

from wa_gateway.core.exceptions import EngineNotConfiguredError
from wa_gateway.core.logging import get_logger
from wa_gateway.engine.base import EngineFactory

logger = get_logger(__name__)


def load_engine_factory(path: Optional[str]) -> EngineFactory:
    """
    Imports the engine factory named by `path`.

    Raises:
        EngineNotConfiguredError: If path is empty, malformed or
            doesn't resolve to a callable
    """
    if not path:
        raise EngineNotConfiguredError()

    module_name, _, attr = path.partition(":")
    if not module_name or not attr:
        raise EngineNotConfiguredError(f"Malformed ENGINE_FACTORY: {path!r}")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise EngineNotConfiguredError(f"Cannot import engine module {module_name!r}: {e}")

    factory = module
    for part in attr.split("."):
        factory = getattr(factory, part, None)
        if factory is None:
            raise EngineNotConfiguredError(f"{module_name!r} has no attribute {attr!r}")

    if not callable(factory):
        raise EngineNotConfiguredError(f"ENGINE_FACTORY {path!r} is not callable")

    logger.info(f"Engine factory loaded: {path}")
    return factory

