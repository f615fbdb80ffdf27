"""
wa_gateway/services/gateway.py

Purpose: Wire the session components together

- One Gateway per process, built at startup and stored on app.state
- Routes receive it through a dependency instead of module globals
"""

from dataclasses import dataclass
from typing import Optional

from wa_gateway.core.config import settings
from wa_gateway.core.exceptions import EngineNotConfiguredError
from wa_gateway.core.logging import get_logger
from wa_gateway.engine.base import EngineFactory, EngineOptions
from wa_gateway.engine.loader import load_engine_factory
from wa_gateway.services.cleanup import SessionCleanupWorker
from wa_gateway.services.notifier import BackendNotifier
from wa_gateway.services.registry import SessionRegistry
from wa_gateway.services.sync import SyncOrchestrator

logger = get_logger(__name__)


@dataclass
class Gateway:
    notifier: BackendNotifier
    cleanup: SessionCleanupWorker
    registry: SessionRegistry
    sync: SyncOrchestrator

    @classmethod
    def build(
        cls,
        engine_factory: Optional[EngineFactory],
        notifier: Optional[BackendNotifier] = None,
        cleanup: Optional[SessionCleanupWorker] = None,
    ) -> "Gateway":
        notifier = notifier or BackendNotifier()
        cleanup = cleanup or SessionCleanupWorker()
        options = EngineOptions(headless=settings.ENGINE_HEADLESS, args=list(settings.ENGINE_ARGS))
        registry = SessionRegistry(engine_factory, notifier, cleanup, options)
        return cls(
            notifier=notifier,
            cleanup=cleanup,
            registry=registry,
            sync=SyncOrchestrator(registry, notifier),
        )

    @classmethod
    def from_settings(cls) -> "Gateway":
        """
        Builds the gateway from environment settings.
        Outside production a missing engine is tolerated; /start-client
        then answers 503 until one is configured.
        """
        try:
            engine_factory = load_engine_factory(settings.ENGINE_FACTORY)
        except EngineNotConfiguredError as e:
            if settings.is_production:
                raise
            logger.warning(f"Starting without an automation engine: {e.message}")
            engine_factory = None
        return cls.build(engine_factory)

    async def aclose(self):
        await self.registry.shutdown()
        await self.cleanup.shutdown()
        await self.notifier.close()
