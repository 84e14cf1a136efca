"""Provider registry: pick the first provider usable in the workspace."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

from db_lens.config import Settings
from db_lens.notify import Notifier
from db_lens.providers.base import EngineProvider
from db_lens.providers.config_file import build_config_file_provider
from db_lens.providers.convention import build_convention_provider

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """Ordered set of providers; earlier providers win.

    Owned by the host and passed where needed; there is no global instance.
    """

    def __init__(self, providers: Sequence[EngineProvider]) -> None:
        ids = [provider.id for provider in providers]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Duplicate provider ids: {ids}")
        self.providers = list(providers)
        self.active: EngineProvider | None = None

    def get(self, provider_id: str) -> EngineProvider | None:
        """Return the provider with this id, if registered."""
        for provider in self.providers:
            if provider.id == provider_id:
                return provider
        return None

    async def boot(self) -> None:
        """Reset every provider and clear the active one."""
        for provider in self.providers:
            await provider.boot()
        self.active = None

    async def select(self) -> EngineProvider | None:
        """Probe providers in priority order and activate the first usable one."""
        self.active = None
        for provider in self.providers:
            if await provider.can_be_used_in_current_workspace():
                logger.debug("Using provider %s", provider.id)
                self.active = provider
                return provider
            logger.debug("Provider %s is not usable here", provider.id)
        return None


def default_registry(
    settings: Settings,
    notifier: Notifier,
    environ: Mapping[str, str] | None = None,
) -> ProviderRegistry:
    """Config-file provider first (explicit declarations win), then conventions."""
    return ProviderRegistry(
        [
            build_config_file_provider(settings, notifier),
            build_convention_provider(settings, notifier, environ=environ),
        ]
    )
