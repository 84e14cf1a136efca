"""Engine providers and the registry that chooses between them."""

from db_lens.providers.base import (
    ConnectionOption,
    EngineOption,
    EngineProvider,
    ValidatedConnection,
    build_engine,
)
from db_lens.providers.config_file import CONFIG_FILE_PROVIDER_ID, build_config_file_provider
from db_lens.providers.convention import CONVENTION_PROVIDER_ID, build_convention_provider
from db_lens.providers.registry import ProviderRegistry, default_registry

__all__ = [
    "CONFIG_FILE_PROVIDER_ID",
    "CONVENTION_PROVIDER_ID",
    "ConnectionOption",
    "EngineOption",
    "EngineProvider",
    "ProviderRegistry",
    "ValidatedConnection",
    "build_config_file_provider",
    "build_convention_provider",
    "build_engine",
    "default_registry",
]
