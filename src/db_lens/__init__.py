"""db-lens: find a project's databases and browse them through one engine contract."""

from db_lens.engines import Column, Condition, DatabaseEngine, RowPage
from db_lens.errors import (
    ConnectionLookupError,
    DbLensError,
    EngineConnectionError,
    StructuralConfigError,
)
from db_lens.providers import EngineOption, EngineProvider, ProviderRegistry, default_registry

__version__ = "0.1.0"

__all__ = [
    "Column",
    "Condition",
    "ConnectionLookupError",
    "DatabaseEngine",
    "DbLensError",
    "EngineConnectionError",
    "EngineOption",
    "EngineProvider",
    "ProviderRegistry",
    "RowPage",
    "StructuralConfigError",
    "default_registry",
]
