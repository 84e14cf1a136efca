"""Connection resolvers: strategies that discover candidate descriptors.

A resolver answers "which databases does this workspace point at?" without
connecting to any of them.
"""

from typing import Protocol, runtime_checkable

from db_lens.descriptors import ServerDescriptor, SqliteDescriptor
from db_lens.resolvers.config_file import ConfigFileResolver, load_config_file
from db_lens.resolvers.convention import ConventionResolver


@runtime_checkable
class ConnectionResolver(Protocol):
    """Protocol implemented by discovery strategies."""

    async def resolve(self) -> list[SqliteDescriptor | ServerDescriptor] | None:
        """Return candidate descriptors, or None when the strategy does not apply.

        Raises:
            StructuralConfigError: If a declared entry is malformed
        """
        ...


__all__ = [
    "ConfigFileResolver",
    "ConnectionResolver",
    "ConventionResolver",
    "load_config_file",
]
