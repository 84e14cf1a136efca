"""Provider for databases declared in the workspace connection file."""

from db_lens.config import Settings
from db_lens.notify import Notifier
from db_lens.providers.base import EngineProvider
from db_lens.resolvers import ConfigFileResolver

CONFIG_FILE_PROVIDER_ID = "config-file-provider"


def build_config_file_provider(settings: Settings, notifier: Notifier) -> EngineProvider:
    """Provider over the connection list at ``settings.config_file``."""
    return EngineProvider(
        id=CONFIG_FILE_PROVIDER_ID,
        name="Config File",
        description="Databases defined in your config file",
        resolver=ConfigFileResolver(settings),
        notifier=notifier,
        source_label="config file",
        page_size=settings.page_size,
        connect_timeout=settings.connect_timeout,
    )
