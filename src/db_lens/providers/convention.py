"""Provider for the database a project already declares (zero-config)."""

from collections.abc import Mapping

from db_lens.config import Settings
from db_lens.notify import Notifier
from db_lens.providers.base import EngineProvider
from db_lens.resolvers import ConventionResolver

CONVENTION_PROVIDER_ID = "convention-provider"


def build_convention_provider(
    settings: Settings,
    notifier: Notifier,
    environ: Mapping[str, str] | None = None,
) -> EngineProvider:
    """Provider over DATABASE_URL / DB_* settings or the default SQLite file."""
    return EngineProvider(
        id=CONVENTION_PROVIDER_ID,
        name="Project Convention",
        description="The database configured in your project's environment",
        resolver=ConventionResolver(settings, environ=environ),
        notifier=notifier,
        source_label="project environment",
        page_size=settings.page_size,
        connect_timeout=settings.connect_timeout,
    )
