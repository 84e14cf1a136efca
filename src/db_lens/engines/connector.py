"""Build SQLAlchemy handles for the client-server engines."""

import logging

from sqlalchemy import Engine, URL, create_engine

logger = logging.getLogger(__name__)

_DRIVERS = {
    "mysql": "mysql+pymysql",
    "mariadb": "mysql+pymysql",
    "postgres": "postgresql+psycopg2",
}


def build_url(
    kind: str,
    host: str,
    port: int | str | None,
    username: str | None,
    password: str | None,
    database: str | None,
) -> URL:
    """Assemble the SQLAlchemy URL for a server kind.

    Raises:
        ValueError: If the kind is unsupported or the port is not numeric
    """
    driver = _DRIVERS.get(kind)
    if driver is None:
        raise ValueError(f"Unsupported server kind: {kind}")
    return URL.create(
        driver,
        username=username or None,
        password=password or None,
        host=host or None,
        port=int(port) if port not in (None, "") else None,
        database=database or None,
    )


def get_connection_for(
    kind: str,
    host: str,
    port: int | str | None,
    username: str | None,
    password: str | None,
    database: str | None,
    *,
    connect_timeout: int = 5,
) -> Engine | None:
    """Create a lazily-connecting engine for a server database.

    No network traffic happens here; the first round-trip is the engine's
    ``boot()``.

    Returns:
        SQLAlchemy Engine, or None if the URL or driver is unusable
    """
    try:
        url = build_url(kind, host, port, username, password, database)
    except ValueError as e:
        logger.warning("Cannot build %s connection URL: %s", kind, e)
        return None

    try:
        return create_engine(
            url,
            pool_pre_ping=True,
            pool_recycle=300,
            connect_args={"connect_timeout": connect_timeout},
        )
    except Exception as e:
        # Missing DBAPI driver surfaces here as ImportError / NoSuchModuleError
        logger.warning("Cannot create %s engine for %s: %s", kind, url.render_as_string(), e)
        return None
