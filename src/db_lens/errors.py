"""Error types shared by engines, resolvers and providers."""


class DbLensError(Exception):
    """Base class for db-lens errors."""

    pass


class StructuralConfigError(DbLensError):
    """A declared connection entry is malformed (missing name, duplicate id, bad field)."""

    pass


class EngineConnectionError(DbLensError):
    """An engine could not establish, validate or use its live session."""

    pass


class ConnectionLookupError(DbLensError):
    """A requested connection id is not in the provider's cache."""

    pass
