class DeclairError(Exception):
    """Base class for every error surfaced by declair."""

    pass


class ConstructNotFoundError(DeclairError, LookupError):
    """Raised when no package list or option declaration can be used."""

    pass


class AmbiguousConstructError(DeclairError, ValueError):
    """Raised when one package has several option declarations."""

    pass


class MalformedConstructError(DeclairError, ValueError):
    """Raised when a construct cannot be edited without breaking the file."""

    pass


class IoFailure(DeclairError, OSError):
    pass


class BackupError(IoFailure):
    pass


class WriteError(IoFailure):
    pass


class ConfigError(DeclairError):
    pass


class SearchError(DeclairError):
    pass


class RebuildError(DeclairError):
    pass
