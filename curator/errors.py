class CuratorError(Exception):
    """Base class for every failure the curator reports to its callers."""


class ConfigurationError(CuratorError):
    """Rejected configuration write; the previous config stays in place."""


class CollaboratorError(CuratorError):
    """A Collector, Scoring Oracle, Report Generator or Publisher failed."""


class PreconditionError(CuratorError):
    """Action attempted against state that does not allow it. Nothing was mutated."""


class InvalidTransitionError(PreconditionError):
    pass


class StoreError(CuratorError):
    """A record could not be persisted."""
