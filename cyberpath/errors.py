"""Exception types raised by CyberPath."""


class CyberPathError(Exception):
    """Base class for all CyberPath errors."""


class NotFoundError(CyberPathError):
    """A referenced learner, unit or achievement does not exist."""

    def __init__(self, kind: str, identifier):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} not found: {identifier}")


class StoreUnavailableError(CyberPathError):
    """The storage backend failed. Surfaced unchanged; never retried here."""


class CatalogError(CyberPathError):
    """The curriculum or achievement catalog is invalid."""
