"""Domain errors for local-postgresql."""


class LocalPostgreSQLError(RuntimeError):
    """Base class for every failure raised by local-postgresql."""


class ConfigError(LocalPostgreSQLError):
    """Raised when overrides are malformed or contradictory."""


class ProvisionError(LocalPostgreSQLError):
    """Raised when the database container cannot be started or reached."""

    def __init__(self, message: str, handle=None):
        super().__init__(message)
        self.handle = handle


class InitScriptError(ProvisionError):
    """Raised when the init script is missing or fails to execute."""


class TeardownError(LocalPostgreSQLError):
    """Raised internally when a container cannot be stopped or removed."""
