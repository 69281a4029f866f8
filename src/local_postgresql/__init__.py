"""
local-postgresql - disposable PostgreSQL containers for development and tests
"""

__version__ = "0.1.0"

from .core import LocalPostgreSQL, Provisioner
from .errors import ConfigError, InitScriptError, LocalPostgreSQLError, ProvisionError, TeardownError
from .models import ConnectionDetails, ContainerHandle, ProvisionerConfig

__all__ = [
    "ConfigError",
    "ConnectionDetails",
    "ContainerHandle",
    "InitScriptError",
    "LocalPostgreSQL",
    "LocalPostgreSQLError",
    "ProvisionError",
    "Provisioner",
    "ProvisionerConfig",
    "TeardownError",
]
