"""Shared domain models for local-postgresql."""

from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import quote

from .constants import DEFAULT_DRIVER, DEFAULT_IMAGE, DEFAULT_STARTUP_TIMEOUT


@dataclass(frozen=True)
class ProvisionerConfig:
    """Resolved provisioning options.

    Fields left as ``None`` are filled by the container runtime or the
    PostgreSQL image when the container is created, never before.
    """

    enabled: bool = True
    image: str = DEFAULT_IMAGE
    container_name: Optional[str] = None
    host_port: Optional[int] = None
    follow_logs: bool = False
    startup_timeout: float = DEFAULT_STARTUP_TIMEOUT
    database_name: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    application_username: Optional[str] = None
    application_password: Optional[str] = None
    init_script: Optional[str] = None

    @property
    def has_application_user(self) -> bool:
        return self.application_username is not None and self.application_password is not None


@dataclass
class ContainerHandle:
    """Runtime state of one provisioned container."""

    container: Any
    image: str
    requested_port: Optional[int] = None
    container_id: Optional[str] = None
    container_name: Optional[str] = None
    host: Optional[str] = None
    host_port: Optional[int] = None
    database_name: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    follow_logs: bool = False
    log_follower: Any = None
    started: bool = False
    stopped: bool = False

    @property
    def is_running(self) -> bool:
        return self.started and not self.stopped


@dataclass(frozen=True)
class ConnectionDetails:
    """How an application reaches a provisioned database."""

    url: str
    username: str
    password: str
    driver: str = DEFAULT_DRIVER

    def sqlalchemy_url(self) -> str:
        location = self.url.split("://", 1)[1]
        user = quote(self.username, safe="")
        password = quote(self.password, safe="")
        return f"postgresql+{self.driver}://{user}:{password}@{location}"


@dataclass(frozen=True)
class ExecResult:
    """Outcome of a command executed inside the container."""

    cmd: tuple
    returncode: int
    output: str = ""
