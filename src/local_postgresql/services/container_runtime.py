"""Docker container lifecycle services for local-postgresql."""

import logging
import time
from typing import Callable

from docker.errors import APIError, DockerException, ImageNotFound, NotFound
from testcontainers.community.postgres import PostgresContainer

from local_postgresql.constants import POSTGRESQL_PORT, READINESS_POLL_INTERVAL
from local_postgresql.errors import ProvisionError, TeardownError
from local_postgresql.errors_catalog import actionable_error
from local_postgresql.models import ContainerHandle, ProvisionerConfig
from local_postgresql.services.log_follower import ContainerLogFollower

_PORT_CONFLICT_MARKERS = ("port is already allocated", "address already in use", "ports are not available")
_PULL_FAILURE_MARKERS = ("pull access denied", "manifest unknown", "not found: manifest", "repository does not exist")


class PostgresReadinessContainer(PostgresContainer):
    """PostgresContainer whose ``start()`` returns as soon as Docker runs it.

    The library's own psql wait is bounded by the global testcontainers
    timeout. Readiness is instead polled by
    ``ContainerRuntimeService.wait_for_db`` within ``container.startup.timeout``.
    """

    def _connect(self) -> None:
        return None


class ContainerRuntimeService:
    """Creates, starts, probes and removes PostgreSQL containers."""

    def __init__(
        self,
        logger,
        console,
        container_factory=PostgresReadinessContainer,
        log_follower_factory=ContainerLogFollower,
        container_logger=None,
    ):
        self.logger = logger
        self.console = console
        self.container_factory = container_factory
        self.log_follower_factory = log_follower_factory
        self.container_logger = container_logger or logging.getLogger("local_postgresql.container")

    def create_container(self, config: ProvisionerConfig) -> ContainerHandle:
        kwargs = {}
        if config.database_name is not None:
            kwargs["dbname"] = config.database_name
        if config.username is not None:
            kwargs["username"] = config.username
        if config.password is not None:
            kwargs["password"] = config.password

        try:
            container = self.container_factory(image=config.image, **kwargs)
        except DockerException as exc:
            raise ProvisionError(
                actionable_error("runtime_unavailable", image=config.image, cause=str(exc))
            ) from exc

        if config.host_port is not None:
            container.with_bind_ports(POSTGRESQL_PORT, config.host_port)
        if config.container_name:
            container.with_name(config.container_name)

        # Engine defaults are read back here, once the container object exists.
        return ContainerHandle(
            container=container,
            image=config.image,
            requested_port=config.host_port,
            container_name=config.container_name,
            database_name=container.dbname,
            username=container.username,
            password=container.password,
            follow_logs=config.follow_logs,
        )

    def _describe_port(self, handle: ContainerHandle) -> str:
        return str(handle.requested_port) if handle.requested_port is not None else "ephemeral"

    def start(self, handle: ContainerHandle):
        self.console.print(f"[blue]Starting PostgreSQL container from {handle.image}...[/blue]")
        self.logger.info("Starting PostgreSQL container from %s", handle.image)

        # From here on a container may exist even if start() fails.
        handle.started = True
        try:
            handle.container.start()
        except Exception as exc:
            if handle.follow_logs:
                self._follow_logs_of_failed_start(handle)
            raise self._translate_start_error(handle, exc) from exc

        self._discover(handle)
        self.logger.debug(
            "Container %s started, PostgreSQL mapped to %s:%s",
            handle.container_id,
            handle.host,
            handle.host_port,
        )
        if handle.follow_logs:
            self.follow_logs(handle)

    def _follow_logs_of_failed_start(self, handle: ContainerHandle):
        try:
            wrapped = handle.container.get_wrapped_container()
        except Exception as exc:
            self.logger.debug("No container output for %s: %s", handle.image, exc)
            return
        if wrapped is None:
            self.logger.debug("No container output for %s: container never ran.", handle.image)
            return
        self.follow_logs(handle)

    def _translate_start_error(self, handle: ContainerHandle, exc: Exception) -> ProvisionError:
        port = self._describe_port(handle)
        if isinstance(exc, ImageNotFound):
            message = actionable_error("image_pull_failed", image=handle.image, cause=str(exc))
        elif isinstance(exc, APIError):
            return self._translate_api_error(handle, exc)
        elif isinstance(exc, DockerException):
            message = actionable_error("runtime_unavailable", image=handle.image, cause=str(exc))
        elif isinstance(exc, TimeoutError):
            message = actionable_error("start_failed", image=handle.image, port=port, cause=f"timed out: {exc}")
        else:
            message = actionable_error("start_failed", image=handle.image, port=port, cause=str(exc))
        return ProvisionError(message, handle=handle)

    def _translate_api_error(self, handle: ContainerHandle, exc: APIError) -> ProvisionError:
        text = str(exc).lower()
        if handle.requested_port is not None and any(marker in text for marker in _PORT_CONFLICT_MARKERS):
            return ProvisionError(
                actionable_error("port_in_use", port=str(handle.requested_port), image=handle.image),
                handle=handle,
            )
        if any(marker in text for marker in _PULL_FAILURE_MARKERS):
            return ProvisionError(
                actionable_error("image_pull_failed", image=handle.image, cause=str(exc)),
                handle=handle,
            )
        return ProvisionError(
            actionable_error(
                "start_failed",
                image=handle.image,
                port=self._describe_port(handle),
                cause=str(exc),
            ),
            handle=handle,
        )

    def _discover(self, handle: ContainerHandle):
        try:
            wrapped = handle.container.get_wrapped_container()
            wrapped.reload()
            handle.container_id = wrapped.id
            handle.container_name = wrapped.attrs.get("Name") or wrapped.name
            handle.host = handle.container.get_container_host_ip()
            handle.host_port = int(handle.container.get_exposed_port(POSTGRESQL_PORT))
        except Exception as exc:
            raise ProvisionError(
                f"Started container for {handle.image} but could not inspect its port mapping: {exc}",
                handle=handle,
            ) from exc

    def follow_logs(self, handle: ContainerHandle):
        label = (handle.container_name or handle.container_id or "postgresql").lstrip("/")
        follower = self.log_follower_factory(logger=self.container_logger)
        follower.start(handle.container.get_wrapped_container(), label)
        handle.log_follower = follower
        self.logger.debug("Following logs of container %s", label)

    def wait_for_db(self, handle: ContainerHandle, run_exec: Callable, timeout: float):
        self.console.print("[yellow]Waiting for database to be ready...[/yellow]")

        # TCP probe: the bootstrap server that runs during initdb only listens on the socket.
        cmd = [
            "pg_isready",
            "-h",
            "localhost",
            "-p",
            str(POSTGRESQL_PORT),
            "-U",
            handle.username,
            "-d",
            handle.database_name,
        ]

        deadline = time.monotonic() + timeout
        while True:
            result = run_exec(handle.container, cmd, check=False)
            if result.returncode == 0:
                self.console.print("[green]Database is ready.[/green]")
                return
            if time.monotonic() >= deadline:
                break
            time.sleep(READINESS_POLL_INTERVAL)

        raise ProvisionError(
            actionable_error(
                "readiness_timeout",
                image=handle.image,
                port=self._describe_port(handle),
                timeout=f"{timeout:g}",
            ),
            handle=handle,
        )

    def stop(self, handle: ContainerHandle) -> bool:
        """Stops and removes the container; returns False when already stopped."""
        if handle.stopped:
            return False
        handle.stopped = True

        self.logger.info("Removing PostgreSQL container %s", handle.container_name or handle.container_id)
        try:
            handle.container.stop()
        except NotFound:
            self.logger.debug("Container %s was already removed.", handle.container_id)
        except Exception as exc:
            raise TeardownError(
                f"Failed to stop container {handle.container_name or handle.container_id}: {exc}"
            ) from exc
        finally:
            if handle.log_follower is not None:
                handle.log_follower.join()
        return True
