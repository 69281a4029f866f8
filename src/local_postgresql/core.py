import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from rich.console import Console
from testcontainers.community.postgres import PostgresContainer

from .constants import NOT_CONFIGURED, POSTGRESQL_PORT
from .errors import ConfigError, InitScriptError, ProvisionError, TeardownError
from .models import ConnectionDetails, ContainerHandle, ExecResult, ProvisionerConfig
from .services.container_runtime import ContainerRuntimeService, PostgresReadinessContainer
from .services.exec_runner import ContainerExecRunner
from .services.init_script import InitScriptService
from .services.log_follower import ContainerLogFollower
from .services.resolver import check_application_user, resolve

console = Console()
logger = logging.getLogger("local_postgresql")


class Provisioner:
    """Starts disposable PostgreSQL containers and describes how to reach them.

    The provisioner keeps no state between calls: every ``provision`` builds
    its own container and handle, so one instance can serve concurrent
    callers.
    """

    def __init__(
        self,
        container_factory: Callable[..., PostgresContainer] = PostgresReadinessContainer,
        log_follower_factory: Optional[Callable[..., ContainerLogFollower]] = None,
    ):
        runtime_kwargs: Dict[str, Any] = {"container_factory": container_factory}
        if log_follower_factory is not None:
            runtime_kwargs["log_follower_factory"] = log_follower_factory

        self.exec_runner = ContainerExecRunner(logger=logger)
        self.runtime_service = ContainerRuntimeService(logger=logger, console=console, **runtime_kwargs)
        self.init_script_service = InitScriptService(logger=logger, console=console)

    @staticmethod
    def resolve(overrides: Optional[Mapping[str, Any]] = None) -> ProvisionerConfig:
        return resolve(overrides)

    def _run_exec(self, container, cmd: List[str], check: bool = True) -> ExecResult:
        return self.exec_runner.run(container, cmd, check=check)

    def provision(
        self,
        config: ProvisionerConfig,
        on_created: Optional[Callable[[ContainerHandle], None]] = None,
    ) -> Optional[ContainerHandle]:
        """Starts a container for ``config`` and blocks until it is ready.

        Returns ``None`` when provisioning is disabled; the caller is then
        expected to use its own connection details. ``on_created`` receives
        the handle as soon as a container may exist, so an interrupted
        caller can still tear it down.
        """
        if not config.enabled:
            logger.info("Local PostgreSQL is disabled; no container will be started.")
            return None

        if config.init_script:
            self.init_script_service.locate(config.init_script)

        handle = self.runtime_service.create_container(config)
        if on_created is not None:
            on_created(handle)

        try:
            self.runtime_service.start(handle)
            self.runtime_service.wait_for_db(handle, self._run_exec, config.startup_timeout)
            if config.init_script:
                self.init_script_service.run(handle, config.init_script, self._run_exec)
        except ProvisionError as exc:
            if exc.handle is None:
                exc.handle = handle
            raise
        except Exception as exc:
            raise ProvisionError(f"Provisioning {config.image} failed: {exc}", handle=handle) from exc

        logger.info(self.summary(handle, config))
        return handle

    def connection_details(
        self,
        handle: Optional[ContainerHandle],
        config: ProvisionerConfig,
    ) -> ConnectionDetails:
        if handle is None:
            raise ProvisionError(
                "No container was provisioned (local PostgreSQL is disabled). "
                "Use the application's own connection details instead."
            )
        if handle.stopped:
            raise ProvisionError(f"Container {handle.container_name or handle.container_id} was torn down.")
        if handle.host_port is None:
            raise ProvisionError(f"Container for {handle.image} has no discovered port mapping yet.")

        check_application_user(config.application_username, config.application_password)

        url = f"postgresql://{handle.host}:{handle.host_port}/{handle.database_name}"
        if config.has_application_user:
            return ConnectionDetails(
                url=url,
                username=config.application_username,
                password=config.application_password,
            )
        return ConnectionDetails(url=url, username=handle.username, password=handle.password)

    def teardown(self, handle: Optional[ContainerHandle]):
        if handle is None:
            return

        try:
            removed = self.runtime_service.stop(handle)
        except TeardownError as exc:
            logger.warning("%s", exc)
            return

        if removed:
            console.print("[dim]PostgreSQL container removed.[/dim]")

    @staticmethod
    def summary(handle: ContainerHandle, config: ProvisionerConfig) -> str:
        border = "*" * 85
        return "\n".join(
            [
                "",
                border,
                "",
                "    Running PostgreSQL container for development and testing.",
                "",
                f"    Container: {handle.container_name} ({handle.container_id})",
                f"    Image: {handle.image}",
                f"    Port Mapping: {handle.host_port}:{POSTGRESQL_PORT}",
                "",
                "    Use the credentials below to connect with your client of choice:",
                "",
                f"    URL: postgresql://{handle.host}:{handle.host_port}/{handle.database_name}",
                f"    Admin User Username: {handle.username}",
                f"    Admin User Password: {handle.password}",
                f"    Application User Username: {config.application_username or NOT_CONFIGURED}",
                f"    Application User Password: {config.application_password or NOT_CONFIGURED}",
                "",
                border,
            ]
        )


class LocalPostgreSQL:
    """Owns one provisioned database for the lifetime of an application or test session.

    When provisioning is disabled, ``connection_details`` returns ``fallback``.
    """

    def __init__(
        self,
        overrides: Optional[Mapping[str, Any]] = None,
        fallback: Optional[ConnectionDetails] = None,
        provisioner: Optional[Provisioner] = None,
    ):
        self.config = resolve(overrides)
        self.fallback = fallback
        self.provisioner = provisioner or Provisioner()
        self.handle: Optional[ContainerHandle] = None
        self._created: List[ContainerHandle] = []

    def start(self) -> "LocalPostgreSQL":
        try:
            self.handle = self.provisioner.provision(self.config, on_created=self._created.append)
        except InitScriptError as exc:
            if exc.handle is not None:
                logger.warning(
                    "Leaving container %s running for inspection after init script failure.",
                    exc.handle.container_name or exc.handle.container_id,
                )
                self._created.remove(exc.handle)
            raise
        except BaseException:
            self.stop()
            raise
        return self

    @property
    def connection_details(self) -> ConnectionDetails:
        if self.handle is None:
            if self.config.enabled:
                raise ProvisionError("Local PostgreSQL has not been started.")
            if self.fallback is None:
                raise ConfigError(
                    "Local PostgreSQL is disabled and no fallback connection details were given."
                )
            return self.fallback
        return self.provisioner.connection_details(self.handle, self.config)

    def stop(self):
        while self._created:
            self.provisioner.teardown(self._created.pop())
        self.handle = None

    def __enter__(self) -> "LocalPostgreSQL":
        return self.start()

    def __exit__(self, exc_type, exc, tb):
        self.stop()
