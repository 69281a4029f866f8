"""In-container command execution service for local-postgresql."""

from typing import List

from local_postgresql.errors import ProvisionError
from local_postgresql.models import ExecResult


class ContainerExecRunner:
    """Runs commands inside a started container with consistent error handling."""

    def __init__(self, logger):
        self.logger = logger

    def run(self, container, cmd: List[str], check: bool = True) -> ExecResult:
        cmd_str = " ".join(cmd)
        self.logger.debug("Executing in container: %s", cmd_str)

        try:
            exit_code, raw_output = container.exec(cmd)
        except Exception as exc:
            raise ProvisionError(f"Failed to execute in container: {cmd_str}. {exc}") from exc

        if isinstance(raw_output, bytes):
            output = raw_output.decode("utf-8", errors="replace")
        else:
            output = raw_output or ""

        if output.strip():
            self.logger.debug("Command output: %s", output.strip())

        result = ExecResult(cmd=tuple(cmd), returncode=exit_code, output=output)
        if exit_code == 0 or not check:
            return result

        message = f"Command failed ({exit_code}): {cmd_str}"
        if output.strip():
            message = f"{message}\n{output.strip()}"
        raise ProvisionError(message)
