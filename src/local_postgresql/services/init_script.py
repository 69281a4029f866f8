"""Init script execution service for local-postgresql."""

import io
import re
import tarfile
import time
from pathlib import Path, PurePosixPath
from typing import Callable, Optional, Tuple

from local_postgresql.constants import CONTAINER_SCRIPT_DIR
from local_postgresql.errors import InitScriptError
from local_postgresql.errors_catalog import actionable_error
from local_postgresql.models import ContainerHandle


class InitScriptService:
    """Copies an SQL script into the container and runs it once with psql."""

    def __init__(self, logger, console):
        self.logger = logger
        self.console = console

    @staticmethod
    def locate(script_path: str) -> Path:
        path = Path(script_path).expanduser()
        if not path.is_file():
            raise InitScriptError(actionable_error("init_script_not_found", path=script_path))
        return path

    @staticmethod
    def _container_script_path(path: Path) -> str:
        return str(PurePosixPath(CONTAINER_SCRIPT_DIR, f"local-postgresql-{path.name}"))

    @staticmethod
    def _extract_failure(output: str) -> Tuple[Optional[str], str]:
        """Returns the failing line number and error text reported by psql."""
        match = re.search(r"psql:[^:\n]*:(\d+):\s*ERROR:\s*(.+)", output)
        if match:
            return match.group(1), match.group(2).strip()
        for line in output.splitlines():
            if "ERROR" in line or "FATAL" in line:
                return None, line.strip()
        return None, output.strip() or "psql exited with an error"

    def _copy_into_container(self, handle: ContainerHandle, path: Path, target: str):
        data = path.read_bytes()
        buffer = io.BytesIO()
        with tarfile.open(fileobj=buffer, mode="w") as archive:
            info = tarfile.TarInfo(name=PurePosixPath(target).name)
            info.size = len(data)
            info.mode = 0o644
            info.mtime = int(time.time())
            archive.addfile(info, io.BytesIO(data))
        buffer.seek(0)

        wrapped = handle.container.get_wrapped_container()
        if not wrapped.put_archive(str(PurePosixPath(target).parent), buffer.getvalue()):
            raise InitScriptError(
                f"Could not copy init script {path} into container {handle.container_id}.",
                handle=handle,
            )

    def run(self, handle: ContainerHandle, script_path: str, run_exec: Callable):
        path = self.locate(script_path)
        self.console.print(f"[blue]Running init script {path.name}...[/blue]")
        self.logger.info("Running init script %s", path)

        target = self._container_script_path(path)
        self._copy_into_container(handle, path, target)

        result = run_exec(
            handle.container,
            [
                "psql",
                "-U",
                handle.username,
                "-d",
                handle.database_name,
                "-v",
                "ON_ERROR_STOP=1",
                "-q",
                "-f",
                target,
            ],
            check=False,
        )

        if result.returncode == 0:
            self.logger.info("Init script %s completed.", path)
            return

        line, cause = self._extract_failure(result.output)
        location = f" at line {line}" if line else ""
        self.logger.error("Init script %s failed%s: %s", path, location, cause)
        raise InitScriptError(
            actionable_error("init_script_failed", path=str(script_path), location=location, cause=cause),
            handle=handle,
        )
