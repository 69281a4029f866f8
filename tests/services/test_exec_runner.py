import pytest

from local_postgresql.errors import ProvisionError
from local_postgresql.services.exec_runner import ContainerExecRunner


class ScriptedContainer:
    def __init__(self, exit_code, output):
        self.exit_code = exit_code
        self.output = output

    def exec(self, cmd):
        return self.exit_code, self.output


class BrokenContainer:
    def exec(self, cmd):
        raise RuntimeError("container is not running")


def test_exec_runner_decodes_output(dummy_logger):
    runner = ContainerExecRunner(logger=dummy_logger)

    result = runner.run(ScriptedContainer(0, b"accepting connections\n"), ["pg_isready"])

    assert result.returncode == 0
    assert result.output == "accepting connections\n"
    assert result.cmd == ("pg_isready",)


def test_exec_runner_raises_with_output_when_check_enabled(dummy_logger):
    runner = ContainerExecRunner(logger=dummy_logger)

    with pytest.raises(ProvisionError, match="boom"):
        runner.run(ScriptedContainer(2, b"boom"), ["psql", "-c", "SELECT 1"])


def test_exec_runner_returns_when_check_disabled(dummy_logger):
    runner = ContainerExecRunner(logger=dummy_logger)

    result = runner.run(ScriptedContainer(1, None), ["pg_isready"], check=False)

    assert result.returncode == 1
    assert result.output == ""


def test_exec_runner_wraps_exec_failures(dummy_logger):
    runner = ContainerExecRunner(logger=dummy_logger)

    with pytest.raises(ProvisionError, match="not running"):
        runner.run(BrokenContainer(), ["pg_isready"])
