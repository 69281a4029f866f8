import pytest
from docker.errors import DockerException, NotFound


class DummyLogger:
    def __init__(self):
        self.records = []

    def _record(self, level, message, *args):
        self.records.append((level, message % args if args else message))

    def debug(self, message, *args, **_kwargs):
        self._record("debug", message, *args)

    def info(self, message, *args, **_kwargs):
        self._record("info", message, *args)

    def warning(self, message, *args, **_kwargs):
        self._record("warning", message, *args)

    def error(self, message, *args, **_kwargs):
        self._record("error", message, *args)


class DummyConsole:
    def print(self, *_args, **_kwargs):
        return None


class FakeWrappedContainer:
    def __init__(self, name):
        self.id = "c0ffee1234567890"
        self.name = (name or "eager_turing").lstrip("/")
        self.attrs = {"Name": f"/{self.name}"}
        self.archives = []
        self.log_lines = [b"database system is ready to accept connections\n"]

    def reload(self):
        return None

    def logs(self, stream=False, follow=False):
        return iter(self.log_lines)

    def put_archive(self, path, data):
        self.archives.append((path, data))
        return True


class FakePostgresContainer:
    """Stands in for testcontainers' PostgresContainer."""

    instances = []
    start_error = None
    stop_error = None

    def __init__(self, image="postgres:latest", username=None, password=None, dbname=None):
        self.image = image
        self.username = username or "test"
        self.password = password or "test"
        self.dbname = dbname or "test"
        self.bound_ports = {}
        self.name = None
        self.started = False
        self.stop_calls = 0
        self.exec_calls = []
        self._wrapped = None
        type(self).instances.append(self)

    def with_bind_ports(self, container, host=None):
        self.bound_ports[container] = host
        return self

    def with_name(self, name):
        self.name = name
        return self

    def start(self):
        # Docker API failures happen before the container runs; wait failures after.
        if isinstance(self.start_error, DockerException):
            raise self.start_error
        self._wrapped = FakeWrappedContainer(self.name)
        if self.start_error is not None:
            raise self.start_error
        self.started = True
        return self

    def stop(self, force=True, delete_volume=True):
        self.stop_calls += 1
        if self.stop_error is not None:
            raise self.stop_error
        if not self.started:
            raise NotFound("No such container")
        self.started = False

    def exec_handler(self, cmd):
        return 0, b""

    def exec(self, cmd):
        self.exec_calls.append(cmd)
        return self.exec_handler(cmd)

    def get_wrapped_container(self):
        return self._wrapped

    def get_container_host_ip(self):
        return "localhost"

    def get_exposed_port(self, port):
        return str(self.bound_ports.get(port) or 49153)


@pytest.fixture
def dummy_logger():
    return DummyLogger()


@pytest.fixture
def dummy_console():
    return DummyConsole()


@pytest.fixture
def fake_container_cls():
    class IsolatedFakePostgresContainer(FakePostgresContainer):
        instances = []

    return IsolatedFakePostgresContainer
