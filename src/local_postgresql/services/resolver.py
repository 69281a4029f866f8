"""Resolution of provisioning overrides into a ProvisionerConfig."""

from typing import Any, Mapping, Optional

from local_postgresql.constants import DEFAULT_IMAGE, DEFAULT_STARTUP_TIMEOUT
from local_postgresql.errors import ConfigError
from local_postgresql.errors_catalog import actionable_error
from local_postgresql.models import ProvisionerConfig
from local_postgresql.services.config_loader import ConfigLoader

_TRUE_VALUES = {"true", "yes", "on", "1"}
_FALSE_VALUES = {"false", "no", "off", "0"}

APPLICATION_USERNAME_KEY = "database.application.username"
APPLICATION_PASSWORD_KEY = "database.application.password"


def _as_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
    raise ConfigError(f"`{key}` must be a boolean, got {value!r}.")


def _as_port(key: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"`{key}` must be an integer port, got {value!r}.")
    try:
        port = int(str(value).strip()) if isinstance(value, str) else int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"`{key}` must be an integer port, got {value!r}.") from exc
    if isinstance(value, float) and value != port:
        raise ConfigError(f"`{key}` must be an integer port, got {value!r}.")
    if not 1 <= port <= 65535:
        raise ConfigError(f"`{key}` must be between 1 and 65535, got {port}.")
    return port


def _as_timeout(key: str, value: Any) -> float:
    if isinstance(value, bool):
        raise ConfigError(f"`{key}` must be a number of seconds, got {value!r}.")
    try:
        timeout = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"`{key}` must be a number of seconds, got {value!r}.") from exc
    if timeout <= 0:
        raise ConfigError(f"`{key}` must be greater than zero, got {value!r}.")
    return timeout


def _as_text(key: str, value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool) or isinstance(value, (dict, list)):
        raise ConfigError(f"`{key}` must be a string, got {value!r}.")
    text = str(value)
    if not text.strip():
        raise ConfigError(f"`{key}` must not be empty.")
    return text


def check_application_user(username: Optional[str], password: Optional[str]):
    """Rejects an application user that has only one half of its credentials."""
    if (username is None) == (password is None):
        return
    present, missing = (
        (APPLICATION_USERNAME_KEY, APPLICATION_PASSWORD_KEY)
        if username is not None
        else (APPLICATION_PASSWORD_KEY, APPLICATION_USERNAME_KEY)
    )
    raise ConfigError(actionable_error("application_user_incomplete", present=present, missing=missing))


def resolve(overrides: Optional[Mapping[str, Any]] = None) -> ProvisionerConfig:
    """Merges dotted-key overrides over the built-in defaults.

    ``None`` values count as absent. Fields whose default belongs to the
    container runtime or the PostgreSQL image stay ``None``.
    """
    values = {key: value for key, value in (overrides or {}).items() if value is not None}

    unknown = sorted(set(values) - ConfigLoader.SUPPORTED_KEYS)
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")

    def text(key: str) -> Optional[str]:
        return _as_text(key, values.get(key))

    application_username = text(APPLICATION_USERNAME_KEY)
    application_password = text(APPLICATION_PASSWORD_KEY)
    check_application_user(application_username, application_password)

    return ProvisionerConfig(
        enabled=_as_bool("engaged", values["engaged"]) if "engaged" in values else True,
        image=text("container.image") or DEFAULT_IMAGE,
        container_name=text("container.name"),
        host_port=_as_port("container.port", values["container.port"])
        if "container.port" in values
        else None,
        follow_logs=_as_bool("container.log.follow", values["container.log.follow"])
        if "container.log.follow" in values
        else False,
        startup_timeout=_as_timeout("container.startup.timeout", values["container.startup.timeout"])
        if "container.startup.timeout" in values
        else DEFAULT_STARTUP_TIMEOUT,
        database_name=text("database.name"),
        username=text("database.username"),
        password=text("database.password"),
        application_username=application_username,
        application_password=application_password,
        init_script=text("database.init.script"),
    )
