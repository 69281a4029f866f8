from dataclasses import fields

import pytest

from local_postgresql.constants import DEFAULT_IMAGE, DEFAULT_STARTUP_TIMEOUT
from local_postgresql.errors import ConfigError
from local_postgresql.models import ProvisionerConfig
from local_postgresql.services.resolver import resolve


def test_resolve_without_overrides_uses_built_in_defaults():
    config = resolve({})

    assert config == ProvisionerConfig()
    assert config.enabled is True
    assert config.image == DEFAULT_IMAGE
    assert config.follow_logs is False
    assert config.startup_timeout == DEFAULT_STARTUP_TIMEOUT
    # Engine and runtime defaults are applied when the container is created.
    assert config.container_name is None
    assert config.host_port is None
    assert config.database_name is None
    assert config.username is None
    assert config.password is None
    assert config.init_script is None


def test_resolve_applies_every_override():
    config = resolve(
        {
            "engaged": True,
            "container.image": "postgres:15",
            "container.name": "/local_postgresql",
            "container.port": 15432,
            "container.log.follow": True,
            "container.startup.timeout": 30,
            "database.name": "pedals",
            "database.username": "fuzz",
            "database.password": "echo",
            "database.application.username": "overdrive",
            "database.application.password": "reverb",
            "database.init.script": "custom.sql",
        }
    )

    assert config.image == "postgres:15"
    assert config.container_name == "/local_postgresql"
    assert config.host_port == 15432
    assert config.follow_logs is True
    assert config.startup_timeout == 30.0
    assert config.database_name == "pedals"
    assert config.username == "fuzz"
    assert config.password == "echo"
    assert config.application_username == "overdrive"
    assert config.application_password == "reverb"
    assert config.init_script == "custom.sql"
    assert config.has_application_user is True


def test_resolve_fills_only_fields_left_unset():
    config = resolve({"database.name": "pedals", "container.log.follow": None})

    defaults = ProvisionerConfig()
    for field in fields(ProvisionerConfig):
        if field.name == "database_name":
            assert config.database_name == "pedals"
        else:
            assert getattr(config, field.name) == getattr(defaults, field.name)


def test_resolve_accepts_property_style_strings():
    config = resolve(
        {
            "engaged": "false",
            "container.port": "15432",
            "container.log.follow": "TRUE",
            "container.startup.timeout": "2.5",
        }
    )

    assert config.enabled is False
    assert config.host_port == 15432
    assert config.follow_logs is True
    assert config.startup_timeout == 2.5


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"container.port": "abc"}, "integer port"),
        ({"container.port": 70000}, "between 1 and 65535"),
        ({"container.port": True}, "integer port"),
        ({"engaged": "maybe"}, "must be a boolean"),
        ({"container.startup.timeout": 0}, "greater than zero"),
        ({"database.name": "  "}, "must not be empty"),
        ({"database.username": ["fuzz"]}, "must be a string"),
        ({"database.colour": "blue"}, "Unknown configuration keys"),
    ],
)
def test_resolve_rejects_malformed_overrides(overrides, message):
    with pytest.raises(ConfigError, match=message):
        resolve(overrides)


def test_resolve_rejects_application_username_without_password():
    with pytest.raises(ConfigError, match="database.application.password"):
        resolve({"database.application.username": "overdrive"})


def test_resolve_rejects_application_password_without_username():
    with pytest.raises(ConfigError, match="database.application.username"):
        resolve({"database.application.password": "reverb"})
