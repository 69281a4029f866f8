import pytest

from local_postgresql.errors import ConfigError
from local_postgresql.services.config_loader import ConfigLoader


def test_config_loader_flattens_nested_yaml_mapping(tmp_path):
    config_file = tmp_path / ".local-postgresql.yml"
    config_file.write_text(
        "container:\n"
        "  name: local_postgresql\n"
        "  port: 15432\n"
        "  log:\n"
        "    follow: true\n"
        "database:\n"
        "  name: pedals\n"
        "  application:\n"
        "    username: overdrive\n"
        "    password: reverb\n",
        encoding="utf-8",
    )

    loaded = ConfigLoader().load(str(config_file))

    assert loaded == {
        "container.name": "local_postgresql",
        "container.port": 15432,
        "container.log.follow": True,
        "database.name": "pedals",
        "database.application.username": "overdrive",
        "database.application.password": "reverb",
    }


def test_config_loader_accepts_dotted_keys_and_property_prefix(tmp_path):
    config_file = tmp_path / "config.yml"
    config_file.write_text(
        "local.postgresql.engaged: false\n" "database.init.script: custom.sql\n",
        encoding="utf-8",
    )

    loaded = ConfigLoader().load(str(config_file))

    assert loaded == {"engaged": False, "database.init.script": "custom.sql"}


def test_config_loader_returns_empty_mapping_without_path_or_content(tmp_path):
    empty_file = tmp_path / "empty.yml"
    empty_file.write_text("", encoding="utf-8")

    loader = ConfigLoader()

    assert loader.load(None) == {}
    assert loader.load(str(empty_file)) == {}


def test_config_loader_rejects_unknown_keys(tmp_path):
    config_file = tmp_path / "config.yml"
    config_file.write_text("container:\n  colour: blue\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="Unknown configuration keys: container.colour"):
        ConfigLoader().load(str(config_file))


def test_config_loader_rejects_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="Config file not found"):
        ConfigLoader().load(str(tmp_path / "missing.yml"))


def test_config_loader_rejects_non_mapping_root(tmp_path):
    config_file = tmp_path / "config.yml"
    config_file.write_text("- engaged\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="YAML mapping"):
        ConfigLoader().load(str(config_file))


def test_config_loader_rejects_duplicate_keys_across_styles(tmp_path):
    config_file = tmp_path / "config.yml"
    config_file.write_text(
        "container.port: 1\n" "container:\n  port: 2\n",
        encoding="utf-8",
    )

    with pytest.raises(ConfigError, match="defined twice"):
        ConfigLoader().load(str(config_file))
