from pathlib import Path

import pytest

from gdmarshal import utils


def write_toml(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


def test_default_config_has_expected_sections():
    config = utils.load_default_config()
    assert config["logging"]["console_level"] == "INFO"
    assert config["logging"]["to_file"] is False
    assert config["types"]["size_overrides"] == {}
    assert config["policy"]["used_by_property"] == {}


def test_merge_configs_prefers_user_values():
    merged = utils._merge_configs(
        {"logging": {"console_level": "DEBUG"}, "extra": 1},
        {"logging": {"console_level": "INFO", "color": True}},
    )
    assert merged == {"logging": {"console_level": "DEBUG", "color": True}, "extra": 1}


def test_merge_configs_rejects_type_mismatch():
    with pytest.raises(TypeError):
        utils._merge_configs({"logging": "loud"}, {"logging": {"console_level": "INFO"}})


def test_explicit_config_file(tmp_path: Path):
    path = write_toml(tmp_path / "custom.toml", '[types]\nextra_classes = ["MyNode"]\n')
    config = utils.try_load_config(str(path))
    assert config["types"]["extra_classes"] == ["MyNode"]
    assert config["logging"]["console_level"] == "INFO"


def test_missing_explicit_config_file(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        utils.try_load_config(str(tmp_path / "missing.toml"))


def test_env_config_file(tmp_path: Path, monkeypatch):
    path = write_toml(tmp_path / "env.toml", '[logging]\nconsole_level = "WARNING"\n')
    monkeypatch.setenv("GDMARSHAL_CONFIG", str(path))
    assert utils.try_load_config()["logging"]["console_level"] == "WARNING"


def test_env_config_must_exist(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("GDMARSHAL_CONFIG", str(tmp_path / "nope.toml"))
    with pytest.raises(FileNotFoundError):
        utils.try_load_config()


def test_cwd_config_file(tmp_path: Path, monkeypatch):
    monkeypatch.delenv("GDMARSHAL_CONFIG", raising=False)
    write_toml(tmp_path / "gdmarshal.toml", '[policy.discardable_result]\nNode = ["add_child"]\n')
    monkeypatch.chdir(tmp_path)
    config = utils.try_load_config()
    assert utils.policy_names(config, "discardable_result", "Node") == frozenset({"add_child"})


def test_falls_back_to_defaults(tmp_path: Path, monkeypatch):
    monkeypatch.delenv("GDMARSHAL_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)
    assert utils.try_load_config() == utils.load_default_config()


def test_policy_names_for_utilities():
    config = {"policy": {"discardable_result": {"@utility": ["push_error"]}}}
    assert utils.policy_names(config, "discardable_result", None) == frozenset({"push_error"})
    assert utils.policy_names(config, "used_by_property", "Node") == frozenset()
    assert utils.policy_names({}, "used_by_property", None) == frozenset()


def test_json_helpers(tmp_path: Path):
    path = tmp_path / "nested" / "out.json"
    utils.write_json(str(path), {"a": [1, 2]})
    assert utils.read_json(str(path)) == {"a": [1, 2]}


def test_read_resource_text():
    assert "Array = 8" in utils.read_resource_text("builtin_sizes.txt")
