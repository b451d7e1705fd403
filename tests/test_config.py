"""Tests for shipyard configuration."""

import tomllib
from pathlib import Path

import pytest

from shipyard.config import ShipyardConfig, load_config, write_config_template
from shipyard.models import BuildPlatform, WebBuildConfig, WeChatBuildConfig


def test_load_config_defaults_without_file(tmp_path: Path):
    """A project without shipyard.toml should get the built-in defaults."""
    config = load_config(tmp_path)
    assert config == ShipyardConfig()
    assert config.modules.path == "modules"


def test_write_then_load_template(tmp_path: Path):
    path = write_config_template(tmp_path, name="space-game")

    assert path == tmp_path / "shipyard.toml"
    with open(path, "rb") as f:
        data = tomllib.load(f)
    assert data["project"]["name"] == "space-game"

    config = load_config(tmp_path)
    assert config.project.name == "space-game"
    assert config.web.build_mode == "split-bundles"


def test_load_config_reads_sections(tmp_path: Path):
    (tmp_path / "shipyard.toml").write_text(
        """
[modules]
path = "engine/modules"
disabled = ["debug-draw"]

[web]
output_path = "./out"
build_mode = "single-bundle"
"""
    )
    config = load_config(tmp_path)
    assert config.modules.path == "engine/modules"
    assert config.modules.disabled == ["debug-draw"]
    assert config.web.build_mode == "single-bundle"


def test_load_config_rejects_bad_toml(tmp_path: Path):
    (tmp_path / "shipyard.toml").write_text("[web\n")
    with pytest.raises(tomllib.TOMLDecodeError):
        load_config(tmp_path)


def test_build_config_for_web_applies_module_lists():
    config = ShipyardConfig.model_validate({"modules": {"enabled": ["audio"], "disabled": ["ui"]}})

    build_config = config.build_config(BuildPlatform.WEB)

    assert isinstance(build_config, WebBuildConfig)
    assert build_config.enabled_modules == ["audio"]
    assert build_config.disabled_modules == ["ui"]


def test_build_config_for_web_carries_scene_list():
    config = ShipyardConfig.model_validate({"web": {"scenes": ["levels/one.ecs"]}})

    assert config.build_config(BuildPlatform.WEB).scenes == ["levels/one.ecs"]


def test_build_config_overrides_ignore_none():
    config = ShipyardConfig()

    build_config = config.build_config(
        BuildPlatform.WEB, output_path=None, is_release=False, build_mode="single-bundle"
    )

    assert build_config.output_path == "./build/web"
    assert build_config.is_release is False
    assert build_config.build_mode == "single-bundle"


def test_build_config_for_wechat():
    config = ShipyardConfig.model_validate({"wechat": {"app_id": "wx0123456789abcdef"}})

    build_config = config.build_config(BuildPlatform.WECHAT_MINIGAME)

    assert isinstance(build_config, WeChatBuildConfig)
    assert build_config.app_id == "wx0123456789abcdef"


def test_build_config_without_section_raises():
    with pytest.raises(ValueError):
        ShipyardConfig().build_config(BuildPlatform.DESKTOP)
