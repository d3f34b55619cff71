"""Tests for build config parser."""

import pytest

from controller.src.models.plugin import Stage
from controller.src.services.config_parser import (
    BuildConfigError,
    load_build_config,
    parse_build_config,
    parse_build_dict,
)

def test_valid_config():
    config = """
build_settings:
  directory: src
  ignore:
    - vendor
  stop_on_failure: true
setup:
  shell:
    commands:
      - pip install -r requirements.txt
test:
  pytest:
    args: -q
  flake8:
    allowed_errors: 5
    allow_failures: true
"""
    result = parse_build_config(config)
    assert result.settings["directory"] == "src"
    assert [spec.name for spec in result.plugins_for(Stage.TEST)] == ["pytest", "flake8"]
    assert result.plugins_for(Stage.TEST)[1].allow_failures is True
    assert result.plugins_for(Stage.SETUP)[0].options["commands"] == ["pip install -r requirements.txt"]
    assert result.plugins_for(Stage.DEPLOY) == []

def test_plugin_without_options():
    result = parse_build_config("test:\n  pytest:\n")
    assert result.plugins_for(Stage.TEST)[0].options == {}

def test_unknown_plugin():
    config = """
test:
  phpunit:
    config: phpunit.xml
"""
    with pytest.raises(BuildConfigError, match="Unknown plugin 'phpunit'"):
        parse_build_config(config)

def test_stage_must_be_mapping():
    config = """
test:
  - pytest
"""
    with pytest.raises(BuildConfigError, match="must be a mapping"):
        parse_build_config(config)

def test_plugin_options_must_be_mapping():
    with pytest.raises(BuildConfigError, match="must be a dictionary"):
        parse_build_config("test:\n  shell: echo hi\n")

def test_invalid_priority_path():
    with pytest.raises(BuildConfigError, match="priority_path"):
        parse_build_dict({"test": {"pytest": {"priority_path": "somewhere"}}})

def test_no_plugins():
    with pytest.raises(BuildConfigError, match="at least one plugin"):
        parse_build_config("build_settings:\n  directory: src\n")

def test_empty_config():
    with pytest.raises(BuildConfigError, match="Empty"):
        parse_build_config("")

def test_invalid_yaml():
    with pytest.raises(BuildConfigError, match="Invalid YAML"):
        parse_build_config("test: [unclosed")

def test_dict_parsing():
    config = {"setup": {"shell": {"commands": ["echo hello"]}}}
    result = parse_build_dict(config)
    assert len(result.plugins_for(Stage.SETUP)) == 1

def test_load_prefers_working_copy_file(tmp_path):
    (tmp_path / ".gantry.yml").write_text("deploy:\n  shell:\n    commands: [echo deploy]\n")

    result = load_build_config(str(tmp_path), fallback="test:\n  pytest:\n")

    assert list(result.stages) == [Stage.DEPLOY]

def test_load_falls_back_to_project_config(tmp_path):
    result = load_build_config(str(tmp_path), fallback="test:\n  pytest:\n")
    assert result.plugins_for(Stage.TEST)[0].name == "pytest"

def test_zero_config_detection(tmp_path):
    (tmp_path / "pytest.ini").write_text("[pytest]\n")
    (tmp_path / ".flake8").write_text("[flake8]\n")

    result = load_build_config(str(tmp_path))

    assert [spec.name for spec in result.plugins_for(Stage.TEST)] == ["pytest", "flake8"]

def test_zero_config_without_detectable_plugins(tmp_path):
    with pytest.raises(BuildConfigError, match="No build configuration"):
        load_build_config(str(tmp_path))
