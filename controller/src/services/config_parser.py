"""
Build configuration YAML parser and validator.
"""

import os
import yaml
from typing import Any, Dict, List, Optional

from controller.src.models.plugin import BuildConfig, PluginSpec, Stage
from controller.src.plugins import PLUGINS

CONFIG_FILES = (".gantry.yml", ".gantry.yaml")
BUILD_SETTINGS = ("directory", "ignore", "binary_path", "stop_on_failure")

class BuildConfigError(Exception):
    """Raised when build configuration is invalid."""
    pass

def parse_build_config(yaml_content: str) -> BuildConfig:
    """Parse build YAML configuration from string."""
    try:
        config = yaml.safe_load(yaml_content)
    except yaml.YAMLError as e:
        raise BuildConfigError(f"Invalid YAML: {e}")

    return validate_config(config)

def parse_build_dict(config: Dict[str, Any]) -> BuildConfig:
    """Validate build configuration from dict."""
    return validate_config(config)

def validate_config(config: Optional[Dict[str, Any]]) -> BuildConfig:
    """Validate build configuration structure."""
    if not config:
        raise BuildConfigError("Empty build configuration")

    if not isinstance(config, dict):
        raise BuildConfigError("Build configuration must be a dictionary")

    settings = config.get("build_settings") or {}
    if not isinstance(settings, dict):
        raise BuildConfigError("'build_settings' must be a dictionary")
    validate_settings(settings)

    stages = {}
    for stage in Stage:
        plugins = config.get(stage.value)
        if plugins is None:
            continue
        if not isinstance(plugins, dict):
            raise BuildConfigError(f"Stage '{stage.value}' must be a mapping of plugin names to options")
        stages[stage] = [
            validate_plugin(stage, name, options)
            for name, options in plugins.items()
        ]

    if not any(stages.values()):
        raise BuildConfigError("Build configuration must define at least one plugin")

    return BuildConfig(settings=settings, stages=stages)

def validate_settings(settings: Dict[str, Any]):
    directory = settings.get("directory")
    if directory is not None and not isinstance(directory, str):
        raise BuildConfigError("'build_settings.directory' must be a string")

    ignore = settings.get("ignore")
    if ignore is not None and not isinstance(ignore, (list, str)):
        raise BuildConfigError("'build_settings.ignore' must be a list")

    binary_path = settings.get("binary_path")
    if binary_path is not None and not isinstance(binary_path, str):
        raise BuildConfigError("'build_settings.binary_path' must be a string")

def validate_plugin(stage: Stage, name: Any, options: Optional[Dict[str, Any]]) -> PluginSpec:
    """Validate a single plugin entry of a stage."""
    if name not in PLUGINS:
        raise BuildConfigError(f"Unknown plugin '{name}' in stage '{stage.value}'")

    if options is None:
        options = {}

    if not isinstance(options, dict):
        raise BuildConfigError(f"Options of plugin '{name}' in stage '{stage.value}' must be a dictionary")

    binary_name = options.get("binary_name")
    if binary_name is not None and not isinstance(binary_name, (str, list)):
        raise BuildConfigError(f"Plugin '{name}' 'binary_name' must be a string or a list")

    priority_path = options.get("priority_path")
    if priority_path is not None and priority_path not in ("binary_path", "local", "system"):
        raise BuildConfigError(f"Plugin '{name}' has unknown 'priority_path' {priority_path}")

    return PluginSpec(name=name, stage=stage, options=options)

def find_config_file(build_path: str) -> Optional[str]:
    for name in CONFIG_FILES:
        path = os.path.join(build_path, name)
        if os.path.exists(path):
            return path
    return None

def zero_config(build_path: str) -> BuildConfig:
    """Configuration for repositories without one: every plugin that detects itself."""
    stages: Dict[Stage, List[PluginSpec]] = {}
    for stage in Stage:
        specs = [
            PluginSpec(name=name, stage=stage, options={})
            for name, plugin in PLUGINS.items()
            if plugin.can_execute_on_stage(stage, build_path)
        ]
        if specs:
            stages[stage] = specs

    if not stages:
        raise BuildConfigError("No build configuration found and no plugin could detect the project")

    return BuildConfig(settings={}, stages=stages)

def load_build_config(build_path: str, fallback: Optional[str] = None) -> BuildConfig:
    """
    Read the build configuration of a working copy.
    Falls back to the project's stored configuration, then to zero-config.
    """
    config_path = find_config_file(build_path)
    if config_path:
        with open(config_path, "r") as f:
            return parse_build_config(f.read())

    if fallback and fallback.strip():
        return parse_build_config(fallback)

    return zero_config(build_path)
