from typing import Dict, Type

from controller.src.plugins.base import BuildContext, Plugin
from controller.src.plugins.shell import ShellPlugin
from controller.src.plugins.pytest_runner import PytestPlugin
from controller.src.plugins.flake8_lint import Flake8Plugin
from controller.src.plugins.codeception import CodeceptionPlugin

PLUGINS: Dict[str, Type[Plugin]] = {
    plugin.name: plugin
    for plugin in (ShellPlugin, PytestPlugin, Flake8Plugin, CodeceptionPlugin)
}

__all__ = [
    "BuildContext",
    "Plugin",
    "ShellPlugin",
    "PytestPlugin",
    "Flake8Plugin",
    "CodeceptionPlugin",
    "PLUGINS",
]
