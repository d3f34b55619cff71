"""
Base class for build plugins.
"""

from typing import Any, Dict, List, Optional

from controller.src.models.plugin import Stage
from controller.src.services.build_logger import BuildLogger
from controller.src.services.command import CommandResult, run_command
from controller.src.services.interpolator import (
    BuildInterpolator,
    normalize_binary_names,
    find_binary,
    resolve_binary_path,
    resolve_directory,
    resolve_ignore,
)

class BuildContext:
    """Per-build state shared by the plugins of one build."""

    def __init__(
        self,
        build_path: str,
        interpolator: BuildInterpolator,
        build_logger: BuildLogger,
        directory: Optional[str] = None,
        ignore: Optional[List[str]] = None,
        binary_path: str = "",
        timeout: Optional[int] = None,
    ):
        self.build_path = build_path
        self.interpolator = interpolator
        self.logger = build_logger
        self.directory = directory or build_path
        self.ignore = list(ignore or [])
        self.binary_path = binary_path
        self.timeout = timeout

class Plugin:
    """
    A unit of work in a build stage.

    Subclasses set `name` and implement `execute()`, returning True on
    success. Anything stored with `store_meta` ends up in the build's meta
    under `<name>-<key>`.
    """

    name: str = ""
    binary_names: List[str] = []

    def __init__(self, build, context: BuildContext, options: Optional[Dict[str, Any]] = None):
        options = options or {}
        variables = context.interpolator.variables

        self.build = build
        self.context = context
        self.options = options
        self.logger = context.logger
        self.meta: Dict[str, Any] = {}

        self.directory = resolve_directory(
            options.get("directory"),
            context.build_path,
            variables,
            default=context.directory,
        )
        self.ignore = resolve_ignore(
            options.get("ignore"),
            context.ignore,
            context.build_path,
            variables,
        )
        self.priority_path = options.get("priority_path")
        self.binary_path = resolve_binary_path(
            options.get("binary_path"),
            self.priority_path,
            context.binary_path,
            context.build_path,
            variables,
        )
        self.binary_name = normalize_binary_names(options.get("binary_name"))
        self.timeout = int(options.get("timeout") or context.timeout or 0) or None

    @classmethod
    def can_execute_on_stage(cls, stage: Stage, build_path: str) -> bool:
        """Whether the plugin can run without configuration on this stage."""
        return False

    def execute(self) -> bool:
        raise NotImplementedError

    def find_binary(self, *default_names: str) -> Optional[str]:
        names = self.binary_name or list(default_names) or list(self.binary_names)
        return find_binary(
            names,
            self.context.build_path,
            binary_path=self.binary_path,
            priority_path=self.priority_path,
        )

    def execute_command(self, command: str, cwd: Optional[str] = None) -> CommandResult:
        command = self.context.interpolator.interpolate(command)
        self.logger.log_debug(f"$ {command}")

        result = run_command(
            command,
            cwd or self.directory,
            timeout=self.timeout,
            env=self.context.interpolator.environment(),
        )

        if result.stdout:
            self.logger.log_normal(result.stdout.rstrip("\n").splitlines())
        if result.stderr:
            self.logger.log_warning(result.stderr.rstrip("\n").splitlines())
        return result

    def store_meta(self, key: str, value: Any):
        self.meta[f"{self.name}-{key}"] = value
