"""
Build variable interpolation and path resolution for plugins.
"""

import os
import re
import shutil
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

PLACEHOLDER = re.compile(r"%([A-Z0-9_]+)%")
ENV_PREFIX = "GANTRY_"

PRIORITY_LOCATIONS = ("binary_path", "local", "system")
LOCAL_BINARY_DIRS = ("vendor/bin", "node_modules/.bin", ".venv/bin", "bin")

def interpolate(template: str, variables: Mapping[str, str]) -> str:
    """Replace %NAME% placeholders; unknown placeholders are left as-is."""
    if not template:
        return template or ""

    def replace(match):
        name = match.group(1)
        if name in variables:
            return str(variables[name])
        return match.group(0)

    return PLACEHOLDER.sub(replace, template)

def with_trailing_separator(path: str) -> str:
    stripped = path.rstrip("/" + os.sep)
    return stripped + os.sep

def resolve_directory(
    raw: Optional[str],
    build_path: str,
    variables: Optional[Mapping[str, str]] = None,
    default: Optional[str] = None,
) -> str:
    """
    Resolve a plugin directory option against the build path.

    Empty values fall back to `default` (or the build path). Relative values
    are joined onto the build path and normalized, so "../" climbs out of it.
    The result always ends with exactly one separator.
    """
    path = interpolate(raw or "", variables or {}).strip()
    if not path:
        return with_trailing_separator(os.path.normpath(default or build_path))

    if not os.path.isabs(path):
        path = os.path.join(build_path, path)

    return with_trailing_separator(os.path.normpath(path))

def resolve_ignore(
    ignore: Optional[Union[str, List[str]]],
    defaults: Iterable[str],
    build_path: str,
    variables: Optional[Mapping[str, str]] = None,
) -> List[str]:
    """
    Build the ignore list for a plugin.

    The defaults are prepended to the configured entries. An explicit empty
    list drops the defaults entirely.
    """
    if isinstance(ignore, str):
        ignore = [ignore]

    if ignore is not None and len(ignore) == 0:
        entries: List[str] = []
    else:
        entries = list(defaults) + list(ignore or [])

    resolved = []
    for entry in entries:
        entry = interpolate(str(entry), variables or {})
        if entry.startswith(build_path):
            entry = entry[len(build_path):]
        while entry.startswith("./"):
            entry = entry[2:]
        if entry:
            resolved.append(entry)
    return resolved

def resolve_binary_path(
    option_path: Optional[str],
    priority_path: Optional[str],
    default_path: Optional[str],
    build_path: str,
    variables: Optional[Mapping[str, str]] = None,
) -> str:
    option = resolve_directory(option_path, build_path, variables) if option_path else ""
    default = resolve_directory(default_path, build_path, variables) if default_path else ""

    if option and (priority_path == "binary_path" or not default):
        return option
    return default

def normalize_binary_names(value: Optional[Union[str, List[str]]]) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    return [str(name) for name in value]

def search_order(priority_path: Optional[str]) -> List[str]:
    if priority_path not in PRIORITY_LOCATIONS:
        return list(PRIORITY_LOCATIONS)
    return [priority_path] + [loc for loc in PRIORITY_LOCATIONS if loc != priority_path]

def is_executable(path: str) -> bool:
    return os.path.isfile(path) and os.access(path, os.X_OK)

def find_binary(
    names: List[str],
    build_path: str,
    binary_path: str = "",
    priority_path: Optional[str] = None,
) -> Optional[str]:
    """
    Locate an executable. Locations are searched starting with `priority_path`,
    and within each location every candidate name is tried in order.
    """
    for location in search_order(priority_path):
        for name in names:
            if location == "system":
                found = shutil.which(name)
                if found:
                    return found
                continue

            if location == "binary_path":
                directories = [binary_path] if binary_path else []
            else:
                directories = [os.path.join(build_path, d) for d in LOCAL_BINARY_DIRS]

            for directory in directories:
                candidate = os.path.join(directory, name)
                if is_executable(candidate):
                    return candidate
    return None

class BuildInterpolator:
    """Interpolation variables for a single build."""

    def __init__(self, variables: Optional[Dict[str, Any]] = None):
        self.variables: Dict[str, str] = {
            name: "" if value is None else str(value)
            for name, value in (variables or {}).items()
        }

    @classmethod
    def for_build(
        cls,
        build,
        project,
        build_path: str,
        app_url: str,
        app_version: str,
        environment: Optional[str] = None,
    ) -> "BuildInterpolator":
        app_url = app_url.rstrip("/") + "/"
        commit_id = build.commit_id or ""
        return cls({
            "BUILD_PATH": build_path,
            "COMMIT_ID": commit_id,
            "SHORT_COMMIT_ID": commit_id[:7],
            "COMMITTER_EMAIL": build.committer_email,
            "COMMIT_MESSAGE": build.commit_message,
            "BRANCH": build.branch,
            "TAG": build.tag,
            "PROJECT_ID": project.id,
            "PROJECT_TITLE": project.title,
            "BUILD_ID": build.id,
            "BUILD_LINK": f"{app_url}api/builds/{build.id}",
            "PROJECT_LINK": f"{app_url}api/projects/{project.id}/builds",
            "ENVIRONMENT": environment,
            "SYSTEM_VERSION": app_version,
        })

    def interpolate(self, template: str) -> str:
        return interpolate(template, self.variables)

    def environment(self) -> Dict[str, str]:
        """Variables exported to commands as GANTRY_<NAME>."""
        return {f"{ENV_PREFIX}{name}": value for name, value in self.variables.items()}
