from controller.src.services.interpolator import (
    BuildInterpolator,
    interpolate,
    resolve_directory,
    resolve_ignore,
    resolve_binary_path,
    find_binary,
)
from controller.src.services.command import (
    CommandResult,
    CommandTimeoutError,
    PluginError,
    run_command,
)
from controller.src.services.build_logger import BuildLogger
from controller.src.services.checkout import (
    CheckoutError,
    checkout_working_copy,
    remove_working_copy,
)
from controller.src.services.status_reporter import BuildReporter, create_session_factory

__all__ = [
    "BuildInterpolator",
    "interpolate",
    "resolve_directory",
    "resolve_ignore",
    "resolve_binary_path",
    "find_binary",
    "CommandResult",
    "CommandTimeoutError",
    "PluginError",
    "run_command",
    "BuildLogger",
    "CheckoutError",
    "checkout_working_copy",
    "remove_working_copy",
    "BuildReporter",
    "create_session_factory",
]
