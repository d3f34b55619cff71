from controller.src.models.plugin import (
    BuildStatus,
    Stage,
    PluginSpec,
    PluginOutcome,
    BuildConfig,
    BuildJob,
)

__all__ = [
    "BuildStatus",
    "Stage",
    "PluginSpec",
    "PluginOutcome",
    "BuildConfig",
    "BuildJob",
]
