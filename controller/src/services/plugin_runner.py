"""
Run a single configured plugin against a build.
"""

import logging
from typing import Any, Callable, Dict, Optional, Type

from controller.src.models.plugin import PluginOutcome, PluginSpec
from controller.src.plugins import PLUGINS, BuildContext, Plugin
from controller.src.services.command import CommandTimeoutError

logger = logging.getLogger(__name__)

MetaWriter = Callable[[int, str, Any], None]

class PluginRunner:
    """
    Instantiates plugins from the registry and runs them.

    Errors raised by a plugin never leave `run`; they become a failed
    outcome. Plugin meta is handed to `store_meta` key by key.
    """

    def __init__(
        self,
        registry: Optional[Dict[str, Type[Plugin]]] = None,
        store_meta: Optional[MetaWriter] = None,
    ):
        self.registry = PLUGINS if registry is None else registry
        self.store_meta = store_meta

    def run(self, spec: PluginSpec, build, context: BuildContext) -> PluginOutcome:
        build_logger = context.logger
        plugin_class = self.registry.get(spec.name)

        if plugin_class is None:
            message = f"Plugin does not exist: {spec.name}"
            build_logger.log_failure(message)
            return PluginOutcome(name=spec.name, stage=spec.stage, success=False, error=message)

        build_logger.log_normal(f"RUNNING PLUGIN: {spec.name}")

        plugin = None
        error = None
        try:
            plugin = plugin_class(build, context, spec.options)
            success = bool(plugin.execute())
        except CommandTimeoutError as e:
            build_logger.log_failure(str(e), e)
            success = False
            error = "timeout"
        except Exception as e:
            build_logger.log_failure(f"Exception: {e}", e)
            success = False
            error = str(e)

        meta = dict(plugin.meta) if plugin is not None else {}
        self.persist_meta(build, meta, build_logger)

        if success:
            build_logger.log_success(f"PLUGIN: SUCCESS ({spec.name})")
        else:
            build_logger.log_failure(f"PLUGIN: FAILED ({spec.name})")

        return PluginOutcome(
            name=spec.name,
            stage=spec.stage,
            success=success,
            meta=meta,
            error=error,
        )

    def persist_meta(self, build, meta: Dict[str, Any], build_logger):
        if not self.store_meta:
            return
        for key, value in meta.items():
            try:
                self.store_meta(build.id, key, value)
            except Exception as e:
                build_logger.log_failure(f"Could not store meta {key}: {e}", e)
