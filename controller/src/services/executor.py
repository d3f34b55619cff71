"""
Build executor - runs a build's plugin pipeline in its working copy.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from controller.src.config import Settings, get_settings
from controller.src.models.plugin import BuildConfig, BuildStatus, Stage
from controller.src.plugins import BuildContext
from controller.src.services.build_logger import BuildLogger
from controller.src.services.checkout import (
    CheckoutError,
    build_path_for,
    checkout_working_copy,
    remove_working_copy,
)
from controller.src.services.config_parser import BuildConfigError, load_build_config
from controller.src.services.interpolator import BuildInterpolator, resolve_directory
from controller.src.services.plugin_runner import PluginRunner
from controller.src.services.status_reporter import BuildReporter

logger = logging.getLogger(__name__)
build_log = logging.getLogger("gantry.build")

class BuildExecutor:
    """Runs queued builds stage by stage."""

    def __init__(
        self,
        reporter: BuildReporter,
        settings: Optional[Settings] = None,
        runner: Optional[PluginRunner] = None,
        checkout=checkout_working_copy,
    ):
        self.reporter = reporter
        self.settings = settings or get_settings()
        self.runner = runner or PluginRunner(store_meta=reporter.store_meta)
        self.checkout = checkout

    def execute(self, build_id: int) -> bool:
        """
        Execute a build.
        Returns True if the build succeeded, False otherwise.
        """
        build, project, environment = self.reporter.load_build(build_id)
        if build is None:
            logger.error(f"Build {build_id} not found")
            return False

        build_logger = BuildLogger(build_log, build.id)
        build_path = build_path_for(self.settings.build_root, build.id)

        logger.info(f"Starting build {build.id} of project {project.id}")
        self.reporter.update_build_status(build.id, BuildStatus.RUNNING.value, started_at=datetime.utcnow())

        success = False
        try:
            self.checkout(
                project.reference,
                build_path,
                commit_id=build.commit_id,
                branch=build.branch,
                timeout=self.settings.clone_timeout,
            )
            config = load_build_config(build_path, project.build_config)
            interpolator = BuildInterpolator.for_build(
                build,
                project,
                build_path,
                self.settings.app_url,
                self.settings.app_version,
                environment=environment,
            )
            context = self.build_context(config, build_path, interpolator, build_logger)
            success = self.run_pipeline(config, build, context)
        except (CheckoutError, BuildConfigError) as e:
            build_logger.log_failure(str(e), e)
        except Exception as e:
            logger.exception(f"Build {build.id} failed with exception")
            build_logger.log_failure(f"Exception: {e}", e)
        finally:
            final_status = BuildStatus.SUCCESS if success else BuildStatus.FAILED
            self.reporter.update_build_status(build.id, final_status.value, finished_at=datetime.utcnow())
            self.reporter.save_log(build.id, build_logger.text())
            if not self.settings.keep_working_copy:
                remove_working_copy(build_path)

        logger.info(f"Build {build.id} finished with status: {final_status.value}")
        return success

    def build_context(
        self,
        config: BuildConfig,
        build_path: str,
        interpolator: BuildInterpolator,
        build_logger: BuildLogger,
    ) -> BuildContext:
        build_settings = config.settings
        ignore = build_settings.get("ignore") or []
        if isinstance(ignore, str):
            ignore = [ignore]

        return BuildContext(
            build_path=build_path,
            interpolator=interpolator,
            build_logger=build_logger,
            directory=resolve_directory(build_settings.get("directory"), build_path, interpolator.variables),
            ignore=list(self.settings.ignore) + list(ignore),
            binary_path=build_settings.get("binary_path") or self.settings.binary_path,
            timeout=self.settings.plugin_timeout,
        )

    def run_pipeline(self, config: BuildConfig, build, context: BuildContext) -> bool:
        """
        setup -> test -> deploy, then complete and success/failure.
        A failed stage skips the remaining main stages.
        """
        stop_on_failure = bool(config.settings.get("stop_on_failure", False))
        summary: Dict[str, Any] = {}

        success = self.run_stage(Stage.SETUP, config, build, context, stop_on_failure, summary)
        if not success:
            context.logger.log_failure("Setup stage failed, skipping test and deploy stages")
        else:
            success = self.run_stage(Stage.TEST, config, build, context, stop_on_failure, summary)
            if success:
                success = self.run_stage(Stage.DEPLOY, config, build, context, stop_on_failure, summary)

        self.run_stage(Stage.COMPLETE, config, build, context, stop_on_failure, summary)

        if success:
            self.run_stage(Stage.SUCCESS, config, build, context, stop_on_failure, summary)
        else:
            self.run_stage(Stage.FAILURE, config, build, context, stop_on_failure, summary)

        return success

    def run_stage(
        self,
        stage: Stage,
        config: BuildConfig,
        build,
        context: BuildContext,
        stop_on_failure: bool,
        summary: Dict[str, Any],
    ) -> bool:
        """Run the plugins of a stage in order. Returns False if any blocking plugin failed."""
        plugins = config.plugins_for(stage)
        if not plugins:
            return True

        context.logger.log_normal(f"STAGE: {stage.value.upper()}")
        stage_success = True

        for spec in plugins:
            outcome = self.runner.run(spec, build, context)

            summary.setdefault(stage.value, {})[spec.name] = {
                "status": "success" if outcome.success else "failed",
                "error": outcome.error,
            }
            self.reporter.store_meta(build.id, "plugin-summary", summary)

            if outcome.success:
                continue

            if spec.allow_failures:
                context.logger.log_warning(f"Plugin {spec.name} failed but is allowed to fail")
                continue

            stage_success = False
            if stop_on_failure:
                break

        return stage_success
