import os
from typing import Optional
import yaml

from controller.src.models.plugin import Stage
from controller.src.plugins.base import Plugin
from controller.src.plugins.parsers import JUnitParser
from controller.src.services.command import PluginError

CONFIG_FILES = ("codeception.yml", "codeception.dist.yml")
REPORT_DIRS = ["tests/_output", "tests/_log"]

def find_config_file(build_path: str) -> Optional[str]:
    for name in CONFIG_FILES:
        if os.path.exists(os.path.join(build_path, name)):
            return name
    return None

class CodeceptionPlugin(Plugin):
    """Run Codeception and parse its XML report."""

    name = "codeception"
    binary_names = ["codecept"]

    def __init__(self, build, context, options=None):
        super().__init__(build, context, options)
        self.config_file = self.options.get("config") or find_config_file(context.build_path)
        self.args = str(self.options.get("args", ""))
        self.report_dirs = list(REPORT_DIRS)
        if self.options.get("path"):
            self.report_dirs.insert(0, self.options["path"])

    @classmethod
    def can_execute_on_stage(cls, stage: Stage, build_path: str) -> bool:
        return stage == Stage.TEST and find_config_file(build_path) is not None

    def execute(self) -> bool:
        if not self.config_file:
            raise PluginError("No configuration file found")

        codecept = self.find_binary()
        if not codecept:
            self.logger.log_failure("Could not find codecept binary")
            return False

        config_path = os.path.join(self.context.build_path, self.config_file)
        command = f'"{codecept}" run -c "{config_path}" {self.args} --xml'
        result = self.execute_command(command, cwd=self.context.build_path)

        parser = JUnitParser(self.find_report(config_path))
        cases = parser.parse()
        totals = parser.totals()

        self.store_meta("meta", {
            "tests": totals["tests"],
            "timetaken": totals["timetaken"],
            "failures": totals["failures"],
        })
        self.store_meta("data", cases)
        self.store_meta("errors", totals["failures"])

        return result.success

    def find_report(self, config_path: str) -> str:
        build_path = self.context.build_path
        candidates = []

        if os.path.isfile(config_path):
            with open(config_path) as f:
                config = yaml.safe_load(f) or {}
            log_dir = (config.get("paths") or {}).get("log") if isinstance(config, dict) else None
            if log_dir:
                candidates.append(log_dir)

        candidates.extend(self.report_dirs)
        for directory in candidates:
            report = os.path.join(build_path, directory.rstrip("/\\"), "report.xml")
            if os.path.isfile(report):
                return report
        return os.path.join(build_path, candidates[0].rstrip("/\\"), "report.xml")
