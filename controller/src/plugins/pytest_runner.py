import os

from controller.src.models.plugin import Stage
from controller.src.plugins.base import Plugin
from controller.src.plugins.parsers import JUnitParser

REPORT_FILE = ".gantry-pytest.xml"

class PytestPlugin(Plugin):
    """Run pytest and store the JUnit report summary."""

    name = "pytest"
    binary_names = ["pytest", "py.test"]

    @classmethod
    def can_execute_on_stage(cls, stage: Stage, build_path: str) -> bool:
        if stage != Stage.TEST:
            return False
        return any(
            os.path.exists(os.path.join(build_path, marker))
            for marker in ("pytest.ini", "conftest.py")
        )

    def execute(self) -> bool:
        pytest = self.find_binary()
        if not pytest:
            self.logger.log_failure(f"Could not find {', '.join(self.binary_name or self.binary_names)} binary")
            return False

        report = os.path.join(self.context.build_path, REPORT_FILE)
        if os.path.exists(report):
            os.remove(report)

        args = str(self.options.get("args", ""))
        ignore = " ".join(f'--ignore="{path}"' for path in self.ignore)
        command = f'"{pytest}" --junitxml="{report}" {ignore} {args}'.strip()
        result = self.execute_command(command)

        parser = JUnitParser(report)
        cases = parser.parse()
        totals = parser.totals()

        self.store_meta("meta", totals)
        self.store_meta("data", cases)
        self.store_meta("errors", totals["failures"] + totals["errors"])

        return result.success
