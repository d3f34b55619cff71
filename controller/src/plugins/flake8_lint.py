import os

from controller.src.models.plugin import Stage
from controller.src.plugins.base import Plugin
from controller.src.plugins.parsers import Flake8Parser

class Flake8Plugin(Plugin):
    """
    Lint with flake8. The build fails when the number of reported issues
    exceeds `allowed_errors` (-1 allows any number).
    """

    name = "flake8"
    binary_names = ["flake8"]

    @classmethod
    def can_execute_on_stage(cls, stage: Stage, build_path: str) -> bool:
        return stage == Stage.TEST and os.path.exists(os.path.join(build_path, ".flake8"))

    def execute(self) -> bool:
        flake8 = self.find_binary()
        if not flake8:
            self.logger.log_failure("Could not find flake8 binary")
            return False

        allowed_errors = int(self.options.get("allowed_errors", 0))
        args = str(self.options.get("args", ""))
        exclude = f'--extend-exclude="{",".join(self.ignore)}"' if self.ignore else ""

        command = f'"{flake8}" --exit-zero {exclude} {args} .'
        result = self.execute_command(command)

        parser = Flake8Parser(result.stdout)
        issues = parser.parse()

        self.store_meta("data", issues)
        self.store_meta("errors", parser.total_errors)

        if allowed_errors != -1 and parser.total_errors > allowed_errors:
            self.logger.log_failure(f"flake8 reported {parser.total_errors} issues, {allowed_errors} allowed")
            return False
        return True
