from typing import List

from controller.src.plugins.base import Plugin

class ShellPlugin(Plugin):
    """Run shell commands in order, stopping at the first failure."""

    name = "shell"

    def commands(self) -> List[str]:
        commands = self.options.get("commands") or self.options.get("command") or []
        if isinstance(commands, str):
            commands = [commands]
        return [str(command) for command in commands]

    def execute(self) -> bool:
        commands = self.commands()
        if not commands:
            self.logger.log_warning("No commands configured for shell plugin")
            return True

        for command in commands:
            result = self.execute_command(command)
            if not result.success:
                self.logger.log_failure(f"Command failed with exit code {result.exit_code}: {command}")
                return False
        return True
