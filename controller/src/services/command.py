"""
Run external commands for plugins.
"""

import logging
import os
import signal
import subprocess
from typing import Dict, Optional
from pydantic import BaseModel

logger = logging.getLogger(__name__)

class PluginError(Exception):
    """Plugin could not run"""
    pass

class CommandTimeoutError(PluginError):
    """Command exceeded its timeout"""
    pass

class CommandResult(BaseModel):
    command: str
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def success(self) -> bool:
        return self.exit_code == 0

def run_command(
    command: str,
    cwd: str,
    timeout: Optional[int] = None,
    env: Optional[Dict[str, str]] = None,
) -> CommandResult:
    """
    Run a shell command in `cwd`. The command runs in its own process group,
    which is killed as a whole once `timeout` seconds elapse, and
    CommandTimeoutError is raised.
    """
    process_env = os.environ.copy()
    if env:
        process_env.update(env)

    logger.debug(f"Running command in {cwd}: {command}")

    process = subprocess.Popen(
        command,
        shell=True,
        cwd=cwd,
        env=process_env,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        start_new_session=True,
    )

    try:
        stdout, stderr = process.communicate(timeout=timeout)
    except subprocess.TimeoutExpired as e:
        kill_process_group(process)
        raise CommandTimeoutError(f"Command timed out after {timeout}s: {command}") from e

    return CommandResult(
        command=command,
        exit_code=process.returncode,
        stdout=stdout or "",
        stderr=stderr or "",
    )

def kill_process_group(process: subprocess.Popen):
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass  # already exited
    process.communicate()
