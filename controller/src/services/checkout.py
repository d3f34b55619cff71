"""
Prepare and remove build working copies.
"""

import logging
import os
import shutil
import subprocess
from typing import Optional

logger = logging.getLogger(__name__)

class CheckoutError(Exception):
    """Raised when the working copy could not be prepared."""
    pass

def build_path_for(build_root: str, build_id: int) -> str:
    return os.path.join(build_root, str(build_id)) + os.sep

def checkout_working_copy(
    reference: str,
    build_path: str,
    commit_id: Optional[str] = None,
    branch: Optional[str] = None,
    timeout: int = 120,
) -> str:
    """
    Clone `reference` into `build_path` and check out the commit, or the
    branch head when the build has no commit.
    """
    repo_path = build_path.rstrip(os.sep)
    if os.path.exists(repo_path):
        shutil.rmtree(repo_path)
    os.makedirs(os.path.dirname(repo_path), exist_ok=True)

    target = commit_id or branch

    try:
        subprocess.run(
            ["git", "clone", "--depth", "1", reference, repo_path],
            check=True,
            capture_output=True,
            timeout=timeout
        )

        if target:
            subprocess.run(
                ["git", "fetch", "--depth", "1", "origin", target],
                cwd=repo_path,
                check=True,
                capture_output=True,
                timeout=timeout
            )
            subprocess.run(
                ["git", "checkout", "--force", "FETCH_HEAD"],
                cwd=repo_path,
                check=True,
                capture_output=True,
                timeout=timeout
            )

        logger.info(f"Checked out {reference}@{target or 'HEAD'} into {build_path}")
        return build_path
    except subprocess.TimeoutExpired:
        raise CheckoutError("Repository clone timed out")
    except subprocess.CalledProcessError as e:
        raise CheckoutError(f"Failed to clone repository: {e.stderr.decode(errors='replace')}")

def remove_working_copy(build_path: str):
    """Remove a build working copy."""
    try:
        if build_path and os.path.exists(build_path):
            shutil.rmtree(build_path)
    except OSError as e:
        logger.warning(f"Could not remove working copy {build_path}: {e}")
