"""Runner for the aptly command-line tool.

This is the only module that spawns aptly. Each call runs once to
completion: there are no retries, and a failed call is final.
"""

import subprocess
from typing import List, Optional

from ..common.logger import get_logger
from .errors import ExternalToolError

logger = get_logger("aptly_runner")


class AptlyRunner:
    """Invokes aptly and reports success, failure and stdout.

    Mutating callers use run(), which raises ExternalToolError on failure.
    Read-only probes use succeeds() and output(), which fail closed.
    """

    def __init__(
        self,
        aptly_bin: str = "aptly",
        config_file: Optional[str] = None,
        timeout: Optional[int] = None,
    ):
        """Initialize the runner.

        Args:
            aptly_bin: aptly executable name or path
            config_file: Optional aptly configuration file (-config=)
            timeout: Optional command timeout in seconds
        """
        self.aptly_bin = aptly_bin
        self.config_file = config_file
        self.timeout = timeout

    def command(self, args: List[str]) -> List[str]:
        """Build the full command line for the given aptly arguments."""
        cmd = [self.aptly_bin]
        if self.config_file:
            cmd.append(f"-config={self.config_file}")
        return cmd + list(args)

    def run(self, args: List[str], check: bool = True) -> subprocess.CompletedProcess:
        """Run an aptly command.

        Args:
            args: Command arguments (without 'aptly' prefix)
            check: Whether to raise on non-zero exit

        Returns:
            CompletedProcess result

        Raises:
            ExternalToolError: If aptly is missing, times out, or exits
                non-zero while check is set
        """
        cmd = self.command(args)
        logger.debug(f"Running: {' '.join(cmd)}")

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError as e:
            logger.error(f"aptly not available: {e}")
            raise ExternalToolError(args, f"{self.aptly_bin} not found") from e
        except subprocess.TimeoutExpired as e:
            logger.error(f"aptly command timed out: {' '.join(args)}")
            raise ExternalToolError(args, f"timed out after {self.timeout}s") from e

        if check and result.returncode != 0:
            stderr = _decode(result.stderr)
            logger.error(f"aptly {' '.join(args)} exited {result.returncode}: {stderr.strip()}")
            raise ExternalToolError(args, stderr, result.returncode)

        return result

    def succeeds(self, args: List[str]) -> bool:
        """Run a read-only aptly query and report whether it succeeded."""
        try:
            result = self.run(args, check=False)
        except ExternalToolError:
            return False
        return result.returncode == 0

    def output(self, args: List[str]) -> str:
        """Run a read-only aptly query and return its stdout ("" on failure)."""
        try:
            result = self.run(args, check=False)
        except ExternalToolError:
            return ""
        if result.returncode != 0:
            return ""
        return _decode(result.stdout)


def _decode(data) -> str:
    if not data:
        return ""
    if isinstance(data, bytes):
        return data.decode(errors="replace")
    return str(data)
