"""Process runner executing generated scripts with osascript."""

import subprocess
from dataclasses import dataclass

import structlog

from omnifocus_bridge.errors import ProcessError
from omnifocus_bridge.script.escape import shell_command

logger = structlog.get_logger()


@dataclass
class ProcessOutput:
    stdout: str
    stderr: str


class ScriptRunner:
    """Runs one script per call through the AppleScript interpreter."""

    def __init__(self, osascript_path: str = "osascript", timeout: float | None = None) -> None:
        """Initialize the runner.

        Args:
            osascript_path: Interpreter executable
            timeout: Seconds to wait for the interpreter; None waits indefinitely
        """
        self.osascript_path = osascript_path
        self.timeout = timeout

    def run(self, script: str) -> ProcessOutput:
        """Execute ``script`` and return its output.

        A non-zero exit or a failure to start the interpreter raises
        ProcessError. Output on stderr alone is only logged.
        """
        cmd = [self.osascript_path, "-e", script]
        logger.debug("Running osascript", command=shell_command(cmd))

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=True,
                timeout=self.timeout,
            )
        except subprocess.CalledProcessError as e:
            logger.error("osascript failed", stderr=e.stderr, returncode=e.returncode)
            message = (e.stderr or "").strip() or f"osascript exited with status {e.returncode}"
            raise ProcessError(message, returncode=e.returncode, stderr=e.stderr or "") from e
        except subprocess.TimeoutExpired as e:
            logger.error("osascript timed out", timeout=self.timeout)
            raise ProcessError(f"osascript timed out after {self.timeout}s") from e
        except OSError as e:
            logger.error("Failed to start osascript", executable=self.osascript_path, error=str(e))
            raise ProcessError(f"Could not run {self.osascript_path}: {e}") from e

        if result.stderr:
            logger.warning("osascript wrote to stderr", stderr=result.stderr.strip())
        logger.debug("osascript completed", output_length=len(result.stdout))
        return ProcessOutput(stdout=result.stdout, stderr=result.stderr)
