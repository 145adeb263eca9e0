"""
Shell tool (Anthropic `bash`).

Each command runs in a fresh bash process. The working directory is carried
from one command to the next so `cd` behaves like an interactive session.
"""

import os
import shutil
import subprocess
import tempfile
from typing import Optional

from loguru import logger

from core.constants import BASH_TIMEOUT_S
from core.errors import ToolError
from core.tool_base import (
    BaseTool,
    CLIResult,
    ToolResult,
    ToolSpec,
    bool_param,
    make_schema,
    maybe_truncate,
    string_param,
)

CWD_MARKER = "__AGENT_CWD__"

BASH_SPEC = ToolSpec(
    name="bash",
    description=(
        "Run a command in a bash shell. The working directory persists between calls. "
        "Set `restart` to start over in the original directory."
    ),
    input_schema=make_schema(
        properties={
            "command": string_param("The bash command to run"),
            "restart": bool_param("Restart the shell", default=False),
        },
    ),
    api_type="bash_20241022",
)


class BashTool(BaseTool):
    """
    Run shell commands for the model.

    Args:
        cwd: Starting directory (defaults to the process working directory)
        timeout: Seconds before a command is abandoned
    """

    def __init__(self, cwd: Optional[str] = None, timeout: float = BASH_TIMEOUT_S):
        self._initial_cwd = cwd or os.getcwd()
        self.cwd = self._initial_cwd
        self.timeout = timeout
        self.shell = shutil.which("bash") or "/bin/bash"

    def describe(self) -> ToolSpec:
        return BASH_SPEC

    def execute(self, command: Optional[str] = None, restart: bool = False, **kwargs) -> ToolResult:
        if restart:
            self.cwd = self._initial_cwd
            logger.info("Bash tool restarted in {}", self.cwd)
            return ToolResult(system="tool has been restarted.")

        if not command:
            raise ToolError("no command provided.")

        return self.run(command)

    def run(self, command: str) -> CLIResult:
        """
        Run one command and capture its output.

        Output goes to temporary files rather than pipes, so a process the
        command leaves running in the background does not hold the call open.

        Returns:
            CLIResult with stdout as output and stderr as error. A nonzero
            exit code with nothing on stderr reports the exit code instead.

        Raises:
            ToolError: if the command times out or the shell cannot start
        """
        script = f'{command}\n__agent_status=$?\nprintf "\\n{CWD_MARKER}%s\\n" "$PWD"\nexit $__agent_status\n'
        logger.debug("bash: {}", command)

        with tempfile.TemporaryFile(mode="w+", encoding="utf-8", errors="replace") as out, \
                tempfile.TemporaryFile(mode="w+", encoding="utf-8", errors="replace") as err:
            try:
                completed = subprocess.run(
                    [self.shell, "-c", script],
                    cwd=self.cwd,
                    stdin=subprocess.DEVNULL,
                    stdout=out,
                    stderr=err,
                    timeout=self.timeout,
                )
            except subprocess.TimeoutExpired:
                raise ToolError(
                    f"timed out: bash has not returned in {self.timeout} seconds and must be restarted"
                ) from None
            except OSError as e:
                raise ToolError(f"failed to start bash: {e}") from None

            out.seek(0)
            err.seek(0)
            stdout = self._consume_cwd_marker(out.read())
            stderr = err.read().rstrip("\n")

        error = maybe_truncate(stderr) or None
        if error is None and completed.returncode != 0:
            error = f"exit code {completed.returncode}"

        return CLIResult(output=maybe_truncate(stdout) or None, error=error)

    def _consume_cwd_marker(self, stdout: str) -> str:
        """Strip the trailing directory marker and remember the directory."""
        head, sep, tail = stdout.rpartition(f"\n{CWD_MARKER}")
        if not sep:
            return stdout.rstrip("\n")

        new_cwd = tail.strip()
        if new_cwd and os.path.isdir(new_cwd):
            self.cwd = new_cwd
        return head.rstrip("\n")
