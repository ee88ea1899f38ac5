"""
Helper-command runner.

Runs the external GitHub helper program (``hub`` by default) with bounded,
validated invocations.
"""

import os
import shutil
import subprocess
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import cast

from hubgate.debug import DebugSettings
from hubgate.exceptions import (
    HelperCommandError,
    HelperNotInitializedError,
    HelperNotInstalledError,
    HelperTimeoutError,
)
from hubgate.logging import log_helper_invocation

DEFAULT_HELPER = "hub"
DEFAULT_HELPER_CONFIG = "~/.config/hub"
DEFAULT_HELPER_TIMEOUT = 5.0


class InvocationMode(Enum):
    SYNC = "sync"
    SYNC_WITH_EDITOR = "sync-with-editor"
    CAPTURE_OUTPUT = "capture-output"
    ASYNC = "async"


@dataclass(frozen=True)
class HelperCommandInvocation:
    """A single helper invocation, built per call."""

    command: str
    args: tuple[str, ...]
    mode: InvocationMode
    timeout: float
    raw: bool = False

    @property
    def argv(self) -> list[str]:
        return [self.command, *self.args]


class CommandRunner:
    """
    Runs helper commands after checking that the helper is usable.

    Every call first checks that the executable is on ``PATH`` and then that
    its per-user configuration file exists. Blocking calls are bounded by a
    hard timeout; a timed-out process is killed.

    Example:
        ```python
        runner = CommandRunner()
        runner.command("checkout", "https://github.com/owner/repo/pull/12")
        labels = runner.command_output("issue", "labels")
        ```
    """

    def __init__(
        self,
        executable: str = DEFAULT_HELPER,
        config_file: str | Path = DEFAULT_HELPER_CONFIG,
        timeout: float = DEFAULT_HELPER_TIMEOUT,
        editor: str | None = None,
        debug: DebugSettings | None = None,
    ) -> None:
        """
        Initialize the runner.

        Args:
            executable: Helper program name or path
            config_file: File the helper writes once it has been set up
            timeout: Default hard timeout in seconds
            editor: Editor command for SYNC_WITH_EDITOR (default: $VISUAL, then $EDITOR)
            debug: Debug settings; invocations are logged while enabled
        """
        self.executable = executable
        self.config_file = Path(config_file).expanduser()
        self.timeout = timeout
        self.editor = editor
        self.debug = debug or DebugSettings()

    def check_preconditions(self) -> str:
        """
        Verify the helper can be invoked.

        Returns:
            Resolved path of the executable

        Raises:
            HelperNotInstalledError: If the executable is not on PATH
            HelperNotInitializedError: If the configuration file is missing
        """
        resolved = shutil.which(self.executable)
        if resolved is None:
            raise HelperNotInstalledError(self.executable)
        if not self.config_file.exists():
            raise HelperNotInitializedError(self.executable, str(self.config_file))
        return resolved

    def run(
        self,
        args: list[str] | tuple[str, ...],
        mode: InvocationMode = InvocationMode.SYNC,
        raw: bool = False,
        timeout: float | None = None,
        cwd: str | Path | None = None,
    ) -> list[str] | str | None:
        """
        Invoke the helper and wait for it.

        Args:
            args: Arguments after the executable name
            mode: SYNC, SYNC_WITH_EDITOR or CAPTURE_OUTPUT
            raw: With CAPTURE_OUTPUT, return stdout as one string instead of lines
            timeout: Hard timeout in seconds (default: the runner's timeout)
            cwd: Working directory

        Returns:
            Lines or raw string for CAPTURE_OUTPUT, otherwise None

        Raises:
            HelperNotInstalledError: If the executable is not on PATH
            HelperNotInitializedError: If the configuration file is missing
            HelperTimeoutError: If the timeout expires
            HelperCommandError: If the helper exits non-zero
        """
        if mode is InvocationMode.ASYNC:
            raise ValueError("use start() for asynchronous invocations")

        invocation = HelperCommandInvocation(
            command=self.executable,
            args=tuple(args),
            mode=mode,
            timeout=self.timeout if timeout is None else timeout,
            raw=raw,
        )
        self.check_preconditions()
        if self.debug.enabled:
            log_helper_invocation(invocation)

        capture = mode is InvocationMode.CAPTURE_OUTPUT
        try:
            result = subprocess.run(
                invocation.argv,
                cwd=cwd,
                env=self._get_env(mode),
                stdout=subprocess.PIPE if capture else None,
                stderr=subprocess.PIPE,
                text=True,
                timeout=invocation.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise HelperTimeoutError(invocation.argv, invocation.timeout) from e

        if result.returncode != 0:
            raise HelperCommandError(invocation.argv, result.returncode, result.stderr)

        if not capture:
            return None
        if raw:
            return result.stdout
        return result.stdout.splitlines()

    def start(
        self,
        args: list[str] | tuple[str, ...],
        cwd: str | Path | None = None,
    ) -> subprocess.Popen[str]:
        """
        Start the helper without waiting for it.

        Args:
            args: Arguments after the executable name
            cwd: Working directory

        Returns:
            The running process; stdout and stderr are pipes

        Raises:
            HelperNotInstalledError: If the executable is not on PATH
            HelperNotInitializedError: If the configuration file is missing
        """
        invocation = HelperCommandInvocation(
            command=self.executable,
            args=tuple(args),
            mode=InvocationMode.ASYNC,
            timeout=self.timeout,
        )
        self.check_preconditions()
        if self.debug.enabled:
            log_helper_invocation(invocation)
        return subprocess.Popen(
            invocation.argv,
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        )

    def command(self, *args: str, cwd: str | Path | None = None) -> None:
        """Run a mutating helper command (e.g. ``checkout``)."""
        self.run(args, InvocationMode.SYNC, cwd=cwd)

    def command_with_editor(self, *args: str, cwd: str | Path | None = None) -> None:
        """Run a helper command that may open an editor (e.g. ``pull-request``)."""
        self.run(args, InvocationMode.SYNC_WITH_EDITOR, cwd=cwd)

    def command_output(
        self, *args: str, raw: bool = False, cwd: str | Path | None = None
    ) -> list[str] | str:
        """Run a helper command and return its output."""
        output = self.run(args, InvocationMode.CAPTURE_OUTPUT, raw=raw, cwd=cwd)
        return cast("list[str] | str", output)

    def _get_env(self, mode: InvocationMode) -> dict[str, str] | None:
        """
        Get environment variables for the helper process.

        Only SYNC_WITH_EDITOR changes the environment: the editor is exported
        as both GIT_EDITOR and EDITOR so the helper and git agree on it.
        """
        if mode is not InvocationMode.SYNC_WITH_EDITOR:
            return None

        env = os.environ.copy()
        editor = self.editor or env.get("VISUAL") or env.get("EDITOR")
        if editor:
            env["GIT_EDITOR"] = editor
            env["EDITOR"] = editor
        return env
