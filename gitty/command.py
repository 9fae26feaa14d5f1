"""Non-interactive Git command execution using GitPython."""

import logging
import shlex
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

import git
from git.exc import GitCommandNotFound

from .config import Config


@dataclass
class CommandResult:
    """Exit status and captured output of one Git invocation."""
    status: Optional[int]
    stdout: str
    stderr: str
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None


def _command_error(status: int, stdout: str, stderr: str) -> Optional[str]:
    if status == 0:
        return None
    return stderr.strip() or stdout.strip() or f"git exited with status {status}"


class Command:
    """
    A single ``git`` invocation in a working directory.

    ``operation_name`` may span several words (``"remote add"``); it is
    followed by ``flags`` and then ``arguments``. A string of arguments is
    split shell-style, so quote paths that contain spaces.
    """

    def __init__(
        self,
        working_directory: Union[str, Path],
        operation_name: str,
        flags: Optional[Sequence[str]] = None,
        arguments: Union[str, Sequence[str], None] = "",
        config: Optional[Config] = None,
    ):
        self.working_directory = str(working_directory)
        self.operation_name = operation_name
        self.flags = list(flags or [])
        if arguments is None:
            arguments = []
        elif isinstance(arguments, str):
            arguments = shlex.split(arguments)
        self.arguments = list(arguments)
        self.config = config or Config()
        self.logger = logging.getLogger('gitty.command')

    @property
    def argv(self) -> List[str]:
        return self.operation_name.split() + self.flags + self.arguments

    def run(self) -> CommandResult:
        """Run the command and wait for it to finish."""
        command = [self.config.git_executable] + self.argv
        self.logger.debug(f"Executing {' '.join(command)} in {self.working_directory}")

        try:
            status, stdout, stderr = git.Git(self.working_directory).execute(
                command,
                with_extended_output=True,
                with_exceptions=False,
            )
        except GitCommandNotFound as e:
            self.logger.error(f"Could not run git {self.operation_name}: {e}")
            return CommandResult(status=None, stdout="", stderr="", error=str(e))

        result = CommandResult(
            status=status,
            stdout=stdout,
            stderr=stderr,
            error=_command_error(status, stdout, stderr),
        )
        if result.error:
            self.logger.debug(f"git {self.operation_name} exited with status {status}: {result.error}")
        return result

    def execute(
        self,
        blocking: bool = True,
        callback: Optional[Callable[[CommandResult], None]] = None,
    ) -> Union[CommandResult, "Future[CommandResult]"]:
        """
        Run the command, either inline or on a background thread.

        Blocking calls return the CommandResult. Non-blocking calls return a
        future for it; ``callback`` is attached to that future.
        """
        if blocking:
            result = self.run()
            if callback is not None:
                callback(result)
            return result

        future: "Future[CommandResult]" = Future()
        future.set_running_or_notify_cancel()
        if callback is not None:
            future.add_done_callback(lambda done: callback(done.result()))

        def command_worker():
            try:
                future.set_result(self.run())
            except Exception as e:
                self.logger.error(f"Unexpected error in git {self.operation_name}: {e}", exc_info=True)
                future.set_result(CommandResult(status=None, stdout="", stderr="", error=str(e)))

        threading.Thread(
            target=command_worker,
            name=f"GitCommand-{self.operation_name.replace(' ', '-')}",
            daemon=True
        ).start()
        return future
