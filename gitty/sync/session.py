"""Interactive push/pull over a pseudo-terminal."""

import logging
import os
import threading
from concurrent.futures import Future
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Union

import pexpect

from ..config import Config
from ..errors import SyncSpawnError
from ..models import Credentials, SyncError, SyncErrorCategory, SyncOperation, SyncResult
from .classifier import Action, SyncState, WritePassword, WriteUsername, classify

OutputSink = Callable[[str], None]


class SyncSession:
    """
    One ``git push`` or ``git pull`` that may ask for credentials.

    Git only prompts for a username and password when it believes it is
    talking to a terminal, so the process is spawned on a pseudo-terminal
    with pexpect. Every chunk read from the terminal is echoed to the
    output sink, classified, and answered or recorded. When the process
    exits the session resolves its future with the last error and the
    last success it recorded.

    There is no timeout and no cancellation: a process that never exits
    leaves the future pending, and wrong credentials are resupplied each
    time Git asks again.
    """

    def __init__(
        self,
        working_directory: Union[str, Path],
        operation: Union[SyncOperation, str],
        remote: str,
        branch: str,
        flags: Optional[Sequence[str]],
        credentials,
        config: Optional[Config] = None,
        output_sink: Optional[OutputSink] = None,
        spawn: Optional[Callable] = None,
    ):
        self.working_directory = str(working_directory)
        self.operation = SyncOperation(operation)
        self.remote = remote
        self.branch = branch
        self.flags = list(flags or [])
        self.credentials = Credentials.coerce(credentials)
        self.config = config or Config()
        self.logger = logging.getLogger('gitty.sync')
        self.state = SyncState()
        self._spawn = spawn
        self._child = None

        if output_sink is not None:
            self._sink = output_sink
        elif self.config.echo_sync_output:
            self._sink = self.logger.info
        else:
            self._sink = None

    @property
    def arguments(self) -> List[str]:
        return [self.operation.value, self.remote, self.branch] + self.flags

    def _environment(self) -> Dict[str, str]:
        env = dict(os.environ)
        if self.config.sync_force_c_locale:
            env["LC_ALL"] = "C"
        return env

    def spawn(self):
        """Start Git on a pseudo-terminal; raises SyncSpawnError if it cannot be started."""
        self.logger.debug(
            f"Spawning {self.config.git_executable} {self.operation.value} "
            f"{self.remote} {self.branch} in {self.working_directory}"
        )
        try:
            spawn = self._spawn or pexpect.spawn
            self._child = spawn(
                self.config.git_executable,
                self.arguments,
                cwd=self.working_directory,
                env=self._environment(),
                encoding="utf-8",
                codec_errors="replace",
            )
        except (pexpect.ExceptionPexpect, OSError) as e:
            raise SyncSpawnError(
                f"Could not start git {self.operation.value} in {self.working_directory}: {e}"
            ) from e
        return self._child

    def handle_chunk(self, chunk: str) -> Action:
        """Echo, classify and act on one chunk of terminal output."""
        if self._sink is not None:
            self._sink(chunk)

        action = classify(chunk)
        if isinstance(action, WriteUsername):
            self._child.send(self.credentials.user + "\r")
        elif isinstance(action, WritePassword):
            self._child.send(self.credentials.password + "\r")
        else:
            self.state.apply(action)
        return action

    def _read_until_exit(self) -> None:
        while True:
            try:
                chunk = self._child.read_nonblocking(size=self.config.sync_read_size, timeout=None)
            except pexpect.EOF:
                return
            self.handle_chunk(chunk)

    def _exit_status(self) -> Optional[int]:
        # EOF only means the pty closed; close() would kill a child still exiting
        self._child.wait()
        self._child.close()
        if self._child.exitstatus is not None:
            return self._child.exitstatus
        if self._child.signalstatus is not None:
            return -self._child.signalstatus
        return None

    def run_to_completion(self) -> SyncResult:
        """Read until the process exits; never raises."""
        exit_status = None
        try:
            self._read_until_exit()
        except Exception as e:
            self.logger.error(f"Unexpected error during git {self.operation.value}: {e}", exc_info=True)
            self.state.last_error = SyncError(
                message=f"git {self.operation.value} session failed: {e}",
                category=SyncErrorCategory.UNKNOWN,
                raw="",
            )

        try:
            exit_status = self._exit_status()
        except Exception as e:
            self.logger.warning(f"Could not collect exit status of git {self.operation.value}: {e}")

        self.logger.info(
            f"git {self.operation.value} {self.remote} {self.branch} exited with status {exit_status}",
            extra={'operation': self.operation.value}
        )
        return SyncResult(
            error=self.state.last_error,
            success=self.state.last_success,
            exit_status=exit_status,
        )

    def start(self) -> "Future[SyncResult]":
        """
        Spawn Git and read its output on a background thread.

        Spawn failures are raised here, on the caller's thread. Everything
        after that is delivered through the returned future, which
        completes exactly once, after the process exits.
        """
        self.spawn()

        future: "Future[SyncResult]" = Future()
        future.set_running_or_notify_cancel()

        def sync_worker():
            future.set_result(self.run_to_completion())

        sync_thread = threading.Thread(
            target=sync_worker,
            name=f"GitSync-{self.operation.value}-{self.remote}-{self.branch}",
            daemon=True
        )
        sync_thread.start()
        return future


def sync(
    working_directory: Union[str, Path],
    operation: Union[SyncOperation, str],
    remote: str,
    branch: str,
    flags: Optional[Sequence[str]],
    credentials,
    callback: Optional[Callable] = None,
    config: Optional[Config] = None,
    output_sink: Optional[OutputSink] = None,
) -> "Future[SyncResult]":
    """
    Run one push or pull, answering credential prompts.

    ``callback``, when given, is called once as ``callback(error, success)``
    after Git exits.
    """
    session = SyncSession(
        working_directory, operation, remote, branch, flags, credentials,
        config=config, output_sink=output_sink,
    )
    future = session.start()
    if callback is not None:
        future.add_done_callback(lambda done: callback(*done.result()))
    return future
