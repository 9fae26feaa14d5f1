"""Repository-level operations exposed to callers such as a UI."""

import logging
from concurrent.futures import Future
from pathlib import Path
from typing import Callable, Optional, Sequence, Union

from .command import Command, CommandResult
from .config import Config
from .models import GitResult, SyncOperation, SyncResult
from .parsers import (
    LOG_FORMAT, parse_branches, parse_commit, parse_graph, parse_log,
    parse_remotes, parse_status, parse_tags
)
from .platform import normalize_path
from .sync import sync

PathArg = Union[str, Path]


class RemoteManager:
    """``git remote`` operations, reached through ``Repository.remote``."""

    def __init__(self, repository: "Repository"):
        self.repository = repository

    def add(self, name: str, url: str) -> GitResult:
        return self.repository._simple("remote add", [], [name, url])

    def set_url(self, name: str, url: str) -> GitResult:
        return self.repository._simple("remote set-url", [], [name, url])

    def remove(self, name: str) -> GitResult:
        return self.repository._simple("remote rm", [], [name])

    def list(self) -> GitResult:
        """Map remote names to their fetch URLs."""
        result = self.repository._run("remote", ["-v"])
        data = parse_remotes(result.stdout) if result.stdout else {}
        return GitResult(operation="remote list", error=result.error, data=data)


class Repository:
    """
    A Git working directory and the operations a caller can run on it.

    Non-interactive operations block and return a ``GitResult``; Git
    failures are reported in ``GitResult.error`` rather than raised.
    ``push`` and ``pull`` run on a pseudo-terminal so they can answer
    credential prompts, and return a future.

    ``is_repository`` is computed when the handle is created and again
    only when ``refresh_validity()`` is called; ``init`` and
    ``cherry_pick`` do not refresh it.
    """

    def __init__(self, path: PathArg, config: Optional[Config] = None):
        self.path = normalize_path(path)
        self.name = self.path.name
        self.config = config or Config()
        self.logger = logging.getLogger('gitty.repository')
        self.remote = RemoteManager(self)
        self.is_repository = False
        self.refresh_validity()

    def __repr__(self) -> str:
        return f"Repository(path={str(self.path)!r}, is_repository={self.is_repository})"

    def refresh_validity(self) -> bool:
        """Recheck whether the directory holds Git metadata."""
        self.is_repository = (self.path / ".git").exists()
        return self.is_repository

    # Command helpers

    def _command(self, operation: str, flags: Sequence[str] = (), arguments=()) -> Command:
        return Command(self.path, operation, list(flags), list(arguments), config=self.config)

    def _run(self, operation: str, flags: Sequence[str] = (), arguments=()) -> CommandResult:
        result = self._command(operation, flags, arguments).run()
        if result.error:
            self.logger.info(
                f"git {operation} failed in {self.path}: {result.error}",
                extra={'operation': operation}
            )
        return result

    def _simple(self, operation: str, flags: Sequence[str] = (), arguments=()) -> GitResult:
        result = self._run(operation, flags, arguments)
        return GitResult(operation=operation, error=result.error)

    def _log_result(self, operation: str, result: CommandResult) -> GitResult:
        data = parse_log(result.stdout) if result.stdout else []
        return GitResult(operation=operation, error=result.error, data=data)

    # Repository lifecycle

    def init(self, flags: Sequence[str] = ()) -> GitResult:
        return self._simple("init", flags)

    def describe(self) -> GitResult:
        """Describe HEAD as ``<tag>-<n>-g<hash>``, or just the hash without tags."""
        result = self._run("describe", ["--tags", "--always", "--long"])
        return GitResult(operation="describe", error=result.error, data=result.stdout.strip() or None)

    # History

    def log(self) -> GitResult:
        return self._log_result("log", self._run("log", [LOG_FORMAT]))

    def branch_log(self, branch: str) -> GitResult:
        return self._log_result("log", self._run("log", [branch, LOG_FORMAT]))

    def graph(self) -> GitResult:
        """Commit graph rows suitable for drawing a network view."""
        result = self._run("log", ["--graph", "--pretty=oneline", "--abbrev-commit", "--no-decorate"])
        data = parse_graph(result.stdout) if result.success and result.stdout else None
        return GitResult(operation="graph", error=result.error, data=data)

    def reset(self, commit: str) -> GitResult:
        """Reset HEAD to ``commit`` and return the resulting log."""
        reset_result = self._run("reset", ["-q"], [commit])
        log_result = self.log()
        return GitResult(
            operation="reset",
            error=log_result.error or reset_result.error,
            data=log_result.data,
        )

    def cherry_pick(self, commit: str, flags: Sequence[str] = ()) -> GitResult:
        return self._simple("cherry-pick", flags, [commit])

    # Working tree

    def status(self) -> GitResult:
        status_result = self._run("status", ["--porcelain"])
        untracked_result = self._run("ls-files", ["--other", "--exclude-standard"])
        return GitResult(
            operation="status",
            error=status_result.error or untracked_result.error,
            data=parse_status(status_result.stdout, untracked_result.stdout),
        )

    def add(self, files: Sequence[str]) -> GitResult:
        return self._simple("add", [], files)

    def remove(self, files: Sequence[str]) -> GitResult:
        """Stop tracking ``files`` while leaving them on disk."""
        return self._simple("rm", ["--cached"], files)

    def unstage(self, files: Sequence[str]) -> GitResult:
        return self._simple("reset HEAD", [], files)

    def commit(self, message: str) -> GitResult:
        result = self._run("commit", ["-m"], [message])
        summary, refusal = parse_commit(result.stdout) if result.stdout else (None, None)
        error = result.error and (refusal or result.error)
        return GitResult(operation="commit", error=error, data=None if error else summary)

    # Branches and tags

    def branches(self, flags: Sequence[str] = ()) -> GitResult:
        result = self._run("branch", flags)
        return GitResult(operation="branches", error=result.error, data=parse_branches(result.stdout))

    def create_branch(self, name: str) -> GitResult:
        return self._simple("branch", [], [name])

    def checkout(self, branch: str) -> GitResult:
        """Check out ``branch`` and return the refreshed branch list."""
        checkout_result = self._run("checkout", [], [branch])
        branches_result = self.branches()
        return GitResult(
            operation="checkout",
            error=checkout_result.error or branches_result.error,
            data=branches_result.data,
        )

    def merge(self, branch: str) -> GitResult:
        return self._simple("merge", [], [branch])

    def tags(self) -> GitResult:
        result = self._run("tag")
        return GitResult(operation="tags", error=result.error, data=parse_tags(result.stdout))

    def create_tag(self, name: str) -> GitResult:
        return self._simple("tag", [], [name])

    # Remote synchronization

    def _sync(self, operation: SyncOperation, remote: str, branch: str,
              flags: Optional[Sequence[str]], credentials,
              callback: Optional[Callable]) -> "Future[SyncResult]":
        self.logger.info(
            f"Starting git {operation.value} {remote} {branch} in {self.path}",
            extra={'operation': operation.value}
        )
        return sync(self.path, operation, remote, branch, flags, credentials,
                    callback=callback, config=self.config)

    def push(self, remote: str, branch: str, flags: Optional[Sequence[str]] = None,
             credentials=None, callback: Optional[Callable] = None) -> "Future[SyncResult]":
        """
        Push ``branch`` to ``remote``, answering credential prompts.

        ``credentials`` is a ``Credentials`` value or ``{"user", "pass"}``
        mapping. ``callback(error, success)`` runs once after Git exits.
        Raises SyncSpawnError if Git cannot be started.
        """
        return self._sync(SyncOperation.PUSH, remote, branch, flags, credentials, callback)

    def pull(self, remote: str, branch: str, flags: Optional[Sequence[str]] = None,
             credentials=None, callback: Optional[Callable] = None) -> "Future[SyncResult]":
        """Pull ``branch`` from ``remote``; see ``push``."""
        return self._sync(SyncOperation.PULL, remote, branch, flags, credentials, callback)
