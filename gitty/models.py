"""Records produced from Git command output."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union


class SyncOperation(Enum):
    """Remote synchronization operations that may prompt for credentials."""
    PUSH = "push"
    PULL = "pull"


class SyncErrorCategory(Enum):
    """Categories of push/pull failures."""
    AUTHENTICATION = "authentication"
    NETWORK = "network"
    REPOSITORY_ACCESS = "repository_access"
    REJECTED = "rejected"
    MERGE_CONFLICT = "merge_conflict"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Credentials:
    """Username and password answered to Git's terminal prompts."""
    user: str
    password: str = field(repr=False)

    @classmethod
    def coerce(cls, value: Union["Credentials", Mapping[str, str], None]) -> "Credentials":
        """
        Accept a Credentials value or a ``{"user": ..., "pass": ...}`` mapping.

        ``None`` becomes empty credentials, for remotes that never prompt.
        """
        from .errors import InvalidCredentialsError

        if value is None:
            return cls(user="", password="")
        if isinstance(value, cls):
            return value
        if isinstance(value, Mapping):
            try:
                user, password = value["user"], value["pass"]
            except KeyError as e:
                raise InvalidCredentialsError(f"Credentials mapping is missing {e.args[0]!r}") from e
            if not isinstance(user, str) or not isinstance(password, str):
                raise InvalidCredentialsError("Credentials user and pass must be strings")
            return cls(user=user, password=password)
        raise InvalidCredentialsError(f"Unsupported credentials type: {type(value).__name__}")


@dataclass
class LogEntry:
    """One commit from ``git log``."""
    commit: str
    author: str
    date: str
    message: str


@dataclass
class StatusEntry:
    file: str
    status: str


@dataclass
class Status:
    """Working tree status split the way a commit dialog shows it."""
    staged: List[StatusEntry] = field(default_factory=list)
    not_staged: List[StatusEntry] = field(default_factory=list)
    untracked: List[str] = field(default_factory=list)

    @property
    def clean(self) -> bool:
        return not (self.staged or self.not_staged or self.untracked)


@dataclass
class CommitSummary:
    branch: str
    commit: str
    message: str
    files_changed: int = 0
    insertions: int = 0
    deletions: int = 0
    root_commit: bool = False


@dataclass
class BranchList:
    current: Optional[str]
    others: List[str] = field(default_factory=list)

    @property
    def all(self) -> List[str]:
        return ([self.current] if self.current else []) + self.others


@dataclass
class GraphRow:
    """One line of ``git log --graph``; commit fields are empty on connector-only rows."""
    graph: str
    commit: Optional[str] = None
    message: Optional[str] = None
    column: Optional[int] = None


@dataclass
class RefUpdate:
    source: str
    destination: str
    old: Optional[str] = None
    new: Optional[str] = None
    flag: Optional[str] = None


@dataclass
class SyncError:
    """Structured form of an ``error:``/``fatal:`` chunk from push or pull."""
    message: str
    category: SyncErrorCategory
    raw: str

    def __str__(self) -> str:
        return self.message


@dataclass
class SyncSuccess:
    """Structured form of a non-error chunk from push or pull; may be empty noise."""
    text: str
    up_to_date: bool = False
    ref_updates: List[RefUpdate] = field(default_factory=list)


@dataclass
class SyncResult:
    """Outcome of one push or pull session, delivered once the process exits."""
    error: Optional[SyncError] = None
    success: Optional[SyncSuccess] = None
    exit_status: Optional[int] = None

    def __iter__(self):
        # allows ``error, success = result``
        yield self.error
        yield self.success


@dataclass
class GitResult:
    """Result of a non-interactive repository operation."""
    operation: str
    error: Optional[str] = None
    data: Any = None

    @property
    def success(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation": self.operation,
            "success": self.success,
            "error": self.error,
        }
