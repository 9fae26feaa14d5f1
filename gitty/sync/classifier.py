"""Mapping of pseudo-terminal output chunks to session actions."""

from dataclasses import dataclass
from typing import Optional, Union

from ..models import SyncError, SyncSuccess
from ..parsers import parse_sync_error, parse_sync_success


@dataclass(frozen=True)
class WriteUsername:
    """Answer a username prompt."""


@dataclass(frozen=True)
class WritePassword:
    """Answer a password prompt."""


@dataclass(frozen=True)
class RecordError:
    error: SyncError


@dataclass(frozen=True)
class RecordSuccess:
    success: SyncSuccess


Action = Union[WriteUsername, WritePassword, RecordError, RecordSuccess]


@dataclass
class SyncState:
    """What a session has recorded so far; each field keeps only the latest value."""
    last_error: Optional[SyncError] = None
    last_success: Optional[SyncSuccess] = None

    def apply(self, action: Action) -> None:
        if isinstance(action, RecordError):
            self.last_error = action.error
        elif isinstance(action, RecordSuccess):
            self.last_success = action.success


def classify(chunk: str) -> Action:
    """
    Decide how a session reacts to one chunk of terminal output.

    Only this chunk is inspected, lower-cased, in fixed priority:
    ``username``, then ``password``, then ``error``/``fatal``; anything
    else counts as success output. A prompt split across two chunks is
    therefore not recognised.
    """
    prompt = chunk.lower()
    if "username" in prompt:
        return WriteUsername()
    if "password" in prompt:
        return WritePassword()
    if "error" in prompt or "fatal" in prompt:
        return RecordError(parse_sync_error(chunk))
    return RecordSuccess(parse_sync_success(chunk))
