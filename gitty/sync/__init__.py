"""Interactive push/pull for Gitty."""

from .classifier import (
    Action, RecordError, RecordSuccess, SyncState, WritePassword, WriteUsername, classify
)
from .session import SyncSession, sync

__all__ = [
    'Action',
    'RecordError',
    'RecordSuccess',
    'SyncState',
    'WritePassword',
    'WriteUsername',
    'classify',
    'SyncSession',
    'sync',
]
