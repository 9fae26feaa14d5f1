"""
Gitty - an object-oriented wrapper around the git command line.

Each ``Repository`` method runs git in the repository's directory and
returns parsed output. Push and pull run on a pseudo-terminal so they can
answer git's username and password prompts.
"""

__version__ = "1.0.0"
__description__ = "Object-oriented wrapper around the git command line"

from .config import Config, load_configuration
from .errors import ConfigurationError, GittyError, InvalidCredentialsError, SyncSpawnError
from .models import Credentials, GitResult, SyncError, SyncResult, SyncSuccess
from .repository import Repository

__all__ = [
    "Config",
    "load_configuration",
    "ConfigurationError",
    "GittyError",
    "InvalidCredentialsError",
    "SyncSpawnError",
    "Credentials",
    "GitResult",
    "SyncError",
    "SyncResult",
    "SyncSuccess",
    "Repository",
]
