"""Exceptions and error responses for Gitty."""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, Any, Optional

from .models import GitResult, SyncError


class GittyError(Exception):
    """Base class for errors raised by Gitty."""


class SyncSpawnError(GittyError):
    """Git could not be started on a pseudo-terminal for push or pull."""


class InvalidCredentialsError(GittyError, ValueError):
    """Credentials argument has the wrong shape."""


class ConfigurationError(GittyError, ValueError):
    """Configuration values could not be loaded or are invalid."""


class ErrorCategory(Enum):
    """Categories of errors for structured error handling."""
    GIT_COMMAND = "git_command"
    GIT_SYNC = "git_sync"
    CONFIGURATION = "configuration"
    VALIDATION = "validation"
    SYSTEM = "system"


@dataclass
class ErrorResponse:
    """Standardized error response returned by the tool server."""
    error: str
    error_code: str
    message: str
    timestamp: str
    category: str
    context: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert error response to dictionary format."""
        result = {
            "error": self.error,
            "error_code": self.error_code,
            "message": self.message,
            "timestamp": self.timestamp,
            "category": self.category
        }
        if self.context:
            result["context"] = self.context
        return result


class ErrorHandler:
    """Turns failed results and exceptions into ErrorResponse values."""

    def __init__(self):
        self.logger = logging.getLogger('gitty.error_handler')

    def handle_command_error(self, result: GitResult, context: Dict[str, Any] = None) -> ErrorResponse:
        """Handle a failed non-interactive Git operation."""
        context = context or {}
        text = (result.error or "").lower()

        if "not a git repository" in text:
            error_code = "GIT_NOT_REPOSITORY"
            message = "Git repository not initialized"
        elif "did not match any file" in text or "pathspec" in text:
            error_code = "GIT_PATHSPEC_ERROR"
            message = f"Git could not find the requested path: {result.error}"
        elif "nothing to commit" in text or "no changes added" in text:
            error_code = "GIT_NOTHING_TO_COMMIT"
            message = "Nothing to commit"
        elif "conflict" in text:
            error_code = "GIT_CONFLICT"
            message = f"Git reported a conflict: {result.error}"
        else:
            error_code = "GIT_COMMAND_FAILED"
            message = f"Git {result.operation} failed: {result.error}"

        response = ErrorResponse(
            error="Git operation failed",
            error_code=error_code,
            message=message,
            timestamp=datetime.now().isoformat(),
            category=ErrorCategory.GIT_COMMAND.value,
            context=context
        )

        self.logger.warning(
            f"Git command error: {message}",
            extra={
                'operation': result.operation,
                'error_code': error_code,
                'repository_path': context.get('repository_path')
            }
        )

        return response

    def handle_sync_error(self, error: SyncError, context: Dict[str, Any] = None) -> ErrorResponse:
        """Handle a push or pull that finished with an error chunk."""
        context = context or {}
        error_code = f"SYNC_{error.category.value.upper()}"

        response = ErrorResponse(
            error="Git sync operation failed",
            error_code=error_code,
            message=error.message,
            timestamp=datetime.now().isoformat(),
            category=ErrorCategory.GIT_SYNC.value,
            context=context
        )

        self.logger.warning(
            f"Git sync error: {error.message}",
            extra={
                'operation': 'git_sync_error',
                'error_code': error_code,
                'repository_path': context.get('repository_path')
            }
        )

        return response

    def handle_exception(self, error: Exception, context: Dict[str, Any] = None) -> ErrorResponse:
        """Handle an exception raised while serving a request."""
        context = context or {}

        if isinstance(error, InvalidCredentialsError):
            error_code = "VALIDATION_INVALID_CREDENTIALS"
            category = ErrorCategory.VALIDATION
        elif isinstance(error, ConfigurationError):
            error_code = "CONFIGURATION_ERROR"
            category = ErrorCategory.CONFIGURATION
        elif isinstance(error, SyncSpawnError):
            error_code = "SYNC_SPAWN_FAILED"
            category = ErrorCategory.GIT_SYNC
        elif isinstance(error, ValueError):
            error_code = "VALIDATION_GENERAL_ERROR"
            category = ErrorCategory.VALIDATION
        else:
            error_code = "SYSTEM_ERROR"
            category = ErrorCategory.SYSTEM

        response = ErrorResponse(
            error="Request failed",
            error_code=error_code,
            message=str(error),
            timestamp=datetime.now().isoformat(),
            category=category.value,
            context=context
        )

        self.logger.error(
            f"Unhandled error: {error}",
            extra={'operation': 'exception', 'error_code': error_code}
        )

        return response


error_handler = ErrorHandler()
