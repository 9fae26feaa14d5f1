"""Cross-platform helpers for locating and running Git."""

import os
import platform
import subprocess
from enum import Enum
from pathlib import Path
from typing import Optional, Union


class PlatformType(Enum):
    """Supported platform types."""
    WINDOWS = "windows"
    MACOS = "macos"
    LINUX = "linux"
    UNKNOWN = "unknown"


class PlatformInfo:
    """Platform information and utilities."""

    def __init__(self):
        """Initialize platform detection."""
        self._platform_type = self._detect_platform()
        self._is_windows = self._platform_type == PlatformType.WINDOWS
        self._is_unix = self._platform_type in (PlatformType.LINUX, PlatformType.MACOS)

    def _detect_platform(self) -> PlatformType:
        """Detect the current platform."""
        system = platform.system().lower()

        if system == "windows":
            return PlatformType.WINDOWS
        elif system == "darwin":
            return PlatformType.MACOS
        elif system == "linux":
            return PlatformType.LINUX
        else:
            return PlatformType.UNKNOWN

    @property
    def is_windows(self) -> bool:
        return self._is_windows

    @property
    def is_unix(self) -> bool:
        """Check if running on Unix-like system (Linux/macOS)."""
        return self._is_unix


_platform_info: Optional[PlatformInfo] = None


def get_platform_info() -> PlatformInfo:
    """Get the global platform info instance."""
    global _platform_info
    if _platform_info is None:
        _platform_info = PlatformInfo()
    return _platform_info


def normalize_path(path: Union[str, Path]) -> Path:
    """
    Normalize a repository path.

    Expands ``~`` and collapses ``..`` segments without resolving symlinks,
    so the derived repository name matches the directory the caller named.
    """
    if isinstance(path, str):
        path = Path(path)

    return Path(os.path.normpath(os.path.abspath(path.expanduser())))


def get_git_executable() -> str:
    """Get the Git executable name for the current platform."""
    if get_platform_info().is_windows:
        return "git.exe"
    return "git"


def supports_pseudo_terminal() -> bool:
    """Whether interactive push/pull can be attached to a pseudo-terminal here."""
    return get_platform_info().is_unix


def validate_git_availability(git_executable: Optional[str] = None) -> tuple[bool, Optional[str]]:
    """
    Validate that Git is available on the current platform.

    Returns:
        Tuple of (is_available, error_message)
    """
    git_cmd = git_executable or get_git_executable()

    try:
        result = subprocess.run(
            [git_cmd, "--version"],
            capture_output=True,
            text=True,
            timeout=10
        )

        if result.returncode == 0:
            return True, None
        else:
            return False, f"Git command failed: {result.stderr}"

    except FileNotFoundError:
        return False, f"Git executable '{git_cmd}' not found"
    except subprocess.TimeoutExpired:
        return False, "Git command timed out"
    except OSError as e:
        return False, f"Error checking Git availability: {e}"
