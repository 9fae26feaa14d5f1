"""MCP tool server exposing one Gitty repository over stdio."""

import dataclasses
import logging
import sys
from enum import Enum
from typing import Any, List, Optional

from mcp.server.fastmcp import FastMCP

from .config import Config, load_configuration, validate_configuration
from .errors import ConfigurationError, error_handler
from .models import Credentials, GitResult, SyncResult
from .repository import Repository


def setup_logging(config: Config) -> None:
    """Setup logging configuration with structured logging."""
    class StructuredFormatter(logging.Formatter):
        def format(self, record):
            if hasattr(record, 'operation'):
                record.msg = f"[{record.operation}] {record.msg}"
            return super().format(record)

    # stdout carries the MCP stream, so everything logs to stderr
    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        stream=sys.stderr
    )

    loggers = [
        'gitty.server',
        'gitty.command',
        'gitty.repository',
        'gitty.sync',
        'gitty.error_handler'
    ]

    formatter = StructuredFormatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    for logger_name in loggers:
        logger = logging.getLogger(logger_name)
        logger.setLevel(getattr(logging, config.log_level))

        if not logger.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(formatter)
            logger.addHandler(handler)
            logger.propagate = False


def to_serializable(value: Any) -> Any:
    """Convert result records into JSON-friendly structures."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_serializable(getattr(value, f.name))
                for f in dataclasses.fields(value) if f.repr}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {key: to_serializable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_serializable(item) for item in value]
    return value


def git_response(repository: Repository, result: GitResult) -> dict:
    """Build the tool response for a non-interactive operation."""
    if not result.success:
        return error_handler.handle_command_error(
            result, {'repository_path': str(repository.path)}
        ).to_dict()
    response = result.to_dict()
    response["data"] = to_serializable(result.data)
    return response


def sync_response(repository: Repository, operation: str, result: SyncResult) -> dict:
    """Build the tool response for a finished push or pull."""
    context = {
        'repository_path': str(repository.path),
        'exit_status': result.exit_status,
    }
    if result.error is not None:
        response = error_handler.handle_sync_error(result.error, context).to_dict()
        response["output"] = to_serializable(result.success)
        return response
    return {
        "operation": operation,
        "success": True,
        "exit_status": result.exit_status,
        "output": to_serializable(result.success),
    }


def register_tools(server: FastMCP, repository: Repository) -> None:
    """Register MCP tools with the server instance."""

    @server.tool()
    def status() -> dict:
        """Staged, unstaged and untracked files in the working tree."""
        return git_response(repository, repository.status())

    @server.tool()
    def log(branch: Optional[str] = None) -> dict:
        """
        Commit history, newest first.

        Args:
            branch: Branch or revision to list; defaults to the checked-out branch
        """
        result = repository.branch_log(branch) if branch else repository.log()
        return git_response(repository, result)

    @server.tool()
    def branches() -> dict:
        """The current branch and the other local branches."""
        return git_response(repository, repository.branches())

    @server.tool()
    def tags() -> dict:
        return git_response(repository, repository.tags())

    @server.tool()
    def remotes() -> dict:
        """Configured remotes mapped to their fetch URLs."""
        return git_response(repository, repository.remote.list())

    @server.tool()
    def describe() -> dict:
        return git_response(repository, repository.describe())

    @server.tool()
    def commit(message: str, files: Optional[List[str]] = None) -> dict:
        """
        Commit staged changes.

        Args:
            message: Commit message
            files: Paths to stage before committing
        """
        if files:
            add_result = repository.add(files)
            if not add_result.success:
                return git_response(repository, add_result)
        return git_response(repository, repository.commit(message))

    def run_sync(operation: str, remote: str, branch: str, flags: Optional[List[str]],
                 username: Optional[str], password: Optional[str]) -> dict:
        try:
            credentials = Credentials(user=username or "", password=password or "")
            sync_call = repository.push if operation == "push" else repository.pull
            future = sync_call(remote, branch, flags or [], credentials)
            return sync_response(repository, operation, future.result())
        except Exception as e:
            return error_handler.handle_exception(e, {'operation': operation}).to_dict()

    @server.tool()
    def push(remote: str, branch: str, flags: Optional[List[str]] = None,
             username: Optional[str] = None, password: Optional[str] = None) -> dict:
        """
        Push a branch, answering Git's username and password prompts.

        Waits until Git exits. Wrong credentials make Git ask again and the
        same ones are resent, so prefer a credential helper when unsure.

        Args:
            remote: Remote name, e.g. "origin"
            branch: Branch to push
            flags: Extra git push flags, e.g. ["--tags"]
            username: Answer for Git's username prompt
            password: Answer for Git's password prompt
        """
        return run_sync("push", remote, branch, flags, username, password)

    @server.tool()
    def pull(remote: str, branch: str, flags: Optional[List[str]] = None,
             username: Optional[str] = None, password: Optional[str] = None) -> dict:
        """
        Pull a branch, answering Git's username and password prompts.

        Args:
            remote: Remote name, e.g. "origin"
            branch: Branch to pull
            flags: Extra git pull flags, e.g. ["--rebase"]
            username: Answer for Git's username prompt
            password: Answer for Git's password prompt
        """
        return run_sync("pull", remote, branch, flags, username, password)

    logging.getLogger('gitty.server').info("MCP tools registered successfully")


def initialize_server(server_config: Optional[Config] = None) -> FastMCP:
    """Initialize the MCP server for the configured repository."""
    server_config = server_config or load_configuration()
    setup_logging(server_config)
    init_logger = logging.getLogger('gitty.server')

    validation_issues = validate_configuration(server_config)
    for issue in validation_issues:
        if issue.startswith("ERROR:"):
            init_logger.error(issue[7:])
        elif issue.startswith("WARNING:"):
            init_logger.warning(issue[9:])

    error_count = sum(1 for issue in validation_issues if issue.startswith("ERROR:"))
    if error_count > 0:
        raise ConfigurationError(f"Server startup failed due to {error_count} configuration error(s)")

    repository = Repository(server_config.repository_path, config=server_config)
    init_logger.info(f"Serving repository {repository.name} at {repository.path}")

    server = FastMCP("Gitty", log_level=server_config.log_level)
    register_tools(server, repository)
    return server


def main():
    """Entry point for ``gitty-server``."""
    try:
        server = initialize_server()
        server.run(transport="stdio")
    except KeyboardInterrupt:
        logging.getLogger('gitty.server').info("Server stopped by user (Ctrl+C)")
    except Exception as e:
        logging.getLogger('gitty.server').critical(f"Server failed to start: {e}", exc_info=True)
        sys.exit(1)
