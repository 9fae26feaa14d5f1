"""
Parsers for Git command output.

Every function here is pure: it takes the text Git printed for one
operation and returns records from ``gitty.models``. The formats they
expect are pinned by the arguments ``gitty.repository`` passes to Git
(``LOG_FORMAT``, ``--porcelain``), except for the push/pull parsers,
which see whatever fragment the pseudo-terminal delivered.
"""

import re
from typing import Dict, List, Optional, Tuple

from .models import (
    BranchList, CommitSummary, GraphRow, LogEntry, RefUpdate, Status,
    StatusEntry, SyncError, SyncErrorCategory, SyncSuccess
)

FIELD_SEPARATOR = "\x1f"
RECORD_SEPARATOR = "\x1e"

LOG_FORMAT = "--pretty=format:%H%x1f%an <%ae>%x1f%ad%x1f%s%x1e"

STATUS_CODES = {
    "M": "modified",
    "A": "added",
    "D": "deleted",
    "R": "renamed",
    "C": "copied",
    "T": "typechange",
    "U": "unmerged",
}

# Checked in order; the first pattern found decides the category.
SYNC_ERROR_PATTERNS: List[Tuple[str, SyncErrorCategory]] = [
    ("authentication failed", SyncErrorCategory.AUTHENTICATION),
    ("invalid username or password", SyncErrorCategory.AUTHENTICATION),
    ("could not read username", SyncErrorCategory.AUTHENTICATION),
    ("could not read password", SyncErrorCategory.AUTHENTICATION),
    ("terminal prompts disabled", SyncErrorCategory.AUTHENTICATION),
    ("permission denied", SyncErrorCategory.AUTHENTICATION),
    ("403", SyncErrorCategory.AUTHENTICATION),
    ("401", SyncErrorCategory.AUTHENTICATION),
    ("repository not found", SyncErrorCategory.REPOSITORY_ACCESS),
    ("does not appear to be a git repository", SyncErrorCategory.REPOSITORY_ACCESS),
    ("could not read from remote repository", SyncErrorCategory.REPOSITORY_ACCESS),
    ("couldn't find remote ref", SyncErrorCategory.REPOSITORY_ACCESS),
    ("automatic merge failed", SyncErrorCategory.MERGE_CONFLICT),
    ("would be overwritten by merge", SyncErrorCategory.MERGE_CONFLICT),
    ("not possible to fast-forward", SyncErrorCategory.MERGE_CONFLICT),
    ("conflict", SyncErrorCategory.MERGE_CONFLICT),
    ("unmerged", SyncErrorCategory.MERGE_CONFLICT),
    ("non-fast-forward", SyncErrorCategory.REJECTED),
    ("failed to push some refs", SyncErrorCategory.REJECTED),
    ("rejected", SyncErrorCategory.REJECTED),
    ("could not resolve host", SyncErrorCategory.NETWORK),
    ("unable to access", SyncErrorCategory.NETWORK),
    ("connection refused", SyncErrorCategory.NETWORK),
    ("timed out", SyncErrorCategory.NETWORK),
    ("network is unreachable", SyncErrorCategory.NETWORK),
    ("no route to host", SyncErrorCategory.NETWORK),
]

_COMMIT_HEADER = re.compile(
    r"^\[(?P<branch>.+?)(?P<root> \(root-commit\))? (?P<commit>[0-9a-f]{4,40})\] (?P<message>.*)$"
)
_FILES_CHANGED = re.compile(r"(\d+) files? changed")
_INSERTIONS = re.compile(r"(\d+) insertions?\(\+\)")
_DELETIONS = re.compile(r"(\d+) deletions?\(-\)")

_GRAPH_LINE = re.compile(
    r"^(?P<graph>[*|/\\_ .-]*?)(?P<commit>\b[0-9a-f]{4,40}\b)(?: (?P<message>.*))?$"
)

_REF_UPDATE = re.compile(
    r"^\s*(?P<flag>[+\-*=!t])?\s*"
    r"(?:(?P<old>[0-9a-f]{4,40})\.\.\.?(?P<new>[0-9a-f]{4,40})|\[(?P<label>[^\]]+)\])"
    r"\s+(?P<source>\S+)\s+->\s+(?P<destination>\S+)"
)

_SYNC_PREFIXES = ("fatal:", "error:", "remote:")


def _lines(output: str) -> List[str]:
    return [line.rstrip("\r") for line in output.splitlines()]


def _unquote_path(path: str) -> str:
    if len(path) >= 2 and path.startswith('"') and path.endswith('"'):
        return path[1:-1].replace('\\"', '"').replace("\\\\", "\\")
    return path


def parse_log(output: str) -> List[LogEntry]:
    """Parse ``git log`` output produced with ``LOG_FORMAT``."""
    entries = []
    for record in output.split(RECORD_SEPARATOR):
        record = record.strip("\r\n")
        if not record:
            continue
        fields = record.split(FIELD_SEPARATOR, 3)
        if len(fields) != 4:
            continue
        commit, author, date, message = fields
        entries.append(LogEntry(commit=commit, author=author, date=date, message=message))
    return entries


def parse_status(status_output: str, untracked_output: str = "") -> Status:
    """
    Parse ``git status --porcelain`` together with the untracked file list.

    Untracked files come from ``git ls-files --other --exclude-standard``
    so that ``??`` lines in the porcelain output are ignored here.
    Unmerged paths are reported once, as not staged.
    """
    status = Status()

    for line in _lines(status_output):
        if len(line) < 4:
            continue
        index_code, tree_code, path = line[0], line[1], line[3:]
        if index_code in "?!":
            continue
        if " -> " in path:
            path = path.split(" -> ", 1)[1]
        path = _unquote_path(path)

        if "U" in (index_code, tree_code) or (index_code + tree_code) in ("AA", "DD"):
            status.not_staged.append(StatusEntry(file=path, status=STATUS_CODES["U"]))
            continue

        if index_code != " ":
            status.staged.append(StatusEntry(file=path, status=STATUS_CODES.get(index_code, index_code)))
        if tree_code != " ":
            status.not_staged.append(StatusEntry(file=path, status=STATUS_CODES.get(tree_code, tree_code)))

    status.untracked = [_unquote_path(line) for line in _lines(untracked_output) if line.strip()]
    return status


def parse_commit(output: str) -> Tuple[Optional[CommitSummary], Optional[str]]:
    """
    Parse ``git commit`` output.

    Returns ``(summary, None)`` for a created commit and ``(None, reason)``
    when Git refused because nothing was staged. The ``[branch hash]``
    header only appears on success, so it is checked first and the commit
    message cannot be mistaken for a refusal.
    """
    for line in _lines(output):
        match = _COMMIT_HEADER.match(line.strip())
        if not match:
            continue

        summary = CommitSummary(
            branch=match.group("branch"),
            commit=match.group("commit"),
            message=match.group("message"),
            root_commit=bool(match.group("root")),
        )
        for pattern, attr in ((_FILES_CHANGED, "files_changed"),
                              (_INSERTIONS, "insertions"),
                              (_DELETIONS, "deletions")):
            found = pattern.search(output)
            if found:
                setattr(summary, attr, int(found.group(1)))
        return summary, None

    lowered = output.lower()
    if "nothing to commit" in lowered or "no changes added to commit" in lowered:
        reason = next((line.strip() for line in _lines(output)
                       if "nothing" in line.lower() or "no changes" in line.lower()), output.strip())
        return None, reason

    return None, None


def parse_branches(output: str) -> BranchList:
    """Parse ``git branch`` output into the current branch and the rest."""
    current = None
    others = []
    for line in _lines(output):
        if not line.strip():
            continue
        marker, name = line[:2], line[2:].strip()
        if marker.startswith("*"):
            current = name
        else:
            others.append(name)
    return BranchList(current=current, others=others)


def parse_tags(output: str) -> List[str]:
    return [line.strip() for line in _lines(output) if line.strip()]


def parse_remotes(output: str) -> Dict[str, str]:
    """Parse ``git remote -v`` into ``{name: url}``, preferring the fetch URL."""
    remotes: Dict[str, str] = {}
    for line in _lines(output):
        parts = line.split()
        if len(parts) < 2:
            continue
        name, url = parts[0], parts[1]
        kind = parts[2] if len(parts) > 2 else "(fetch)"
        if kind == "(fetch)" or name not in remotes:
            remotes[name] = url
    return remotes


def parse_graph(output: str) -> List[GraphRow]:
    """Parse ``git log --graph --pretty=oneline --abbrev-commit`` into rows for a network view."""
    rows = []
    for line in _lines(output):
        if not line.strip():
            continue
        match = _GRAPH_LINE.match(line)
        if match and "*" in match.group("graph"):
            graph = match.group("graph").rstrip()
            rows.append(GraphRow(
                graph=graph,
                commit=match.group("commit"),
                message=match.group("message") or "",
                column=graph.index("*"),
            ))
        else:
            rows.append(GraphRow(graph=line.rstrip()))
    return rows


def categorize_sync_error(text: str) -> SyncErrorCategory:
    lowered = text.lower()
    for pattern, category in SYNC_ERROR_PATTERNS:
        if pattern in lowered:
            return category
    return SyncErrorCategory.UNKNOWN


def _strip_sync_prefix(line: str) -> str:
    stripped = line.strip()
    changed = True
    while changed:
        changed = False
        for prefix in _SYNC_PREFIXES:
            if stripped.lower().startswith(prefix):
                stripped = stripped[len(prefix):].strip()
                changed = True
    return stripped


def parse_sync_error(chunk: str) -> SyncError:
    """Parse one push/pull chunk that mentioned ``error`` or ``fatal``."""
    relevant = [line for line in _lines(chunk)
                if "error" in line.lower() or "fatal" in line.lower()]
    if relevant:
        message = " ".join(_strip_sync_prefix(line) for line in relevant)
    else:
        message = chunk.strip()

    return SyncError(message=message, category=categorize_sync_error(chunk), raw=chunk)


def parse_sync_success(chunk: str) -> SyncSuccess:
    """
    Parse one push/pull chunk that was neither a prompt nor an error.

    Always returns a record; progress noise yields one with no ref updates.
    """
    lowered = chunk.lower()
    updates = []
    for line in _lines(chunk):
        match = _REF_UPDATE.match(line)
        if not match:
            continue
        flag = match.group("label") or (match.group("flag") or "").strip() or None
        updates.append(RefUpdate(
            source=match.group("source"),
            destination=match.group("destination"),
            old=match.group("old"),
            new=match.group("new"),
            flag=flag,
        ))

    return SyncSuccess(
        text=chunk.strip(),
        up_to_date="up-to-date" in lowered or "up to date" in lowered,
        ref_updates=updates,
    )
