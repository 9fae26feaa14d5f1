#!/usr/bin/env python3
"""
Test Repository operations against real Git repositories.

Each test builds a throwaway repository in a temporary directory and
drives it only through the Repository API, checking the parsed results.
"""

import subprocess
import sys
import tempfile
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from gitty.models import BranchList, CommitSummary, Status
from gitty.repository import Repository


def configure_identity(repo_dir: Path) -> None:
    subprocess.run(["git", "config", "user.name", "Test User"], cwd=repo_dir, capture_output=True, check=True)
    subprocess.run(["git", "config", "user.email", "test@example.com"], cwd=repo_dir, capture_output=True, check=True)


def create_repository(temp_path: Path) -> Repository:
    """Initialise a repository with one commit through the Repository API."""
    repo_dir = temp_path / "project"
    repo_dir.mkdir()
    repository = Repository(repo_dir)
    assert repository.init().success
    repository.refresh_validity()
    configure_identity(repo_dir)

    (repo_dir / "README.md").write_text("# Test Repository\n")
    assert repository.add(["README.md"]).success
    assert repository.commit("Initial commit").success
    return repository


def test_handle_name_path_and_validity():
    print("Testing repository handle")
    print("-" * 40)

    with tempfile.TemporaryDirectory() as temp_dir:
        repo_dir = Path(temp_dir) / "my-project"
        repo_dir.mkdir()

        repository = Repository(str(repo_dir / "sub" / ".."))
        assert repository.name == "my-project"
        assert repository.path == repo_dir.resolve() or repository.path == repo_dir
        assert repository.is_repository is False

        assert repository.init().success
        assert repository.is_repository is False, "init does not refresh validity by itself"
        assert repository.refresh_validity() is True
        assert repository.is_repository is True

    print("  ✓ name derived from the directory")
    print("  ✓ validity refreshed only on request")


def test_commit_log_and_status():
    print("\nTesting commit, log and status")
    print("-" * 40)

    with tempfile.TemporaryDirectory() as temp_dir:
        repository = create_repository(Path(temp_dir))

        status = repository.status()
        assert status.success
        assert isinstance(status.data, Status) and status.data.clean

        (repository.path / "README.md").write_text("# Changed\n")
        (repository.path / "notes.txt").write_text("notes\n")
        (repository.path / "staged.txt").write_text("staged\n")
        assert repository.add(["staged.txt"]).success

        status = repository.status().data
        assert [(e.file, e.status) for e in status.staged] == [("staged.txt", "added")]
        assert [(e.file, e.status) for e in status.not_staged] == [("README.md", "modified")]
        assert status.untracked == ["notes.txt"]

        commit = repository.commit("Add staged file")
        assert commit.success, commit.error
        assert isinstance(commit.data, CommitSummary)
        assert commit.data.message == "Add staged file"
        assert commit.data.files_changed == 1

        log = repository.log()
        assert log.success
        assert [entry.message for entry in log.data] == ["Add staged file", "Initial commit"]
        assert log.data[0].author == "Test User <test@example.com>"
        assert log.data[0].commit.startswith(commit.data.commit)

    print("  ✓ status, commit and log parsed from real output")


def test_commit_with_nothing_staged_reports_error():
    with tempfile.TemporaryDirectory() as temp_dir:
        repository = create_repository(Path(temp_dir))
        result = repository.commit("Nothing here")
        assert not result.success
        assert "nothing" in result.error.lower()
        assert result.data is None


def test_commit_message_mentioning_refusal_phrases_succeeds():
    with tempfile.TemporaryDirectory() as temp_dir:
        repository = create_repository(Path(temp_dir))
        (repository.path / "warning.txt").write_text("fixed\n")
        assert repository.add(["warning.txt"]).success

        result = repository.commit("Fix nothing to commit warning")
        assert result.success
        assert result.data.message == "Fix nothing to commit warning"
        assert len(repository.log().data) == 2


def test_unstage_and_remove():
    print("\nTesting unstage and remove")
    print("-" * 40)

    with tempfile.TemporaryDirectory() as temp_dir:
        repository = create_repository(Path(temp_dir))
        (repository.path / "draft.txt").write_text("draft\n")
        repository.add(["draft.txt"])

        assert repository.unstage(["draft.txt"]).success
        assert repository.status().data.untracked == ["draft.txt"]

        assert repository.remove(["README.md"]).success
        status = repository.status().data
        assert ("README.md", "deleted") in [(e.file, e.status) for e in status.staged]
        assert (repository.path / "README.md").exists(), "rm --cached keeps the file on disk"

    print("  ✓ files moved out of the index")


def test_branches_checkout_merge_and_branch_log():
    print("\nTesting branches, checkout and merge")
    print("-" * 40)

    with tempfile.TemporaryDirectory() as temp_dir:
        repository = create_repository(Path(temp_dir))
        main_branch = repository.branches().data.current

        assert repository.create_branch("feature").success
        branches = repository.branches().data
        assert isinstance(branches, BranchList)
        assert branches.current == main_branch
        assert "feature" in branches.others

        checkout = repository.checkout("feature")
        assert checkout.success
        assert checkout.data.current == "feature"

        (repository.path / "feature.txt").write_text("feature\n")
        repository.add(["feature.txt"])
        assert repository.commit("Add feature").success

        feature_log = repository.branch_log("feature")
        assert feature_log.data[0].message == "Add feature"

        repository.checkout(main_branch)
        assert repository.merge("feature").success
        assert (repository.path / "feature.txt").exists()

        failed = repository.checkout("does-not-exist")
        assert not failed.success
        assert failed.data.current == main_branch

    print("  ✓ branch list follows checkout")
    print("  ✓ merge brings feature commits in")


def test_tags_and_describe():
    with tempfile.TemporaryDirectory() as temp_dir:
        repository = create_repository(Path(temp_dir))

        untagged = repository.describe()
        assert untagged.success
        assert len(untagged.data) >= 7

        assert repository.create_tag("v1.0").success
        assert repository.tags().data == ["v1.0"]
        assert repository.describe().data.startswith("v1.0-0-g")


def test_remote_management():
    print("\nTesting remotes")
    print("-" * 40)

    with tempfile.TemporaryDirectory() as temp_dir:
        repository = create_repository(Path(temp_dir))

        assert repository.remote.list().data == {}
        assert repository.remote.add("origin", "https://example.com/a.git").success
        assert repository.remote.list().data == {"origin": "https://example.com/a.git"}

        assert repository.remote.set_url("origin", "https://example.com/b.git").success
        assert repository.remote.list().data == {"origin": "https://example.com/b.git"}

        duplicate = repository.remote.add("origin", "https://example.com/c.git")
        assert not duplicate.success

        assert repository.remote.remove("origin").success
        assert repository.remote.list().data == {}

    print("  ✓ add, set-url, list and remove")


def test_reset_graph_and_cherry_pick():
    print("\nTesting reset, graph and cherry-pick")
    print("-" * 40)

    with tempfile.TemporaryDirectory() as temp_dir:
        repository = create_repository(Path(temp_dir))
        main_branch = repository.branches().data.current
        first_commit = repository.log().data[0].commit

        repository.create_branch("topic")
        repository.checkout("topic")
        (repository.path / "topic.txt").write_text("topic\n")
        repository.add(["topic.txt"])
        repository.commit("Topic change")
        topic_commit = repository.log().data[0].commit
        repository.checkout(main_branch)

        assert repository.cherry_pick(topic_commit).success
        assert repository.log().data[0].message == "Topic change"

        graph = repository.graph()
        assert graph.success
        assert all(row.commit for row in graph.data)
        assert graph.data[0].message == "Topic change"

        reset = repository.reset(first_commit)
        assert reset.success
        assert [entry.message for entry in reset.data] == ["Initial commit"]

    print("  ✓ cherry-pick applied, reset returned the shortened log")


def test_operations_outside_a_repository_report_errors():
    with tempfile.TemporaryDirectory() as temp_dir:
        repository = Repository(temp_dir)
        assert repository.is_repository is False
        log = repository.log()
        assert not log.success
        assert log.data == []
        assert not repository.status().success


def run_all_tests():
    """Run all repository tests."""
    print("Repository Test Suite")
    print("=" * 50)

    tests = [
        test_handle_name_path_and_validity,
        test_commit_log_and_status,
        test_commit_with_nothing_staged_reports_error,
        test_commit_message_mentioning_refusal_phrases_succeeds,
        test_unstage_and_remove,
        test_branches_checkout_merge_and_branch_log,
        test_tags_and_describe,
        test_remote_management,
        test_reset_graph_and_cherry_pick,
        test_operations_outside_a_repository_report_errors,
    ]

    passed = 0
    failed = 0
    for test in tests:
        try:
            test()
            passed += 1
        except Exception as e:
            failed += 1
            print(f"  ✗ {test.__name__} failed with exception: {e}")

    print("\n" + "=" * 50)
    print(f"Test Results: {passed} passed, {failed} failed")
    return failed == 0


if __name__ == "__main__":
    success = run_all_tests()
    sys.exit(0 if success else 1)
