import logging
import subprocess
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional
from unittest.mock import patch

import pytest

import githelpers.refs
from githelpers import GitVersion
from githelpers.names import Name, NameSource
from githelpers.refs import (
    Root,
    collect_reflogs,
    list_reflogs,
    parse_fsck_line,
    parse_ref_line,
    parse_reflog_line,
)

COMMIT_OID = "62fc20d2a290daea0d52bdc2ed2ad4be6491010e"
TAG_OID = "96d1c37a3d4363611c49f7e52186e189a04c531f"


def test_parse_ref_line_commit() -> None:
    line = "\0".join([COMMIT_OID, "commit", "", "", "refs/heads/master", "create a"])
    assert parse_ref_line(line) == Root(
        oid=COMMIT_OID,
        kind="commit",
        name=Name(name="refs/heads/master", source=NameSource.REF),
    )


def test_parse_ref_line_annotated_tag() -> None:
    line = "\0".join(
        [TAG_OID, "tag", COMMIT_OID, "commit", "refs/tags/v1.0", "release 1.0"]
    )
    assert parse_ref_line(line) == Root(
        oid=TAG_OID,
        kind="tag",
        name=Name(name="refs/tags/v1.0", source=NameSource.REF),
        target=COMMIT_OID,
        subject="release 1.0",
    )


def test_parse_ref_line_skips_non_commits() -> None:
    tree_line = "\0".join([TAG_OID, "tree", "", "", "refs/trees/foo", ""])
    assert parse_ref_line(tree_line) is None

    blob_tag_line = "\0".join([TAG_OID, "tag", COMMIT_OID, "blob", "refs/tags/key", ""])
    assert parse_ref_line(blob_tag_line) is None


def test_parse_reflog_line() -> None:
    assert parse_reflog_line(f"{COMMIT_OID} refs/heads/master@{{2}}") == Root(
        oid=COMMIT_OID,
        kind="commit",
        name=Name(name="refs/heads/master@{2}", source=NameSource.REFLOG),
    )
    assert parse_reflog_line(f"{COMMIT_OID} HEAD@{{12}}") == Root(
        oid=COMMIT_OID,
        kind="commit",
        name=Name(name="HEAD@{12}", source=NameSource.REFLOG),
    )


def test_parse_reflog_line_skips_latest_entry() -> None:
    assert parse_reflog_line(f"{COMMIT_OID} HEAD@{{0}}") is None


def test_parse_fsck_line() -> None:
    assert parse_fsck_line(f"dangling commit {COMMIT_OID}") == ("commit", COMMIT_OID)
    assert parse_fsck_line(f"dangling tag {TAG_OID}") == ("tag", TAG_OID)
    assert parse_fsck_line(f"dangling blob {TAG_OID}") is None
    assert parse_fsck_line(f"dangling tree {TAG_OID}") is None
    assert parse_fsck_line("Checking object directories") is None


class FakeGit:
    """Answers `run_git_silent` calls from a table of canned outputs.

    A missing entry means that the command fails.
    """

    def __init__(self, outputs: Dict[str, str]) -> None:
        self.outputs = outputs
        self.calls: List[str] = []

    def __call__(
        self,
        repo: object,
        git_executable: str,
        args: List[str],
        input: Optional[str] = None,
    ) -> str:
        command = " ".join(args)
        self.calls.append(command)
        if command not in self.outputs:
            raise subprocess.CalledProcessError(128, [git_executable, *args])
        return self.outputs[command]


@contextmanager
def mock_git(fake_git: FakeGit, version: GitVersion) -> Iterator[None]:
    with patch.object(githelpers.refs, "run_git_silent", fake_git), patch.object(
        githelpers.refs, "get_git_version", return_value=version
    ):
        yield


REF_NAMES = ["HEAD", "refs/heads/master", "refs/tags/v1.0"]


def test_list_reflogs_in_one_command() -> None:
    fake_git = FakeGit({"reflog list": "HEAD\nrefs/heads/master\nrefs/stash\n"})
    with mock_git(fake_git, version=(2, 44, 0)):
        assert list_reflogs(repo=None, git_executable="git", ref_names=REF_NAMES) == [
            "HEAD",
            "refs/heads/master",
        ]
    assert fake_git.calls == ["reflog list"]


def test_list_reflogs_skips_tags_on_old_git() -> None:
    fake_git = FakeGit({"reflog exists HEAD": ""})
    with mock_git(fake_git, version=(2, 30, 1)):
        assert list_reflogs(repo=None, git_executable="git", ref_names=REF_NAMES) == [
            "HEAD"
        ]
    assert fake_git.calls == [
        "reflog exists HEAD",
        "reflog exists refs/heads/master",
    ]


def test_collect_reflogs_skips_unreadable_reflog(
    caplog: pytest.LogCaptureFixture,
) -> None:
    fake_git = FakeGit(
        {
            "reflog list": "HEAD\nrefs/heads/master\n",
            "log --walk-reflogs --format=%H %gD refs/heads/master --": (
                f"{TAG_OID} refs/heads/master@{{0}}\n"
                f"{COMMIT_OID} refs/heads/master@{{1}}\n"
            ),
        }
    )
    with mock_git(fake_git, version=(2, 44, 0)), caplog.at_level(logging.WARNING):
        roots = collect_reflogs(repo=None, git_executable="git", ref_names=REF_NAMES)
    assert roots == [
        Root(
            oid=COMMIT_OID,
            kind="commit",
            name=Name(name="refs/heads/master@{1}", source=NameSource.REFLOG),
        )
    ]
    assert "Failed to read the reflog for HEAD, skipping" in caplog.text
