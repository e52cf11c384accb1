"""Find the objects that Git has names for.

These are the roots from which names are carried toward ancestors:

  * Refs, as listed by `git for-each-ref`. Annotated tags are listed
    together with the commit that they point to.
  * `HEAD`, which isn't a ref that `for-each-ref` reports.
  * Reflog entries, as listed by `git log --walk-reflogs`. The "ref-log" is a
    recording of the history of a ref; each entry can be named with a
    selector like `HEAD@{2}`.
  * Dangling commits and tags, as reported by `git fsck`. These are objects
    which nothing refers to anymore. They have no name other than their OID.

Each source is scraped from the text output of the corresponding Git
command.
"""
import logging
import re
import subprocess
from dataclasses import dataclass
from typing import List, Optional, Tuple

import pygit2

from . import OidStr, get_git_version, run_git_silent
from .names import Name, NameSource

_REF_FORMAT = "%00".join(
    [
        "%(objectname)",
        "%(objecttype)",
        "%(*objectname)",
        "%(*objecttype)",
        "%(refname)",
        "%(contents:subject)",
    ]
)


@dataclass(frozen=True, eq=True)
class Root:
    """An object which Git has a name for."""

    oid: OidStr
    """The named object."""

    kind: str
    """Either "commit" or "tag"."""

    name: Name
    """The name that Git reports for the object."""

    target: Optional[OidStr] = None
    """For tags, the commit that the tag points to."""

    subject: Optional[str] = None
    """For tags, the first line of the tag message, if known."""


def parse_ref_line(line: str) -> Optional[Root]:
    """Parse one line of `git for-each-ref` output.

    Args:
      line: A line produced with the `_REF_FORMAT` format string.

    Returns:
      The root for the ref, or `None` if the ref doesn't name a commit (or a
      tag pointing to a commit).
    """
    [oid, kind, peeled_oid, peeled_kind, ref_name, subject] = line.split("\0", 5)
    name = Name(name=ref_name, source=NameSource.REF)
    if kind == "commit":
        return Root(oid=oid, kind=kind, name=name)
    elif kind == "tag" and peeled_kind == "commit":
        return Root(
            oid=oid, kind=kind, name=name, target=peeled_oid, subject=subject or None
        )
    else:
        logging.debug(f"Ref {ref_name} points to a {kind}, skipping")
        return None


_REFLOG_LINE_RE = re.compile(
    r"""
    ^
    (?P<oid>[0-9a-f]+)
    [ ]
    (?P<selector>
        .+
        @\{
        (?P<index>[0-9]+)
        \}
    )
    $
    """,
    re.VERBOSE,
)


def parse_reflog_line(line: str) -> Optional[Root]:
    """Parse one line of `git log --walk-reflogs --format='%H %gD'` output.

    Args:
      line: The line to parse, e.g. `<oid> refs/heads/master@{2}`.

    Returns:
      The root for the reflog entry, or `None` for the most recent entry
      (`@{0}`), which names the same commit as the ref itself.
    """
    match = _REFLOG_LINE_RE.match(line)
    assert match is not None, f"Failed to parse reflog line: {line}"
    if int(match.group("index")) == 0:
        return None
    return Root(
        oid=match.group("oid"),
        kind="commit",
        name=Name(name=match.group("selector"), source=NameSource.REFLOG),
    )


_FSCK_LINE_RE = re.compile(
    r"""
    ^
    dangling
    [ ]
    (?P<kind>[a-z]+)
    [ ]
    (?P<oid>[0-9a-f]+)
    $
    """,
    re.VERBOSE,
)


def parse_fsck_line(line: str) -> Optional[Tuple[str, OidStr]]:
    """Parse one line of `git fsck --dangling` output.

    Args:
      line: The line to parse, e.g. `dangling commit <oid>`.

    Returns:
      The object kind and OID for dangling commits and tags, or `None` for
      anything else (dangling blobs and trees, warnings, etc.)
    """
    match = _FSCK_LINE_RE.match(line)
    if match is None:
        return None
    kind = match.group("kind")
    if kind not in ["commit", "tag"]:
        return None
    return (kind, match.group("oid"))


def _lines(output: str) -> List[str]:
    return [line for line in output.splitlines() if line]


def collect_refs(repo: pygit2.Repository, git_executable: str) -> List[Root]:
    """Get a root for each ref in the repository."""
    output = run_git_silent(
        repo=repo,
        git_executable=git_executable,
        args=["for-each-ref", f"--format={_REF_FORMAT}"],
    )
    result = []
    for line in _lines(output):
        root = parse_ref_line(line)
        if root is not None:
            result.append(root)
    return result


def collect_head(repo: pygit2.Repository, git_executable: str) -> List[Root]:
    """Get the root for `HEAD`, or nothing if `HEAD` is an unborn branch."""
    try:
        output = run_git_silent(
            repo=repo,
            git_executable=git_executable,
            args=["rev-parse", "--verify", "--quiet", "HEAD^{commit}"],
        )
    except subprocess.CalledProcessError:
        logging.debug("HEAD does not point to a commit, skipping")
        return []
    return [
        Root(
            oid=output.strip(),
            kind="commit",
            name=Name(name="HEAD", source=NameSource.REF),
        )
    ]


def _has_reflog(repo: pygit2.Repository, git_executable: str, ref_name: str) -> bool:
    try:
        run_git_silent(
            repo=repo,
            git_executable=git_executable,
            args=["reflog", "exists", ref_name],
        )
    except subprocess.CalledProcessError:
        return False
    return True


def list_reflogs(
    repo: pygit2.Repository, git_executable: str, ref_names: List[str]
) -> List[str]:
    """Get the refs among `ref_names` which have a reflog.

    Git 2.44 and newer list every reflog with a single `git reflog list`.
    Older versions are asked about each ref in turn, except for tags: Git
    only keeps reflogs for tags when `core.logAllRefUpdates` is `always`,
    and a repository can have many thousands of them.

    Args:
      repo: The Git repository.
      git_executable: The path to the `git` executable on disk.
      ref_names: The full names of the refs to check.

    Returns:
      The refs which have a reflog, in the order given.
    """
    version = get_git_version(repo=repo, git_executable=git_executable)
    if version >= (2, 44, 0):
        output = run_git_silent(
            repo=repo, git_executable=git_executable, args=["reflog", "list"]
        )
        existing = set(_lines(output))
        return [ref_name for ref_name in ref_names if ref_name in existing]

    return [
        ref_name
        for ref_name in ref_names
        if not ref_name.startswith("refs/tags/")
        and _has_reflog(repo=repo, git_executable=git_executable, ref_name=ref_name)
    ]


def collect_reflogs(
    repo: pygit2.Repository, git_executable: str, ref_names: List[str]
) -> List[Root]:
    """Get a root for each reflog entry of the given refs.

    Args:
      repo: The Git repository.
      git_executable: The path to the `git` executable on disk.
      ref_names: The refs whose reflogs should be read. Refs without a reflog
        are skipped.

    Returns:
      The roots, one per reflog entry (except the most recent entry of each
      reflog).
    """
    result = []
    for ref_name in list_reflogs(
        repo=repo, git_executable=git_executable, ref_names=ref_names
    ):
        try:
            output = run_git_silent(
                repo=repo,
                git_executable=git_executable,
                args=["log", "--walk-reflogs", "--format=%H %gD", ref_name, "--"],
            )
        except subprocess.CalledProcessError:
            # E.g. the reflog is empty, or refers to pruned commits.
            logging.warning(f"Failed to read the reflog for {ref_name}, skipping")
            continue
        for line in _lines(output):
            root = parse_reflog_line(line)
            if root is not None:
                result.append(root)
    return result


def _peel_to_commit(
    repo: pygit2.Repository, git_executable: str, oid: OidStr
) -> Optional[OidStr]:
    try:
        output = run_git_silent(
            repo=repo,
            git_executable=git_executable,
            args=["rev-parse", "--verify", "--quiet", f"{oid}^{{commit}}"],
        )
    except subprocess.CalledProcessError:
        return None
    return output.strip()


def collect_dangling(repo: pygit2.Repository, git_executable: str) -> List[Root]:
    """Get a root for each dangling commit or tag.

    This runs `git fsck`, which may take a while in large repositories.
    """
    output = run_git_silent(
        repo=repo,
        git_executable=git_executable,
        args=["fsck", "--no-progress", "--dangling"],
    )
    result = []
    for line in _lines(output):
        parsed = parse_fsck_line(line)
        if parsed is None:
            continue
        (kind, oid) = parsed
        name = Name(name=oid, source=NameSource.DANGLING)
        if kind == "commit":
            result.append(Root(oid=oid, kind=kind, name=name))
        else:
            target = _peel_to_commit(repo=repo, git_executable=git_executable, oid=oid)
            if target is None:
                logging.warning(f"Dangling tag {oid} does not point to a commit")
                continue
            result.append(Root(oid=oid, kind=kind, name=name, target=target))
    return result


def collect_roots(
    repo: pygit2.Repository,
    git_executable: str,
    include_reflogs: bool,
    include_dangling: bool,
) -> List[Root]:
    """Get every root that names something in the repository.

    Args:
      repo: The Git repository.
      git_executable: The path to the `git` executable on disk.
      include_reflogs: Whether to read the reflogs of `HEAD` and every ref.
      include_dangling: Whether to look for dangling objects with `git fsck`.

    Returns:
      The roots, ordered as refs, `HEAD`, reflog entries, dangling objects.
    """
    refs = collect_refs(repo=repo, git_executable=git_executable)
    head = collect_head(repo=repo, git_executable=git_executable)
    result = refs + head
    if include_reflogs:
        ref_names = ["HEAD"] + [root.name.name for root in refs]
        result += collect_reflogs(
            repo=repo, git_executable=git_executable, ref_names=ref_names
        )
    if include_dangling:
        result += collect_dangling(repo=repo, git_executable=git_executable)
    logging.debug(f"Collected {len(result)} named roots")
    return result
