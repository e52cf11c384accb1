"""Helpers layered on top of Git's plumbing commands.

# git-find

Git only tells you the name of a commit if you already know where to look.
`git find` answers the opposite question: given a commit (or a tag), which
names does it go by? It looks at:

  * Every ref, including tags, remote-tracking branches and the stash.
  * `HEAD`.
  * The entries of every reflog (`HEAD@{3}`, `master@{1}`, ...).
  * Dangling commits and tags, as reported by `git fsck`.

Names are then carried from those roots toward their ancestors, the same way
you'd spell them by hand: `master~2`, `HEAD@{4}^2`, `v1.0^{}`. The report also
lists the parents and children of the commit, each with its best name.

# git-merge-repo

Merges another repository into a subdirectory of the current one, using the
subtree merge recipe (`merge -s ours` followed by `read-tree --prefix`).

All the real work is done by the `git` executable. We only scrape its output.
"""
import os
import subprocess
from typing import List, Optional, TextIO, Tuple

import pygit2

OidStr = str
"""Represents an object ID in the Git repository, as hex.

We get these from scraping Git's output, so we never hold `pygit2.Oid`
objects. The object pointed to by an OID is not guaranteed to still exist
by the time we use it.
"""


def get_repo() -> pygit2.Repository:
    """Get the git repository associated with the current directory.

    Returns:
      The repository object associated with the current directory.

    Raises:
      RuntimeError: If the repository could not be found.
    """
    repo_path = pygit2.discover_repository(os.getcwd())
    if repo_path is None:
        raise RuntimeError("Failed to discover repository")
    return pygit2.Repository(repo_path)


def run_git(out: TextIO, err: TextIO, git_executable: str, args: List[str]) -> int:
    """Run Git in a subprocess, and inform the user.

    This is suitable for commands which affect the working copy or should run
    hooks. We don't want our process to be responsible for that.

    Args:
      out: The output stream to write to.
      err: The error stream to write to.
      git_executable: The path to the `git` executable on disk.
      args: The list of arguments to pass to Git. Should not include the Git
        executable itself.

    Returns:
      The exit code of Git (non-zero signifies error).
    """
    args = [git_executable, *args]
    out.write(f"githelpers: {' '.join(args)}\n")
    out.flush()
    err.flush()

    result = subprocess.run(args, stdout=out, stderr=err)
    return result.returncode


def run_git_silent(
    repo: pygit2.Repository,
    git_executable: str,
    args: List[str],
    input: Optional[str] = None,
) -> str:
    """Run Git silently (don't display output to the user).

    Args:
      repo: The Git repository.
      git_executable: The path to the `git` executable on disk.
      args: The command-line args to pass to Git. The `git` executable will
        be prepended to this list automatically.
      input: Text to feed to the command's standard input, if any.

    Raises:
      subprocess.CalledProcessError: if the command failed.

    Result:
      The output from the command.
    """
    result = subprocess.run(
        [git_executable, "-C", repo.path, *args],
        input=input.encode() if input is not None else None,
        stdout=subprocess.PIPE,
        stderr=subprocess.DEVNULL,
        check=True,
    )
    return result.stdout.decode()


GitVersion = Tuple[int, int, int]
"""Version string produced by Git.

This tuple is in the form (major, minor, patch). You can do a version test by
using `<` on another version tuple.
"""


def parse_git_version_output(output: str) -> GitVersion:
    """Parse the `git version` output.

    Args:
      output: The output returned by `git version`.

    Returns:
      The parsed Git version.
    """
    [_git, _version, version_str, *_rest] = output.split(" ")
    [major, minor, patch, *_rest] = version_str.split(".")
    return (int(major), int(minor), int(patch))


def get_config_bool(repo: pygit2.Repository, name: str, default: bool) -> bool:
    """Look up a boolean under the `githelpers` section of the Git config.

    Args:
      repo: The Git repository.
      name: The name of the key, without the `githelpers.` prefix (e.g.
        `find.dangling`).
      default: The value to use if the key is not set.

    Returns:
      The configured value, or `default`.
    """
    name = f"githelpers.{name}"
    try:
        return repo.config.get_bool(name)
    except KeyError:
        return default


def get_git_version(repo: pygit2.Repository, git_executable: str) -> GitVersion:
    """Get the version of the `git` executable.

    Args:
      repo: The Git repository.
      git_executable: The path to the `git` executable on disk.

    Returns:
      The parsed Git version.
    """
    version_str = run_git_silent(
        repo=repo, git_executable=git_executable, args=["version"]
    ).strip()
    return parse_git_version_output(version_str)
