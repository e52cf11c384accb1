"""Merge another repository into a subdirectory of this one.

This is the "subtree merge" recipe:

  1. Fetch the other repository as a remote.
  2. Start a merge with its branch, but keep our tree as-is (`-s ours`).
  3. Read its tree into the index and working copy, under the prefix.
  4. Commit the merge.

The history of the other repository is preserved, and later changes to it
can be merged with `git merge -X subtree=<prefix>`.
"""
from typing import List, TextIO

from . import get_git_version, get_repo, run_git


def merge_repo(
    *,
    out: TextIO,
    err: TextIO,
    git_executable: str,
    name: str,
    url: str,
    prefix: str,
    branch: str = "master",
) -> int:
    """Merge the repository at `url` into the directory `prefix`.

    Args:
      out: The output stream to write to.
      err: The error stream to write to.
      git_executable: The path to the `git` executable on disk.
      name: The name of the remote to add for the other repository.
      url: The location of the other repository.
      prefix: The directory, relative to the root of the working copy, to
        put the other repository's files in.
      branch: The branch of the other repository to merge.

    Returns:
      Exit code (0 denotes successful exit).
    """
    prefix = prefix.strip("/")
    if not prefix:
        err.write("githelpers: the prefix must name a subdirectory\n")
        return 1

    repo = get_repo()
    version = get_git_version(repo=repo, git_executable=git_executable)

    remote_branch = f"{name}/{branch}"
    merge_args = ["merge", "-s", "ours", "--no-commit"]
    if version >= (2, 9, 0):
        merge_args.append("--allow-unrelated-histories")

    commands: List[List[str]] = [
        ["remote", "add", "-f", name, url],
        [*merge_args, remote_branch],
        ["read-tree", f"--prefix={prefix}/", "-u", remote_branch],
        ["commit", "-m", f"Merge {remote_branch} into {prefix}/"],
    ]
    for args in commands:
        result = run_git(out=out, err=err, git_executable=git_executable, args=args)
        if result != 0:
            return result
    return 0
