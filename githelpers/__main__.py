"""Main entry-point."""
import argparse
import logging
import os
import sys
from typing import List, TextIO

from .find import find
from .merge_repo import merge_repo


def main(argv: List[str], *, out: TextIO, err: TextIO, git_executable: str) -> int:
    """Run the provided sub-command.

    Args:
      argv: List of command-line arguments (e.g. from `sys.argv`).
      out: Output stream to write to (may be a TTY).
      err: Error stream to write to.
      git_executable: The path to the `git` executable on disk.

    Returns:
      Exit code (0 denotes successful exit).
    """
    parser = argparse.ArgumentParser(prog="githelpers", add_help=False)
    parser.add_argument(
        "-h", "--help", action="store_true", help="show this help message and exit"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Show debug logging."
    )
    subparsers = parser.add_subparsers(
        dest="subcommand",
    )

    find_parser = subparsers.add_parser(
        "find", help="Find every name, parent and child of a commit or tag."
    )
    find_parser.add_argument(
        "revisions", type=str, help="The commits or tags to look up.", nargs="+"
    )
    find_parser.add_argument(
        "--no-reflogs",
        dest="include_reflogs",
        action="store_const",
        const=False,
        help="Don't name commits after reflog entries.",
    )
    find_parser.add_argument(
        "--no-dangling",
        dest="include_dangling",
        action="store_const",
        const=False,
        help="Don't look for dangling commits and tags (skips `git fsck`).",
    )
    find_parser.add_argument(
        "--full-names",
        action="store_const",
        const=True,
        help="Display full ref names, such as `refs/heads/master`.",
    )

    merge_repo_parser = subparsers.add_parser(
        "merge-repo", help="Merge another repository into a subdirectory."
    )
    merge_repo_parser.add_argument(
        "name", type=str, help="The name of the remote to add."
    )
    merge_repo_parser.add_argument(
        "url", type=str, help="The location of the repository to merge."
    )
    merge_repo_parser.add_argument(
        "prefix", type=str, help="The subdirectory to merge the repository into."
    )
    merge_repo_parser.add_argument(
        "-b",
        "--branch",
        type=str,
        default="master",
        help="The branch of the repository to merge (default: master).",
    )

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    if args.help:
        parser.print_help(file=out)
        return 0
    elif args.subcommand == "find":
        return find(
            out=out,
            err=err,
            git_executable=git_executable,
            revisions=args.revisions,
            include_reflogs=args.include_reflogs,
            include_dangling=args.include_dangling,
            full_names=args.full_names,
        )
    elif args.subcommand == "merge-repo":
        return merge_repo(
            out=out,
            err=err,
            git_executable=git_executable,
            name=args.name,
            url=args.url,
            prefix=args.prefix,
            branch=args.branch,
        )
    else:
        parser.print_usage(file=out)
        return 1


def _run(argv: List[str]) -> None:
    # `PATH_TO_GIT` set in testing.
    git_executable = os.environ.get("PATH_TO_GIT", "git")

    sys.exit(main(argv, out=sys.stdout, err=sys.stderr, git_executable=git_executable))


def entry_point() -> None:
    _run(sys.argv[1:])


def find_entry_point() -> None:
    """Entry point for the `git-find` executable."""
    _run(["find", *sys.argv[1:]])


def merge_repo_entry_point() -> None:
    """Entry point for the `git-merge-repo` executable."""
    _run(["merge-repo", *sys.argv[1:]])


if __name__ == "__main__":
    entry_point()
