"""Report every name, parent and child of a commit or tag."""
import logging
import subprocess
from typing import Dict, List, Optional, Set, TextIO, Tuple

import pygit2

from . import OidStr, get_config_bool, get_repo, run_git_silent
from .formatting import Glyphs, make_glyphs, pluralize
from .graph import ObjectGraph, make_graph, propagate_names
from .metadata import (
    BestNameProvider,
    ObjectKindProvider,
    ObjectOidProvider,
    SubjectProvider,
    render_name,
    render_object_metadata,
)
from .names import sort_names
from .refs import collect_roots


def _resolve_revision(
    repo: pygit2.Repository, git_executable: str, revision: str
) -> Optional[Tuple[OidStr, str]]:
    """Get the OID and object type that `revision` refers to, if any."""
    try:
        oid = run_git_silent(
            repo=repo,
            git_executable=git_executable,
            args=["rev-parse", "--verify", "--quiet", revision],
        ).strip()
    except subprocess.CalledProcessError:
        return None
    kind = run_git_silent(
        repo=repo, git_executable=git_executable, args=["cat-file", "-t", oid]
    ).strip()
    return (oid, kind)


def _parse_tag_subject(tag_contents: str) -> Optional[str]:
    # The message follows the first blank line; its subject is the first
    # paragraph, joined into one line.
    [_headers, _sep, message] = tag_contents.partition("\n\n")
    paragraph = message.split("\n\n", 1)[0]
    subject = " ".join(line.strip() for line in paragraph.splitlines()).strip()
    return subject or None


def _load_subjects(
    repo: pygit2.Repository, git_executable: str, graph: ObjectGraph, oids: List[OidStr]
) -> None:
    oids = [
        oid
        for oid in dict.fromkeys(oids)
        if oid in graph and graph[oid].subject is None
    ]

    tag_oids = [oid for oid in oids if graph[oid].kind == "tag"]
    for oid in tag_oids:
        tag_contents = run_git_silent(
            repo=repo, git_executable=git_executable, args=["cat-file", "tag", oid]
        )
        graph[oid].subject = _parse_tag_subject(tag_contents)

    commit_oids = [oid for oid in oids if graph[oid].kind == "commit"]
    if not commit_oids:
        return
    output = run_git_silent(
        repo=repo,
        git_executable=git_executable,
        args=["log", "--no-walk=unsorted", "--format=%H%x00%s", *commit_oids, "--"],
    )
    subjects: Dict[OidStr, str] = {}
    for line in output.splitlines():
        if line:
            [oid, subject] = line.split("\0", 1)
            subjects[oid] = subject
    for oid in commit_oids:
        graph[oid].subject = subjects.get(oid)


def _write_neighbors(
    out: TextIO,
    glyphs: Glyphs,
    graph: ObjectGraph,
    title: str,
    oids: List[OidStr],
    short_names: bool,
) -> None:
    if not oids:
        out.write(f"  {title}: {glyphs.none}\n")
        return

    out.write(f"  {title}:\n")
    providers = [
        ObjectOidProvider(glyphs=glyphs, use_color=True),
        BestNameProvider(glyphs=glyphs, short_names=short_names),
        SubjectProvider(),
    ]
    for oid in oids:
        text = render_object_metadata(
            glyphs=glyphs, object_metadata_providers=providers, node=graph[oid]
        )
        out.write(f"    {glyphs.bullet_point} {text}\n")


def _write_report(
    out: TextIO,
    glyphs: Glyphs,
    graph: ObjectGraph,
    oid: OidStr,
    reachable: bool,
    short_names: bool,
) -> None:
    node = graph[oid]
    header = render_object_metadata(
        glyphs=glyphs,
        object_metadata_providers=[
            ObjectKindProvider(glyphs=glyphs),
            ObjectOidProvider(glyphs=glyphs, use_color=True),
            SubjectProvider(),
        ],
        node=node,
    )
    out.write(f"{header}\n")

    if not reachable:
        out.write("  not reachable from any ref, reflog or dangling commit\n")
        return

    names = sort_names(node.names)
    if names:
        out.write("  names:\n")
        for name in names:
            rendered = render_name(glyphs=glyphs, name=name, short=short_names)
            out.write(f"    {glyphs.bullet_point} {rendered}\n")
    else:
        out.write(f"  names: {glyphs.none}\n")

    _write_neighbors(
        out=out,
        glyphs=glyphs,
        graph=graph,
        title="parents",
        oids=node.parents,
        short_names=short_names,
    )
    _write_neighbors(
        out=out,
        glyphs=glyphs,
        graph=graph,
        title="children",
        oids=node.children,
        short_names=short_names,
    )


def find(
    *,
    out: TextIO,
    err: TextIO,
    git_executable: str,
    revisions: List[str],
    include_reflogs: Optional[bool] = None,
    include_dangling: Optional[bool] = None,
    full_names: Optional[bool] = None,
) -> int:
    """Find every name, parent and child of the given commits or tags.

    Args:
      out: The output stream to write to.
      err: The error stream to write to.
      git_executable: The path to the `git` executable on disk.
      revisions: The commits or tags to report on, in any form accepted by
        `git rev-parse`.
      include_reflogs: Whether to name objects after reflog entries. If
        `None`, use the `githelpers.find.reflogs` config (default true).
      include_dangling: Whether to name objects after dangling commits and
        tags. If `None`, use the `githelpers.find.dangling` config (default
        true).
      full_names: Whether to display names like `refs/heads/master` rather
        than `master`. If `None`, use the opposite of the
        `githelpers.find.shortNames` config (default true).

    Returns:
      Exit code (0 denotes successful exit).
    """
    glyphs = make_glyphs(out)
    repo = get_repo()
    if include_reflogs is None:
        include_reflogs = get_config_bool(repo, "find.reflogs", default=True)
    if include_dangling is None:
        include_dangling = get_config_bool(repo, "find.dangling", default=True)
    if full_names is None:
        short_names = get_config_bool(repo, "find.shortNames", default=True)
    else:
        short_names = not full_names

    exit_code = 0
    targets: List[Tuple[OidStr, str]] = []
    for revision in revisions:
        resolved = _resolve_revision(
            repo=repo, git_executable=git_executable, revision=revision
        )
        if resolved is None:
            err.write(f"githelpers: unknown revision: {revision}\n")
            exit_code = 1
        elif resolved[1] not in ("commit", "tag"):
            err.write(f"githelpers: not a commit or tag: {revision}\n")
            exit_code = 1
        else:
            targets.append(resolved)
    if not targets:
        return exit_code
    target_oids = [oid for (oid, _kind) in targets]

    roots = collect_roots(
        repo=repo,
        git_executable=git_executable,
        include_reflogs=include_reflogs,
        include_dangling=include_dangling,
    )
    graph = make_graph(repo=repo, git_executable=git_executable, roots=roots)
    propagate_names(graph=graph, targets=target_oids)

    # Unreachable targets get a node of their own, only so that their header
    # can be rendered like any other.
    unreachable_oids: Set[OidStr] = set()
    for (oid, kind) in targets:
        if oid not in graph:
            graph.add_object(oid, kind=kind)
            unreachable_oids.add(oid)

    displayed_oids = []
    for oid in target_oids:
        displayed_oids.append(oid)
        displayed_oids.extend(graph[oid].parents)
        displayed_oids.extend(graph[oid].children)
    _load_subjects(
        repo=repo, git_executable=git_executable, graph=graph, oids=displayed_oids
    )

    for i, oid in enumerate(target_oids):
        if i > 0:
            out.write("\n")
        _write_report(
            out=out,
            glyphs=glyphs,
            graph=graph,
            oid=oid,
            reachable=oid not in unreachable_oids,
            short_names=short_names,
        )
        logging.debug(f"{oid} has {pluralize(len(graph[oid].names), 'name', 'names')}")
    return exit_code
