"""Human-readable names for Git objects.

A name is any string that `git rev-parse` would resolve to the object in
question. We start from names that Git knows about directly (refs, reflog
selectors, dangling object IDs) and derive names for ancestors by appending
the usual revision suffixes:

  * `X~1` is the first parent of `X`, and `X~3` is the first parent of `X~2`.
  * `X^2` is the second parent of `X`.
  * `X^{}` is the object that the tag `X` points to.
"""
import enum
import re
from dataclasses import dataclass
from typing import Iterable, List


class NameSource(enum.IntEnum):
    """Where a name came from.

    The order of the members is the order in which names are displayed, all
    else being equal.
    """

    REF = 0
    REFLOG = 1
    DANGLING = 2


@dataclass(frozen=True, eq=True)
class Name:
    """A name by which an object can be referred to."""

    name: str
    """The revision string, e.g. `refs/heads/master~2`."""

    source: NameSource
    """The kind of root that this name was derived from."""

    distance: int = 0
    """The number of edges walked from the root to reach the named object.

    Names that Git reports directly have a distance of 0.
    """

    @property
    def label(self) -> str:
        """A short annotation for names that aren't plain refs."""
        if self.source == NameSource.REFLOG:
            return "[reflog]"
        elif self.source == NameSource.DANGLING:
            return "[dangling]"
        else:
            return ""


_ANCESTRY_RE = re.compile(
    r"""
    ^
    (?P<base>.+)
    ~
    (?P<count>[0-9]+)
    $
    """,
    re.VERBOSE,
)

_PEELED_SUFFIX = "^{}"


def derive_parent_name(name: str, parent_number: int) -> str:
    """Derive the name of a commit's parent from the commit's name.

    Args:
      name: The name of the child commit.
      parent_number: The 1-based index of the parent, as in `X^N`.

    Returns:
      A revision string naming the parent.
    """
    assert parent_number >= 1, f"Invalid parent number: {parent_number}"
    if name.endswith(_PEELED_SUFFIX):
        # `v1.0^{}~1` works, but `v1.0~1` means the same thing.
        name = name[: -len(_PEELED_SUFFIX)]

    if parent_number != 1:
        return f"{name}^{parent_number}"

    match = _ANCESTRY_RE.match(name)
    if match is None:
        return f"{name}~1"
    else:
        count = int(match.group("count"))
        return f"{match.group('base')}~{count + 1}"


def derive_peeled_name(name: str) -> str:
    """Derive the name of the object that a tag points to."""
    return name + _PEELED_SUFFIX


def sort_names(names: Iterable[Name]) -> List[Name]:
    """Sort names so that the most useful ones come first.

    Closer names come first, then refs before reflog entries before dangling
    objects, then alphabetical order.
    """
    return sorted(names, key=lambda name: (name.distance, name.source, name.name))


_SHORTENED_PREFIXES = ["refs/heads/", "refs/tags/", "refs/remotes/", "refs/"]


def shorten_name(name: str) -> str:
    """Shorten a name for display, like `git for-each-ref %(refname:short)`.

    The shortened name may be ambiguous if e.g. a branch and a tag share the
    same name, which is why full names can be requested instead.

    Args:
      name: The name to shorten.

    Returns:
      The name without its leading `refs/...` namespace.
    """
    for prefix in _SHORTENED_PREFIXES:
        if name.startswith(prefix):
            return name[len(prefix) :]
    return name
