"""Metadata to display for objects in reports.

Each provider renders one piece of information about an object; the pieces
are concatenated with spaces to make a line of the report.
"""
from typing import Callable, List, Optional

import colorama

from .formatting import Glyphs
from .graph import Node
from .names import Name, shorten_name

ObjectMetadataProvider = Callable[[Node], Optional[str]]
"""Interface to display information about an object in a report."""


def render_object_metadata(
    glyphs: Glyphs,
    object_metadata_providers: List[ObjectMetadataProvider],
    node: Node,
) -> str:
    """Get the complete description for a given object.

    Args:
      glyphs: The glyphs to use.
      object_metadata_providers: The providers of the metadata for the
        object. These are displayed in order and concatenated with spaces.
      node: The object to render the metadata for.

    Returns:
      A string of metadata describing the object.
    """
    metadata_list: List[Optional[str]] = [
        provider(node) for provider in object_metadata_providers
    ]
    return " ".join(text for text in metadata_list if text is not None)


def render_name(glyphs: Glyphs, name: Name, short: bool) -> str:
    """Render a name, labelled with its source unless it's a plain ref."""
    text = shorten_name(name.name) if short else name.name
    text = glyphs.color_fg(color=colorama.Fore.GREEN, message=text)
    if name.label:
        text += " " + glyphs.style(style=colorama.Style.DIM, message=name.label)
    return text


class ObjectOidProvider:
    """Display an abbreviated object hash."""

    def __init__(self, glyphs: Glyphs, use_color: bool) -> None:
        self._glyphs = glyphs
        self._use_color = use_color

    def __call__(self, node: Node) -> Optional[str]:
        abbreviated_oid = f"{node.oid:8.8}"
        if self._use_color:
            return self._glyphs.color_fg(
                color=colorama.Fore.YELLOW, message=abbreviated_oid
            )
        else:
            return abbreviated_oid


class ObjectKindProvider:
    """Display whether the object is a commit or a tag."""

    def __init__(self, glyphs: Glyphs) -> None:
        self._glyphs = glyphs

    def __call__(self, node: Node) -> Optional[str]:
        return self._glyphs.style(style=colorama.Style.BRIGHT, message=node.kind)


class BestNameProvider:
    """Display the most useful name of the object."""

    def __init__(self, glyphs: Glyphs, short_names: bool) -> None:
        self._glyphs = glyphs
        self._short_names = short_names

    def __call__(self, node: Node) -> Optional[str]:
        name = node.best_name()
        if name is None:
            return None
        return render_name(glyphs=self._glyphs, name=name, short=self._short_names)


class SubjectProvider:
    """Display the first line of the commit or tag message."""

    def __call__(self, node: Node) -> Optional[str]:
        return node.subject
