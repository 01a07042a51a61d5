"""Node model for parsed inline markup.

The transform engine consumes a tree of :class:`MarkupNode` objects produced
by an upstream markup parser: elements (``<strong>``, ``<a href=...>``,
``<br>``), text runs and character references (``&amp;``, ``&#169;``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union


# ---------------------------------------------------------------------------
# Node definitions
# ---------------------------------------------------------------------------

class NodeType(Enum):
    ELEMENT = "element"
    TEXT = "text"
    CHARREF = "charref"


class ReferenceType(Enum):
    NAME = "name"
    DECIMAL = "decimal"
    HEX = "hex"


@dataclass
class MarkupNode:
    type: NodeType
    # Element
    name: str = ""
    attributes: dict[str, str] = field(default_factory=dict)
    # ``None`` marks a void element (br, img)
    children: Optional[list[MarkupNode]] = None
    # Text / character reference
    value: Union[str, int] = ""
    reference_type: Optional[ReferenceType] = None

    @property
    def is_void(self) -> bool:
        return self.type == NodeType.ELEMENT and self.children is None


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

def element(
    tag_name: str,
    children: Optional[list[MarkupNode]] = None,
    /,
    **attributes: str,
) -> MarkupNode:
    """Return an element node; omit *children* for a void element.

    Attribute names that clash with Python keywords can be given with a
    trailing underscore (``class_="big"``).
    """
    attrs = {key.rstrip("_"): value for key, value in attributes.items()}
    return MarkupNode(type=NodeType.ELEMENT, name=tag_name, attributes=attrs, children=children)


def text(value: str) -> MarkupNode:
    """Return a text node."""
    return MarkupNode(type=NodeType.TEXT, value=value)


def charref(
    value: Union[str, int], reference_type: Union[ReferenceType, str] = ReferenceType.NAME
) -> MarkupNode:
    """Return a character reference node.

    *value* is an entity name (``amp``), a decimal code point (``169``) or a
    hexadecimal code point (``a9``) depending on *reference_type*.
    """
    return MarkupNode(
        type=NodeType.CHARREF,
        value=value,
        reference_type=ReferenceType(reference_type),
    )
