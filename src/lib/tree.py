"""
Tree utilities for annocode

Traversal, text accounting and offset splitting over the tagged tree, plus
the colour arithmetic used to derive secondary theme colours and the search
helper used by term highlighting.

Splitting is non-destructive: nodes_split() returns two new sibling lists
and never mutates its input, so callers can compute a split, inspect it and
only then commit it back into the tree.
"""

import re
from typing import Callable, Dict, List, Optional, Pattern, Tuple, Union

from ..models.tree import Element, Node, Root, Text


# Visitor signature: (node, parent, sibling index) -> keep walking?
Visitor = Callable[[Node, Optional[Element], int], bool]


def tree_walk(
    node: Node,
    visit: Visitor,
    parent: Optional[Element] = None,
    index: int = 0,
) -> bool:
    """
    Pre-order traversal with early exit

    Args:
        node: Subtree to walk
        visit: Called for every node; returning False stops the walk
        parent: Parent of node (None at the walk's root)
        index: Index of node among its parent's children

    Returns:
        False if a visitor stopped the walk, True otherwise
    """
    if not visit(node, parent, index):
        return False
    if isinstance(node, Element):
        for i, child in enumerate(node.children):
            if not tree_walk(child, visit, node, i):
                return False
    return True


def node_getText(node: Union[Node, Root]) -> str:
    """Concatenate every text leaf under node"""
    if isinstance(node, Text):
        return node.value
    return ''.join(node_getText(child) for child in node.children)


def textLength_get(node: Node) -> int:
    """Count the characters of every text leaf under node"""
    if isinstance(node, Text):
        return len(node.value)
    return sum(textLength_get(child) for child in node.children)


def element_create(
    tagName: str,
    properties: Optional[Dict] = None,
    children: Optional[List[Node]] = None,
) -> Element:
    """Create an element with fresh property and child containers"""
    return Element(
        tagName=tagName,
        properties=dict(properties or {}),
        children=list(children or []),
    )


def element_clone(node: Element, children: Optional[List[Node]] = None) -> Element:
    """
    Shallow clone of an element

    Properties are copied (class lists included) so the clone can be edited
    independently. Children are the given list, or the original child nodes.
    """
    properties = dict(node.properties)
    if isinstance(properties.get('class'), list):
        properties['class'] = list(properties['class'])
    return Element(
        tagName=node.tagName,
        properties=properties,
        children=list(node.children) if children is None else children,
    )


def nodes_split(nodes: List[Node], offset: int) -> Tuple[List[Node], List[Node]]:
    """
    Split a forest of inline nodes at a character offset

    Walks the siblings accumulating text length. Nodes entirely before the
    offset go left, nodes after it go right. A text leaf straddling the
    offset is cut into two leaves; an element straddling it is recreated on
    both sides with its own children split recursively. Zero-length nodes
    sitting exactly at the offset stay on the left.

    Args:
        nodes: Sibling nodes (not modified)
        offset: Character offset into the siblings' concatenated text

    Returns:
        (left, right) with node_getText(left) + node_getText(right) equal to
        the original text and len(text(left)) == min(offset, total length)
    """
    left: List[Node] = []
    right: List[Node] = []
    for node in nodes:
        if offset <= 0:
            right.append(node)
            continue

        length = textLength_get(node)
        if length <= offset:
            left.append(node)
            offset -= length
            continue

        if isinstance(node, Text):
            left.append(Text(node.value[:offset]))
            right.append(Text(node.value[offset:]))
        else:
            childrenLeft, childrenRight = nodes_split(node.children, offset)
            left.append(element_clone(node, childrenLeft))
            right.append(element_clone(node, childrenRight))
        offset = 0
    return left, right


def icon_create(definitions: List[str]) -> Element:
    """
    Build an inline SVG icon wrapped in a message-icon span

    Args:
        definitions: SVG path 'd' strings, drawn in order on a 32x32 viewBox
    """
    svg = element_create('svg', {'viewBox': '0 0 32 32'})
    for definition in definitions:
        svg.children.append(
            element_create('path', {'fill': 'currentColor', 'd': definition})
        )
    return element_create('span', {'data-line-message-icon': ''}, [svg])


_HEX_COLOR = re.compile(r'^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$')


def color_normalize(value: str) -> Optional[str]:
    """
    Normalize a hex colour to lower-case '#rrggbb'

    Accepts 3- and 6-digit forms with or without the leading '#'.

    Returns:
        Normalized colour, or None if value is not a hex colour
    """
    match = _HEX_COLOR.match(value.strip()) if value else None
    if not match:
        return None
    digits = match.group(1).lower()
    if len(digits) == 3:
        digits = ''.join(c * 2 for c in digits)
    return '#' + digits


def rgb_alter(rgb: str, func: Callable[[int], float]) -> str:
    """
    Apply a numeric transform to each channel of a hex colour

    Results are truncated to integers and wrapped into 0..255 (modulo 256),
    so a channel that overflows comes back around instead of corrupting its
    neighbours.

    Args:
        rgb: Colour as '#rgb' or '#rrggbb'
        func: Channel transform, e.g. lambda c: c * 0.9

    Returns:
        Transformed colour as '#rrggbb'

    Raises:
        ValueError: If rgb is not a hex colour

    Example:
        >>> rgb_alter('#102030', lambda c: c * 2)
        '#204060'
    """
    normalized = color_normalize(rgb)
    if normalized is None:
        raise ValueError(f"Not a hex colour: {rgb!r}")
    channels = [int(normalized[i:i + 2], 16) for i in (1, 3, 5)]
    return '#' + ''.join(f"{int(func(c)) % 256:02x}" for c in channels)


def rangesOf_find(text: str, term: Union[str, Pattern]) -> List[Tuple[int, int]]:
    """
    Find every occurrence of a search term

    String terms report overlapping occurrences ('aa' is found twice in
    'aaa'). Regular expressions report their non-overlapping matches;
    empty matches are ignored.

    Returns:
        (start, end) offsets, end exclusive, in text order
    """
    ranges: List[Tuple[int, int]] = []
    if isinstance(term, str):
        if not term:
            return ranges
        start = text.find(term)
        while start >= 0:
            ranges.append((start, start + len(term)))
            start = text.find(term, start + 1)
        return ranges

    for match in term.finditer(text):
        if match.end() > match.start():
            ranges.append((match.start(), match.end()))
    return ranges


def style_parse(style: str) -> List[Tuple[str, str]]:
    """
    Split an inline style string into (property, value) pairs

    Example:
        >>> style_parse('--code-light:#000;--code-dark:#fff;')
        [('--code-light', '#000'), ('--code-dark', '#fff')]
    """
    declarations: List[Tuple[str, str]] = []
    for declaration in style.split(';'):
        if ':' not in declaration:
            continue
        key, value = declaration.split(':', 1)
        declarations.append((key.strip(), value.strip()))
    return declarations


def style_append(element: Element, style: str) -> None:
    """Append declarations to an element's inline style"""
    element.properties['style'] = str(element.properties.get('style', '')) + style
