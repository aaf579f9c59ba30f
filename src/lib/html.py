"""
HTML serializer for the tagged tree
"""

from html import escape
from typing import Any, List, Union

from ..models.tree import Element, Node, Root, Text


VOID_ELEMENTS = {
    'area', 'base', 'br', 'col', 'embed', 'hr', 'img', 'input',
    'link', 'meta', 'source', 'track', 'wbr',
}


def attribute_render(name: str, value: Any) -> str:
    """Render one attribute; class lists are joined with spaces"""
    if isinstance(value, (list, tuple)):
        value = ' '.join(str(v) for v in value)
    return f'{name}="{escape(str(value), quote=True)}"'


def node_render(node: Union[Node, Root]) -> str:
    """Serialize a node and its subtree to HTML"""
    if isinstance(node, Text):
        return escape(node.value, quote=False)
    if isinstance(node, Root):
        return nodes_render(node.children)

    parts: List[str] = [node.tagName]
    parts.extend(attribute_render(name, value) for name, value in node.properties.items())
    opening = '<' + ' '.join(parts) + '>'
    if node.tagName in VOID_ELEMENTS:
        return opening
    return f"{opening}{nodes_render(node.children)}</{node.tagName}>"


def nodes_render(nodes: List[Node]) -> str:
    return ''.join(node_render(node) for node in nodes)


def tree_toHtml(root: Root) -> str:
    """Serialize a rendered block"""
    return node_render(root)
