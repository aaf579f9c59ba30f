"""
Whitespace tokens

Splits the indentation and code spans of each numbered line into single
space and tab tokens so a stylesheet can draw them, and marks roughly the
first half of the indentation as flexible for narrow layouts.
"""

import math
import re
from dataclasses import dataclass
from typing import List, Optional

from ..config import appsettings
from ..models.block import BlockContext
from ..models.directives import DirectiveSpec, DirectiveCategory
from ..models.tree import Element, Node, Text
from .directives import boolMeta_parse, intMeta_parse
from .transform import Transform, blockCode_get, lineCode_get, lineIndent_get
from .tree import element_clone, style_append, tree_walk


WHITESPACE_PROPS = {
    ' ': 'data-line-space',
    '\t': 'data-line-tab',
}

_WS_SPLIT = re.compile(r'([ \t])')


@dataclass
class NodeEdit:
    """Replace parent.children[index] by replacement"""
    parent: Element
    index: int
    replacement: List[Node]


def token_is(node: Node) -> bool:
    """Check if node is an already split space or tab token"""
    if not isinstance(node, Element) or len(node.children) != 1:
        return False
    child = node.children[0]
    return (isinstance(child, Text)
            and child.value in WHITESPACE_PROPS
            and WHITESPACE_PROPS[child.value] in node.properties)


def tokens_make(node: Element, text: str, tabSize: int) -> List[Node]:
    """Clone node once per whitespace character and per run of other text"""
    parts: List[Node] = []
    for part in _WS_SPLIT.split(text):
        if not part:
            continue
        clone = element_clone(node, [Text(part)])
        prop = WHITESPACE_PROPS.get(part)
        if prop is not None:
            clone.properties.pop('style', None)
            clone.properties[prop] = ''
            if part == '\t':
                clone.properties['style'] = f"tab-size: {tabSize};"
        parts.append(clone)
    return parts


def edits_collect(span: Element, tabSize: int) -> List[NodeEdit]:
    """
    Read-only pass: find every single-text element to split

    Edits are returned in document order; none of them is applied.
    """
    edits: List[NodeEdit] = []

    def visit(node: Node, parent: Optional[Element], index: int) -> bool:
        if parent is None or not isinstance(node, Element):
            return True
        if len(node.children) != 1 or not isinstance(node.children[0], Text):
            return True
        if token_is(node):
            return True
        text = node.children[0].value
        if not _WS_SPLIT.search(text):
            return True
        edits.append(NodeEdit(parent, index, tokens_make(node, text, tabSize)))
        return True

    tree_walk(span, visit)
    return edits


def edits_apply(edits: List[NodeEdit]) -> None:
    """Apply edits back to front so earlier indices stay valid"""
    for edit in reversed(edits):
        edit.parent.children[edit.index:edit.index + 1] = edit.replacement


def indent_flex(indent: Element) -> int:
    """
    Mark the first ceil(n / 2) whitespace tokens of the indentation

    Returns:
        Number of tokens marked
    """
    tokens: List[Element] = []

    def visit(node: Node, parent: Optional[Element], index: int) -> bool:
        if token_is(node):
            tokens.append(node)
        return True

    tree_walk(indent, visit)
    count = math.ceil(len(tokens) / 2)
    for token in tokens[:count]:
        token.properties['data-line-flexible-ws'] = ''
    return count


class WhitespaceTransform(Transform):
    """Splits spaces and tabs into individually styled tokens"""

    name = 'whitespace'
    hooks = frozenset({'line', 'pre'})
    requires = {
        'line': ('line-numbers', 'comments', 'highlight'),
    }
    excludesAnnotated = True
    requiresLineShape = True

    def directives(self) -> List[DirectiveSpec]:
        def tabSize_parse(raw: Optional[str]) -> int:
            default = appsettings.default_tab_size
            return intMeta_parse(raw, default=default, minimum=1, name='tab-size')

        def flexibleIndents_parse(raw: Optional[str]) -> bool:
            return boolMeta_parse(raw, appsettings.flexible_indents, name='flexible-indents')

        return [
            DirectiveSpec(
                name='tab-size',
                category=DirectiveCategory.WHITESPACE,
                description='Width of a tab character, in columns',
                parser=tabSize_parse,
                examples=['tab-size=2'],
            ),
            DirectiveSpec(
                name='flexible-indents',
                category=DirectiveCategory.WHITESPACE,
                description='Let the first half of each indentation shrink on narrow screens',
                parser=flexibleIndents_parse,
                examples=['flexible-indents=false'],
            ),
        ]

    def line(self, line: Element, index: int, context: BlockContext) -> None:
        tabSize = context.meta.get('tab-size')
        indent = lineIndent_get(line)
        code = lineCode_get(line)

        edits = edits_collect(indent, tabSize) + edits_collect(code, tabSize)
        edits_apply(edits)

        if context.meta.get('flexible-indents'):
            indent_flex(indent)

    def pre(self, pre: Element, context: BlockContext) -> None:
        tabSize = context.meta.get('tab-size')
        style_append(blockCode_get(pre), f"--code-line-code-indent: {tabSize}ch;")
