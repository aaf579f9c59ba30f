"""
Line numbering

Builds the numbering map at preprocess and gives every rendered line the
three-child shape later stages rely on:

    span[data-line]
     ├── span[data-line-number]        display number, or ' ' when unnumbered
     ├── span[data-line-code-pre-ws]   leading spaces/tabs (at most one child)
     └── span[data-line-code]          the rest of the line
"""

import re
from typing import Dict, List, Optional

from ..config import appsettings
from ..models.block import BlockContext
from ..models.directives import DirectiveSpec, DirectiveCategory
from ..models.tree import Element, Node, Text
from .directives import intMeta_parse
from .log import LOG
from .transform import Transform, blockCode_get
from .tree import element_create, node_getText, nodes_split, rgb_alter, style_append, style_parse


_LEADING_WS = re.compile(r'^[ \t]*')


def numbering_build(lineCount: int, startLine: int, context: BlockContext) -> Dict[int, Optional[int]]:
    """
    Compute the display number of each line

    Message, removed-diff and skip-line lines are unnumbered and leave the
    counter alone. A jump line is unnumbered and resets the counter to its
    target. Every other line takes the counter, which then advances.

    Args:
        lineCount: Number of source lines
        startLine: Number of the first counted line
        context: Block context holding the claimed annotations

    Returns:
        One-based line index -> display number (None: unnumbered)

    Example:
        With startLine=5 and no annotations, 3 lines map to {1: 5, 2: 6, 3: 7}.
    """
    numbering: Dict[int, Optional[int]] = {}
    counter = startLine
    for index in range(1, lineCount + 1):
        if (index in context.messages
                or context.diffRemove_has(index)
                or index in context.skiplines):
            numbering[index] = None
        elif index in context.jumps:
            numbering[index] = None
            counter = context.jumps[index]
        else:
            numbering[index] = counter
            counter += 1
    return numbering


def indentSpan_make(nodes: List[Node], prefix: str) -> Element:
    """Wrap the split-off indentation as a single child"""
    indent = element_create('span', {'data-line-code-pre-ws': ''})
    if not prefix:
        return indent
    if len(nodes) == 1 and isinstance(nodes[0], Element):
        indent.children = nodes
    else:
        indent.children = [element_create('span', {}, [Text(prefix)])]
    return indent


class LineNumberTransform(Transform):
    """Numbers lines and splits them into number, indentation and code spans"""

    name = 'line-numbers'
    hooks = frozenset({'preprocess', 'line', 'pre'})
    requires = {
        'preprocess': ('meta', 'comments'),
    }

    def directives(self) -> List[DirectiveSpec]:
        def startLine_parse(raw: Optional[str]) -> int:
            default = appsettings.default_start_line
            return intMeta_parse(raw, default=default, name='start-line')

        return [
            DirectiveSpec(
                name='start-line',
                category=DirectiveCategory.NUMBERING,
                description='Display number of the first line',
                parser=startLine_parse,
                examples=['start-line=40'],
            ),
        ]

    def preprocess(self, code: str, context: BlockContext) -> str:
        lineCount = len(code.split('\n'))
        context.numbering = numbering_build(
            lineCount, context.meta.get('start-line'), context
        )
        return code

    def line(self, line: Element, index: int, context: BlockContext) -> None:
        number = context.numbering.get(index)

        text = node_getText(line)
        prefix = _LEADING_WS.match(text).group(0)
        indentNodes, codeNodes = nodes_split(line.children, len(prefix))

        line.children = [
            element_create('span', {'data-line-number': ''},
                           [Text(' ' if number is None else str(number))]),
            indentSpan_make(indentNodes, prefix),
            element_create('span', {'data-line-code': ''}, codeNodes),
        ]
        line.properties['data-line'] = ''

    def pre(self, pre: Element, context: BlockContext) -> None:
        code = blockCode_get(pre)
        numbers = [n for n in context.numbering.values() if n is not None]
        digits = max((len(str(n)) for n in numbers), default=1)
        code.properties['data-line-number-max-digits'] = digits

        styles = []
        for key, value in style_parse(str(pre.properties.get('style', ''))):
            if key == '--code-light':
                styles.append(f"--code-lineno-light:{rgb_alter(value, lambda c: c * 5)};")
            elif key == '--code-dark':
                styles.append(f"--code-lineno-dark:{rgb_alter(value, lambda c: c * 0.5)};")
        style_append(code, ''.join(styles))
        LOG(f"Numbered {len(numbers)} of {len(context.numbering)} lines, "
            f"{digits} digit(s)", level=3)
