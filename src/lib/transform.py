"""
Transform stage interface

Every pipeline stage subclasses Transform and declares, as class attributes,
which hooks it implements, which stages must precede it in each hook and
what line shape it expects. The orchestrator reads these declarations; it
never probes a stage for methods.

Hooks:
    preprocess  (code, context) -> code     before tokenisation, meta writable
    line        (line, index, context)      once per rendered line, index one-based
    pre         (pre, context)              after all lines, on the block wrapper
    root        (root, context)             on the finished fragment
"""

from typing import Any, ClassVar, Dict, FrozenSet, List, Optional, Tuple

from ..models.block import BlockContext
from ..models.directives import DirectiveSpec
from ..models.tree import Element, Root


HOOKS: Tuple[str, ...] = ('preprocess', 'line', 'pre', 'root')

# Line attributes marking content that replaced or removed the source code
EXCLUDED_LINE_PROPS: FrozenSet[str] = frozenset({
    'data-line-message',
    'data-line-page-break',
})


def lineExcluded_is(line: Element, index: int, context: BlockContext) -> bool:
    """Check if a line is a message, page break or removed diff line"""
    if any(line.prop_has(prop) for prop in EXCLUDED_LINE_PROPS):
        return True
    return context.diffRemove_has(index)


def lineShape_check(line: Element) -> Optional[str]:
    """
    Verify the numbered line shape

    Expects exactly three children: the number span, the indentation span
    (at most one child) and the code span.

    Returns:
        None if the shape holds, otherwise a description of the problem
    """
    if len(line.children) != 3:
        return f"expected 3 children, found {len(line.children)}"
    number, indent, code = line.children
    for node, prop in ((number, 'data-line-number'),
                       (indent, 'data-line-code-pre-ws'),
                       (code, 'data-line-code')):
        if not isinstance(node, Element) or prop not in node.properties:
            return f"missing {prop} span"
    if len(indent.children) > 1:
        return f"indentation span has {len(indent.children)} children"
    return None


def lineCode_get(line: Element) -> Element:
    """Get the code span of a numbered line"""
    return line.children[2]


def lineIndent_get(line: Element) -> Element:
    """Get the indentation span of a numbered line"""
    return line.children[1]


class Transform:
    """
    Base class for pipeline stages

    Class attributes:
        name: Stage identifier used in the pipeline order
        hooks: Hooks this stage implements
        requires: Hook -> stage names that must run earlier in that hook
        excludesAnnotated: Skip message, page-break and removed lines at the line hook
        requiresLineShape: Check the numbered line shape before the line hook
    """

    name: ClassVar[str] = ''
    hooks: ClassVar[FrozenSet[str]] = frozenset()
    requires: ClassVar[Dict[str, Tuple[str, ...]]] = {}
    excludesAnnotated: ClassVar[bool] = False
    requiresLineShape: ClassVar[bool] = False

    def directives(self) -> List[DirectiveSpec]:
        """Directives this stage owns"""
        return []

    def registry_bind(self, registry: Any) -> None:
        """Receive the pipeline's directive registry once it is assembled"""
        pass

    def preprocess(self, code: str, context: BlockContext) -> str:
        return code

    def line(self, line: Element, index: int, context: BlockContext) -> None:
        pass

    def pre(self, pre: Element, context: BlockContext) -> None:
        pass

    def root(self, root: Root, context: BlockContext) -> None:
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


def blockCode_get(pre: Element) -> Element:
    """Get the code element inside a pre wrapper"""
    for child in pre.children:
        if isinstance(child, Element) and child.tagName == 'code':
            return child
    raise ValueError("pre element has no code child")
