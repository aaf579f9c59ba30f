"""
annocode - Annotated code block renderer

Directive-driven transforms over Pygments-highlighted code.
"""

__version__ = "1.0.0"

from .log import LOG, state_connectToLogger
from .directives import DirectiveRegistry, MetaTransform
from .transform import Transform
from .pipeline import Pipeline, DEFAULT_ORDER
from .highlighter import Highlighter
from .html import tree_toHtml
from .document import DocumentRenderer, block_render, document_render

__all__ = [
    "LOG",
    "state_connectToLogger",
    "DirectiveRegistry",
    "MetaTransform",
    "Transform",
    "Pipeline",
    "DEFAULT_ORDER",
    "Highlighter",
    "tree_toHtml",
    "DocumentRenderer",
    "block_render",
    "document_render",
    "__version__",
]
