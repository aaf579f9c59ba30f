"""
annocode - Annotated code block renderer

Renders fenced code blocks into numbered, highlighted and captioned markup
driven by meta directives and [!code ...] line comments.
"""

__version__ = "1.0.0"

from .lib import (
    Pipeline,
    Highlighter,
    DocumentRenderer,
    block_render,
    document_render,
    LOG,
    state_connectToLogger,
)

__all__ = [
    "Pipeline",
    "Highlighter",
    "DocumentRenderer",
    "block_render",
    "document_render",
    "LOG",
    "state_connectToLogger",
    "__version__",
]
