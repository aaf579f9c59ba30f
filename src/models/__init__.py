"""
Models package for annocode

Contains data structures and type definitions for the rendering pipeline.
"""

from .state import ProgramState, pipeline
from .directives import DirectiveSpec, DirectiveCategory
from .tree import Text, Element, Root, Node
from .block import LineAnnotation, HighlightSegment, MetaStore, BlockContext
from .errors import AnnocodeError, PipelineConfigError, MetaStoreFrozenError

__all__ = [
    "ProgramState",
    "pipeline",
    "DirectiveSpec",
    "DirectiveCategory",
    "Text",
    "Element",
    "Root",
    "Node",
    "LineAnnotation",
    "HighlightSegment",
    "MetaStore",
    "BlockContext",
    "AnnocodeError",
    "PipelineConfigError",
    "MetaStoreFrozenError",
]
