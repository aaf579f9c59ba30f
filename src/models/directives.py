"""
Directive specification and metadata models

Defines the structure and categories of meta directives for
validation, documentation generation, and registry management.
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional


class DirectiveCategory(Enum):
    """
    Categories of meta directives

    Used for organization and documentation generation.
    """
    META = "meta"                # meta= (fenced meta block)
    NUMBERING = "numbering"      # start-line=
    HIGHLIGHT = "highlight"      # highlight=
    WHITESPACE = "whitespace"    # tab-size=, flexible-indents=
    FIGURE = "figure"            # title=, dir-level-fade=, add-classes=


DirectiveParser = Callable[[Optional[str]], Any]


@dataclass
class DirectiveSpec:
    """
    Specification for a meta directive

    Attributes:
        name: Canonical directive name (e.g., "start-line")
        category: Category for organization
        description: Human-readable description
        parser: Pure function (raw text or None) -> typed value. Must
                return the directive's default for absent or malformed text.
        aliases: Alternative names for the directive
        examples: Example usage strings
    """
    name: str
    category: DirectiveCategory
    description: str
    parser: DirectiveParser
    aliases: List[str] = field(default_factory=list)
    examples: List[str] = field(default_factory=list)
