"""
Per-block data models

Everything a single code block's pipeline run owns: the meta store, the
annotation table read from [!code ...] comments, the derived per-line maps,
and the highlight segments. One BlockContext is created per block and is
dropped with it; nothing here is shared across blocks.
"""

import re
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple

from .errors import MetaStoreFrozenError


@dataclass(frozen=True)
class LineAnnotation:
    """
    Trailing directive comment found on one source line

    Attributes:
        keyword: Lower-cased keyword inside [!code ...] (e.g., "++", "warning", "jump 40")
        message: Free text following the closing bracket
        commentOffset: Character offset where the comment starts in the raw line

    Example:
        For the line 'x = 1  # [!code warning] careful':
        LineAnnotation(keyword="warning", message="careful", commentOffset=7)
    """
    keyword: str
    message: str
    commentOffset: int


@dataclass
class HighlightSegment:
    """
    One segment of the highlight directive

    Integer fields use None for "absent"; zero is a real value (first line
    character, first occurrence).

    Attributes:
        startLine: First displayed line number
        endLine: Last displayed line number (None: same as startLine)
        startChar: First character offset in the line's code text
        endChar: Character offset one past the last highlighted character
        termStr: Literal search term
        termRegexp: Compiled regular expression search term
        startMatch: First occurrence to use (zero-based)
        endMatch: Occurrence index one past the last one to use
        dataId: Optional identifier copied to data-highlighted[-line]-id
    """
    startLine: int
    endLine: Optional[int] = None
    startChar: Optional[int] = None
    endChar: Optional[int] = None
    termStr: Optional[str] = None
    termRegexp: Optional[re.Pattern] = None
    startMatch: Optional[int] = None
    endMatch: Optional[int] = None
    dataId: Optional[str] = None

    def term_has(self) -> bool:
        """Check if this segment names a search term instead of char bounds"""
        return self.termStr is not None or self.termRegexp is not None

    def lastLine_get(self) -> int:
        """Get the last line this segment touches"""
        return self.startLine if self.endLine is None else self.endLine

    def chars_set(self, startChar: int, endChar: int) -> 'HighlightSegment':
        """Create a concrete char-range copy of this segment"""
        return replace(self, startChar=startChar, endChar=endChar,
                       termStr=None, termRegexp=None,
                       startMatch=None, endMatch=None)


class MetaStore:
    """
    Directive name → parsed value map for one block

    Writable while the block is preprocessed, read-only afterwards.
    """

    def __init__(self, values: Optional[Dict[str, Any]] = None) -> None:
        self._values: Dict[str, Any] = dict(values or {})
        self._frozen = False

    def set(self, name: str, value: Any) -> None:
        """Store a directive value"""
        if self._frozen:
            raise MetaStoreFrozenError(
                f"Cannot set directive '{name}' after preprocessing"
            )
        self._values[name] = value

    def get(self, name: str, default: Any = None) -> Any:
        """Get a directive value, or default if it was never stored"""
        return self._values.get(name, default)

    def freeze(self) -> None:
        """Make the store read-only"""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def items(self) -> List[Tuple[str, Any]]:
        return list(self._values.items())

    def __repr__(self) -> str:
        return f"MetaStore({self._values!r}, frozen={self._frozen})"


@dataclass
class BlockContext:
    """
    Typed scratch state for one code block's pipeline run

    Each transform owns the fields named after it. Line-keyed maps use the
    one-based line index the line hook receives, except `annotations`,
    which the comment scanner keys by zero-based raw line index.

    Attributes:
        meta: Parsed directive values
        metaRaw: Meta directive string the block was rendered with
        language: Resolved language of the block
        lineCount: Number of source lines after preprocessing
        annotations: Zero-based line index → comment annotation
        diffs: Line index → annotation claimed by the diff transform
        messages: Line index → annotation claimed by the message transform
        jumps: Line index → numbering jump target
        skiplines: Line indices excluded from numbering without a jump
        numbering: Line index → display number (None: unnumbered)
        highlights: Displayed line number → raw segments touching it
        resolvedHighlights: Line index → concrete segments (search terms expanded)
        captionStyle: Caption palette derived from the block colours
    """
    meta: MetaStore = field(default_factory=MetaStore)
    metaRaw: str = ""
    language: str = "text"
    lineCount: int = 0
    annotations: Dict[int, LineAnnotation] = field(default_factory=dict)
    diffs: Dict[int, LineAnnotation] = field(default_factory=dict)
    messages: Dict[int, LineAnnotation] = field(default_factory=dict)
    jumps: Dict[int, int] = field(default_factory=dict)
    skiplines: Set[int] = field(default_factory=set)
    numbering: Dict[int, Optional[int]] = field(default_factory=dict)
    highlights: Dict[int, List[HighlightSegment]] = field(default_factory=dict)
    resolvedHighlights: Dict[int, List[HighlightSegment]] = field(default_factory=dict)
    captionStyle: str = ""

    def diffRemove_has(self, index: int) -> bool:
        """Check if a line is marked as removed by a diff comment"""
        annotation = self.diffs.get(index)
        return annotation is not None and annotation.keyword == '--'
