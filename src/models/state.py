"""
CLI state for annocode

ProgramState is handed from stage to stage by pipeline(); each stage copies
it, fills in its own fields and returns the copy.
"""

from pathlib import Path
from argparse import Namespace
from typing import Any, Optional, Type, TypeVar, Dict, Callable
from dataclasses import dataclass, field, fields


PS = TypeVar("PS", bound="ProgramState")


@dataclass
class ProgramState:
    """
    Everything the CLI knows about one render run.

    Fields by the stage that sets them:
        - options: inputFile, outputFile, verbosity, lightStyle, darkStyle
        - env_check: inputSourceFile, outputTargetFile, envOK
        - source_read: sourceHTML
        - document_render: renderedHTML, renderResult
        - results_write: nothing (writes the output)

    Attributes:
        inputFile: HTML document holding <pre><code class="language-*"> blocks
        outputFile: Where the rendered document is written (default: stdout)
        verbosity: LOG() threshold, 0-3
        lightStyle: Pygments style used for the light palette
        darkStyle: Pygments style used for the dark palette
        envOK: Paths were checked and are usable
        inputSourceFile: Resolved input path
        outputTargetFile: Resolved output path, None for stdout
        sourceHTML: Input document text
        renderedHTML: Document with every code instance rendered
        renderResult: Counts of rendered/failed instances and the languages seen
    """

    # Options
    inputFile: str = field(default="")
    outputFile: Optional[str] = field(default=None)
    verbosity: int = field(default=1)
    lightStyle: Optional[str] = field(default=None)
    darkStyle: Optional[str] = field(default=None)

    # Filled in by the stages
    envOK: bool = field(default=False)
    inputSourceFile: Path = field(default=Path("/"))
    outputTargetFile: Optional[Path] = field(default=None)
    sourceHTML: str = field(default="")
    renderedHTML: str = field(default="")
    renderResult: Optional[Dict[str, Any]] = field(default=None)

    @classmethod
    def state_createFromNamespace(
        cls: Type["ProgramState"], options: Namespace
    ) -> "ProgramState":
        """
        Build the initial state from parsed arguments.

        Argparse entries with no matching field (e.g. version) are dropped.
        """
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in vars(options).items() if k in known})

    def copy(self: PS) -> PS:
        """Shallow copy, so a stage never edits its input state"""
        return type(self)(**self.__dict__)


def pipeline(
    initial_state: ProgramState, *stages: Callable[[ProgramState], ProgramState]
) -> ProgramState:
    """
    Run stages in order, feeding each the state the previous one returned.

    Args:
        initial_state: State built from the command line
        *stages: Functions ProgramState -> ProgramState

    Returns:
        The state returned by the last stage

    Example:
        pipeline(state, env_check, source_read, document_render, results_write)
    """
    from functools import reduce
    return reduce(lambda state, stage: stage(state), stages, initial_state)
