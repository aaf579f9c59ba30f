#!/usr/bin/env python3
"""
annocode - Annotated code block renderer

Renders the fenced code blocks of an HTML page into decorated markup:
numbered lines, diff and message callouts, range highlighting, visible
whitespace and captioned figures. Authors steer each block with a meta
directive string and with trailing [!code ...] comments on source lines.

Philosophy:
    - Directive-driven: Rendering intent lives next to the code it affects
    - Theme-agnostic: Every block carries both light and dark palettes
    - Degrade, don't fail: A bad directive costs one line, never the page

Key Features:
    - Line numbering with start-line offsets and numbering jumps
    - Diff (++/--) and annotation/log/warning/error callouts
    - Character, line and search-term highlighting
    - Space/tab tokens with flexible indents
    - Figure captions with directory-fading titles

Usage:
    python -m annocode --inputFile page.html --outputFile page.out.html

    Code blocks are <pre><code class="language-xx" data-meta="...">
    elements; inline code uses <code>source{:lang}</code>.

Examples:
    # Render to stdout
    python -m annocode --inputFile post.html

    # Render to a file with other themes
    python -m annocode --inputFile post.html --outputFile out.html --darkStyle dracula

    # Verbose output
    python -m annocode --inputFile post.html --outputFile out.html -vv
"""

import sys
import asyncio
from pathlib import Path
from argparse import ArgumentParser, ArgumentDefaultsHelpFormatter
from typing import List, Optional

from . import __version__
from .lib import DocumentRenderer, Highlighter, LOG, state_connectToLogger
from .models import ProgramState, pipeline


# Define CLI arguments
parser = ArgumentParser(
    description="annocode - Render annotated code blocks in HTML documents",
    formatter_class=ArgumentDefaultsHelpFormatter,
)

parser.add_argument(
    "--inputFile", required=True, type=str, help="Input HTML document"
)

parser.add_argument(
    "--outputFile",
    default=None,
    type=str,
    help="Where to write the rendered document. Defaults to stdout",
)

parser.add_argument(
    "--lightStyle",
    default=None,
    type=str,
    help="Pygments style for the light palette (default: ANNOCODE_LIGHT_STYLE or 'default')",
)

parser.add_argument(
    "--darkStyle",
    default=None,
    type=str,
    help="Pygments style for the dark palette (default: ANNOCODE_DARK_STYLE or 'monokai')",
)

parser.add_argument(
    "-v",
    "--verbosity",
    action="count",
    default=1,
    help="Increase output verbosity (can be repeated: -v, -vv, -vvv)",
)

parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")


def env_check(inputstate: ProgramState) -> ProgramState:
    """
    Validate environment and resolve all file paths.

    Args:
        inputstate: Initial program state with CLI options

    Returns:
        ProgramState with added fields:
            - inputSourceFile: Resolved path to the input document
            - outputTargetFile: Resolved output path, None for stdout
            - envOK: True if environment is valid

    Exits:
        1 if the input file is missing or the output directory cannot be created
    """

    state = inputstate.copy()

    LOG("Checking environment...", level=2)

    input_file = Path(state.inputFile)
    if not input_file.is_file():
        print(f"Error: Input file not found: {input_file}", file=sys.stderr)
        state.envOK = False
        sys.exit(1)

    state.inputSourceFile = input_file
    LOG(f"Input file: {input_file}", level=2)

    if state.outputFile:
        state.outputTargetFile = Path(state.outputFile)
        try:
            state.outputTargetFile.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            print(f"Error: Cannot create output directory: {e}", file=sys.stderr)
            state.envOK = False
            sys.exit(1)
        LOG(f"Output file: {state.outputTargetFile}", level=2)
    else:
        LOG("Output: stdout", level=2)

    state.envOK = True
    return state


def source_read(inputstate: ProgramState) -> ProgramState:
    """
    Read the input document.

    Args:
        inputstate: Program state with inputSourceFile path set

    Returns:
        ProgramState with added field:
            - sourceHTML: Document text

    Exits:
        1 if the file cannot be read
    """

    state = inputstate.copy()

    LOG("Reading source document...", level=1)

    try:
        state.sourceHTML = state.inputSourceFile.read_text(encoding="utf-8")
        LOG(f"Read {len(state.sourceHTML)} characters from {state.inputSourceFile.name}", level=2)
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error reading input file: {e}", file=sys.stderr)
        sys.exit(1)
    return state


def document_render(inputstate: ProgramState) -> ProgramState:
    """
    Render every code block and inline code instance of the document.

    Args:
        inputstate: Program state with sourceHTML

    Returns:
        ProgramState with added fields:
            - renderedHTML: Document with rendered code
            - renderResult: Dict containing:
                - blocks: int (blocks rendered)
                - blocksFailed: int (blocks left unrendered)
                - inline: int (inline code instances rendered)
                - languages: List[str] (languages used)

    Exits:
        1 if the highlighter cannot be set up
    """

    state = inputstate.copy()

    LOG("Rendering code...", level=1)

    try:
        renderer = DocumentRenderer(Highlighter(state.lightStyle, state.darkStyle))
        state.renderedHTML = asyncio.run(renderer.render(state.sourceHTML))
    except Exception as e:
        print(f"Render error: {e}", file=sys.stderr)
        if state.verbosity >= 3:
            import traceback

            traceback.print_exc()
        sys.exit(1)

    report = renderer.report
    state.renderResult = {
        "blocks": report.blocks,
        "blocksFailed": report.blocksFailed,
        "inline": report.inline,
        "languages": report.languages,
    }
    return state


def results_write(inputstate: ProgramState) -> ProgramState:
    """
    Write the rendered document and report the results.

    Args:
        inputstate: Program state with renderedHTML and renderResult

    Returns:
        ProgramState unchanged (terminal pipeline stage)

    Exits:
        1 if rendering did not run or the output cannot be written
    """
    state: ProgramState = inputstate.copy()
    if state.renderResult is None:
        print("Error: Rendering failed", file=sys.stderr)
        sys.exit(1)

    if state.outputTargetFile is None:
        sys.stdout.write(state.renderedHTML)
    else:
        try:
            state.outputTargetFile.write_text(state.renderedHTML, encoding="utf-8")
        except OSError as e:
            print(f"Error writing output file: {e}", file=sys.stderr)
            sys.exit(1)

    LOG("✓ Rendering complete", level=1)
    LOG(f"  Blocks: {state.renderResult['blocks']} "
        f"({state.renderResult['blocksFailed']} failed)", level=1)
    LOG(f"  Inline: {state.renderResult['inline']}", level=1)
    if state.outputTargetFile is not None:
        LOG(f"  Output: {state.outputTargetFile}", level=1)
    return state


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point - render the code of an HTML document.

    Orchestrates the full pipeline:
        1. env_check: Validate paths and environment
        2. source_read: Read the input document
        3. document_render: Render block and inline code
        4. results_write: Write the output and report

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Process exit code
    """

    options = parser.parse_args(argv)
    state: ProgramState = ProgramState.state_createFromNamespace(options)

    # Connect state to logger for entire pipeline
    state_connectToLogger(state)

    pipeline(state, env_check, source_read, document_render, results_write)
    return 0


if __name__ == "__main__":
    sys.exit(main())
