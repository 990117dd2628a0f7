"""
Reading and writing system description files.

A system file holds one affine map per line as whitespace-separated
numbers ``a b c d e f [weight]``. Blank lines and ``#`` comments are
ignored.
"""

import logging
from pathlib import Path
from typing import List, Sequence, Union

from ..core.engine import build_maps
from ..core.errors import EmptySystemError, MalformedMapError

logger = logging.getLogger(__name__)

COMMENT_CHAR = '#'


def parse_system(text: str, source: str = "<string>") -> List[List[float]]:
    """
    Parse a system description.

    Args:
        text: File contents
        source: Name used in error messages

    Returns:
        List of rows, each a list of 6 or 7 floats

    Raises:
        EmptySystemError: if no rows are found
        MalformedMapError: if a line has a non-numeric field or the wrong length
        InconsistentRowLengthError: if weighted and unweighted rows are mixed
    """
    rows = []
    for line_number, line in enumerate(text.splitlines(), start=1):
        content = line.split(COMMENT_CHAR, 1)[0].strip()
        if not content:
            continue

        try:
            row = [float(field) for field in content.split()]
        except ValueError:
            raise MalformedMapError(
                f"{source}, line {line_number}: non-numeric field in {content!r}",
                len(rows),
            ) from None
        rows.append(row)

    if not rows:
        raise EmptySystemError(f"No contraction mappings found in {source}")

    # Length and consistency checks share the engine's rules
    build_maps(rows)

    logger.debug(f"Parsed {len(rows)} maps from {source}")
    return rows


def load_system(path: Union[str, Path]) -> List[List[float]]:
    """Read and parse a system file."""
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    return parse_system(text, source=str(path))


def format_system(rows: Sequence[Sequence[float]]) -> str:
    """Render rows in the system file format."""
    return ''.join(' '.join(f"{value:.10g}" for value in row) + '\n' for row in rows)


def save_system(rows: Sequence[Sequence[float]], path: Union[str, Path]) -> Path:
    """Write rows to a system file."""
    path = Path(path)
    path.write_text(format_system(rows), encoding="utf-8")
    logger.info(f"Saved system: {path} ({len(rows)} maps)")
    return path
