# chess_sync/core/pgn_headers.py
"""
Extracts PGN header tags (`[Tag "Value"]`) into a plain metadata mapping.

The scan is independent of the movetext parser: headers are matched anywhere
in the text, with no assumption that they are contiguous, line-anchored or
followed by a blank line. It therefore still yields the metadata of games
whose moves cannot be parsed.
"""

import re

from chess_sync.types import GameMetadata

# Tag names are PGN symbol tokens; values are quoted strings with `\"` and `\\` escapes.
HEADER_PATTERN = re.compile(r'\[(\w+)\s+"((?:[^"\\\n]|\\.)*)"\]')
_ESCAPE_PATTERN = re.compile(r"\\(.)")


def extract_metadata(pgn_text: str) -> GameMetadata:
    """
    Collects every header tag found in `pgn_text`.

    If a tag name occurs more than once, the later value wins.

    Args:
        pgn_text: Raw PGN text, headers and movetext alike.

    Returns:
        A dictionary mapping tag names to their values; empty if none are found.
    """
    metadata: GameMetadata = {}
    if not pgn_text:
        return metadata
    for match in HEADER_PATTERN.finditer(pgn_text):
        metadata[match.group(1)] = _ESCAPE_PATTERN.sub(r"\1", match.group(2))
    return metadata
