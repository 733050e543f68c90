"""
Regular-expression helpers for kernel text files.
"""

import re

from ..validation import ParseError

MEMORY_CAPACITY_RE = re.compile(r"MemTotal:\s*([0-9]+) kB")
SWAP_CAPACITY_RE = re.compile(r"SwapTotal:\s*([0-9]+) kB")


def parse_capacity(content: str, pattern: re.Pattern, source: str = "") -> int:
    """
    Match ``pattern`` in ``content`` and return the captured value in bytes.

    Assumes the captured value is in kB.

    Raises:
        ParseError: If the pattern does not match.
    """
    match = pattern.search(content)
    if match is None:
        raise ParseError(
            f"failed to match {pattern.pattern!r} in {source or 'output'}: {content[:200]!r}",
            source=source,
            content=content,
        )
    return int(match.group(1)) * 1024


def get_matched_int(pattern: re.Pattern, value: str) -> int:
    """Return the first group of ``pattern`` searched in ``value`` as an int."""
    match = pattern.search(value)
    if match is None:
        raise ParseError(f"failed to match {pattern.pattern!r} in {value!r}", content=value)
    return int(match.group(1))
