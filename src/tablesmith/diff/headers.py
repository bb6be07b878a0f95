"""Header normalisation and comparison."""

import difflib
import re
from typing import Optional

from ..config import settings

_WHITESPACE = re.compile(r"\s+")


def normalize_header(
    header: str,
    ignore_case: Optional[bool] = None,
    trim: Optional[bool] = None,
    collapse_whitespace: Optional[bool] = None,
) -> str:
    """
    Normalise header text for comparison.

    Options left as None fall back to the HEADER_* settings.
    """
    if ignore_case is None:
        ignore_case = settings.header_ignore_case
    if trim is None:
        trim = settings.header_trim_whitespace
    if collapse_whitespace is None:
        collapse_whitespace = settings.header_normalize_whitespace

    text = header
    if trim:
        text = text.strip()
    if collapse_whitespace:
        text = _WHITESPACE.sub(" ", text)
    if ignore_case:
        text = text.casefold()
    return text


def headers_equal(a: str, b: str, ignore_case: Optional[bool] = None) -> bool:
    return normalize_header(a, ignore_case=ignore_case) == normalize_header(b, ignore_case=ignore_case)


def header_similarity(a: str, b: str) -> float:
    """Similarity ratio (0.0 to 1.0) of two normalised headers."""
    left, right = normalize_header(a), normalize_header(b)
    if not left and not right:
        return 1.0
    return difflib.SequenceMatcher(None, left, right).ratio()
