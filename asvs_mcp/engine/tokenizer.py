"""
Search tokenizer shared by the index builder and free-text queries.
"""

from __future__ import annotations

import re
from typing import Iterator, Union

_SPLIT = re.compile(r"\W+", re.ASCII)

MIN_TOKEN_EXCLUSIVE = 2
MAX_TOKEN_EXCLUSIVE = 100


def iter_tokens(text: Union[str, int, float], max_length: int) -> Iterator[str]:
    """
    Yield lowercase tokens of 3-99 characters.

    Input longer than ``max_length`` is truncated before splitting, so
    adversarial text costs at most ``max_length`` characters of work.
    """
    text = str(text)
    if len(text) > max_length:
        text = text[:max_length]
    for token in _SPLIT.split(text.lower()):
        if MIN_TOKEN_EXCLUSIVE < len(token) < MAX_TOKEN_EXCLUSIVE:
            yield token


def tokenize(text: Union[str, int, float], max_length: int) -> list[str]:
    return list(iter_tokens(text, max_length))
