"""
Token-set similarity used for learned-pattern lookup and component dedupe
"""

import re
from typing import FrozenSet, Iterable, Optional, Tuple

from journey_compiler.mapping.normalizer import normalize_for_matching


_TOKEN_REGEX = re.compile(r"[a-z0-9_]+")


def tokenize(text: str) -> FrozenSet[str]:
    return frozenset(_TOKEN_REGEX.findall(text.lower()))


def step_tokens(text: str) -> FrozenSet[str]:
    """Tokens of a step after matching normalization (stems, no stop words)"""
    return tokenize(normalize_for_matching(text, drop_stop_words=True))


def jaccard_similarity(first: FrozenSet[str], second: FrozenSet[str]) -> float:
    """
    |A ∩ B| / |A ∪ B|, with two empty sets counting as identical

    Examples:
        >>> jaccard_similarity(frozenset({"a", "b"}), frozenset({"b", "c"}))
        0.3333333333333333
    """
    if not first and not second:
        return 1.0
    union = first | second
    return len(first & second) / len(union)


def find_most_similar(candidate: str,
                      existing: Iterable[Tuple[str, str]],
                      threshold: float) -> Optional[Tuple[str, float]]:
    """
    Best (id, similarity) among ``existing`` (id, text) pairs at or above ``threshold``

    Ties go to the lowest id.
    """
    candidate_tokens = tokenize(candidate)
    best: Optional[Tuple[str, float]] = None
    for record_id, text in sorted(existing):
        score = jaccard_similarity(candidate_tokens, tokenize(text))
        if score >= threshold and (best is None or score > best[1]):
            best = (record_id, score)
    return best


__all__ = [
    "tokenize",
    "step_tokens",
    "jaccard_similarity",
    "find_most_similar",
]
