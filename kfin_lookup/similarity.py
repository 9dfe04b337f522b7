from __future__ import annotations

from typing import Sequence

from .jamo import decompose_string


def levenshtein(a: Sequence[str], b: Sequence[str]) -> int:
    """
    Classic edit distance (insert/delete/substitute all cost 1).

    Two rolling rows sized by the shorter sequence.
    """
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)

    prev = list(range(len(b) + 1))
    curr = [0] * (len(b) + 1)
    for i, ca in enumerate(a, 1):
        curr[0] = i
        for j, cb in enumerate(b, 1):
            cost = 0 if ca == cb else 1
            curr[j] = min(
                prev[j] + 1,  # deletion
                curr[j - 1] + 1,  # insertion
                prev[j - 1] + cost,  # substitution
            )
        prev, curr = curr, prev
    return prev[len(b)]


def jamo_levenshtein(a: str, b: str) -> int:
    return levenshtein(decompose_string(a), decompose_string(b))


def similarity_from_jamo(a_jamo: Sequence[str], b_jamo: Sequence[str]) -> float:
    """Normalized similarity over already-decomposed sequences."""
    max_len = max(len(a_jamo), len(b_jamo))
    if max_len == 0:
        return 1.0
    if not a_jamo or not b_jamo:
        return 0.0
    score = 1.0 - levenshtein(a_jamo, b_jamo) / max_len
    return min(1.0, max(0.0, score))


def jamo_similarity(a: str, b: str) -> float:
    """
    Similarity in [0, 1] between two strings compared jamo by jamo.

    Identical strings (including two empty strings) score 1.0 and exactly
    one empty string scores 0.0.
    """
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0
    return similarity_from_jamo(decompose_string(a), decompose_string(b))
