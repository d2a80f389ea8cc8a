"""String-similarity policy used to suggest category mappings.

The suggestion policy is a plain callable ``(name, candidates) -> str`` so the
category reconciler can be given a different scorer without touching the
generation flow. The default scores candidates with ``rapidfuzz``'s
normalized Indel similarity (``fuzz.ratio``) on case-folded strings and
always returns a suggestion.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TypeAlias

from rapidfuzz import fuzz, process, utils

Matcher: TypeAlias = Callable[[str, Sequence[str]], str]


def _casefold(s: str) -> str:
    return utils.default_process(s)


def best_match(name: str, candidates: Sequence[str]) -> str:
    """Return the candidate most similar to ``name``.

    With no candidates the name itself is returned unchanged. Ties resolve to
    the earliest candidate in ``candidates`` order.
    """

    if not candidates:
        return name
    result = process.extractOne(name, candidates, scorer=fuzz.ratio, processor=_casefold)
    if result is None:
        return name
    choice, _score, _index = result
    return choice


def rank_matches(name: str, candidates: Sequence[str], *, limit: int = 3) -> list[tuple[str, float]]:
    """Return up to ``limit`` ``(candidate, score)`` pairs, best first."""

    return [
        (choice, float(score))
        for choice, score, _index in process.extract(
            name, candidates, scorer=fuzz.ratio, processor=_casefold, limit=limit
        )
    ]


__all__ = ["Matcher", "best_match", "rank_matches"]
