"""Fuzzy filtering shared by the definition list and the history list.

A candidate matches when every character of the query appears in it, in
order, ignoring case.  Matches are ranked by a rapidfuzz similarity score
(higher first); equal scores keep their original relative order.
"""

from collections.abc import Sequence

from rapidfuzz import fuzz


def is_subsequence(query: str, candidate: str) -> bool:
    """Return True if the characters of *query* appear in order in *candidate*."""
    remaining = iter(candidate.casefold())
    return all(ch in remaining for ch in query.casefold())


def score(query: str, candidate: str) -> float:
    """Relevance of *candidate* for *query* in the range 0..100."""
    return fuzz.partial_ratio(query.casefold(), candidate.casefold())


def match_indices(query: str, candidates: Sequence[str]) -> list[int]:
    """Return positions into *candidates* of the matches, best first.

    An empty query keeps every candidate in its original order.
    """
    if not query:
        return list(range(len(candidates)))
    scored = [
        (score(query, candidate), i)
        for i, candidate in enumerate(candidates)
        if is_subsequence(query, candidate)
    ]
    # sorted() is stable, so ties stay in input order.
    scored = sorted(scored, key=lambda pair: -pair[0])
    return [i for _, i in scored]


def match(query: str, candidates: Sequence[str]) -> list[str]:
    """Return the candidates matching *query*, ranked by relevance."""
    return [candidates[i] for i in match_indices(query, candidates)]
