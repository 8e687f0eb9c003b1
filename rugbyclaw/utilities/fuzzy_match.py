"""Text normalization and fuzzy scoring for team names.

normalize_text() is the join key for cross-source team matching: every
alias table is keyed by its output. similarity_score() backs fuzzy team
lookup for user queries; reconciliation never uses it.
"""

import re

from rapidfuzz.distance import Levenshtein
from unidecode import unidecode

_NON_ALNUM = re.compile(r"[^a-z0-9]+")

# Common shorthand users type for teams
# Key: normalized query, Value: reference spelling
TEAM_QUERY_ALIASES = {
    "toulouse": "Stade Toulousain",
    "stade toulouse": "Stade Toulousain",
    "sf paris": "Stade Francais Paris",
    "stade francais": "Stade Francais Paris",
    "la rochelle": "Stade Rochelais",
    "rochelle": "Stade Rochelais",
    "bordeaux": "Bordeaux Begles",
    "begles": "Bordeaux Begles",
    "pau": "Section Paloise",
    "bayonne": "Aviron Bayonnais",
    "toulon": "RC Toulonnais",
    "clermont": "Clermont",
    "racing": "Racing 92",
    "montauban": "Montauban",
    "usap": "USA Perpignan",
    "perpi": "USA Perpignan",
    "england": "England",
    "france": "France",
    "ireland": "Ireland",
    "scotland": "Scotland",
    "wales": "Wales",
    "italy": "Italy",
}


def normalize_text(value: str) -> str:
    """Normalize text for matching.

    Applies: unidecode, lowercase, collapse non-alphanumerics to one space, trim.
    "Union Bordeaux-Bègles" -> "union bordeaux begles"
    """
    if not value:
        return ""
    normalized = unidecode(value).lower()
    return _NON_ALNUM.sub(" ", normalized).strip()


def levenshtein(a: str, b: str) -> int:
    """Edit distance between two strings."""
    return Levenshtein.distance(a, b)


def similarity_score(query_raw: str, candidate_raw: str) -> float:
    """Score how well a user query matches a candidate team name (0-1).

    Exact match scores 1. A substring hit scores just above 0.8, slightly
    better the earlier it appears. Otherwise the best Levenshtein ratio
    against the whole candidate or any of its tokens, lifted to 0.75+ when
    the two share whole tokens.
    """
    query = normalize_text(query_raw)
    candidate = normalize_text(candidate_raw)

    if not query or not candidate:
        return 0.0
    if query == candidate:
        return 1.0

    idx = candidate.find(query)
    if idx >= 0:
        return 0.92 - min(0.1, idx / 200)

    query_tokens = query.split(" ")
    candidate_tokens = candidate.split(" ")

    best = 0.0
    for item in [candidate, *candidate_tokens]:
        max_len = max(len(query), len(item))
        if max_len == 0:
            continue
        score = 1 - levenshtein(query, item) / max_len
        if score > best:
            best = score

    candidate_token_set = set(candidate_tokens)
    overlap = sum(1 for token in query_tokens if token in candidate_token_set)
    if overlap > 0:
        best = max(best, 0.75 + min(0.15, overlap * 0.05))

    return max(0.0, min(1.0, best))


def best_team_match(
    query: str,
    candidates: list[str],
    threshold: float = 0.6,
) -> tuple[str | None, float]:
    """Find the best matching candidate for a query.

    Args:
        query: User-typed team name
        candidates: Team names to choose from
        threshold: Minimum score to accept (0-1)

    Returns:
        Tuple of (best_match, score) or (None, 0.0) if nothing clears threshold
    """
    best_candidate = None
    best_score = 0.0

    for candidate in candidates:
        score = similarity_score(query, candidate)
        if score > best_score:
            best_score = score
            best_candidate = candidate

    if best_candidate is not None and best_score >= threshold:
        return best_candidate, best_score

    return None, 0.0


def get_team_query_candidates(query: str) -> list[str]:
    """Expand a team query into the spellings worth searching upstream.

    Returns the raw query first, then its known alias, de-duplicated by
    normalized form.
    """
    trimmed = query.strip()
    if not trimmed:
        return []

    result: list[str] = []
    seen: set[str] = set()

    for value in (trimmed, TEAM_QUERY_ALIASES.get(normalize_text(trimmed))):
        if not value:
            continue
        key = normalize_text(value)
        if key in seen:
            continue
        seen.add(key)
        result.append(value)

    return result
