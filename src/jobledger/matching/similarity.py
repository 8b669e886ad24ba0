#!/usr/bin/env python3
"""
String Similarity Primitives

Pure, deterministic string measures used by entity resolution, project
matching, and duplicate keys.

Functions:
- levenshtein_distance: Edit distance with unit costs
- jaro_winkler_similarity: Jaro similarity with an unconditional prefix boost
- normalize_business_name: Canonical form of a vendor or client name
- token_similarity: Jaccard overlap of normalized name tokens
- normalize_alphanumeric: Lowercase with everything but [a-z0-9] removed
"""

import re

_NON_WORD = re.compile(r"[^\w\s]")
_LEGAL_SUFFIXES = re.compile(r"\b(inc|llc|corp|company|co|construction|const|ltd|limited)\b")
_WHITESPACE = re.compile(r"\s+")
_NON_ALNUM = re.compile(r"[^a-z0-9]")

WINKLER_PREFIX_LIMIT = 4
WINKLER_SCALING = 0.1


def levenshtein_distance(a: str, b: str) -> int:
    """
    Minimum number of single-character inserts, deletes, and substitutions.

    Examples:
        levenshtein_distance("kitten", "sitting") -> 3
        levenshtein_distance("", "abc") -> 3
    """
    rows = len(b) + 1
    cols = len(a) + 1
    matrix = [[0] * cols for _ in range(rows)]

    for i in range(rows):
        matrix[i][0] = i
    for j in range(cols):
        matrix[0][j] = j

    for i in range(1, rows):
        for j in range(1, cols):
            if b[i - 1] == a[j - 1]:
                matrix[i][j] = matrix[i - 1][j - 1]
            else:
                matrix[i][j] = min(
                    matrix[i - 1][j - 1] + 1,
                    matrix[i][j - 1] + 1,
                    matrix[i - 1][j] + 1,
                )

    return matrix[rows - 1][cols - 1]


def jaro_winkler_similarity(a: str, b: str) -> float:
    """
    Jaro-Winkler similarity in [0, 1].

    The prefix boost (up to 4 characters, scaling 0.1) is applied regardless of
    the base Jaro score.

    Examples:
        jaro_winkler_similarity("MARTHA", "MARHTA") -> ~0.961
        jaro_winkler_similarity("abc", "") -> 0.0
    """
    if a == b:
        return 1.0

    len_a = len(a)
    len_b = len(b)
    if len_a == 0 or len_b == 0:
        return 0.0

    window = max(len_a, len_b) // 2 - 1
    if window < 0:
        return 0.0

    a_matches = [False] * len_a
    b_matches = [False] * len_b
    matches = 0

    for i in range(len_a):
        start = max(0, i - window)
        end = min(i + window + 1, len_b)
        for j in range(start, end):
            if b_matches[j] or a[i] != b[j]:
                continue
            a_matches[i] = True
            b_matches[j] = True
            matches += 1
            break

    if matches == 0:
        return 0.0

    transpositions = 0
    k = 0
    for i in range(len_a):
        if not a_matches[i]:
            continue
        while not b_matches[k]:
            k += 1
        if a[i] != b[k]:
            transpositions += 1
        k += 1

    jaro = (matches / len_a + matches / len_b + (matches - transpositions / 2) / matches) / 3

    prefix = 0
    for i in range(min(WINKLER_PREFIX_LIMIT, len_a, len_b)):
        if a[i] != b[i]:
            break
        prefix += 1

    return jaro + WINKLER_SCALING * prefix * (1 - jaro)


def normalize_business_name(name: str) -> str:
    """
    Canonical form of a business name for comparison.

    Lowercases, strips punctuation, removes legal-suffix words
    (inc, llc, corp, company, co, construction, const, ltd, limited),
    and collapses whitespace.

    Examples:
        normalize_business_name("ABC Construction, LLC") -> "abc"
        normalize_business_name("  Home   Depot #123 ") -> "home depot 123"
    """
    normalized = (name or "").lower()
    normalized = _NON_WORD.sub("", normalized)
    normalized = _LEGAL_SUFFIXES.sub("", normalized)
    return _WHITESPACE.sub(" ", normalized).strip()


def _name_tokens(name: str) -> set[str]:
    return {token for token in normalize_business_name(name).split(" ") if len(token) > 1}


def token_similarity(a: str, b: str) -> float:
    """
    Jaccard similarity of the normalized token sets (tokens longer than 1 char).

    Returns 0.0 when neither side has any qualifying token.
    """
    tokens_a = _name_tokens(a)
    tokens_b = _name_tokens(b)

    union = tokens_a | tokens_b
    if not union:
        return 0.0
    return len(tokens_a & tokens_b) / len(union)


def normalize_alphanumeric(text: str) -> str:
    """Lowercase and drop every character outside [a-z0-9]."""
    return _NON_ALNUM.sub("", (text or "").lower())
