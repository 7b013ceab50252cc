"""Token-overlap name similarity.

Names are compared word by word rather than character by character so that
a candidate missing a middle name, or carrying an extra legal-form word,
still scores high against the listed name:

    similarity("Ivan Petrov", "Ivan Sergeevich Petrov")  -> 1.0
    similarity("Ivan Petrov", "Ivan Sidorov")             -> 0.5

A token of the smaller word set counts as matching when any token of the
larger set contains it or is contained by it. This is deliberately tolerant
and is a known source of false positives on short tokens ("al", "co").
"""

import re

_PUNCTUATION = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize_name(name: str) -> str:
    """Lowercase, drop punctuation, collapse whitespace and trim."""
    name = _PUNCTUATION.sub("", name.lower())
    return _WHITESPACE.sub(" ", name).strip()


def similarity(a: str, b: str) -> float:
    """Score two names in [0, 1]; 1.0 means the normalized names are equal."""
    s1 = normalize_name(a)
    s2 = normalize_name(b)

    # An empty name never matches anything, not even another empty name
    if not s1 or not s2:
        return 0.0
    if s1 == s2:
        return 1.0

    words1 = set(s1.split(" "))
    words2 = set(s2.split(" "))

    # Equal-sized sets are ordered by content so that a/b order is irrelevant
    if (len(words1), sorted(words1)) <= (len(words2), sorted(words2)):
        shorter, longer = words1, words2
    else:
        shorter, longer = words2, words1

    matching = [
        word for word in shorter
        if any(other in word or word in other for other in longer)
    ]
    return len(matching) / len(shorter)
