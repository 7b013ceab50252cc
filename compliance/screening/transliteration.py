"""Latin transliteration of names written in other scripts.

Registry data arrives in Cyrillic while the sanctions corpus is published in
Latin script, so every name is transliterated before it is compared or used
as a result key.
"""

from unidecode import unidecode


def transliterate(text: str) -> str:
    """Return a Latin approximation of ``text``, e.g. "Иван Петров" -> "Ivan Petrov".

    Deterministic and idempotent: ASCII input passes through unchanged.
    """
    return unidecode(text).strip()
