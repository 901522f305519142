"""Typo-tolerant name lookup — "did you mean ...?" suggestions.

When ``get`` misses, we compare the requested name against every name
in the environment using the **Levenshtein distance**: the minimum
number of single-character inserts, deletes, and substitutions that
turn one string into the other.

Two details keep this cheap on large environments:
    - **Cutoff** — only names within ``max(1, len(target) // 2)`` edits
      are suggested, so ``PATH`` never suggests ``XDG_RUNTIME_DIR``.
    - **Early exit** — the dynamic-programming rows stop as soon as
      every cell exceeds the cutoff; a length difference larger than
      the cutoff is rejected before any work.

Comparison folds case, so ``path`` suggests ``PATH``.
"""

from __future__ import annotations

from collections.abc import Iterable

DEFAULT_MAX_RESULTS = 5


def cutoff_for(target: str) -> int:
    """Return the largest edit distance still worth suggesting."""
    return max(1, len(target) // 2)


def bounded_distance(left: str, right: str, limit: int) -> int | None:
    """Return the edit distance, or ``None`` if it exceeds *limit*."""
    if abs(len(left) - len(right)) > limit:
        return None
    if len(left) < len(right):
        left, right = right, left

    previous = list(range(len(right) + 1))
    for row, left_char in enumerate(left, start=1):
        current = [row]
        for col, right_char in enumerate(right, start=1):
            cost = 0 if left_char == right_char else 1
            current.append(
                min(
                    previous[col] + 1,
                    current[col - 1] + 1,
                    previous[col - 1] + cost,
                )
            )
        if min(current) > limit:
            return None
        previous = current

    distance = previous[-1]
    return distance if distance <= limit else None


def suggest(
    target: str,
    candidates: Iterable[str],
    max_results: int = DEFAULT_MAX_RESULTS,
) -> list[str]:
    """Return names similar to *target*, closest first.

    Args:
        target: The name that was not found.
        candidates: Existing names to compare against.
        max_results: Upper bound on the number of suggestions.

    Returns:
        Names ordered by ascending distance, then alphabetically.
        Empty when nothing is close enough.

    """
    if max_results <= 0:
        return []

    limit = cutoff_for(target)
    folded = target.lower()
    scored: list[tuple[int, str]] = []
    for name in set(candidates):
        if name == target:
            continue
        distance = bounded_distance(folded, name.lower(), limit)
        if distance is not None:
            scored.append((distance, name))

    scored.sort()
    return [name for _distance, name in scored[:max_results]]
