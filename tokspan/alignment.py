"""Longest-common-subsequence alignment between two token sequences."""

from typing import Hashable, Sequence, TypeVar

T = TypeVar("T", bound=Hashable)


def lcs_table(old: Sequence[T], new: Sequence[T]) -> list[list[int]]:
    """Build the suffix LCS table.

    ``table[i][j]`` is the length of the longest common subsequence of
    ``old[i:]`` and ``new[j:]``. Row ``n`` and column ``m`` are zero.
    """
    n, m = len(old), len(new)
    table = [[0] * (m + 1) for _ in range(n + 1)]
    for i in range(n - 1, -1, -1):
        row, below = table[i], table[i + 1]
        old_item = old[i]
        for j in range(m - 1, -1, -1):
            if old_item == new[j]:
                row[j] = below[j + 1] + 1
            else:
                row[j] = max(below[j], row[j + 1])
    return table


def align(old: Sequence[T], new: Sequence[T]) -> dict[int, int]:
    """Map indices of ``old`` to indices of ``new`` along one LCS.

    Walks the table from the start: equal items are paired and both
    pointers advance; otherwise the pointer whose advance keeps the larger
    remaining LCS moves, with ties advancing the ``old`` pointer. The
    result is deterministic but is only one of possibly several valid
    alignments when items repeat.

    Indices of ``old`` missing from the result were deleted or changed.
    Matched pairs are strictly increasing in both coordinates.

    Example:
        >>> align("ABCDE", "AXBCDE")
        {0: 0, 1: 2, 2: 3, 3: 4, 4: 5}
    """
    table = lcs_table(old, new)
    n, m = len(old), len(new)
    mapping: dict[int, int] = {}
    i = j = 0
    while i < n and j < m:
        if old[i] == new[j]:
            mapping[i] = j
            i += 1
            j += 1
        elif table[i + 1][j] >= table[i][j + 1]:
            i += 1
        else:
            j += 1
    return mapping
