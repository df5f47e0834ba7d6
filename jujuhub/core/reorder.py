"""Manual reordering helpers.

The caller decides the new order (typically a drag from one position to
another); the collection only checks that the result is a permutation of
what it holds and persists it verbatim.
"""

from collections import Counter
from typing import Hashable, Iterable, Sequence, TypeVar

from ..exceptions import InvalidPermutationError

T = TypeVar("T")


def array_move(items: Sequence[T], old_index: int, new_index: int) -> list[T]:
    """Return a copy of ``items`` with one element moved.

    The element at ``old_index`` is removed and reinserted at ``new_index``,
    as a sortable list does when an item is dropped onto another.
    A negative ``new_index`` counts from the end.

    Examples:
        >>> array_move(["a", "b", "c"], 2, 0)
        ['c', 'a', 'b']
        >>> array_move(["a", "b", "c"], 0, -1)
        ['b', 'c', 'a']
    """
    result = list(items)
    moved = result.pop(old_index)
    if new_index < 0:
        new_index = len(result) + 1 + new_index
    result.insert(new_index, moved)
    return result


def validate_permutation(current_ids: Iterable[Hashable], new_ids: Sequence[Hashable]) -> None:
    """Check that ``new_ids`` is a reordering of ``current_ids``.

    Args:
        current_ids: Ids as currently stored
        new_ids: Ids in the requested order

    Raises:
        InvalidPermutationError: If counts differ, an id is repeated, or the
            id sets differ
    """
    current = list(current_ids)
    counts = Counter(new_ids)
    duplicates = [i for i, n in counts.items() if n > 1]
    current_set = set(current)
    missing = [i for i in current if i not in counts]
    unexpected = [i for i in counts if i not in current_set]

    if duplicates or missing or unexpected or len(new_ids) != len(current):
        raise InvalidPermutationError(
            f"Reorder must contain each of the {len(current)} stored records exactly once "
            f"(received {len(new_ids)})",
            missing=missing,
            unexpected=unexpected,
            duplicates=duplicates,
            expected_count=len(current),
            received_count=len(new_ids),
        )
