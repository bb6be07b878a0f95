"""Order-preserving sequence alignment (longest common subsequence)."""

import logging
import operator
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Generic, Literal, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

PairStatus = Literal["kept", "deleted", "added"]


@dataclass(frozen=True)
class AlignedPair:
    """One position of an alignment: a match, a deletion or an insertion."""

    old_index: Optional[int]
    new_index: Optional[int]

    @property
    def status(self) -> PairStatus:
        if self.old_index is not None and self.new_index is not None:
            return "kept"
        if self.old_index is not None:
            return "deleted"
        return "added"


@dataclass(frozen=True)
class Ambiguity:
    """A match chosen among several equally long alignments."""

    old_index: int
    new_index: int
    alternatives: tuple[tuple[int, int], ...]


@dataclass
class Alignment(Generic[T]):
    """Result of aligning an old sequence against a new one."""

    pairs: list[AlignedPair] = field(default_factory=list)
    ambiguities: list[Ambiguity] = field(default_factory=list)

    @property
    def kept(self) -> list[AlignedPair]:
        return [p for p in self.pairs if p.status == "kept"]

    @property
    def deleted(self) -> list[int]:
        return [p.old_index for p in self.pairs if p.status == "deleted"]

    @property
    def added(self) -> list[int]:
        return [p.new_index for p in self.pairs if p.status == "added"]

    def old_to_new(self, old_length: int) -> list[Optional[int]]:
        """Map each old index to its new index, or None when deleted."""
        mapping: list[Optional[int]] = [None] * old_length
        for pair in self.kept:
            mapping[pair.old_index] = pair.new_index
        return mapping


def align_sequences(
    old: Sequence[T],
    new: Sequence[T],
    equal: Optional[Callable[[T, T], bool]] = None,
) -> Alignment[T]:
    """
    Align two sequences, keeping the longest run of equal items in order.

    Inside a run of unmatched items, deletions are emitted before
    insertions. When an item could be matched to more than one equal item
    without shortening the alignment (duplicates), the candidate nearest in
    position is chosen and the choice is recorded in ``ambiguities``.

    Args:
        old: Items of the old layout
        new: Items of the new layout
        equal: Equality predicate; with the default ``==`` items must be
            hashable

    Returns:
        Alignment whose pairs cover every old and every new index once
    """
    eq = equal or operator.eq
    n, m = len(old), len(new)
    result: Alignment[T] = Alignment()

    # A common prefix matches at distance zero and is taken without running
    # the table.
    prefix = 0
    while prefix < n and prefix < m and eq(old[prefix], new[prefix]):
        result.pairs.append(AlignedPair(prefix, prefix))
        prefix += 1

    suffix = _common_suffix(old, new, prefix, equal)

    old_mid = old[prefix:n - suffix]
    new_mid = new[prefix:m - suffix]
    _align_middle(old_mid, new_mid, eq, prefix, result)

    for offset in range(suffix, 0, -1):
        result.pairs.append(AlignedPair(n - offset, m - offset))

    logger.debug(
        f"Aligned {n} -> {m} items: {len(result.kept)} kept, "
        f"{len(result.deleted)} deleted, {len(result.added)} added"
    )
    return result


def _common_suffix(old, new, prefix: int, equal) -> int:
    """
    Length of the common suffix that can be matched without the table.

    Trimming stops at the first item that also occurs elsewhere in either
    remaining middle, where a duplicate could take part in the match.
    """
    n, m = len(old), len(new)
    limit = min(n, m) - prefix
    suffix = 0

    if equal is None:
        old_counts = Counter(old[prefix:])
        new_counts = Counter(new[prefix:])
        while suffix < limit:
            item = old[n - 1 - suffix]
            if item != new[m - 1 - suffix]:
                break
            if old_counts[item] > 1 or new_counts[item] > 1:
                break
            old_counts[item] -= 1
            new_counts[item] -= 1
            suffix += 1
        return suffix

    while suffix < limit:
        a, b = old[n - 1 - suffix], new[m - 1 - suffix]
        if not equal(a, b):
            break
        old_rest = old[prefix:n - 1 - suffix]
        new_rest = new[prefix:m - 1 - suffix]
        if any(equal(x, b) for x in old_rest) or any(equal(a, y) for y in new_rest):
            break
        suffix += 1
    return suffix


def _align_middle(old, new, eq, base: int, result: Alignment) -> None:
    n, m = len(old), len(new)
    if n == 0 or m == 0:
        result.pairs.extend(AlignedPair(base + i, None) for i in range(n))
        result.pairs.extend(AlignedPair(None, base + j) for j in range(m))
        return

    matches = [[eq(old[i], new[j]) for j in range(m)] for i in range(n)]

    # lcs[i][j]: alignment length of old[i:] against new[j:]
    lcs = [[0] * (m + 1) for _ in range(n + 1)]
    for i in range(n - 1, -1, -1):
        row, below = lcs[i], lcs[i + 1]
        for j in range(m - 1, -1, -1):
            if matches[i][j]:
                row[j] = below[j + 1] + 1
            else:
                row[j] = max(below[j], row[j + 1])

    i = j = 0
    while i < n and j < m:
        if matches[i][j] and lcs[i][j] == lcs[i + 1][j + 1] + 1:
            target = lcs[i][j]
            candidates = [(i, j)]
            for k in range(i + 1, n):
                if lcs[k + 1][j + 1] + 1 < target:
                    break
                if matches[k][j]:
                    candidates.append((k, j))
            for k in range(j + 1, m):
                if lcs[i + 1][k + 1] + 1 < target:
                    break
                if matches[i][k]:
                    candidates.append((i, k))

            chosen = min(candidates, key=lambda c: (abs(c[0] - c[1]), c[0] + c[1]))
            if len(candidates) > 1:
                result.ambiguities.append(
                    Ambiguity(
                        old_index=base + chosen[0],
                        new_index=base + chosen[1],
                        alternatives=tuple(
                            (base + a, base + b) for a, b in candidates if (a, b) != chosen
                        ),
                    )
                )

            while i < chosen[0]:
                result.pairs.append(AlignedPair(base + i, None))
                i += 1
            while j < chosen[1]:
                result.pairs.append(AlignedPair(None, base + j))
                j += 1
            result.pairs.append(AlignedPair(base + i, base + j))
            i += 1
            j += 1
        elif lcs[i + 1][j] >= lcs[i][j + 1]:
            result.pairs.append(AlignedPair(base + i, None))
            i += 1
        else:
            result.pairs.append(AlignedPair(None, base + j))
            j += 1

    while i < n:
        result.pairs.append(AlignedPair(base + i, None))
        i += 1
    while j < m:
        result.pairs.append(AlignedPair(None, base + j))
        j += 1


def pair_gaps(
    alignment: Alignment,
    can_pair: Callable[[int, int], bool],
) -> tuple[list[AlignedPair], set[tuple[int, int]]]:
    """
    Pair deletions with insertions inside each unmatched run.

    Deleted and added items of one run are paired in order (greedy, first
    acceptable partner) whenever ``can_pair(old_index, new_index)`` holds.
    Unpaired items keep their relative order around the new pairs.

    Returns:
        (pairs, paired) - the rewritten pair list and the set of
        ``(old_index, new_index)`` pairs created here
    """
    output: list[AlignedPair] = []
    paired: set[tuple[int, int]] = set()
    gap: list[AlignedPair] = []

    def flush() -> None:
        deleted = [p.old_index for p in gap if p.status == "deleted"]
        added = [p.new_index for p in gap if p.status == "added"]
        matches: list[tuple[int, int]] = []
        start = 0
        for old_index in deleted:
            for position in range(start, len(added)):
                if can_pair(old_index, added[position]):
                    matches.append((old_index, added[position]))
                    start = position + 1
                    break

        used_old = {a for a, _ in matches}
        used_new = {b for _, b in matches}
        rest_old = [d for d in deleted if d not in used_old]
        rest_new = [a for a in added if a not in used_new]

        for old_index, new_index in matches:
            while rest_old and rest_old[0] < old_index:
                output.append(AlignedPair(rest_old.pop(0), None))
            while rest_new and rest_new[0] < new_index:
                output.append(AlignedPair(None, rest_new.pop(0)))
            output.append(AlignedPair(old_index, new_index))
            paired.add((old_index, new_index))
        output.extend(AlignedPair(d, None) for d in rest_old)
        output.extend(AlignedPair(None, a) for a in rest_new)
        gap.clear()

    for pair in alignment.pairs:
        if pair.status == "kept":
            flush()
            output.append(pair)
        else:
            gap.append(pair)
    flush()

    return output, paired
