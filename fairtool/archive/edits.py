"""Shortest edit scripts between two byte sequences."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

# Initial span used when scanning a run of equal bytes; doubled on each hit.
_SNAKE_STEP = 64


@dataclass(frozen=True)
class EditScript:
    """Offsets that turn ``source`` into ``target``.

    ``removals`` index into the source sequence and ``insertions`` index into
    the target sequence. When the search was capped the script is marked
    ``truncated`` and ``distance`` is only a lower bound; no offsets are kept.
    """

    insertions: Tuple[int, ...] = ()
    removals: Tuple[int, ...] = ()
    truncated: bool = False
    distance: int = 0

    @property
    def total_changes(self) -> int:
        if self.truncated:
            return self.distance
        return len(self.insertions) + len(self.removals)

    def insertion_ranges(self, limit: int | None = None) -> List[range]:
        return _collapse(self.insertions, limit)

    def removal_ranges(self, limit: int | None = None) -> List[range]:
        return _collapse(self.removals, limit)

    def describe(self, limit: int = 10) -> str:
        if self.truncated:
            return f"more than {self.distance - 1} changes"
        return (
            f"{len(self.insertions)} insertions in {len(self.insertion_ranges())} ranges "
            f"{_format_ranges(self.insertion_ranges(limit))} and "
            f"{len(self.removals)} removals in {len(self.removal_ranges())} ranges "
            f"{_format_ranges(self.removal_ranges(limit))}"
        )


def compute_edit_script(
    source: Sequence[int] | bytes,
    target: Sequence[int] | bytes,
    max_changes: Optional[int] = None,
) -> EditScript:
    """Return the minimal insert/remove script turning ``source`` into ``target``.

    Uses the greedy O((N+M)D) algorithm from Myers' "An O(ND) Difference
    Algorithm". ``max_changes`` bounds ``D``; once the distance is known to
    exceed it the search stops and a truncated script is returned.
    """
    n, m = len(source), len(target)
    limit = n + m if max_changes is None else min(n + m, max(max_changes, 0))

    if abs(n - m) > limit:
        return EditScript(truncated=True, distance=abs(n - m))

    frontier: Dict[int, int] = {1: 0}
    trace: List[Dict[int, int]] = []

    for d in range(limit + 1):
        trace.append(dict(frontier))
        for k in range(-d, d + 1, 2):
            if k == -d or (k != d and frontier[k - 1] < frontier[k + 1]):
                x = frontier[k + 1]
            else:
                x = frontier[k - 1] + 1
            y = x - k
            x, y = _follow_snake(source, target, x, y)
            frontier[k] = x
            if x >= n and y >= m:
                return _backtrack(trace, n, m)

    return EditScript(truncated=True, distance=limit + 1)


# ---------------------------------------------------------------------------
# Internals
# ---------------------------------------------------------------------------


def _follow_snake(source, target, x: int, y: int) -> Tuple[int, int]:
    n, m = len(source), len(target)
    step = _SNAKE_STEP
    while x < n and y < m:
        span = min(step, n - x, m - y)
        if source[x : x + span] == target[y : y + span]:
            x += span
            y += span
            step *= 2
        elif span == 1:
            break
        else:
            step = max(1, span // 2)
    return x, y


def _backtrack(trace: List[Dict[int, int]], n: int, m: int) -> EditScript:
    insertions: List[int] = []
    removals: List[int] = []
    x, y = n, m
    for d in range(len(trace) - 1, 0, -1):
        frontier = trace[d]
        k = x - y
        if k == -d or (k != d and frontier[k - 1] < frontier[k + 1]):
            prev_k = k + 1
        else:
            prev_k = k - 1
        prev_x = frontier[prev_k]
        prev_y = prev_x - prev_k
        if prev_k == k + 1:
            insertions.append(prev_y)
        else:
            removals.append(prev_x)
        x, y = prev_x, prev_y

    insertions.reverse()
    removals.reverse()
    return EditScript(
        insertions=tuple(insertions),
        removals=tuple(removals),
        distance=len(insertions) + len(removals),
    )


def _collapse(offsets: Sequence[int], limit: int | None) -> List[range]:
    ranges: List[range] = []
    start: int | None = None
    previous = 0
    for offset in offsets:
        if start is None:
            start = previous = offset
            continue
        if offset == previous + 1:
            previous = offset
            continue
        ranges.append(range(start, previous + 1))
        if limit is not None and len(ranges) >= limit:
            return ranges
        start = previous = offset
    if start is not None:
        ranges.append(range(start, previous + 1))
    if limit is not None:
        return ranges[:limit]
    return ranges


def _format_ranges(ranges: Sequence[range]) -> str:
    return "[" + ", ".join(f"{r.start}..<{r.stop}" for r in ranges) + "]"


__all__ = ["EditScript", "compute_edit_script"]
