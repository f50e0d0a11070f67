"""Shared floor label formatting for standard floor summaries."""

from typing import Iterable, Mapping


def summarize_floors(floors: Iterable[str], story_order: Mapping[str, int]) -> str:
    """Collapse story names into ranges, e.g. "2F~5F, 7F".

    Consecutive stories are those whose order indices differ by one.
    """
    floors = list(floors)
    if not floors:
        return ""
    if len(floors) == 1:
        return floors[0]

    ordered = sorted(floors, key=lambda story: story_order[story])
    ranges = []
    range_start = ordered[0]

    for previous, current in zip(ordered, ordered[1:]):
        if story_order[current] != story_order[previous] + 1:
            ranges.append(_format_range(range_start, previous))
            range_start = current

    ranges.append(_format_range(range_start, ordered[-1]))
    return ", ".join(ranges)


def _format_range(start: str, end: str) -> str:
    if start == end:
        return start
    return f"{start}~{end}"


def format_story_key(story: str, member_key: str) -> str:
    """Prefix a "{name}|{joint1}|{joint2}" key with its story."""
    return f"{story}|{member_key}"
