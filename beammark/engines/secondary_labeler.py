"""
Secondary Labeler - chain numbering for secondary (infill) beams.

Axis-aligned secondary beams are grouped into horizontal and vertical
runs. Within each run, beams joined end-to-start are chained and share one
number: a single beam is ``b7``, a chain of three is ``b7-1``, ``b7-2``,
``b7-3``. Vertical numbering restarts at the next decade (``b11``,
``b21``...) unless an explicit vertical start is configured.
"""

import logging
import math
import re
from dataclasses import dataclass, field
from typing import AbstractSet, Dict, Iterable, List, Mapping, Optional, Tuple

from beammark.core.config import normalize_reserved_serials
from beammark.core.constants import ANGLE_TOLERANCE, DEFAULT_SECONDARY_PREFIX, POSITION_TOLERANCE, UNLABELED_TAG
from beammark.core.data_models import GridCatalog, Member, Point, SecondaryLabel
from beammark.core.exceptions import InvalidLabelError
from beammark.engines.orientation import AnalyzedMember, analyze_members

logger = logging.getLogger(__name__)

_CHAIN_LABEL = re.compile(r"^(.+?)(\d+)-(\d+)$")


def next_decade_start(last_used: int) -> int:
    """Round a last-used number up to the next "decade + 1".

    7 -> 11, 10 -> 11, 13 -> 21.
    """
    if last_used % 10 == 0:
        return last_used + 1
    return math.ceil(last_used / 10) * 10 + 1


def unlabeled_label(prefix: str) -> str:
    return f"{prefix.upper()}-{UNLABELED_TAG}"


@dataclass(frozen=True)
class _ChainLink:
    member: AnalyzedMember
    start_joint: str
    end_joint: str
    start: Point


@dataclass
class ChainResult:
    """Output of one chain numbering pass.

    Attributes:
        labels: Member key -> SecondaryLabel
        next_counter: First number available to the next pass
        vertical_start_used: True when the vertical start override was consumed
    """
    labels: Dict[str, SecondaryLabel] = field(default_factory=dict)
    next_counter: int = 1
    vertical_start_used: bool = False


def _canonical_link(member: AnalyzedMember) -> _ChainLink:
    """Orient a member so its start has the smaller coordinate along its run."""
    geometry = member.geometry
    start_joint, end_joint = geometry.member.joint1, geometry.member.joint2
    start = geometry.j1
    flip = (member.is_horizontal and geometry.j1.x > geometry.j2.x) or (
        member.is_vertical and geometry.j1.y > geometry.j2.y
    )
    if flip:
        start_joint, end_joint = end_joint, start_joint
        start = geometry.j2
    return _ChainLink(member=member, start_joint=start_joint, end_joint=end_joint, start=start)


def _build_chains(group: List[_ChainLink]) -> List[List[_ChainLink]]:
    """Greedy chaining: extend from each unprocessed link while a link starts at the tail."""
    processed = set()
    chains = []
    for head in group:
        if head.member.key in processed:
            continue
        processed.add(head.member.key)
        chain = [head]
        tail = head
        while True:
            next_link = next(
                (
                    link for link in group
                    if link.member.key not in processed and link.start_joint == tail.end_joint
                ),
                None,
            )
            if next_link is None:
                break
            processed.add(next_link.member.key)
            chain.append(next_link)
            tail = next_link
        chains.append(chain)
    return chains


class ChainNumberer:
    """Chain numbering over one set of secondary beams.

    Args:
        grids: Grid catalog used to resolve member orientation
        prefix: Label prefix
        reserved_serials: "prefix:number" tokens to skip
    """

    def __init__(
        self,
        grids: Optional[GridCatalog] = None,
        prefix: str = DEFAULT_SECONDARY_PREFIX,
        reserved_serials: AbstractSet[str] = frozenset(),
        position_tolerance: float = POSITION_TOLERANCE,
        angle_tolerance: float = ANGLE_TOLERANCE,
    ):
        self.grids = grids or GridCatalog()
        self.prefix = prefix
        self.reserved_serials = normalize_reserved_serials(reserved_serials)
        self.position_tolerance = position_tolerance
        self.angle_tolerance = angle_tolerance

    def _skip_reserved(self, counter: int) -> int:
        while f"{self.prefix.lower()}:{counter}" in self.reserved_serials:
            counter += 1
        return counter

    def number(
        self,
        members: Iterable[Member],
        joints: Mapping[str, Point],
        start_counter: int = 1,
        vertical_start_override: Optional[int] = None,
    ) -> ChainResult:
        """Number members chain by chain, horizontal runs first.

        Args:
            members: Secondary members to number
            joints: Joint table
            start_counter: First number for the horizontal run
            vertical_start_override: First number for the vertical run,
                used once instead of the decade round-up

        Returns:
            ChainResult with labels and the next free counter
        """
        analyzed = analyze_members(members, joints, self.grids, self.position_tolerance, self.angle_tolerance)
        result = ChainResult(next_counter=start_counter)

        for member in analyzed:
            if member.is_diagonal:
                logger.debug(f"Secondary beam {member.name} is not aligned with any axis, left unlabeled")
                result.labels[member.key] = SecondaryLabel(
                    new_label=unlabeled_label(self.prefix),
                    is_diagonal=True,
                    unlabeled=True,
                )

        links = [_canonical_link(m) for m in analyzed if not m.is_diagonal]
        horizontal = sorted(
            (link for link in links if link.member.is_horizontal),
            key=lambda link: (link.start.y, link.start.x),
        )
        vertical = sorted(
            (link for link in links if link.member.is_vertical),
            key=lambda link: (link.start.x, link.start.y),
        )

        counter = start_counter
        for run_index, group in enumerate((horizontal, vertical)):
            if run_index == 1 and counter > 1:
                if vertical_start_override is not None:
                    counter = vertical_start_override
                    vertical_start_override = None
                    result.vertical_start_used = True
                else:
                    counter = next_decade_start(counter - 1)

            for chain in _build_chains(group):
                counter = self._skip_reserved(counter)
                if len(chain) > 1:
                    for position, link in enumerate(chain, start=1):
                        result.labels[link.member.key] = SecondaryLabel(
                            new_label=f"{self.prefix}{counter}-{position}"
                        )
                else:
                    result.labels[chain[0].member.key] = SecondaryLabel(
                        new_label=f"{self.prefix}{counter}"
                    )
                counter += 1

        result.next_counter = counter
        return result


def number_chain(
    members: Iterable[Member],
    joints: Mapping[str, Point],
    grids: Optional[GridCatalog] = None,
    start_counter: int = 1,
    vertical_start_override: Optional[int] = None,
    prefix: str = DEFAULT_SECONDARY_PREFIX,
    reserved_serials: AbstractSet[str] = frozenset(),
) -> ChainResult:
    """Chain-number secondary members; see ChainNumberer.number."""
    numberer = ChainNumberer(grids, prefix, reserved_serials)
    return numberer.number(members, joints, start_counter, vertical_start_override)


def update_sequential_labels(
    old_label: str,
    new_label: str,
    labels: Mapping[str, str],
    strict: bool = False,
) -> Tuple[Dict[str, str], int]:
    """Carry a chain relabel over to the rest of the chain.

    Renaming ``b3-2`` to ``b7-5`` renames the later members of chain b3:
    ``b3-3`` -> ``b7-6``, ``b3-4`` -> ``b7-7``. Earlier members are kept.

    Args:
        old_label: Label before the edit
        new_label: Label after the edit
        labels: Member key -> current label, for one story
        strict: Raise instead of returning unchanged for non-chain labels

    Returns:
        (updated mapping, number of labels changed)

    Raises:
        InvalidLabelError: In strict mode, when either label is not a chain label
    """
    old_match = _CHAIN_LABEL.match(old_label)
    new_match = _CHAIN_LABEL.match(new_label)
    updated = dict(labels)

    if not old_match or not new_match:
        if strict:
            raise InvalidLabelError(f"Not a chain label: {old_label!r} -> {new_label!r}")
        logger.debug(f"Sequential update skipped, {old_label!r} -> {new_label!r} is not a chain edit")
        return updated, 0

    old_base = f"{old_match.group(1)}{old_match.group(2)}"
    new_base = f"{new_match.group(1)}{new_match.group(2)}"
    if old_base == new_base:
        return updated, 0

    current_position = int(old_match.group(3))
    new_start = int(new_match.group(3))

    count = 0
    for key, label in labels.items():
        match = _CHAIN_LABEL.match(label)
        if not match:
            continue
        position = int(match.group(3))
        if f"{match.group(1)}{match.group(2)}" == old_base and position > current_position:
            updated[key] = f"{new_base}-{position - current_position + new_start}"
            count += 1

    logger.info(f"Sequential update {old_base} -> {new_base}: {count} label(s) changed")
    return updated, count
