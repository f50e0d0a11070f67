"""
Standard floor grouping.

A floor's fingerprint is the sorted list of its members' endpoint pairs,
rounded and direction-independent. Consecutive stories with equal,
non-empty fingerprints form a standard floor group and share labels.
"""

import logging
from typing import Dict, List, Mapping, Optional, Sequence

from beammark.core.constants import FINGERPRINT_PRECISION
from beammark.core.data_models import Member, MemberGeometry, Point

logger = logging.getLogger(__name__)


def _point_string(point: Point, precision: int) -> str:
    return f"{point.x:.{precision}f},{point.y:.{precision}f}"


def member_signature(geometry: MemberGeometry, precision: int = FINGERPRINT_PRECISION) -> str:
    """Endpoint pair of a member with the smaller point string first."""
    first = _point_string(geometry.j1, precision)
    second = _point_string(geometry.j2, precision)
    if second < first:
        first, second = second, first
    return f"{first}|{second}"


def floor_fingerprint(
    story: str,
    members: Sequence[Member],
    joints: Mapping[str, Point],
    precision: int = FINGERPRINT_PRECISION,
) -> str:
    """Canonical geometry string of one story; empty when it has no members.

    Example:
        One beam from (0, 0) to (5, 0) gives "0.00,0.00|5.00,0.00".
    """
    signatures = []
    for member in members:
        if member.story != story:
            continue
        geometry = MemberGeometry.resolve(member, joints)
        if geometry is None:
            continue
        signatures.append(member_signature(geometry, precision))
    return ";".join(sorted(signatures))


def group_standard_floors(
    stories: Sequence[str],
    members: Sequence[Member],
    joints: Mapping[str, Point],
    story_order: Optional[Mapping[str, int]] = None,
) -> List[List[str]]:
    """Group consecutive stories with identical layouts.

    Args:
        stories: Story names, in walking order unless story_order is given
        members: Members of all stories
        joints: Joint table
        story_order: Optional story -> order index used to sort stories;
            stories missing from it follow the ordered ones in input order

    Returns:
        Groups of story names; stories with an empty fingerprint stand alone
    """
    if not stories:
        return []
    ordered = list(stories)
    if story_order:
        unknown = [s for s in ordered if s not in story_order]
        if unknown:
            logger.warning(f"Stories without an order index kept in input order: {', '.join(unknown)}")
        positions = {story: i for i, story in enumerate(ordered)}
        ordered.sort(key=lambda s: (0, story_order[s]) if s in story_order else (1, positions[s]))
    fingerprints = [floor_fingerprint(story, members, joints) for story in ordered]

    groups = [[ordered[0]]]
    for i in range(1, len(ordered)):
        if fingerprints[i] and fingerprints[i] == fingerprints[i - 1]:
            groups[-1].append(ordered[i])
        else:
            groups.append([ordered[i]])
    return groups


class StandardFloorIndex:
    """Standard floor groups of a building, recomputed per data version.

    Callers bump the version with ``invalidate()`` (or ``update()``)
    whenever members or joints change; ``groups()`` recomputes at most
    once per version.
    """

    def __init__(
        self,
        stories: Sequence[str],
        members: Sequence[Member],
        joints: Mapping[str, Point],
        story_order: Optional[Mapping[str, int]] = None,
    ):
        self.stories = list(stories)
        self.members = list(members)
        self.joints = joints
        self.story_order = story_order
        self.version = 0
        self._cached_version: Optional[int] = None
        self._groups: List[List[str]] = []

    def invalidate(self) -> int:
        self.version += 1
        return self.version

    def update(
        self,
        members: Optional[Sequence[Member]] = None,
        joints: Optional[Mapping[str, Point]] = None,
        stories: Optional[Sequence[str]] = None,
    ) -> int:
        """Replace source data and invalidate the cached groups."""
        if members is not None:
            self.members = list(members)
        if joints is not None:
            self.joints = joints
        if stories is not None:
            self.stories = list(stories)
        return self.invalidate()

    def groups(self) -> List[List[str]]:
        if self._cached_version != self.version:
            self._groups = group_standard_floors(self.stories, self.members, self.joints, self.story_order)
            self._cached_version = self.version
            logger.info(f"Standard floor groups (version {self.version}): {len(self._groups)} group(s)")
        return self._groups

    def group_for_story(self, story: str) -> Optional[List[str]]:
        return next((group for group in self.groups() if story in group), None)

    def find_members_at_same_position(self, member: Member, floors: Sequence[str]) -> List[Member]:
        """Members of other floors whose endpoints equal this member's exactly.

        Endpoints are compared in joint order without rounding, so only
        members drawn in the same direction match.
        """
        geometry = MemberGeometry.resolve(member, self.joints)
        if geometry is None:
            logger.debug(f"No coordinates for {member.story} {member.name}")
            return []

        by_story: Dict[str, List[MemberGeometry]] = {}
        for other in self.members:
            if other.story in floors and other.story != member.story:
                resolved = MemberGeometry.resolve(other, self.joints)
                if resolved is not None:
                    by_story.setdefault(other.story, []).append(resolved)

        results = []
        for floor in floors:
            if floor == member.story:
                continue
            match = next(
                (g for g in by_story.get(floor, []) if g.j1 == geometry.j1 and g.j2 == geometry.j2),
                None,
            )
            if match is not None:
                results.append(match.member)
        return results
