"""
Floor Labeler - per-story and per-building labeling runs.

Orchestrates the engines for one story:
1. Section rules (fixed labels, WB/FWB ranking) take their members out of
   automatic numbering and reserve their serials
2. Primary beams are labeled against the grid
3. Secondary beams are grouped into building components and chain
   numbered, mirrored across the symmetry axis in mirror mode

Building runs label the first story of every standard floor group and
copy its labels to the other stories of the group by endpoint position.
"""

import logging
from typing import Dict, List, Mapping, Optional, Sequence, Union

from beammark.core.config import LabelingConfig
from beammark.core.data_models import (
    AxisDirection,
    GridCatalog,
    Member,
    MemberGeometry,
    Point,
    PrimaryLabel,
    SecondaryLabel,
    StoryLabels,
    SymmetryAxis,
)
from beammark.core.floor_labels import format_story_key
from beammark.core.sections import (
    FixedLabelRule,
    apply_fixed_labels,
    apply_special_prefix_rules,
    is_beam_section,
    is_secondary_section,
    reserved_serials_from_rules,
)
from beammark.engines.connectivity import component_bounds, find_components
from beammark.engines.floor_groups import StandardFloorIndex, member_signature
from beammark.engines.primary_labeler import generate_primary_labels
from beammark.engines.secondary_labeler import ChainNumberer
from beammark.engines.symmetry import detect_symmetry, match_and_label

logger = logging.getLogger(__name__)


def _component_low(component: List[MemberGeometry], direction: AxisDirection) -> float:
    bounds = component_bounds(component)
    return bounds.min_x if direction == AxisDirection.VERTICAL else bounds.min_y


def _component_high(component: List[MemberGeometry], direction: AxisDirection) -> float:
    bounds = component_bounds(component)
    return bounds.max_x if direction == AxisDirection.VERTICAL else bounds.max_y


def generate_secondary_labels(
    secondary: Sequence[Member],
    primary: Sequence[Member],
    joints: Mapping[str, Point],
    grids: Optional[GridCatalog] = None,
    config: Optional[LabelingConfig] = None,
    symmetry_axis: Optional[SymmetryAxis] = None,
) -> Dict[str, SecondaryLabel]:
    """Number the secondary beams of one story.

    Components are found over secondary and primary beams together, so
    secondary beams framing into the same girders stay in one component,
    then reduced to their secondary members and ordered by their low edge.

    Args:
        secondary: Secondary members to number
        primary: Primary members of the same story
        joints: Joint table
        grids: Grid catalog, for orientation
        config: Labeling configuration
        symmetry_axis: Mirror axis (default: the configured axis)

    Returns:
        Member key -> SecondaryLabel
    """
    config = config or LabelingConfig()
    grids = grids or GridCatalog()
    axis = symmetry_axis or config.symmetry_axis
    direction = axis.direction if axis else AxisDirection.VERTICAL

    secondary_names = {m.name for m in secondary}
    raw_components = find_components(
        list(secondary) + list(primary),
        joints,
        mirror_mode=config.mirror_mode,
        axis_override=axis.value if axis else None,
        tolerance=config.geometric_tolerance,
        symmetry_tolerance=config.symmetry.symmetry_tolerance,
        direction=direction,
    )
    components = [[g for g in comp if g.name in secondary_names] for comp in raw_components]
    components = sorted((comp for comp in components if comp), key=lambda c: _component_low(c, direction))
    if not components:
        return {}

    numberer = ChainNumberer(
        grids,
        config.secondary.prefix,
        config.reserved_serials,
        config.position_tolerance,
        config.angle_tolerance,
    )
    labels: Dict[str, SecondaryLabel] = {}

    if not config.mirror_mode or len(components) < 2:
        counter = config.secondary.effective_horizontal_start
        vertical_start = config.secondary.effective_vertical_start
        for component in components:
            result = numberer.number([g.member for g in component], joints, counter, vertical_start)
            labels.update(result.labels)
            counter = result.next_counter
            if result.vertical_start_used:
                vertical_start = None
        logger.info(f"Sequential numbering: {len(labels)} secondary beam(s) in {len(components)} component(s)")
        return labels

    master, slave = components[0], components[1]
    axis_value = axis.value if axis else (_component_high(master, direction) + _component_low(slave, direction)) / 2
    mirrored = match_and_label(
        [g.member for g in master],
        [g.member for g in slave],
        axis_value,
        joints,
        grids,
        config,
        direction=direction,
    )
    labels.update(mirrored.labels)

    counter = mirrored.next_counter
    for component in components[2:]:
        result = numberer.number([g.member for g in component], joints, counter)
        labels.update(result.labels)
        counter = result.next_counter

    return labels


def label_story(
    story: str,
    members: Sequence[Member],
    joints: Mapping[str, Point],
    grids: GridCatalog,
    config: Optional[LabelingConfig] = None,
    rules: Sequence[FixedLabelRule] = (),
    detect_axis: bool = False,
) -> StoryLabels:
    """Label every beam of one story.

    Args:
        story: Story name
        members: Members of the building; only beam sections of ``story`` are used
        joints: Joint table
        grids: Grid catalog
        config: Labeling configuration
        rules: Fixed label rules
        detect_axis: In mirror mode without a configured axis, detect one

    Returns:
        StoryLabels for the story
    """
    config = config or LabelingConfig()
    beams = [m for m in members if m.story == story and is_beam_section(m.prop)]
    result = StoryLabels(story=story)

    fixed = apply_fixed_labels(beams, list(rules))
    for key, label in apply_special_prefix_rules(beams).items():
        fixed.setdefault(key, label)
    result.fixed = fixed

    reserved = config.reserved_serials | reserved_serials_from_rules(rules)
    if reserved != config.reserved_serials:
        config = config.with_reserved_serials(reserved)

    numbered = [m for m in beams if m.key not in fixed]
    primary = [m for m in numbered if not is_secondary_section(m.prop)]
    secondary = [m for m in numbered if is_secondary_section(m.prop)]

    axis = config.symmetry_axis
    if config.mirror_mode and axis is None and detect_axis:
        axis = detect_symmetry(beams, joints, grids, config.symmetry)
    result.symmetry_axis = axis

    result.primary = generate_primary_labels(primary, joints, grids, config)
    result.secondary = generate_secondary_labels(secondary, primary, joints, grids, config, axis)

    logger.info(
        f"Story {story}: {len(result.primary)} primary, {len(result.secondary)} secondary, "
        f"{len(result.fixed)} fixed label(s)"
    )
    return result


def _signatures(story: str, members: Sequence[Member], joints: Mapping[str, Point]) -> Dict[str, str]:
    """Member key -> endpoint signature for one story."""
    signatures = {}
    for member in members:
        if member.story != story:
            continue
        geometry = MemberGeometry.resolve(member, joints)
        if geometry is not None:
            signatures[member.key] = member_signature(geometry)
    return signatures


def propagate_labels(
    source: StoryLabels,
    target_story: str,
    members: Sequence[Member],
    joints: Mapping[str, Point],
) -> StoryLabels:
    """Copy a story's labels to a story with the same layout.

    Target members take the label of the source member at the same
    (rounded, direction-independent) position.
    """
    by_signature: Dict[str, str] = {}
    for key, signature in _signatures(source.story, members, joints).items():
        by_signature.setdefault(signature, key)

    result = StoryLabels(story=target_story, symmetry_axis=source.symmetry_axis)
    for key, signature in _signatures(target_story, members, joints).items():
        source_key = by_signature.get(signature)
        if source_key is None:
            continue
        if source_key in source.primary:
            result.primary[key] = source.primary[source_key]
        if source_key in source.secondary:
            result.secondary[key] = source.secondary[source_key]
        if source_key in source.fixed:
            result.fixed[key] = source.fixed[source_key]
    return result


def label_building(
    stories: Sequence[str],
    members: Sequence[Member],
    joints: Mapping[str, Point],
    grids: GridCatalog,
    config: Optional[LabelingConfig] = None,
    rules: Sequence[FixedLabelRule] = (),
    index: Optional[StandardFloorIndex] = None,
    detect_axis: bool = False,
) -> Dict[str, StoryLabels]:
    """Label all stories, once per standard floor group.

    Args:
        stories: Story names in walking order
        members: Members of all stories
        joints: Joint table
        grids: Grid catalog
        config: Labeling configuration
        rules: Fixed label rules
        index: Standard floor index to reuse (built when omitted)
        detect_axis: Detect a mirror axis per group in mirror mode

    Returns:
        Story name -> StoryLabels, in story order
    """
    index = index or StandardFloorIndex(stories, members, joints)
    results: Dict[str, StoryLabels] = {}
    for group in index.groups():
        head = label_story(group[0], members, joints, grids, config, rules, detect_axis)
        results[head.story] = head
        for story in group[1:]:
            results[story] = propagate_labels(head, story, members, joints)
        if len(group) > 1:
            logger.info(f"Standard floor group {group[0]}..{group[-1]}: labels shared by {len(group)} stories")

    return {story: results[story] for story in stories if story in results}


def story_keyed_labels(results: Mapping[str, StoryLabels]) -> Dict[str, Union[PrimaryLabel, SecondaryLabel, str]]:
    """All labels keyed "{story}|{name}|{joint1}|{joint2}".

    Fixed labels take precedence over engine labels for the same member.
    """
    keyed: Dict[str, Union[PrimaryLabel, SecondaryLabel, str]] = {}
    for story, labels in results.items():
        for source in (labels.primary, labels.secondary, labels.fixed):
            for key, label in source.items():
                keyed[format_story_key(story, key)] = label
    return keyed
