"""
Section-name rules: beam-like section filtering, WB/FWB prefix ranking
and fixed label rules that reserve serials from auto-numbering.
"""

import re
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Optional

from .constants import BEAM_SECTION_PREFIXES, SPECIAL_PREFIXES
from .data_models import Member

_NUMERIC_BEAM = re.compile(r"^\d+(\.\d+)?B")
_SECONDARY_SECTION = re.compile(r"F?SB", re.IGNORECASE)
_SECTION_SIZE = re.compile(r"(\d+)[xX](\d+)")
_FIXED_LABEL = re.compile(r"^([a-z]+)(\d+)")


def is_beam_section(prop: Optional[str]) -> bool:
    """Check whether a section name denotes a beam-like member.

    Accepts the B/G/SB/WB/FB/FGB/FSB/FWB families and names such as
    "2.5B40x60" that start with a number followed by B.
    """
    if not prop:
        return False
    upper = prop.upper()
    return bool(_NUMERIC_BEAM.match(upper)) or upper.startswith(BEAM_SECTION_PREFIXES)


def is_secondary_section(prop: Optional[str]) -> bool:
    """Secondary beams carry SB or FSB in their section name (e.g. "SB30x60", "3.5sb")."""
    return bool(prop) and bool(_SECONDARY_SECTION.search(prop))


def section_area(prop: str) -> float:
    """Area from a "{w}x{h}" section size; infinite when absent."""
    match = _SECTION_SIZE.search(prop)
    if not match:
        return float("inf")
    return float(int(match.group(1)) * int(match.group(2)))


def apply_special_prefix_rules(members: Iterable[Member]) -> Dict[str, str]:
    """Label WB / FWB members by section size rank.

    Every distinct section of a family gets ``{prefix}{n}`` where n is its
    1-based rank by area (smallest first, unsized sections last).

    Returns:
        Member key -> label for members of a special family
    """
    members = list(members)
    labels: Dict[str, str] = {}
    for prefix in SPECIAL_PREFIXES:
        family = [m for m in members if m.prop and m.prop.upper().startswith(prefix)]
        if not family:
            continue
        unique_props = list(dict.fromkeys(m.prop for m in family))
        ranked = sorted(unique_props, key=section_area)
        prop_labels = {prop: f"{prefix}{rank}" for rank, prop in enumerate(ranked, start=1)}
        for member in family:
            labels.setdefault(member.key, prop_labels[member.prop])
    return labels


@dataclass(frozen=True)
class FixedLabelRule:
    """Section name pinned to a fixed label (e.g. stair beam sb25x50 -> g1).

    Both fields are stored lower-case.

    Raises:
        ValueError: If either field is empty or the label lacks letters+number
    """
    section: str
    label: str

    def __post_init__(self):
        section = self.section.strip().lower()
        label = self.label.strip().lower()
        if not section or not label:
            raise ValueError("Fixed label rule needs both a section and a label")
        if not _FIXED_LABEL.match(label):
            raise ValueError(f"Fixed label must look like g1, b1 or ga1: {self.label!r}")
        object.__setattr__(self, "section", section)
        object.__setattr__(self, "label", label)

    @property
    def reserved_serial(self) -> str:
        match = _FIXED_LABEL.match(self.label)
        return f"{match.group(1)}:{int(match.group(2))}"


def reserved_serials_from_rules(rules: Iterable[FixedLabelRule]) -> FrozenSet[str]:
    return frozenset(rule.reserved_serial for rule in rules)


def apply_fixed_labels(
    members: Iterable[Member],
    rules: List[FixedLabelRule],
) -> Dict[str, str]:
    """Map member keys to fixed labels for members whose section has a rule."""
    by_section = {rule.section: rule.label for rule in rules}
    return {
        member.key: by_section[member.prop.lower()]
        for member in members
        if member.prop and member.prop.lower() in by_section
    }
