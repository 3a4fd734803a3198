"""
Main Name Canonicalization

Capture-point graphs name their "main" bases inconsistently: the same base
can appear as "Team1Main", "Team1_Main_2" or "Team1 Main" across links and
actors. Everything that reports a main goes through normalize_main_name so
paths, links and objective entries agree on one display token.
"""

from __future__ import annotations

import re
from typing import Dict, Optional, Sequence

MAIN_TOKEN = "Main"
MAIN_SUFFIX = " Main"
ATTACK_MAIN_LABEL = "00-Team1 Main"
DEFENSE_MAIN_LABEL = "Z-Team2 Main"

_TRAILING_INDEX = re.compile(r'_\d+$')


def normalize_main_name(raw_name: Optional[str]) -> Optional[str]:
    """
    Normalize a raw main node name to its display form.

    Strips one trailing "_<digits>" index, then makes sure "Main" is preceded
    by a single space. A separating underscore becomes that space.

    Examples:
        >>> normalize_main_name("Team1_Main_2")
        "Team1 Main"
        >>> normalize_main_name("Team1Main")
        "Team1 Main"
        >>> normalize_main_name("Team1 Main")
        "Team1 Main"
    """
    if raw_name is None:
        return None
    trimmed = raw_name.strip()
    if not trimmed:
        return trimmed

    without_suffix = _TRAILING_INDEX.sub('', trimmed, count=1)
    index = without_suffix.find(MAIN_TOKEN)
    if index <= 0 or without_suffix[index - 1] == ' ':
        return without_suffix

    head = without_suffix[:index]
    if head.endswith('_'):
        head = head[:-1]
    return f"{head} {without_suffix[index:]}"


def is_main_name(raw_name: Optional[str]) -> bool:
    """True when the raw node name denotes a main base."""
    if not raw_name or MAIN_TOKEN not in raw_name:
        return False
    return normalize_main_name(raw_name).endswith(MAIN_SUFFIX)


def canonicalize_mains(mains_in_order: Sequence[str]) -> Dict[str, str]:
    """Map every raw main name to its normalized display form, first-seen order."""
    return {raw: normalize_main_name(raw) for raw in mains_in_order}


def main_overrides(mains_in_order: Sequence[str],
                   attack_label: str = ATTACK_MAIN_LABEL,
                   defense_label: str = DEFENSE_MAIN_LABEL) -> Dict[str, str]:
    """
    Team labels for the two ends of the push line.

    The first main is the attacking team's base; the last one (if there is
    more than one) is the defenders'. Blank names are ignored.
    """
    overrides: Dict[str, str] = {}
    if not mains_in_order:
        return overrides
    first = mains_in_order[0]
    if first and first.strip():
        overrides[first] = attack_label
    if len(mains_in_order) > 1:
        last = mains_in_order[-1]
        if last and last.strip():
            overrides[last] = defense_label
    return overrides
