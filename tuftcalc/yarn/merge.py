# Copyright (c) 2026 Coriro
# SPDX-License-Identifier: MIT

"""
Manual record edits: merging colors that are really one yarn, and naming them.

Merging sums every numeric field, including percent_valid: the merged
pixels are treated as one color, so nothing is averaged. The target
(lowest selected index) keeps its id, swatch and name.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable, Optional

from tuftcalc.schema import YarnRecord

_SUMMED_FIELDS = (
    "pixel_count",
    "percent_valid",
    "area_cm2",
    "yarn_length_m_single",
    "yarn_length_m",
    "yarn_weight_g",
    "yarn_weight_with_waste_g",
)


def merge_records(
    records: tuple[YarnRecord, ...],
    indices: Iterable[int],
) -> tuple[YarnRecord, ...]:
    """
    Merge the records at ``indices`` into the first selected one.

    Args:
        records: Current records
        indices: Positions to merge; at least two distinct, in range

    Returns:
        New tuple with the merged record at the target's position and the
        other selected records removed. Cost is None if any merged record
        was unpriced.
    """
    selection = sorted(set(indices))
    if len(selection) < 2:
        raise ValueError("Select two or more records to merge")
    for i in selection:
        if not 0 <= i < len(records):
            raise IndexError(f"Record index {i} out of range (0-{len(records) - 1})")

    merged = [records[i] for i in selection]
    target = merged[0]

    sums = {name: sum(getattr(r, name) for r in merged) for name in _SUMMED_FIELDS}
    costs = [r.cost for r in merged]
    sums["cost"] = None if any(c is None for c in costs) else sum(costs)

    result = replace(target, **sums)
    absorbed = set(selection[1:])
    return tuple(
        result if i == selection[0] else r
        for i, r in enumerate(records)
        if i not in absorbed
    )


def rename_record(
    records: tuple[YarnRecord, ...],
    index: int,
    name: Optional[str],
) -> tuple[YarnRecord, ...]:
    """Label the record at ``index``; a blank name clears the label."""
    if not 0 <= index < len(records):
        raise IndexError(f"Record index {index} out of range (0-{len(records) - 1})")
    label = (name or "").strip() or None
    return tuple(
        replace(r, name=label) if i == index else r
        for i, r in enumerate(records)
    )
