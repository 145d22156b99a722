"""Overlap between paid and organic placements of a tracked domain.

Waste means the ad bought no shelf space the organic ranking did not already
give. Both lists are indexed separately, so the distance between the ad and the
organic hit is approximated as the paid slots below the tracked ad plus the
organic slots above the tracked organic result::

    gap = (len(sea) - first_sea - 1) + first_seo

``gap == 0`` is waste. ``gap == 1`` is also waste when the only organic slot in
between belongs to the parent domain.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from adwaste.models import ResultEntry, SearchResultSet, WasteAssessment

logger = logging.getLogger(__name__)


class EmptyOrganicSet(ValueError):
    """Density is undefined when no organic result was extracted."""


def first_position(entries: Iterable[ResultEntry], domain: str) -> int:
    for entry in entries:
        if entry.domain == domain:
            return entry.position
    return -1


def organic_density(result_set: SearchResultSet, tracked_domain: str, parent_domain: Optional[str] = None) -> float:
    """Share of organic entries belonging to the tracked (and optionally parent) domain."""
    if not result_set.seo:
        raise EmptyOrganicSet(f"no organic results for keywords={result_set.keywords!r}")
    matching = {tracked_domain}
    if parent_domain:
        matching.add(parent_domain)
    hits = sum(1 for entry in result_set.seo if entry.domain in matching)
    return hits / len(result_set.seo)


def compute_gap(sea_count: int, first_sea: int, first_seo: int) -> int:
    return (sea_count - first_sea - 1) + first_seo


def assess_waste(
    result_set: SearchResultSet,
    tracked_domain: str,
    parent_domain: Optional[str] = None,
    *,
    density_includes_parent: bool = False,
) -> WasteAssessment:
    first_sea = first_position(result_set.sea, tracked_domain)
    first_seo = first_position(result_set.seo, tracked_domain)

    gap: Optional[int] = None
    waste = False
    if first_sea > -1 and first_seo > -1:
        gap = compute_gap(len(result_set.sea), first_sea, first_seo)
        if gap == 0:
            waste = True
        elif gap == 1 and parent_domain and result_set.seo[0].domain == parent_domain:
            waste = True
        logger.info(
            "Tracked space for %s: gap=%s len(sea)=%s sea=%s seo=%s",
            tracked_domain,
            gap,
            len(result_set.sea),
            first_sea,
            first_seo,
        )

    try:
        density: Optional[float] = organic_density(
            result_set,
            tracked_domain,
            parent_domain if density_includes_parent else None,
        )
    except EmptyOrganicSet as exc:
        logger.warning("Organic density unavailable: %s", exc)
        density = None

    return WasteAssessment(
        tracked_domain=tracked_domain,
        parent_domain=parent_domain,
        first_sea_position=first_sea,
        first_seo_position=first_seo,
        gap=gap,
        density=density,
        waste=waste,
    )


def describe_ranking(assessment: WasteAssessment) -> str:
    """One-line verdict comparing the paid and organic placement of the tracked domain."""
    domain = assessment.tracked_domain
    sea, seo = assessment.first_sea_position, assessment.first_seo_position
    if sea == -1 and seo == -1:
        return f"no paid and no organic result for {domain}"
    if sea == -1:
        return f"no paid result for {domain}"
    if seo == -1:
        return f"no organic result for {domain}"
    if seo <= sea:
        return f"organic ranking of {domain} is better than or equal to its paid result"
    return f"paid result of {domain} ranks better than its organic result"
