"""Specialty filter options ranked by how many facilities list them."""

from collections import Counter

from patientsafe.core.models import Facility


def build_specialty_options(facilities: list[Facility], limit: int = 10) -> list[str]:
    """Most frequent specialty strings, trimmed, best first.

    Matching is exact after trimming, so "Cardiology" and "cardiology" are
    counted separately. Ties keep the order in which specialties first appear.
    """
    counts: Counter[str] = Counter()
    for facility in facilities:
        for specialty in facility.raw_specialties:
            normalized = specialty.strip()
            if normalized:
                counts[normalized] += 1
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [specialty for specialty, _ in ranked[:limit]]
