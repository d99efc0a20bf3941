"""Location label -> travel distance lookup."""

from __future__ import annotations

from typing import Mapping

from ..core.config import settings


def resolve_distance(
    location: str,
    table: Mapping[str, int] | None = None,
    default: int | None = None,
) -> int:
    """Return the kilometers for ``location``.

    A table key matches when it appears anywhere in the label (case
    sensitive); keys are tried in table order. Unmatched labels fall back to
    ``default``.
    """
    if table is None:
        table = settings.LOCATION_DISTANCES
    if default is None:
        default = settings.DEFAULT_DISTANCE_KM
    label = location or ""
    for key, kilometers in table.items():
        if key and key in label:
            return int(kilometers)
    return int(default)
