"""Opening-hours adapter.

Fixture provider: every place is reported open 09:00-18:00 until a real
places API is wired in.
"""

from datetime import date

from travelmind.models.companion import OpeningInfo

DEFAULT_HOURS = "09:00–18:00"


async def fetch_opening_hours(place_ids: list[str], day: date) -> list[OpeningInfo]:
    """Return opening status for each place on a given day."""
    return [
        OpeningInfo(place_id=place_id, name=f"POI {i + 1}", open_now=True, todays_hours=DEFAULT_HOURS)
        for i, place_id in enumerate(place_ids)
    ]
