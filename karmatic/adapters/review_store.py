"""
Review store adapter: serves agencies and their reviews from JSON seed data.

The pipeline only needs `async get_reviews(place_id)`, so scraped, cached or
hand-written seed reviews all plug in the same way.
"""
import json
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Sequence

from karmatic.schemas import Agency, AgencyWithReviews, Review
import config


class ReviewSource(Protocol):
    """Anything that can return the reviews of one agency"""

    async def get_reviews(self, place_id: str) -> List[Review]:
        ...


class InMemoryReviewStore:
    """
    Review source backed by a dict of place_id -> reviews.

    Used for request payloads that carry their own reviews.
    """

    def __init__(self, agencies: Sequence[AgencyWithReviews] = ()):
        self._agencies: Dict[str, Agency] = {}
        self._reviews: Dict[str, List[Review]] = {}
        for agency in agencies:
            self.add(agency)

    def add(self, agency: AgencyWithReviews):
        self._agencies[agency.place_id] = Agency.model_validate(
            agency.model_dump(exclude={"reviews"})
        )
        self._reviews[agency.place_id] = list(agency.reviews)

    async def get_reviews(self, place_id: str) -> List[Review]:
        """Reviews for place_id, [] when unknown"""
        return list(self._reviews.get(place_id, []))

    def get_agency(self, place_id: str) -> Optional[Agency]:
        return self._agencies.get(place_id)

    def list_agencies(self) -> List[Agency]:
        return list(self._agencies.values())

    def get_agency_count(self) -> int:
        return len(self._agencies)


class JSONReviewStore(InMemoryReviewStore):
    """
    Seed data loaded from a JSON file.

    Expected shape:
        {"agencies": [{"placeId": ..., "name": ..., "reviews": [...]}, ...]}
    """

    def __init__(self, path: Path = config.SEED_DATA_FILE):
        super().__init__()
        self.path = Path(path)
        self.loaded = False

    def load(self) -> int:
        """
        (Re)load seed data from disk.

        Returns:
            Number of agencies loaded (0 if the file does not exist)

        Raises:
            json.JSONDecodeError / pydantic.ValidationError on malformed files
        """
        self._agencies.clear()
        self._reviews.clear()

        if not self.path.exists():
            self.loaded = True
            return 0

        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)

        for item in data.get("agencies", []):
            self.add(AgencyWithReviews.model_validate(item))

        self.loaded = True
        return self.get_agency_count()

    def _ensure_loaded(self):
        if not self.loaded:
            self.load()

    async def get_reviews(self, place_id: str) -> List[Review]:
        self._ensure_loaded()
        return await super().get_reviews(place_id)

    def get_agency(self, place_id: str) -> Optional[Agency]:
        self._ensure_loaded()
        return super().get_agency(place_id)

    def list_agencies(self) -> List[Agency]:
        self._ensure_loaded()
        return super().list_agencies()

    def get_agency_count(self) -> int:
        if not self.loaded:
            self.load()
        return len(self._agencies)


# Global instance
seed_store = JSONReviewStore()
