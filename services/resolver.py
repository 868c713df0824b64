"""Lookup of telemetry targets among provisioned houses."""

from __future__ import annotations

from app.schemas import House
from services.errors import ResolutionError
from datastore.houses import HouseStore


class EntityResolver:
    """Exact-id lookup; unknown ids are reported, never auto-provisioned."""

    def __init__(self, store: HouseStore) -> None:
        self.store = store

    def resolve(self, house_id: str) -> House:
        house = self.store.get(house_id)
        if house is None:
            raise ResolutionError(house_id)
        return house
