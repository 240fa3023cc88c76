"""Live state vector fetcher."""

from typing import Any

from src.utils import logger
from src.ingestion.components.client import OpenSkyClient


class VectorFetcher:
    """
    Fetches raw state vectors for every tracked aircraft.

    Upstream failures propagate unchanged: a refresh must abort rather than
    publish a snapshot built from a partial fetch.
    """

    def __init__(self, client: OpenSkyClient):
        self.client = client

    def fetch(self) -> list[list[Any]]:
        """Return the raw state tuples, in upstream order."""
        response = self.client.get_states()
        states = response.get("states") or []
        logger.info(f"Fetched {len(states)} raw state vectors (capture time {response.get('time')})")
        return states


__all__ = ["VectorFetcher"]
