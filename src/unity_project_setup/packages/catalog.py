from __future__ import annotations

import logging
from concurrent.futures import Executor
from typing import List

import requests
from pydantic import BaseModel, ValidationError

from ..errors import CatalogError
from .operations import FutureOperation


logger = logging.getLogger(__name__)


def gist_raw_url(gist_id: str, user: str) -> str:
    """Raw URL of the newest revision of a GitHub gist."""

    return f"https://gist.githubusercontent.com/{user}/{gist_id}/raw"


class PackageCatalog(BaseModel):
    """Catalog document: ``{"packages": ["com.unity.x", ...]}``."""

    packages: List[str]


class CatalogClient:
    """Fetches the curated list of package names."""

    def __init__(self, url: str, timeout: float = 15.0, session: requests.Session | None = None):
        self.url = url
        self.timeout = timeout
        self._session = session

    def fetch(self) -> List[str]:
        """Download and decode the catalog.

        Returns:
            List[str]: Package names in document order.

        Raises:
            CatalogError: On transport failure, HTTP error status, invalid JSON
                or a document without a ``packages`` string list.
        """

        getter = self._session.get if self._session is not None else requests.get
        try:
            response = getter(self.url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise CatalogError(f"Could not download package catalog from {self.url}: {e}") from e

        try:
            catalog = PackageCatalog.model_validate_json(response.text)
        except ValidationError as e:
            raise CatalogError(f"Package catalog at {self.url} is malformed: {e.errors()[0]['msg']}") from e

        logger.debug("Fetched %d catalog entries from %s", len(catalog.packages), self.url)
        return catalog.packages

    def fetch_async(self, executor: Executor) -> FutureOperation[List[str]]:
        return FutureOperation(executor.submit(self.fetch))
