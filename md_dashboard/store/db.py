from __future__ import annotations
import logging
from typing import Iterator, Union

from fastapi import Depends

from md_dashboard.config import Settings, get_settings
from .client import AirtableClient, StubStore

logger = logging.getLogger(__name__)

Store = Union[AirtableClient, StubStore]


def get_store(settings: Settings = Depends(get_settings)) -> Iterator[Store]:
    if not settings.store_configured:
        logger.debug("Airtable not configured; using stub store")
        yield StubStore()
        return
    client = AirtableClient(settings)
    try:
        yield client
    finally:
        client.session.close()
