"""Read-only access to store settings.

The point-of-sale application keeps its settings in a key-value store.
The receipt pipeline only ever reads a handful of keys from it; every
read is independent, so they are issued concurrently.
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from struk.core.models import PaperSize, StoreProfile

logger = logging.getLogger(__name__)

# Settings keys as stored by the front end
KEY_STORE_NAME = "storeName"
KEY_STORE_ADDRESS = "storeAddress"
KEY_FEEDBACK_PHONE = "storeFeedbackPhone"
KEY_FOOTER_TEXT = "storeFooterText"
KEY_PAPER_SIZE = "printerPaperSize"
KEY_SHOW_LOGO = "showLogoOnReceipt"
KEY_LOGO = "storeLogo"

PROFILE_KEYS = (
    KEY_STORE_NAME,
    KEY_STORE_ADDRESS,
    KEY_FEEDBACK_PHONE,
    KEY_FOOTER_TEXT,
    KEY_PAPER_SIZE,
    KEY_SHOW_LOGO,
    KEY_LOGO,
)


class SettingsStore(ABC):
    """Abstract settings lookup."""

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Return the value stored under ``key``, or None."""
        ...


class InMemorySettingsStore(SettingsStore):
    """Settings held in a dictionary (tests, CLI, embedding)."""

    def __init__(self, values: Optional[Mapping[str, Any]] = None):
        self._values: Dict[str, Any] = dict(values or {})

    async def get(self, key: str) -> Optional[Any]:
        return self._values.get(key)


class JsonSettingsStore(SettingsStore):
    """Settings read from a JSON object file.

    The file is read once, lazily, on the first lookup. Concurrent first
    lookups wait on the same read.
    """

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)
        self._values: Optional[Dict[str, Any]] = None
        self._lock = asyncio.Lock()

    async def _load(self) -> Dict[str, Any]:
        async with self._lock:
            if self._values is None:
                text = await asyncio.to_thread(self._path.read_text, encoding="utf-8")
                self._values = json.loads(text)
                logger.debug(f"Loaded {len(self._values)} settings from {self._path}")
        return self._values

    async def get(self, key: str) -> Optional[Any]:
        values = self._values if self._values is not None else await self._load()
        return values.get(key)


def profile_from_settings(values: Mapping[str, Any]) -> StoreProfile:
    """Build a StoreProfile, applying the front end's defaults."""
    defaults = StoreProfile()
    return StoreProfile(
        name=values.get(KEY_STORE_NAME) or defaults.name,
        address=values.get(KEY_STORE_ADDRESS) or "",
        feedback_phone=values.get(KEY_FEEDBACK_PHONE) or "",
        footer_text=values.get(KEY_FOOTER_TEXT) or defaults.footer_text,
        paper=PaperSize.parse(values.get(KEY_PAPER_SIZE) or "80mm"),
        # Only an explicit False hides the logo
        show_logo=values.get(KEY_SHOW_LOGO) is not False,
        logo=values.get(KEY_LOGO) or None,
    )


async def load_store_profile(store: SettingsStore) -> StoreProfile:
    """Read every profile key concurrently and build the StoreProfile."""
    results = await asyncio.gather(*(store.get(key) for key in PROFILE_KEYS))
    return profile_from_settings(dict(zip(PROFILE_KEYS, results)))
