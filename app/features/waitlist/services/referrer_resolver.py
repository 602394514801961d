from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from app.features.waitlist.services.directory import LoopsDirectoryClient
from app.platform.logger import get_logger

logger = get_logger(__name__)

LOOKUP_KEY = "lookup_key"
SCAN = "scan"


def normalize_code(referred_by: str) -> str:
    return referred_by.strip().upper()


class ReferrerResolver(ABC):
    """Finds the contact that owns a referral code."""

    def __init__(self, directory: LoopsDirectoryClient):
        self.directory = directory

    @abstractmethod
    async def resolve(self, referral_code: str) -> Optional[Dict[str, Any]]:
        """Return the referrer contact, or None if nobody owns the code."""


class LookupKeyResolver(ReferrerResolver):
    """
    Direct lookup. Contacts are created with ``userId`` set to their referral
    code, so the directory can find the owner in one call.
    """

    async def resolve(self, referral_code: str) -> Optional[Dict[str, Any]]:
        contacts = await self.directory.find_contacts(user_id=normalize_code(referral_code))
        return contacts[0] if contacts else None


class PaginatedScanResolver(ReferrerResolver):
    """
    Walks the contact list page by page matching on the stored ``referralCode``.

    Stops after ``max_pages``; a referrer further down the list is not found.
    """

    def __init__(self, directory: LoopsDirectoryClient, max_pages: int = 5, page_size: int = 50):
        super().__init__(directory)
        self.max_pages = max_pages
        self.page_size = page_size

    async def resolve(self, referral_code: str) -> Optional[Dict[str, Any]]:
        code = normalize_code(referral_code)
        for page in range(1, self.max_pages + 1):
            contacts = await self.directory.list_contacts(page=page, per_page=self.page_size)
            if not contacts:
                return None
            for contact in contacts:
                if str(contact.get("referralCode") or "").upper() == code:
                    return contact

        logger.warning(f"Referral code {code} not found in first {self.max_pages} pages, giving up")
        return None


def build_resolver(
    strategy: str,
    directory: LoopsDirectoryClient,
    max_pages: int = 5,
    page_size: int = 50,
) -> ReferrerResolver:
    if strategy == LOOKUP_KEY:
        return LookupKeyResolver(directory)
    if strategy == SCAN:
        return PaginatedScanResolver(directory, max_pages=max_pages, page_size=page_size)
    raise ValueError(f"Unknown referrer lookup strategy: {strategy}")
