"""
Calibration Lab Records - Asset ID Allocator
Version: 1.1.0

Changelog:
v1.1.0 (2026-10-12): create_asset allocates and inserts inside one write
                      transaction and retries on a duplicate asset_id
v1.0.0 (2026-10-05): Initial allocator - max-suffix scan with counter fallback

Asset IDs take the form {customerCode}-{n}. The next number is one past the
highest numeric suffix already stored for the customer code; numbers freed
below the maximum are not reused. customer_asset_counters is only a hint and
is consulted when the lab_assets scan itself fails.

Allocation never raises. Every failure degrades to a synthesized ID so saving
a report is never blocked by ID generation. create_asset, by contrast,
propagates store errors to the caller.
"""

import logging
import time
from typing import Optional, Iterable

import aiosqlite
from config import settings
from database import get_db
from models.asset import AssetRecord
from services.asset_store import SqliteAssetStore

logger = logging.getLogger(__name__)


def looks_like_uuid(customer_id: str) -> bool:
    """Customer codes are short tokens; anything hyphenated is a database UUID"""
    return "-" in customer_id


def normalize_customer_code(customer_id: str) -> str:
    """
    Map the value a caller passed as customer code to the asset ID namespace.

    Some report forms hand over the customer's UUID instead of the short
    code. Those collapse onto the fallback code ("1" unless configured).
    """
    if looks_like_uuid(customer_id):
        logger.debug(f"Customer ID {customer_id} looks like a UUID, "
                     f"using code {settings.ASSET_ID_FALLBACK_CODE}")
        return settings.ASSET_ID_FALLBACK_CODE
    return customer_id


def parse_asset_suffix(asset_id: str, customer_code: str) -> Optional[int]:
    """
    Numeric suffix of "{customer_code}-{n}", or None when the ID does not
    follow that exact two-part form ("5-abc", "5-1-extra", "6-3" for code 5).
    """
    if not asset_id or not asset_id.startswith(f"{customer_code}-"):
        return None
    parts = asset_id.split("-")
    if len(parts) != 2:
        return None
    try:
        return int(parts[1])
    except ValueError:
        return None


def highest_suffix(asset_ids: Iterable[str], customer_code: str) -> int:
    highest = 0
    for asset_id in asset_ids:
        number = parse_asset_suffix(asset_id, customer_code)
        if number is not None and number > highest:
            highest = number
    return highest


class AssetIdAllocator:
    """Mints per-customer asset IDs and records lab assets"""

    def __init__(self, store):
        self.store = store

    async def allocate_next_id(self, customer_id: str) -> str:
        """
        Next asset ID for a customer code. Never raises.

        Nothing is reserved: two calls with no asset insert in between
        return the same ID.
        """
        if not customer_id:
            logger.error("Customer ID is required to generate asset ID")
            return f"{customer_id or ''}-1"

        try:
            code = normalize_customer_code(customer_id)

            try:
                existing = await self.store.list_asset_ids(f"{code}-")
            except Exception as e:
                logger.error(f"Error querying existing assets for {code}: {e}")
                logger.info("Falling back to counter-based allocation")
                return await self._allocate_from_counter(code)

            next_number = highest_suffix(existing, code) + 1
            logger.debug(f"Found {len(existing)} existing assets for {code}, "
                         f"next number {next_number}")

            await self._advance_counter(code, next_number)
            return f"{code}-{next_number}"

        except Exception as e:
            logger.error(f"Error in allocate_next_id: {e}")
            return f"{customer_id}-1-fallback"

    async def _advance_counter(self, code: str, next_number: int):
        """Keep the counter row ahead of next_number; failures are ignored"""
        try:
            try:
                counter = await self.store.get_counter(code)
            except Exception as e:
                logger.warning(f"Could not read asset counter for {code}: {e}")
                counter = None

            if counter is None:
                await self.store.insert_counter(code, next_number + 1)
            elif next_number >= counter.next_counter:
                await self.store.update_counter(code, next_number + 1)
        except Exception as e:
            logger.warning(f"Error updating asset counter for {code}, "
                           f"continuing with generated ID: {e}")

    async def _allocate_from_counter(self, code: str) -> str:
        try:
            counter = await self.store.get_counter(code)

            if counter is None:
                try:
                    # Start at 2 so the ID handed out now is {code}-1
                    await self.store.insert_counter(code, 2)
                except Exception as e:
                    logger.error(f"Error creating asset counter for {code}: {e}")
                return f"{code}-1"

            current = counter.next_counter or 1
            try:
                await self.store.update_counter(code, current + 1)
            except Exception as e:
                logger.error(f"Error updating asset counter for {code}, "
                             f"continuing with current value: {e}")
            return f"{code}-{current}"

        except Exception as e:
            logger.error(f"Counter fallback failed for {code}: {e}")
            return self.last_resort_id(code)

    @staticmethod
    def last_resort_id(code: str) -> str:
        """Timestamp ID; does not follow the numeric sequence"""
        return f"{code}-{int(time.time() * 1000)}"

    async def create_asset(self, job_id: str, customer_id: Optional[str],
                           name: str, file_url: str, user_id: Optional[str],
                           customer_id_for_asset: Optional[str] = None,
                           parent_report_id: Optional[int] = None) -> AssetRecord:
        """
        Insert a lab asset, minting a fresh asset ID when a customer code is
        given. A sub-report saved from inside a parent report gets its own ID
        even if the caller already showed one.

        Raises the store's error if the insert fails.
        """
        attempts = max(1, settings.ASSET_ID_MAX_ATTEMPTS)

        for attempt in range(1, attempts + 1):
            try:
                async with self.store.transaction():
                    asset_id = None
                    if customer_id_for_asset:
                        asset_id = await self.allocate_next_id(customer_id_for_asset)
                        if not asset_id:
                            logger.warning("Failed to generate asset ID, "
                                           "proceeding without one")

                    record = await self.store.insert_asset(
                        job_id=job_id,
                        customer_id=customer_id,
                        user_id=user_id,
                        name=name,
                        file_url=file_url,
                        asset_id=asset_id or None,
                        report_id=parent_report_id,
                    )
            except aiosqlite.IntegrityError as e:
                if not customer_id_for_asset or attempt == attempts:
                    logger.error(f"Error creating calibration asset: {e}")
                    raise
                logger.warning(f"Asset ID collision on attempt {attempt}, "
                               f"allocating again: {e}")
                continue

            logger.info(f"Created calibration asset {record.asset_id} "
                        f"(row {record.id}) for job {job_id}")
            return record


# Module-level helpers bound to the application database

async def get_next_asset_id(customer_id: str) -> str:
    """Preview the next asset ID for a customer code. Never raises."""
    try:
        async with get_db() as db:
            allocator = AssetIdAllocator(SqliteAssetStore(db))
            return await allocator.allocate_next_id(customer_id)
    except Exception as e:
        logger.error(f"Database unavailable for asset ID allocation: {e}")
        if not customer_id:
            return f"{customer_id or ''}-1"
        return AssetIdAllocator.last_resort_id(normalize_customer_code(customer_id))


async def create_calibration_asset(job_id: str, customer_id: Optional[str],
                                   name: str, file_url: str,
                                   user_id: Optional[str],
                                   customer_id_for_asset: Optional[str] = None,
                                   parent_report_id: Optional[int] = None) -> AssetRecord:
    async with get_db() as db:
        allocator = AssetIdAllocator(SqliteAssetStore(db))
        return await allocator.create_asset(
            job_id, customer_id, name, file_url, user_id,
            customer_id_for_asset=customer_id_for_asset,
            parent_report_id=parent_report_id,
        )
