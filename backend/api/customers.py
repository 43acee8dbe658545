"""
Calibration Lab Records - Customer API Endpoints
Version: 1.2.0

Changelog:
v1.2.0 (2026-10-26): Generated customer codes follow the highest numeric code;
                      exact prefix match for customer assets
v1.1.0 (2026-10-12): Customer assets listing by customer code
v1.0.0 (2026-10-05): Initial customer CRUD
"""

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
import aiosqlite
import logging

from database import get_db, execute_one, execute_all, execute_insert
from services.asset_allocator import looks_like_uuid

router = APIRouter(prefix="/customers", tags=["customers"])
logger = logging.getLogger(__name__)


class CustomerCreate(BaseModel):
    name: str
    customer_code: Optional[str] = Field(
        None, description="Short code prefixed to asset IDs; generated if omitted"
    )
    contact_person: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address_line1: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    notes: Optional[str] = None


class CustomerUpdate(BaseModel):
    name: Optional[str] = None
    contact_person: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address_line1: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    notes: Optional[str] = None
    is_active: Optional[bool] = None


async def _next_customer_code(db) -> str:
    """One past the highest all-digit customer code; hand-entered codes count"""
    row = await execute_one(db, """
        SELECT MAX(CAST(customer_code AS INTEGER)) as highest
        FROM customers
        WHERE customer_code <> '' AND customer_code NOT GLOB '*[^0-9]*'
    """)
    return str((row["highest"] or 0) + 1)


@router.get("/")
async def list_customers(search: Optional[str] = None, limit: int = 100):
    """List active customers, optionally filtered by search term"""
    async with get_db() as db:
        if search:
            return await execute_all(db, """
                SELECT * FROM customers
                WHERE is_active = 1
                  AND (name LIKE ? OR customer_code LIKE ? OR email LIKE ?)
                ORDER BY name LIMIT ?
            """, (f"%{search}%", f"%{search}%", f"%{search}%", limit))
        return await execute_all(
            db,
            "SELECT * FROM customers WHERE is_active = 1 ORDER BY name LIMIT ?",
            (limit,)
        )


@router.get("/{customer_id}")
async def get_customer(customer_id: int):
    """Get customer details with asset summary"""
    async with get_db() as db:
        customer = await execute_one(
            db, "SELECT * FROM customers WHERE id = ?", (customer_id,))
        if not customer:
            raise HTTPException(status_code=404, detail="Customer not found")

        prefix = f"{customer['customer_code']}-"
        stats = await execute_one(db, """
            SELECT COUNT(*) as total,
                   SUM(CASE WHEN deleted_at IS NULL THEN 1 ELSE 0 END) as active
            FROM lab_assets WHERE substr(asset_id, 1, length(?)) = ?
        """, (prefix, prefix))

    customer['asset_stats'] = stats
    return customer


@router.post("/")
async def create_customer(data: CustomerCreate):
    """Create a new customer"""
    code = data.customer_code
    if code and looks_like_uuid(code):
        raise HTTPException(
            status_code=400,
            detail="Customer code must not contain '-' (used as asset ID separator)"
        )

    async with get_db() as db:
        # Auto-generate a numeric customer code if not provided
        if not code:
            code = await _next_customer_code(db)

        try:
            new_id = await execute_insert(db, """
                INSERT INTO customers
                    (name, customer_code, contact_person, email, phone,
                     address_line1, city, state, postal_code, notes)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                data.name, code, data.contact_person, data.email, data.phone,
                data.address_line1, data.city, data.state, data.postal_code,
                data.notes
            ))
        except aiosqlite.IntegrityError:
            raise HTTPException(
                status_code=400,
                detail=f"Customer code '{code}' already exists"
            )

    logger.info(f"Created customer {data.name} with code {code}")
    return {
        "id": new_id,
        "customer_code": code,
        "message": f"Customer '{data.name}' created"
    }


@router.put("/{customer_id}")
async def update_customer(customer_id: int, data: CustomerUpdate):
    """Update a customer"""
    updates = []
    params = []
    for field_name, value in data.model_dump(exclude_none=True).items():
        updates.append(f"{field_name} = ?")
        params.append(value)

    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")

    updates.append("updated_at = ?")
    params.append(datetime.now().isoformat())
    params.append(customer_id)

    async with get_db() as db:
        result = await db.execute(
            f"UPDATE customers SET {', '.join(updates)} WHERE id = ?",
            params
        )
        await db.commit()
        updated = result.rowcount

    if updated == 0:
        raise HTTPException(status_code=404, detail="Customer not found")

    return {"success": True, "message": f"Customer {customer_id} updated"}


@router.get("/{customer_id}/assets")
async def get_customer_assets(customer_id: int, include_deleted: bool = False,
                              limit: int = 200):
    """All lab assets numbered under this customer's code"""
    async with get_db() as db:
        customer = await execute_one(
            db, "SELECT customer_code FROM customers WHERE id = ?", (customer_id,))
        if not customer:
            raise HTTPException(status_code=404, detail="Customer not found")

        prefix = f"{customer['customer_code']}-"
        query = "SELECT * FROM lab_assets WHERE substr(asset_id, 1, length(?)) = ?"
        if not include_deleted:
            query += " AND deleted_at IS NULL"
        query += " ORDER BY created_at DESC LIMIT ?"
        return await execute_all(
            db, query, (prefix, prefix, limit))
