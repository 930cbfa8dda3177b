"""
Seed Data Module

Built-in sample hostel used when the local cache is empty (first start)
or unreadable, and to populate an empty remote store.
Run with: hostelpay-monthly-reset --seed
"""
from typing import Dict, List

from hostelpay.core.clock import utcnow, isoformat
from hostelpay.core.logging_config import logger
from hostelpay.services.record_store import Document, RecordStore


# ==================== Sample Data Constants ====================

SAMPLE_SETTINGS = {
    "id": "1",
    "monthlyFee": 5000,
    "upiId": "hostel@paytm",
    "hostelName": "Sunrise Hostel",
    "enablePayNow": True,
}

SAMPLE_STUDENTS = [
    {"id": "1", "name": "Rahul Sharma", "mobile": "9876543210", "room": "A101", "joiningDate": "2024-01-15", "feeStatus": "pending"},
    {"id": "2", "name": "Priya Patel", "mobile": "9876543211", "room": "B205", "joiningDate": "2024-02-01", "feeStatus": "pending"},
    {"id": "3", "name": "Amit Kumar", "mobile": "9876543212", "room": "C301", "joiningDate": "2024-01-20", "feeStatus": "pending"},
    {"id": "4", "name": "Sneha Reddy", "mobile": "9876543213", "room": "D405", "joiningDate": "2024-03-10", "feeStatus": "paid", "paymentMode": "cash", "updatedBy": "admin"},
    {"id": "5", "name": "Vikash Singh", "mobile": "9876543214", "room": "A202", "joiningDate": "2024-02-15", "feeStatus": "pending"},
]


# ==================== Builders ====================

def default_settings() -> Document:
    return {**SAMPLE_SETTINGS, "updatedAt": isoformat(utcnow())}


def sample_settings() -> List[Document]:
    return [default_settings()]


def sample_students() -> List[Document]:
    now = isoformat(utcnow())
    return [{**student, "lastUpdated": now} for student in SAMPLE_STUDENTS]


# ==================== Remote seeding ====================

async def seed_remote(stores: Dict[str, RecordStore]) -> Dict[str, int]:
    """Populate empty remote collections with the sample hostel. Non-empty ones are left alone."""
    created = {"settings": 0, "students": 0}

    settings_store = stores.get("settings")
    if settings_store is not None and not await settings_store.list():
        doc = {k: v for k, v in SAMPLE_SETTINGS.items() if k != "id"}
        await settings_store.create(doc, server_timestamps=("updatedAt",))
        created["settings"] = 1

    student_store = stores.get("students")
    if student_store is not None and not await student_store.list():
        for student in SAMPLE_STUDENTS:
            doc = {k: v for k, v in student.items() if k != "id"}
            await student_store.create(doc, server_timestamps=("lastUpdated",))
            created["students"] += 1

    logger.info(f"[Seed] Remote store seeded: {created}")
    return created
