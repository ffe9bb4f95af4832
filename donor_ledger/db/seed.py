"""Seed dataset used when a collection has never been saved.

Payments dated "today" are stamped with the date passed in, so the dashboard
widgets that look at today's activity have something to show.
"""

import datetime as dt
from typing import Any

from donor_ledger.constants import (
    CAMPAIGNS_KEY,
    DEBITS_KEY,
    PAYMENTS_KEY,
    PROJECTS_KEY,
    STAFF_KEY,
)

_PROJECTS = [
    {
        "id": "proj-1",
        "name": "Mukkam Muslim Orphanage",
        "description": "Providing care and education for orphaned children.",
        "goal": 50000,
        "raised": 35000,
        "media": [
            {
                "id": "media-1",
                "type": "image",
                "before": "https://placehold.co/600x400.png",
                "after": "https://placehold.co/600x400.png",
                "description": "New well construction site before and after completion.",
            },
            {
                "id": "media-2",
                "type": "story",
                "before": "Villagers had to walk 5 miles every day to fetch water from a contaminated river.",
                "after": "With the new well, clean water is now accessible within the village.",
                "description": "A local resident shares their story.",
            },
        ],
    },
    {
        "id": "proj-2",
        "name": "JDT Islam Orphanage & School",
        "description": "A leading institution for education and social welfare.",
        "goal": 75000,
        "raised": 60000,
        "media": [
            {
                "id": "media-3",
                "type": "image",
                "before": "https://placehold.co/600x400.png",
                "after": "https://placehold.co/600x400.png",
                "description": "The old classroom vs. the newly constructed one.",
            }
        ],
    },
    {
        "id": "proj-3",
        "name": "kerala jama-ath council charitable trust",
        "description": "Promoting higher education and islamic studies.",
        "goal": 100000,
        "raised": 45000,
    },
    {
        "id": "proj-4",
        "name": "Markazu Ssaqafathi Ssunniyya",
        "description": "Cultural and educational center for the community.",
        "goal": 25000,
        "raised": 26500,
    },
    {
        "id": "proj-5",
        "name": "Samastha Vidyabhyasa Board",
        "description": "Educational board promoting moral and secular education.",
        "goal": 200000,
        "raised": 150000,
    },
]

# (id, donor, amount, date or None for today, project, mode, reason)
_PAYMENTS = [
    ("pay-1", "Aisha Rahman", 500, "2024-07-22", "proj-1", "Online", "Annual charity contribution."),
    ("pay-2", "Biju Varghese", 250, "2024-07-21", "proj-2", "Wallet", "General donation."),
    ("pay-3", "Chandran Pillai", 1000, "2024-07-20", "proj-3", "Manual", "In memory of my grandfather."),
    ("pay-4", "Divya Menon", 150, "2024-07-19", "proj-4", "Online", "In support of animal welfare."),
    ("pay-5", "Elias K. Joseph", 750, "2024-07-18", "proj-5", "Refund", "Donation was intended for a different initiative."),
    ("pay-6", "Fathima Basheer", 300, "2024-07-17", "proj-1", "Wallet", "Contribution to clean water access."),
    ("pay-7", "Gopalakrishnan Nair", 50, "2024-07-16", "proj-2", "Online", "Supporting education initiatives."),
    ("pay-8", "Hafsa Ibrahim", 2000, "2024-07-15", "proj-3", "Manual", "Donation towards healthcare services."),
    ("pay-9", "Ravi Kumar", 5000, None, "proj-5", "Wallet", "For the children."),
    ("pay-10", "Suresh Gopi", 3000, None, "proj-2", "Online", "Helping build schools."),
    ("pay-11", "Arun Prasad", 100, None, "proj-4", "Manual", "For the care of shelter animals."),
    ("pay-12", "Vinod Sharma", 2500, None, "proj-3", "Online", "Matching employee donations."),
    ("pay-13", "Sandeep Kumar", 1, None, "proj-1", "Online", "Test 1"),
    ("pay-14", "Sandeep Kumar", 1, None, "proj-1", "Online", "Test 2"),
    ("pay-15", "Sandeep Kumar", 1, None, "proj-1", "Online", "Test 3"),
    ("pay-16", "Sandeep Kumar", 500, None, "proj-1", "Refund", "Refunding large amount after tests."),
]

_DEBITS = [
    {
        "id": "debit-1",
        "projectId": "proj-1",
        "date": "2024-07-20",
        "amount": 5000,
        "description": "Purchase of water filters",
        "reason": "Replacement of old, expired filters.",
    },
    {
        "id": "debit-2",
        "projectId": "proj-2",
        "date": "2024-07-18",
        "amount": 12000,
        "description": "Printing and distributing textbooks",
        "reason": "New curriculum materials for the upcoming school year.",
    },
    {
        "id": "debit-3",
        "projectId": "proj-3",
        "date": "2024-07-15",
        "amount": 25000,
        "description": "Medical supplies for mobile clinic",
        "reason": "Restocking essential medicines and equipment for Q3.",
    },
]

_ALL_SECTIONS = ["dashboard", "projects", "emergency", "payments", "donors", "staff"]


def _staff(staff_id, name, email, role, allowed, start="09:00", end="17:00") -> dict:
    return {
        "id": staff_id,
        "name": name,
        "email": email,
        "role": role,
        "avatar": "https://placehold.co/100x100.png",
        "permissions": {section: section in allowed for section in _ALL_SECTIONS},
        "workingHours": {"start": start, "end": end},
    }


_STAFF = [
    _staff("staff-1", "Admin User", "admin@bairoohafoundation.com", "Admin", _ALL_SECTIONS),
    _staff(
        "staff-2",
        "Priya Nair",
        "priya.nair@bairoohafoundation.com",
        "Staff",
        ["dashboard", "projects", "emergency"],
    ),
    _staff(
        "staff-3",
        "Rajesh Kumar",
        "rajesh.kumar@bairoohafoundation.com",
        "Staff",
        ["dashboard", "payments", "donors"],
        start="10:00",
        end="18:00",
    ),
    _staff(
        "staff-4",
        "Anu Thomas",
        "anu.thomas@bairoohafoundation.com",
        "Staff",
        ["dashboard", "projects", "emergency", "payments"],
        start="08:30",
        end="16:30",
    ),
]


def _project_names() -> dict[str, str]:
    return {p["id"]: p["name"] for p in _PROJECTS}


def seed_payments(today: dt.date) -> list[dict]:
    names = _project_names()
    payments = []
    for pay_id, donor, amount, day, project_id, mode, reason in _PAYMENTS:
        payments.append(
            {
                "id": pay_id,
                "donorName": donor,
                "amount": amount,
                "date": day or today.isoformat(),
                "projectId": project_id,
                "projectName": names[project_id],
                "mode": mode,
                "reason": reason,
            }
        )
    return payments


def seed_debits() -> list[dict]:
    names = _project_names()
    return [dict(d, projectName=names[d["projectId"]]) for d in _DEBITS]


def seed_collection(key: str, today: dt.date) -> list[dict[str, Any]]:
    """Return the default contents for a store key, as plain JSON data."""
    if key == PROJECTS_KEY:
        return [dict(p, media=list(p.get("media", []))) for p in _PROJECTS]
    if key == PAYMENTS_KEY:
        return seed_payments(today)
    if key == DEBITS_KEY:
        return seed_debits()
    if key == STAFF_KEY:
        return [dict(s) for s in _STAFF]
    if key == CAMPAIGNS_KEY:
        return []
    raise KeyError(f"No seed data for key: {key}")
