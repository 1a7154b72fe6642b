"""Tests for authorization predicates and derived expedition fields."""

from uuid import uuid4

import pytest

from app.core.permissions import can_manage_expedition, is_admin, is_guide, owns_expedition
from app.services.expedition_service import available_spots, effective_status


@pytest.mark.parametrize(
    "stored, enrolled, capacity, expected",
    [
        ("published", 3, 10, "published"),
        ("published", 10, 10, "full"),
        ("active", 10, 10, "full"),
        ("active", 9, 10, "active"),
        ("draft", 10, 10, "draft"),
        ("cancelled", 10, 10, "cancelled"),
        ("completed", 10, 10, "completed"),
    ],
)
def test_effective_status(stored, enrolled, capacity, expected):
    assert effective_status(stored, enrolled, capacity) == expected


@pytest.mark.parametrize(
    "enrolled, capacity, expected",
    [(0, 10, 10), (7, 10, 3), (10, 10, 0), (12, 10, 0)],
)
def test_available_spots(enrolled, capacity, expected):
    assert available_spots(enrolled, capacity) == expected


def test_roles():
    assert is_admin({"role": "admin"})
    assert not is_admin({"role": "user"})
    assert is_guide({"user_type": "guide"})
    assert not is_guide({"user_type": "trekker"})


def test_expedition_management():
    guide_id = uuid4()
    expedition = {"guide_id": guide_id}
    guide = {"id": str(guide_id), "role": "user", "user_type": "guide"}
    other_guide = {"id": uuid4(), "role": "user", "user_type": "guide"}
    admin = {"id": uuid4(), "role": "admin", "user_type": "trekker"}

    assert owns_expedition(guide, expedition)
    assert can_manage_expedition(guide, expedition)
    assert not can_manage_expedition(other_guide, expedition)
    assert not owns_expedition(admin, expedition)
    assert can_manage_expedition(admin, expedition)
