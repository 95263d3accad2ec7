"""Profile lookups and role guards shared by every command handler."""

from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session

from payout_ledger.core.exceptions import NotFound, PermissionDenied
from payout_ledger.models.enums import Role
from payout_ledger.models.profile import Profile


def get_profile(db: Session, profile_id: uuid.UUID) -> Profile:
    """Load a profile or raise ``NotFound``."""
    profile = db.get(Profile, profile_id)
    if profile is None:
        raise NotFound(f"Profile {profile_id} not found")
    return profile


def require_admin(db: Session, admin_id: uuid.UUID) -> Profile:
    """Load the acting profile and make sure it is an admin."""
    profile = get_profile(db, admin_id)
    if profile.role != Role.ADMIN.value:
        raise PermissionDenied(f"Profile {admin_id} is not an admin")
    return profile


def require_client(db: Session, client_id: uuid.UUID) -> Profile:
    """Load a profile and make sure it is a client account."""
    profile = get_profile(db, client_id)
    if profile.role != Role.CLIENT.value:
        raise PermissionDenied(f"Profile {client_id} is not a client")
    return profile


def lock_client(db: Session, client_id: uuid.UUID) -> Profile:
    """Load a client's profile row with a write lock.

    Holding this lock serializes every balance-sensitive command for the
    client until the surrounding transaction ends.  On SQLite the
    ``FOR UPDATE`` clause is not rendered; the ``BEGIN IMMEDIATE``
    transaction already holds the database write lock.
    """
    profile = db.execute(
        select(Profile).where(Profile.id == client_id).with_for_update()
    ).scalar_one_or_none()
    if profile is None:
        raise NotFound(f"Client {client_id} not found")
    if profile.role != Role.CLIENT.value:
        raise PermissionDenied(f"Profile {client_id} is not a client")
    return profile
