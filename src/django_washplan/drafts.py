"""Draft persistence with a rolling expiry.

Functions:
- write_draft(): Save a draft under a key, pushing the expiry forward
- read_draft(): Load a draft; expired or malformed rows are discarded
- delete_draft(): Remove a saved draft
- purge_expired_drafts(): Delete every expired row
"""

import logging
from datetime import timedelta
from typing import Optional

from django.utils import timezone

from .conf import get_draft_expiry_hours, get_draft_key
from .draft import SubscriptionDraft
from .exceptions import DraftCorrupted
from .models import WizardDraft

logger = logging.getLogger(__name__)


def write_draft(
    draft: SubscriptionDraft,
    key: Optional[str] = None,
    now=None,
) -> WizardDraft:
    """
    Save a draft, replacing whatever is stored under the key.

    Args:
        draft: The draft to persist
        key: Storage slot (defaults to WASHPLAN_DRAFT_KEY)
        now: Reference time for the expiry (defaults to timezone.now())

    Returns:
        The saved WizardDraft row
    """
    key = key or get_draft_key()
    now = now or timezone.now()
    expires_at = now + timedelta(hours=get_draft_expiry_hours())

    row, _ = WizardDraft.objects.update_or_create(
        key=key,
        defaults={"payload": draft.to_dict(), "expires_at": expires_at},
    )
    return row


def read_draft(key: Optional[str] = None, now=None) -> Optional[SubscriptionDraft]:
    """
    Load the draft stored under key.

    Returns None when nothing is stored. An expired or undecodable draft is
    deleted and also reported as None.
    """
    key = key or get_draft_key()
    row = WizardDraft.objects.filter(key=key).first()
    if row is None:
        return None

    if row.is_expired(now):
        logger.info(f"Discarding expired draft '{key}' (expired {row.expires_at})")
        row.delete()
        return None

    try:
        return SubscriptionDraft.from_dict(row.payload)
    except DraftCorrupted as e:
        logger.warning(f"Discarding corrupted draft '{key}': {e}")
        row.delete()
        return None


def delete_draft(key: Optional[str] = None) -> bool:
    """Delete the draft under key. Returns True if one existed."""
    deleted, _ = WizardDraft.objects.filter(key=key or get_draft_key()).delete()
    return deleted > 0


def purge_expired_drafts(now=None) -> int:
    deleted, _ = WizardDraft.objects.expired(now).delete()
    return deleted
