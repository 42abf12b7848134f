"""
Non-CGPA participation claims.

Students file a claim with a description and optional certificate images
embedded as base64 data URLs. Admins approve or reject it; a claim can be
reviewed again, in which case the latest review wins.
"""

import base64
import binascii
import logging
import os
from typing import Any, Dict, List, Optional, Tuple

from dotenv import load_dotenv

from campus_events.database.record_store import CLAIMS, USERS, RecordStore
from campus_events.domain.errors import DomainError, not_found, validation_error
from campus_events.domain.models import APPROVED, PENDING, REJECTED, new_claim, now_iso

load_dotenv()

MAX_DOCUMENT_BYTES = int(os.getenv("MAX_DOCUMENT_BYTES", 5 * 1024 * 1024))
REVIEW_STATUSES = [APPROVED, REJECTED]

ClaimResult = Tuple[Optional[Dict[str, Any]], Optional[DomainError]]


def _validate_document(document: Any) -> Optional[DomainError]:
    """
    Documents must be image data URLs: data:image/<type>;base64,<payload>
    """
    if not isinstance(document, str) or not document.startswith("data:image/"):
        return validation_error("Documents must be image data URLs")

    header, sep, payload = document.partition(",")
    if not sep or not header.endswith(";base64"):
        return validation_error("Documents must be base64-encoded")

    try:
        size = len(base64.b64decode(payload, validate=True))
    except (binascii.Error, ValueError):
        return validation_error("Document is not valid base64")

    if size > MAX_DOCUMENT_BYTES:
        return validation_error(f"Document exceeds {MAX_DOCUMENT_BYTES} bytes")
    return None


def create_claim(store: RecordStore, data: Dict[str, Any], user_id: str) -> ClaimResult:
    user = store.get(USERS, user_id)
    if not user:
        return None, not_found("User not found")

    if not (data.get("description") or "").strip():
        return None, validation_error("Description is required")

    documents = data.get("documents") or []
    if not isinstance(documents, list):
        return None, validation_error("documents must be a list")
    for document in documents:
        err = _validate_document(document)
        if err:
            return None, err

    claim = new_claim(data, user)
    store.put(CLAIMS, claim)
    logging.info(f"[Claims] {user_id} filed {claim['id']} with {len(documents)} document(s)")
    return claim, None


def review_claim(
    store: RecordStore,
    claim_id: str,
    status: str,
    admin_id: str,
    comments: Optional[str] = None,
) -> ClaimResult:
    """
    Record an admin decision on a claim.

    Returns:
        (claim, None) on success.
        (None, ValidationError) if status is not 'approved' or 'rejected'.
        (None, NotFound) if the claim does not exist.
    """
    if status not in REVIEW_STATUSES:
        return None, validation_error(f"status must be one of: {', '.join(REVIEW_STATUSES)}")

    claim = store.get(CLAIMS, claim_id)
    if not claim:
        return None, not_found("Claim not found")

    claim["status"] = status
    claim["reviewedAt"] = now_iso()
    claim["reviewedBy"] = admin_id
    claim["adminComments"] = comments
    store.put(CLAIMS, claim)

    logging.info(f"[Claims] {claim_id} {status} by {admin_id}")
    return claim, None


def get_user_claims(store: RecordStore, user_id: str) -> List[Dict[str, Any]]:
    return [c for c in store.list(CLAIMS) if c.get("studentId") == user_id]


def get_pending_claims(store: RecordStore) -> List[Dict[str, Any]]:
    return list_claims(store, status=PENDING)


def list_claims(store: RecordStore, status: Optional[str] = None) -> List[Dict[str, Any]]:
    claims = store.list(CLAIMS)
    if status:
        claims = [c for c in claims if c.get("status") == status]
    return claims
