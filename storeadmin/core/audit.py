"""Audit logging utilities for user provisioning events."""

from __future__ import annotations
import datetime
import hashlib
import hmac
import json
import logging
import os
from pathlib import Path
from typing import Any, Literal

logger = logging.getLogger(__name__)

EventType = Literal[
    "user_create",
    "user_create_compensated",
    "user_update",
    "user_delete",
]


def _audit_log_file() -> Path:
    audit_dir = Path(os.environ.get("AUDIT_LOG_DIR", ".runtime/audit"))
    return audit_dir / "provisioning-events.jsonl"


def _get_signing_key() -> bytes:
    """Get the audit signing key from environment (read on every call)."""
    return os.environ.get("AUDIT_LOG_SIGNING_KEY", "").strip().encode("utf-8")


def _ensure_audit_dir(path: Path) -> None:
    """Create audit directory with restricted permissions."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.parent.chmod(0o700)


def _sign_event(event: dict[str, Any]) -> str:
    """Generate HMAC-SHA256 signature for audit event."""
    signing_key = _get_signing_key()
    if not signing_key:
        return ""
    canonical = json.dumps(event, sort_keys=True, separators=(",", ":"))
    return hmac.new(signing_key, canonical.encode("utf-8"), hashlib.sha256).hexdigest()


def log_provisioning_event(
    event_type: EventType,
    user_id: str,
    *,
    operator: str = "system",
    details: dict[str, Any] | None = None,
    success: bool = True,
) -> None:
    """Append a provisioning event to the audit trail.

    Args:
        event_type: Kind of operation (user_create, user_delete, ...)
        user_id: Identity id affected by the operation
        operator: Identity id of the caller (or "system")
        details: Additional context (company code, role, failure cause)
        success: Whether the operation succeeded
    """
    log_file = _audit_log_file()
    _ensure_audit_dir(log_file)

    event = {
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "event_type": event_type,
        "user_id": user_id,
        "operator": operator,
        "success": success,
        "details": details or {},
    }

    signature = _sign_event(event)
    if signature:
        event["signature"] = signature

    with log_file.open("a", encoding="utf-8") as f:
        f.write(json.dumps(event, ensure_ascii=False) + "\n")

    log_file.chmod(0o600)


def safe_log_provisioning_event(
    event_type: EventType,
    user_id: str,
    *,
    operator: str = "system",
    details: dict[str, Any] | None = None,
    success: bool = True,
) -> bool:
    """Log a provisioning event, never raising.

    Returns:
        True if the event was written, False if logging failed
    """
    try:
        log_provisioning_event(event_type, user_id, operator=operator, details=details, success=success)
        return True
    except Exception as e:
        logger.warning("Failed to log %s event for %s: %s", event_type, user_id, e)
        return False


def verify_audit_log() -> tuple[int, int]:
    """Verify all signatures in the audit log.

    Returns:
        Tuple of (total_events, valid_signatures)
    """
    log_file = _audit_log_file()
    if not log_file.exists():
        return 0, 0

    total = 0
    valid = 0

    with log_file.open("r", encoding="utf-8") as f:
        for line in f:
            if not line.strip():
                continue
            total += 1
            try:
                event = json.loads(line)
                stored_sig = event.pop("signature", "")
                if not stored_sig:
                    continue
                computed_sig = _sign_event(event)
                if hmac.compare_digest(stored_sig, computed_sig):
                    valid += 1
            except (json.JSONDecodeError, KeyError):
                continue

    return total, valid
