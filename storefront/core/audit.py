"""
Audit logging for business-critical operations.

Every committed sale, recorded payment, catalog deletion and data export
is written as one JSON line on the ``audit`` logger so it can be shipped
separately from application logs.
"""
import logging
import json
from datetime import datetime, timezone
from typing import Any, Optional, Dict

# Separate logger for audit events (can be shipped to centralized logging)
audit_logger = logging.getLogger("audit")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class AuditLog:
    """Central audit logging for business events."""

    @staticmethod
    def log_action(
        action: str,  # "create", "delete", "update", "commit", "export"
        resource_type: str,  # "sale", "payment", "product", "category", "customer", "backup"
        resource_id: Any,
        changes: Optional[Dict[str, Any]] = None,
    ):
        """
        Log a business action.

        Usage:
            AuditLog.log_action("commit", "sale", sale.id, changes={"total": "16000.00"})
            AuditLog.log_action("delete", "product", product_id)
        """
        log_entry = {
            "timestamp": _now(),
            "event_type": f"{resource_type}.{action}",
            "resource_id": resource_id,
        }

        if changes:
            log_entry["changes"] = changes

        audit_logger.info(json.dumps(log_entry, default=str))

    @staticmethod
    def log_failure(
        action: str,
        resource_type: str,
        reason: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        """
        Log a failed business operation that may have left data behind.

        Usage:
            AuditLog.log_failure("commit", "sale", "insert failed", details={"orphaned_sale_id": sid})
        """
        log_entry = {
            "timestamp": _now(),
            "event_severity": "ERROR",
            "event_type": f"{resource_type}.{action}_failed",
            "reason": reason,
        }

        if details:
            log_entry["details"] = details

        audit_logger.error(json.dumps(log_entry, default=str))
