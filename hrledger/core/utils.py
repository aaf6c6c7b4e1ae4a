import json
import logging
import math
import os
import tempfile
from datetime import datetime, timezone
from decimal import Decimal, ROUND_FLOOR
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional, Union

from hrledger.core.config import settings
from hrledger.core.errors import InvalidAmountError

LOG_FORMAT = "%(asctime)s %(levelname)s [%(tenant)s] %(name)s: %(message)s"
HALF = Decimal("0.5")

def write_json_atomic(path: Union[str, Path], obj: Any):
    """Write JSON next to ``path`` and swap it in, so readers never see a partial file."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(obj, f, indent=2, default=str)
        os.replace(tmp_name, target)
    except BaseException:
        os.unlink(tmp_name)
        raise

def round_half_up(value):
    """Round to the nearest whole unit with halves going toward +infinity.

    2.5 -> 3 and -2.5 -> -2, the same as JavaScript's Math.round, which the
    payslip figures must reproduce. Non-finite floats are returned unchanged.
    """
    if isinstance(value, float) and not math.isfinite(value):
        return value
    return int((Decimal(str(value)) + HALF).to_integral_value(rounding=ROUND_FLOOR))

def guard_amount(value):
    """Apply the strict-input policy to a monetary amount.

    With STRICT_INPUTS off the value is returned untouched.
    """
    if not settings.STRICT_INPUTS:
        return value
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise InvalidAmountError(f"Amount must be a number, got {type(value).__name__}")
    if not math.isfinite(value):
        raise InvalidAmountError(f"Amount must be a finite number, got {value}")
    return max(value, 0)

class _TenantFilter(logging.Filter):
    def __init__(self, tenant_id: str):
        super().__init__()
        self.tenant_id = tenant_id

    def filter(self, record):
        record.tenant = self.tenant_id
        return True

def setup_logging(tenant_id: str = "system", *, log_level: Optional[str] = None) -> logging.Logger:
    """Return the tenant's payroll logger, attaching handlers on first use only."""
    logger = logging.getLogger(f"{settings.APP_NAME}.{tenant_id}")
    if logger.handlers:
        return logger

    log_dir = Path(settings.LOG_PATH)
    log_dir.mkdir(parents=True, exist_ok=True)
    handlers = [
        RotatingFileHandler(
            log_dir / f"payroll_{tenant_id}.log",
            maxBytes=settings.LOG_MAX_BYTES,
            backupCount=settings.LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
    ]
    if settings.LOG_TO_CONSOLE:
        handlers.append(logging.StreamHandler())

    formatter = logging.Formatter(LOG_FORMAT)
    tenant_filter = _TenantFilter(tenant_id)
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(tenant_filter)
        logger.addHandler(handler)

    logger.setLevel((log_level or settings.LOG_LEVEL).upper())
    logger.propagate = False
    return logger

def audit_log(tenant_id: str, action: str, entity: str, entity_id: str, *,
              actor: str = "system", changes: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Append one payroll audit event to ``<LOG_PATH>/<tenant>_audit.jsonl``."""
    entry = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "tenant": tenant_id,
        "actor": actor,
        "action": action,
        "entity": entity,
        "entity_id": entity_id,
        "changes": changes or {},
    }
    path = Path(settings.LOG_PATH) / f"{tenant_id}_audit.jsonl"
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "a", encoding="utf-8") as f:
        f.write(json.dumps(entry, default=str) + "\n")
    return entry
