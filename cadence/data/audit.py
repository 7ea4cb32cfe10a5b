"""Append-only audit trail for store writes and imports."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any


def write_audit_entry(audit_path: Path, action: str, **details: Any) -> None:
    """Append a timestamped JSON-lines entry describing one action."""
    entry = {"timestamp": datetime.now(UTC).isoformat(), "action": action, **details}
    audit_path.parent.mkdir(parents=True, exist_ok=True)
    with audit_path.open("a", encoding="utf-8") as f:
        f.write(json.dumps(entry, default=str) + "\n")
