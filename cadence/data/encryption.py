"""age encryption helpers for stored documents, using pyrage."""

from __future__ import annotations

import json
import logging
from typing import Any

import pyrage
import pyrage.x25519

logger = logging.getLogger(__name__)


def seal_document(document: Any, recipient_key: str) -> bytes:
    """Serialize a JSON-compatible document and encrypt it to an age recipient."""
    recipient = pyrage.x25519.Recipient.from_str(recipient_key)
    plaintext = json.dumps(document, ensure_ascii=False, default=str).encode("utf-8")
    sealed: bytes = pyrage.encrypt(plaintext, [recipient])
    return sealed


def open_document(ciphertext: bytes, identity_key: str) -> Any:
    """Decrypt an age-encrypted document and parse its JSON payload."""
    identity = pyrage.x25519.Identity.from_str(identity_key)
    plaintext: bytes = pyrage.decrypt(ciphertext, [identity])
    return json.loads(plaintext.decode("utf-8"))
