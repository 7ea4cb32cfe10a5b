"""Shared fixtures: age keys, isolated settings and a seeded in-memory store."""

from __future__ import annotations

from pathlib import Path

import pyrage.x25519
import pytest

from cadence.core.config import Settings


@pytest.fixture
def age_keypair() -> tuple[str, str]:
    """Generate a fresh age keypair (public, private)."""
    identity = pyrage.x25519.Identity.generate()
    recipient = identity.to_public()
    return str(recipient), str(identity)


@pytest.fixture
def tmp_settings(tmp_path: Path, age_keypair: tuple[str, str]) -> Settings:
    pub, priv = age_keypair
    return Settings(
        age_recipient=pub,
        age_identity=priv,
        data_store_path=tmp_path / "store",
        data_audit_path=tmp_path / "audit",
        api_key="test-key",
    )
