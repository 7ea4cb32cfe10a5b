"""Tests for cadence.data.encryption."""

from __future__ import annotations

import pyrage
import pyrage.x25519
import pytest

from cadence.data.encryption import open_document, seal_document


class TestSealOpenDocument:
    def test_roundtrip(self, age_keypair: tuple[str, str]) -> None:
        pub, priv = age_keypair
        document = [{"goal_id": "g1", "date": "2024-03-01", "status": "done"}]
        ciphertext = seal_document(document, pub)
        assert b"goal_id" not in ciphertext
        assert open_document(ciphertext, priv) == document

    def test_unicode_titles_survive(self, age_keypair: tuple[str, str]) -> None:
        pub, priv = age_keypair
        document = {"title": "Leggere 📚 ogni giorno"}
        assert open_document(seal_document(document, pub), priv) == document

    def test_wrong_key_raises(self, age_keypair: tuple[str, str]) -> None:
        pub, _priv = age_keypair
        other_identity = pyrage.x25519.Identity.generate()
        ciphertext = seal_document({"secret": True}, pub)
        with pytest.raises(pyrage.DecryptError):
            open_document(ciphertext, str(other_identity))
