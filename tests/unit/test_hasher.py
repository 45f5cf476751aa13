"""Tests for the Hash Engine — deterministic batch fingerprints."""

from __future__ import annotations

import hashlib

import pytest

from vibelog.core.hasher import (
    EMPTY_FINGERPRINT,
    canonical_batch_bytes,
    fingerprint,
    hash_prefix,
    hash_to_bytes32,
    hashes_equal,
    is_zero_hash,
    normalize_hash,
)
from vibelog.models.log import AIContext, ChangeStats, CommitRef


class TestFingerprint:
    def test_deterministic(self, make_entry):
        batch = [make_entry(100), make_entry(200)]
        assert fingerprint(batch) == fingerprint(list(batch))

    def test_format(self, make_entry):
        fp = fingerprint([make_entry(100)])
        assert fp.startswith("0x")
        assert len(fp) == 66
        assert fp == fp.lower()

    def test_empty_batch_constant(self):
        assert fingerprint([]) == EMPTY_FINGERPRINT
        assert EMPTY_FINGERPRINT == "0x" + hashlib.sha256(b"[]").hexdigest()

    def test_message_change_changes_hash(self, make_entry):
        a = fingerprint([make_entry(100, message="add login")])
        b = fingerprint([make_entry(100, message="add logout")])
        assert a != b

    def test_order_matters(self, make_entry):
        e1, e2 = make_entry(100), make_entry(200)
        assert fingerprint([e1, e2]) != fingerprint([e2, e1])

    def test_commit_hash_included(self, make_entry):
        plain = fingerprint([make_entry(100)])
        with_commit = fingerprint([make_entry(100, commit_ref=CommitRef(hash="abc123"))])
        assert plain != with_commit

    def test_commit_metadata_beyond_hash_excluded(self, make_entry):
        a = make_entry(100, commit_ref=CommitRef(hash="abc123", message="one", author="x"))
        b = make_entry(100, commit_ref=CommitRef(hash="abc123", message="two", author="y"))
        assert fingerprint([a]) == fingerprint([b])

    def test_diff_included(self, make_entry):
        a = make_entry(100, change_stats=ChangeStats(files_changed=1, lines_added=5))
        b = make_entry(100, change_stats=ChangeStats(files_changed=1, lines_added=6))
        assert fingerprint([a]) != fingerprint([b])

    def test_ai_fields_excluded(self, make_entry):
        plain = make_entry(100)
        annotated = make_entry(
            100,
            ai_summary="An insightful narrative",
            ai_context=AIContext(tool="assistant", prompt="do it"),
        )
        assert fingerprint([plain]) == fingerprint([annotated])


class TestCanonicalBytes:
    def test_projection_is_byte_exact(self, make_entry):
        entry = make_entry(
            100,
            message="héllo",
            commit_ref=CommitRef(hash="abc"),
            change_stats=ChangeStats(
                files_changed=1, lines_added=2, lines_deleted=3, files=["a.py"]
            ),
        )
        expected = (
            '[{"id":"log_100","timestamp":100,"message":"héllo","commit":"abc",'
            '"diff":{"filesChanged":1,"linesAdded":2,"linesDeleted":3,"files":["a.py"]}}]'
        ).encode("utf-8")
        assert canonical_batch_bytes([entry]) == expected

    def test_optional_keys_omitted(self, make_entry):
        assert canonical_batch_bytes([make_entry(7, message="m")]) == (
            b'[{"id":"log_7","timestamp":7,"message":"m"}]'
        )


class TestHashHelpers:
    def test_hashes_equal_case_insensitive(self):
        h = "0x" + "ab" * 32
        assert hashes_equal(h, h.upper().replace("0X", "0x"))
        assert hashes_equal(h, "ab" * 32)

    def test_hashes_not_equal(self):
        assert not hashes_equal("0x" + "ab" * 32, "0x" + "ac" * 32)

    def test_normalize_adds_prefix(self):
        assert normalize_hash("ABCD") == "0xabcd"

    def test_prefix(self):
        h = "0x" + "1234567890abcdef" * 4
        assert hash_prefix(h) == "0x1234567890abcdef"
        assert hash_prefix("") == ""

    def test_to_bytes32(self):
        raw = hash_to_bytes32("0x" + "ff" * 32)
        assert raw == b"\xff" * 32

    def test_to_bytes32_wrong_length(self):
        with pytest.raises(ValueError):
            hash_to_bytes32("0xabcd")

    def test_zero_hash(self):
        assert is_zero_hash("0x" + "0" * 64)
        assert not is_zero_hash(EMPTY_FINGERPRINT)
