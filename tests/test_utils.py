"""
Tests for waitlistpro/utils - email helpers, log formatting, masking.
"""
import json
import logging

import pytest

from waitlistpro.utils.email_validation import (
    is_valid_email_format,
    normalize_email,
    split_email,
)
from waitlistpro.utils.logging import (
    StructuredJsonFormatter,
    correlation_id_ctx,
    generate_correlation_id,
    get_correlation_id,
    mask_email,
)


class TestEmailValidation:
    @pytest.mark.parametrize("email", [
        "jane.doe@gmail.com",
        "first+tag@sub.example.co.uk",
        "o'brien@company.io",
    ])
    def test_valid(self, email):
        assert is_valid_email_format(email) is True

    @pytest.mark.parametrize("email", [
        "",
        "plainaddress",
        "@no-local.com",
        "no-domain@",
        "spaces in@example.com",
        "a@b",
        "x" * 250 + "@example.com",
    ])
    def test_invalid(self, email):
        assert is_valid_email_format(email) is False

    def test_normalize(self):
        assert normalize_email("  Jane.Doe@GMAIL.com ") == "jane.doe@gmail.com"
        assert normalize_email(None) == ""

    def test_split(self):
        assert split_email("jane@gmail.com") == ("jane", "gmail.com")
        assert split_email("jane") == ("jane", None)
        assert split_email("jane@") == ("jane", None)
        assert split_email("@gmail.com") == ("", "gmail.com")

    def test_extra_at_signs(self):
        assert split_email("a@b@c") == ("a", "b")
        assert split_email("jane@mailinator.com@gmail.com") == ("jane", "mailinator.com")


class TestMaskEmail:
    def test_masks_local_part(self):
        assert mask_email("jane.doe@gmail.com") == "jan***@gmail.com"

    def test_short_local_part(self):
        assert mask_email("jo@x.io") == "jo***@x.io"

    def test_empty(self):
        assert mask_email(None) == "***"
        assert mask_email("") == "***"


class TestStructuredLogging:
    def test_correlation_id_roundtrip(self):
        token = correlation_id_ctx.set(None)
        try:
            cid = generate_correlation_id()
            assert len(cid) == 32
            correlation_id_ctx.set(cid)
            assert get_correlation_id() == cid
        finally:
            correlation_id_ctx.reset(token)

    def test_formatter_emits_json_with_extras(self):
        token = correlation_id_ctx.set("abc123")
        try:
            record = logging.LogRecord(
                name="waitlistpro.services.signups",
                level=logging.INFO,
                pathname=__file__,
                lineno=1,
                msg="New signup at position %d",
                args=(4,),
                exc_info=None,
            )
            record.waitlist_id = "wl-1"
            record.kind = "welcome"
            line = StructuredJsonFormatter().format(record)
        finally:
            correlation_id_ctx.reset(token)

        entry = json.loads(line)
        assert entry["level"] == "INFO"
        assert entry["correlation_id"] == "abc123"
        assert entry["module"] == "waitlistpro.services.signups"
        assert entry["message"] == "New signup at position 4"
        assert entry["waitlist_id"] == "wl-1"
        assert entry["kind"] == "welcome"
        assert "signup_id" not in entry
