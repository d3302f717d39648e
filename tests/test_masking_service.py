"""Tests for the pattern transformer"""

import pytest
from masking_engine.models.settings import MaskingPattern
from masking_engine.services.masking_service import (
    HIDDEN,
    hash_value,
    mask_domain,
    mask_email,
    mask_email_list,
    mask_phone,
    mask_value,
    normalize_pattern,
)


class TestMaskEmail:
    """Test email masking patterns"""

    def test_standard(self):
        """Standard keeps first/last local char and the TLD"""
        assert mask_email("john.doe@example.com", "standard") == "j***e@e***.com"

    def test_minimal(self):
        """Minimal keeps the first char and the whole domain"""
        assert mask_email("john.doe@example.com", "minimal") == "j***@example.com"

    def test_complete(self):
        assert mask_email("john.doe@example.com", "complete") == HIDDEN

    def test_standard_short_local_part(self):
        """Local parts of two chars or fewer collapse entirely"""
        assert mask_email("ab@example.com", "standard") == "***@e***.com"
        assert mask_email("a@example.com", "standard") == "***@e***.com"

    def test_standard_keeps_first_and_last_char(self):
        masked = mask_email("abc@example.com", "standard")
        assert masked.startswith("a***c@")

    def test_standard_multi_label_domain(self):
        """Every label but the TLD is masked"""
        assert mask_email("jane@mail.company.co.uk", "standard") == "j***e@m***.c***.***.uk"

    def test_standard_dotless_domain(self):
        assert mask_email("user@localhost", "standard") == "u***r@localhost"

    def test_malformed_email_unchanged(self):
        """Values without @ are not transformed"""
        assert mask_email("not-an-email", "standard") == "not-an-email"
        assert mask_email("not-an-email", "minimal") == "not-an-email"

    @pytest.mark.parametrize("value", ["not-an-email", "a@b", "john.doe@example.com", "@"])
    def test_complete_never_leaks_structure(self, value):
        assert mask_email(value, "complete") == HIDDEN

    @pytest.mark.parametrize("value", [None, ""])
    def test_empty_input_unchanged(self, value):
        assert mask_email(value, "complete") == value

    def test_unknown_pattern_is_standard(self):
        assert mask_email("john.doe@example.com", "fancy") == mask_email("john.doe@example.com", "standard")
        assert mask_email("john.doe@example.com", None) == "j***e@e***.com"

    def test_splits_on_first_at(self):
        assert mask_email("john@doe@example.com", "minimal") == "j***@doe@example.com"

    def test_accepts_enum_pattern(self):
        assert mask_email("john.doe@example.com", MaskingPattern.MINIMAL) == "j***@example.com"


class TestMaskDomain:
    """Test domain label masking"""

    def test_short_labels_fully_starred(self):
        assert mask_domain("abc.io") == "***.io"

    def test_long_labels_keep_first_char(self):
        assert mask_domain("hospital.org") == "h***.org"


class TestMaskPhone:
    """Test phone masking patterns"""

    def test_minimal_us_number(self):
        assert mask_phone("+1-555-123-4567", "minimal") == "+1 ***-***-4567"

    def test_minimal_other_country(self):
        assert mask_phone("+44 20 7946 0958", "minimal") == "+** ***-***-0958"

    def test_standard(self):
        assert mask_phone("(555) 123-4567", "standard") == "***-***-4567"

    def test_standard_drops_country_code(self):
        assert mask_phone("+1-555-123-4567", "standard") == "***-***-4567"

    def test_complete(self):
        assert mask_phone("+1-555-123-4567", "complete") == HIDDEN

    def test_four_digits_collapse(self):
        assert mask_phone("1234", "standard") == "***"
        assert mask_phone("1234", "minimal") == "***"

    def test_five_digits_keep_tail(self):
        assert mask_phone("12345", "standard") == "***-***-2345"

    @pytest.mark.parametrize("value", [
        "+1 (555) 123-4567",
        "555.123.4567",
        "00 49 30 1234 5678",
        "98765",
    ])
    def test_standard_ends_with_last_four_digits(self, value):
        digits = "".join(c for c in value if c.isdigit())
        assert mask_phone(value, "standard").endswith(digits[-4:])

    def test_non_numeric_unchanged(self):
        assert mask_phone("call me", "standard") == "call me"

    def test_non_numeric_complete_hidden(self):
        assert mask_phone("call me", "complete") == HIDDEN

    @pytest.mark.parametrize("value", [None, ""])
    def test_empty_input_unchanged(self, value):
        assert mask_phone(value, "standard") == value

    def test_unknown_pattern_is_standard(self):
        assert mask_phone("+1-555-123-4567", "partial") == "***-***-4567"


class TestHelpers:
    """Test list masking, dispatch and digests"""

    def test_mask_email_list(self):
        masked = mask_email_list("a@x.com,john.doe@example.com", "standard")
        assert masked == "***@***.com, j***e@e***.com"

    def test_mask_email_list_empty(self):
        assert mask_email_list("", "standard") == ""

    def test_mask_value_dispatch(self):
        assert mask_value("email", "john.doe@example.com", "minimal") == "j***@example.com"
        assert mask_value("phone", "+1-555-123-4567", "minimal") == "+1 ***-***-4567"

    def test_normalize_pattern(self):
        assert normalize_pattern("complete") == MaskingPattern.COMPLETE
        assert normalize_pattern("invalid_pattern") == MaskingPattern.STANDARD
        assert normalize_pattern(None) == MaskingPattern.STANDARD

    def test_hash_value_is_deterministic_and_one_way(self):
        digest = hash_value("john.doe@example.com")
        assert digest == hash_value("john.doe@example.com")
        assert len(digest) == 64
        assert "john" not in digest

    def test_hash_value_salt(self):
        assert hash_value("x", salt="a") != hash_value("x", salt="b")
