"""Tests for the completeness evaluator.

Covers: missing entities, blank/whitespace fields, which legal fields gate
completeness, every social channel, application id presence.
"""

import pytest

from conftest import make_application, make_business, make_legal, make_social
from sellerflow.models.business import LegalInfo, OnboardingSnapshot, SocialInfo
from sellerflow.models.common import ApplicationStatus
from sellerflow.onboarding.completion import evaluate, evaluate_snapshot


# ===================================================================
# Basic info
# ===================================================================


class TestBasicComplete:
    def test_no_business_is_incomplete(self) -> None:
        vector = evaluate(None, None, None, None)
        assert vector.basic_complete is False

    def test_all_required_fields_present(self) -> None:
        assert evaluate(make_business(), None, None, None).basic_complete is True

    @pytest.mark.parametrize("field", ["name", "email", "phone", "address"])
    def test_missing_required_field(self, field: str) -> None:
        business = make_business(**{field: ""})
        assert evaluate(business, None, None, None).basic_complete is False

    def test_whitespace_only_counts_as_blank(self) -> None:
        business = make_business(name="   ")
        assert evaluate(business, None, None, None).basic_complete is False

    def test_city_state_pincode_do_not_gate(self) -> None:
        """Only name, email, phone and address decide completeness."""
        business = make_business(city="", state="", pincode="")
        assert evaluate(business, None, None, None).basic_complete is True


# ===================================================================
# Legal info
# ===================================================================


class TestLegalComplete:
    @pytest.mark.parametrize("field", ["pan", "gst", "msme"])
    def test_any_gating_identifier_completes(self, field: str) -> None:
        legal = LegalInfo(business_id="biz-1", **{field: "X" * 10})
        assert evaluate(make_business(), legal, None, None).legal_complete is True

    @pytest.mark.parametrize("field", ["aadhaar", "fassi", "export_import"])
    def test_non_gating_identifier_alone_is_incomplete(self, field: str) -> None:
        legal = LegalInfo(business_id="biz-1", **{field: "123456789012"})
        assert evaluate(make_business(), legal, None, None).legal_complete is False

    def test_missing_legal_is_incomplete(self) -> None:
        assert evaluate(make_business(), None, None, None).legal_complete is False

    def test_blank_identifiers_are_incomplete(self) -> None:
        legal = LegalInfo(business_id="biz-1", pan=" ", gst="")
        assert evaluate(make_business(), legal, None, None).legal_complete is False


# ===================================================================
# Social info
# ===================================================================


class TestSocialComplete:
    @pytest.mark.parametrize(
        "field",
        ["linkedin", "instagram", "facebook", "website", "telegram", "youtube", "x", "whatsapp"],
    )
    def test_any_channel_completes(self, field: str) -> None:
        social = SocialInfo(business_id="biz-1", **{field: "value"})
        assert evaluate(make_business(), None, social, None).social_complete is True

    def test_empty_record_is_incomplete(self) -> None:
        social = SocialInfo(business_id="biz-1")
        assert evaluate(make_business(), None, social, None).social_complete is False


# ===================================================================
# Application
# ===================================================================


class TestHasApplication:
    def test_application_with_id(self) -> None:
        vector = evaluate(make_business(), None, None, make_application())
        assert vector.has_application is True

    def test_application_without_id(self) -> None:
        application = make_application(application_id="", status=ApplicationStatus.NONE)
        assert evaluate(make_business(), None, None, application).has_application is False

    def test_snapshot_wrapper_matches_evaluate(self) -> None:
        snapshot = OnboardingSnapshot(
            business=make_business(),
            legal=make_legal(),
            social=make_social(),
            application=make_application(),
        )
        assert evaluate_snapshot(snapshot) == evaluate(
            snapshot.business, snapshot.legal, snapshot.social, snapshot.application,
        )
        assert evaluate_snapshot(snapshot).basic_complete is True
