from datetime import datetime
from decimal import Decimal

import pytest
from pydantic import ValidationError

from src.core.investments import (
    InvestmentManagementSettings,
    InvestmentProposalCreateRequest,
    InvestmentProposalResponse,
)
from tests.factories import create_payload, proposal


def test_record_defaults_to_unapproved_with_creation_timestamp():
    record = proposal()

    assert record.id is None
    assert record.approved is False
    assert isinstance(record.created_at, datetime)
    assert record.created_at.tzinfo is not None


def test_record_identity_and_creation_timestamp_are_immutable():
    record = proposal().with_id(5)

    with pytest.raises(ValidationError):
        record.id = 6
    with pytest.raises(ValidationError):
        record.created_at = datetime(2020, 1, 1)

    record.approved = True
    assert record.id == 5
    assert record.approved is True


def test_record_rejects_unknown_risk_level_on_assignment():
    record = proposal()

    with pytest.raises(ValidationError):
        record.risk_level = "EXTREME"


def test_record_allows_amount_beyond_request_bounds():
    record = proposal(amount="15000000.00")

    assert record.investment_amount == Decimal("15000000.00")


def test_create_request_accepts_valid_payload_and_builds_record():
    request = InvestmentProposalCreateRequest.model_validate(create_payload())

    record = request.to_record()

    assert record.proposal_reference == "INV-001"
    assert record.investment_amount == Decimal("50000.00")
    assert record.id is None
    assert record.approved is False


@pytest.mark.parametrize(
    "overrides",
    [
        {"proposal_reference": "IN"},
        {"proposal_reference": "X" * 21},
        {"client_name": "J"},
        {"client_name": "J" * 101},
        {"investment_amount": "999.99"},
        {"investment_amount": "10000000.01"},
        {"expected_return": "-0.1"},
        {"expected_return": "100.1"},
        {"risk_level": "EXTREME"},
        {"investment_type": "   "},
        {"assigned_advisor": ""},
    ],
)
def test_create_request_rejects_out_of_range_fields(overrides):
    with pytest.raises(ValidationError):
        InvestmentProposalCreateRequest.model_validate(create_payload(**overrides))


def test_response_from_record_serializes_timestamp_as_iso_string():
    record = proposal().with_id(3)

    response = InvestmentProposalResponse.from_record(record)

    assert response.id == 3
    assert response.created_at == record.created_at.isoformat()


def test_settings_are_frozen_and_validated():
    settings = InvestmentManagementSettings(
        max_investment_amount=Decimal("10000000.00"),
        default_advisor_strategy="  ROUND_ROBIN ",
        risk_assessment_service_url="  ",
    )

    assert settings.default_advisor_strategy == "ROUND_ROBIN"
    assert settings.risk_assessment_service_url is None
    assert settings.risk_assessment_delay_seconds == 5.0
    assert settings.client_notification_delay_seconds == 2.0
    with pytest.raises(ValidationError):
        settings.max_investment_amount = Decimal("20000.00")

    with pytest.raises(ValidationError):
        InvestmentManagementSettings(
            max_investment_amount=Decimal("9999.99"), default_advisor_strategy="ROUND_ROBIN"
        )
    with pytest.raises(ValidationError):
        InvestmentManagementSettings(
            max_investment_amount=Decimal("10000.00"), default_advisor_strategy=" "
        )
