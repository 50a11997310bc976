"""
Tests for risk rules, level fusion, scoring and the assessment workflow.
"""

import asyncio
import json
import uuid
from datetime import date, datetime

import pytest

from app.core.exceptions import (
    ClaimNotFoundError,
    InvalidStateError,
    RiskAssessmentNotFoundError,
    UnverifiedDataError,
)
from app.db.models import (
    Claim,
    ClaimStatus,
    CoverageStatus,
    PolicySnapshot,
    RiskAssessment,
    RiskLevel,
    VerificationStatus,
)
from app.services.audit import AuditAction, AuditService
from app.services.llm.observation_service import AIObservation, ObservationService, parse_observations
from app.services.risk.engine import RiskEngine, fuse, overall_score, rule_based_level
from app.services.risk.rules import (
    CoverageDateConsistencyRule,
    CriticalFieldCompletenessRule,
    DataInconsistencyRule,
    LossTypeCoverageRule,
    RiskContext,
    RuleSignal,
    Severity,
)
from app.services.risk.service import RiskAssessmentService
from app.services.verification_guard import VerifiedField


def _claim(loss_date=date(2026, 1, 10), loss_type="Fire") -> Claim:
    return Claim.create(
        claim_number="2026-000001",
        policy_number="HO-2025-000101",
        loss_date=loss_date,
        loss_type=loss_type,
        loss_location="14 Alder Lane",
        loss_description="Kitchen fire",
        submitted_by="intake-agent-1",
    )


def _snapshot(covered=("Fire", "Water Damage")) -> PolicySnapshot:
    return PolicySnapshot.create(
        claim_id=uuid.uuid4(),
        policy_number="HO-2025-000101",
        effective_date=date(2025, 1, 1),
        expiration_date=date(2027, 1, 1),
        coverage_status=CoverageStatus.ACTIVE,
        covered_loss_types=list(covered),
    )


def _fields(status=VerificationStatus.VERIFIED, **values) -> list:
    return [
        VerifiedField(
            extracted_field_id=uuid.uuid4(),
            field_name=name,
            value=value,
            verification_status=status,
        )
        for name, value in values.items()
    ]


COMPLETE = dict(
    lossDate="2026-01-10",
    lossLocation="14 Alder Lane",
    lossType="Fire",
    lossDescription="Kitchen fire",
)


def _context(claim=None, snapshot=None, **values) -> RiskContext:
    return RiskContext(
        claim=claim or _claim(),
        policy_snapshot=snapshot or _snapshot(),
        verified_fields=_fields(**values),
    )


def _signal(severity: Severity, triggered: bool = True) -> RuleSignal:
    return RuleSignal(rule_name="r", triggered=triggered, severity=severity, description="")


def _obs(category: str = "language_ambiguity") -> AIObservation:
    return AIObservation(category=category, description="noted")


class TestRules:
    """Test each deterministic rule."""

    def test_coverage_date_inside_period(self):
        assert not CoverageDateConsistencyRule().evaluate(_context(**COMPLETE)).triggered

    def test_coverage_date_outside_period(self):
        signal = CoverageDateConsistencyRule().evaluate(_context(**{**COMPLETE, "lossDate": "2020-01-01"}))
        assert signal.triggered
        assert signal.severity == Severity.CRITICAL

    def test_coverage_date_without_verified_date_not_triggered(self):
        values = {k: v for k, v in COMPLETE.items() if k != "lossDate"}
        assert not CoverageDateConsistencyRule().evaluate(_context(**values)).triggered

    def test_coverage_date_accepts_us_format(self):
        signal = CoverageDateConsistencyRule().evaluate(_context(**{**COMPLETE, "lossDate": "01/10/2026"}))
        assert not signal.triggered

    @pytest.mark.parametrize("rule", [CoverageDateConsistencyRule(), DataInconsistencyRule()])
    def test_unparseable_date_named_in_description(self, rule):
        signal = rule.evaluate(_context(**{**COMPLETE, "lossDate": "the night of the storm"}))
        assert not signal.triggered
        assert "the night of the storm" in signal.description
        assert "unparseable" in signal.description

    def test_missing_date_described_as_missing(self):
        values = {k: v for k, v in COMPLETE.items() if k != "lossDate"}
        signal = DataInconsistencyRule().evaluate(_context(**values))
        assert signal.description.startswith("No verified loss date")

    def test_completeness_reports_missing_fields(self):
        signal = CriticalFieldCompletenessRule().evaluate(_context(lossDate="2026-01-10", lossType="Fire"))
        assert signal.triggered
        assert "lossLocation" in signal.description
        assert "lossDescription" in signal.description

    def test_completeness_treats_blank_as_missing(self):
        signal = CriticalFieldCompletenessRule().evaluate(_context(**{**COMPLETE, "lossDescription": "  "}))
        assert signal.triggered

    def test_inconsistency_within_tolerance(self):
        signal = DataInconsistencyRule().evaluate(_context(**{**COMPLETE, "lossDate": "2026-01-11"}))
        assert not signal.triggered

    def test_inconsistency_beyond_tolerance(self):
        signal = DataInconsistencyRule().evaluate(_context(**{**COMPLETE, "lossDate": "2026-01-12"}))
        assert signal.triggered
        assert signal.severity == Severity.MAJOR

    def test_loss_type_normalized(self):
        context = _context(**{**COMPLETE, "lossType": "water-damage"})
        assert not LossTypeCoverageRule().evaluate(context).triggered

    def test_loss_type_not_covered(self):
        context = _context(**{**COMPLETE, "lossType": "Flood"})
        assert LossTypeCoverageRule().evaluate(context).triggered

    def test_loss_type_falls_back_to_submitted(self):
        values = {k: v for k, v in COMPLETE.items() if k != "lossType"}
        context = _context(claim=_claim(loss_type="Earthquake"), **values)
        assert LossTypeCoverageRule().evaluate(context).triggered


class TestRuleBasedLevel:
    """Test how triggered signals combine into a level."""

    def test_no_signals_is_low(self):
        assert rule_based_level([_signal(Severity.CRITICAL, triggered=False)]) == RiskLevel.LOW

    def test_any_critical_is_high(self):
        assert rule_based_level([_signal(Severity.CRITICAL)]) == RiskLevel.HIGH

    def test_two_major_is_high(self):
        assert rule_based_level([_signal(Severity.MAJOR), _signal(Severity.MAJOR)]) == RiskLevel.HIGH

    def test_one_major_is_medium(self):
        assert rule_based_level([_signal(Severity.MAJOR)]) == RiskLevel.MEDIUM

    def test_minor_threshold(self):
        assert rule_based_level([_signal(Severity.MINOR)] * 2) == RiskLevel.LOW
        assert rule_based_level([_signal(Severity.MINOR)] * 3) == RiskLevel.MEDIUM


class TestFusion:
    """Test that AI observations only ever escalate."""

    @pytest.mark.parametrize("level", list(RiskLevel))
    @pytest.mark.parametrize("count", [0, 1, 3, 5])
    def test_never_lowers(self, level, count):
        order = [RiskLevel.LOW, RiskLevel.MEDIUM, RiskLevel.HIGH, RiskLevel.CRITICAL]
        fused = fuse(level, [_obs("narrative_concern")] * count)
        assert order.index(fused) >= order.index(level)

    def test_medium_with_narrative_concern_is_high(self):
        assert fuse(RiskLevel.MEDIUM, [_obs("narrative_concern")]) == RiskLevel.HIGH

    def test_medium_with_other_categories_stays(self):
        assert fuse(RiskLevel.MEDIUM, [_obs("unusual_phrasing")] * 4) == RiskLevel.MEDIUM

    def test_low_needs_three_observations(self):
        assert fuse(RiskLevel.LOW, [_obs()] * 2) == RiskLevel.LOW
        assert fuse(RiskLevel.LOW, [_obs()] * 3) == RiskLevel.MEDIUM

    def test_low_never_jumps_to_high(self):
        assert fuse(RiskLevel.LOW, [_obs("completeness_concern")] * 6) == RiskLevel.MEDIUM


class TestScore:
    """Test the 0-100 summary score."""

    def test_weights(self):
        signals = [_signal(Severity.CRITICAL), _signal(Severity.MAJOR), _signal(Severity.MINOR)]
        assert overall_score(signals, [_obs()]) == 30 + 15 + 5 + 10

    def test_observation_contribution_capped(self):
        assert overall_score([], [_obs()] * 7) == 30

    def test_total_capped(self):
        signals = [_signal(Severity.CRITICAL)] * 4
        assert overall_score(signals, [_obs()] * 3) == 100


class TestEngine:
    """Test the engine end to end over in-memory inputs."""

    def test_clean_claim_is_low(self):
        evaluation = RiskEngine().evaluate(_claim(), _snapshot(), _fields(**COMPLETE), [])
        assert evaluation.risk_level == RiskLevel.LOW
        assert evaluation.overall_score == 0
        assert len(evaluation.rule_signals) == 4
        assert evaluation.triggered_signals == []

    def test_unverified_input_refused(self):
        fields = _fields(status=VerificationStatus.UNVERIFIED, **COMPLETE)
        with pytest.raises(UnverifiedDataError):
            RiskEngine().evaluate(_claim(), _snapshot(), fields, [])


class TestObservationParsing:
    """Test handling of the AI advisory response."""

    def test_valid_observations(self):
        content = json.dumps({"observations": [
            {"category": "narrative_concern", "description": "Timeline is vague", "relevantField": "lossDescription"},
        ]})
        (observation,) = parse_observations(content)
        assert observation.category == "narrative_concern"
        assert observation.relevant_field == "lossDescription"

    def test_unknown_category_dropped(self):
        content = json.dumps({"observations": [
            {"category": "fraud_indicator", "description": "Looks staged"},
            {"category": "unusual_phrasing", "description": "Odd wording"},
        ]})
        assert [o.category for o in parse_observations(content)] == ["unusual_phrasing"]

    def test_verdict_keys_discard_everything(self):
        content = json.dumps({
            "observations": [{"category": "unusual_phrasing", "description": "Odd wording"}],
            "risk_level": "High",
        })
        assert parse_observations(content) == []

    def test_fenced_json_tolerated(self):
        content = '```json\n{"observations": [{"category": "language_ambiguity", "description": "x"}]}\n```'
        assert len(parse_observations(content)) == 1

    def test_garbage_is_empty(self):
        assert parse_observations("I cannot help with that.") == []

    @pytest.mark.asyncio
    async def test_provider_failure_degrades_to_empty(self, failing_ai_client):
        service = ObservationService(failing_ai_client)
        assert await service.observe("Kitchen fire", _fields(**COMPLETE)) == []


class TestRiskAssessmentService:
    """Test the guarded, persisted evaluation workflow."""

    @pytest.mark.asyncio
    async def test_verified_claim_assessed_and_audited(self, db, verified_claim, ai_client):
        service = RiskAssessmentService(db, ObservationService(ai_client))
        outcome = await service.evaluate_risk(verified_claim.claim_id, actor="intake-agent-1")

        assert outcome.assessment.risk_level == RiskLevel.LOW
        assert outcome.assessment.overall_score == 0
        assert outcome.assessment.model_version == "rules-v1.0+fake-model"

        events = AuditService(db).get_entity_history("Claim", verified_claim.claim_id)
        assessed = [e for e in events if e.action == AuditAction.RISK_ASSESSED]
        assert len(assessed) == 1
        assert assessed[0].details["rules_triggered"] == 0
        assert assessed[0].details["ai_observations"] == 0

    @pytest.mark.asyncio
    async def test_observations_escalate(self, db, verified_claim, scripted_ai_client):
        observations = json.dumps({"observations": [
            {"category": "unusual_phrasing", "description": "a"},
            {"category": "language_ambiguity", "description": "b"},
            {"category": "unusual_phrasing", "description": "c"},
        ]})
        service = RiskAssessmentService(db, ObservationService(scripted_ai_client(observations)))
        outcome = await service.evaluate_risk(verified_claim.claim_id)
        assert outcome.evaluation.rule_based_level == RiskLevel.LOW
        assert outcome.assessment.risk_level == RiskLevel.MEDIUM
        assert outcome.assessment.overall_score == 30

    @pytest.mark.asyncio
    async def test_ai_outage_still_assesses(self, db, verified_claim, failing_ai_client):
        service = RiskAssessmentService(db, ObservationService(failing_ai_client))
        outcome = await service.evaluate_risk(verified_claim.claim_id)
        assert outcome.assessment.risk_level == RiskLevel.LOW
        assert outcome.assessment.ai_observations == []

    @pytest.mark.asyncio
    async def test_validated_claim_refused(self, db, test_claim, ai_client):
        with pytest.raises(InvalidStateError):
            await RiskAssessmentService(db, ObservationService(ai_client)).evaluate_risk(test_claim.claim_id)

    @pytest.mark.asyncio
    async def test_new_unverified_field_blocks_reassessment(
        self, db, verified_claim, add_extracted_fields, ai_client
    ):
        add_extracted_fields(verified_claim, {"estimatedDamageAmount": "12000"})
        with pytest.raises(UnverifiedDataError) as exc_info:
            await RiskAssessmentService(db, ObservationService(ai_client)).evaluate_risk(verified_claim.claim_id)
        assert exc_info.value.field_names == ["estimatedDamageAmount"]

    @pytest.mark.asyncio
    async def test_unknown_claim(self, db, ai_client):
        with pytest.raises(ClaimNotFoundError):
            await RiskAssessmentService(db, ObservationService(ai_client)).evaluate_risk(uuid.uuid4())

    @pytest.mark.asyncio
    async def test_reassessment_appends(self, db, verified_claim, ai_client):
        service = RiskAssessmentService(db, ObservationService(ai_client))
        first = await service.evaluate_risk(verified_claim.claim_id)
        second = await service.evaluate_risk(verified_claim.claim_id)

        history = service.list_assessments(verified_claim.claim_id)
        assert [a.risk_assessment_id for a in history] == [
            first.assessment.risk_assessment_id,
            second.assessment.risk_assessment_id,
        ]
        assert service.get_latest_assessment(verified_claim.claim_id).risk_assessment_id == (
            second.assessment.risk_assessment_id
        )

    @pytest.mark.asyncio
    async def test_cancelled_evaluation_stores_nothing(self, db, verified_claim, cancelled_ai_client):
        service = RiskAssessmentService(db, ObservationService(cancelled_ai_client))

        with pytest.raises(asyncio.CancelledError):
            await service.evaluate_risk(verified_claim.claim_id)
        assert db.query(RiskAssessment).count() == 0
        assert AuditService(db).get_actions(AuditAction.RISK_ASSESSED) == []
        db.refresh(verified_claim)
        assert verified_claim.status == ClaimStatus.VERIFIED

    @pytest.mark.asyncio
    async def test_same_instant_reassessment_ordered(self, db, verified_claim, ai_client, monkeypatch):
        monkeypatch.setattr("app.db.models.risk.utcnow", lambda: datetime(2026, 3, 1, 9, 30))
        service = RiskAssessmentService(db, ObservationService(ai_client))
        first = await service.evaluate_risk(verified_claim.claim_id)
        second = await service.evaluate_risk(verified_claim.claim_id)
        assert first.assessment.created_at == second.assessment.created_at

        history = service.list_assessments(verified_claim.claim_id)
        assert [a.sequence_number for a in history] == [1, 2]
        assert [a.risk_assessment_id for a in history] == [
            first.assessment.risk_assessment_id,
            second.assessment.risk_assessment_id,
        ]
        assert service.get_latest_assessment(verified_claim.claim_id).risk_assessment_id == (
            second.assessment.risk_assessment_id
        )

    def test_latest_without_assessment(self, db, test_claim):
        with pytest.raises(RiskAssessmentNotFoundError):
            RiskAssessmentService(db).get_latest_assessment(test_claim.claim_id)
