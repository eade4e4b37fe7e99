"""Tests for confidence scoring and the threshold/margin policy.

Signals are built directly so each test controls the exact weights.
"""

import random

import pytest

from productrules.core.config import ScoringConfig
from productrules.detector.scorer import build_candidates, override_result, rank_candidates, score
from productrules.detector.types import DetectionStatus, EvidenceSignal, ProductId, SignalKind


def _sig(product: ProductId, weight: float, value: str = "x", kind: SignalKind = SignalKind.DEPENDENCY):
    return EvidenceSignal(kind=kind, product=product, matched_value=value, weight=weight)


def _confidence_of(product: ProductId, signals: list[EvidenceSignal]) -> float:
    for candidate in rank_candidates(build_candidates(signals)):
        if candidate.product is product:
            return candidate.confidence
    return 0.0


CONFIG = ScoringConfig()


class TestNoEvidence:
    def test_empty_signals_give_none(self):
        result = score([], CONFIG)
        assert result.status is DetectionStatus.NONE
        assert result.detected_product is None
        assert result.confidence == 0.0
        assert result.evidence == []
        assert result.alternates == []


class TestDetected:
    def test_single_product_has_full_confidence(self):
        result = score([_sig(ProductId.COMMERCE, 8.0), _sig(ProductId.COMMERCE, 5.0)], CONFIG)
        assert result.status is DetectionStatus.DETECTED
        assert result.detected_product is ProductId.COMMERCE
        assert result.confidence == pytest.approx(1.0)
        assert result.products == [ProductId.COMMERCE]
        assert len(result.evidence) == 2

    def test_runner_up_listed_as_alternate(self):
        result = score([_sig(ProductId.COMMERCE, 8.0), _sig(ProductId.CONTENT_ONPREM, 2.0)], CONFIG)
        assert result.status is DetectionStatus.DETECTED
        assert result.confidence == pytest.approx(0.8)
        assert [a.product for a in result.alternates] == [ProductId.CONTENT_ONPREM]
        assert result.alternates[0].confidence == pytest.approx(0.2)


class TestThresholdBoundary:
    def test_exactly_at_threshold_is_accepted(self):
        result = score([_sig(ProductId.COMMERCE, 6.0), _sig(ProductId.CONTENT_ONPREM, 4.0)], CONFIG)
        assert result.status is DetectionStatus.DETECTED
        assert result.confidence == pytest.approx(0.6)

    def test_just_below_threshold_is_rejected(self):
        result = score([_sig(ProductId.COMMERCE, 5.9), _sig(ProductId.CONTENT_ONPREM, 4.1)], CONFIG)
        assert result.status is DetectionStatus.NONE
        assert result.detected_product is None
        assert result.confidence == pytest.approx(0.59)

    def test_custom_threshold(self):
        config = ScoringConfig(threshold=0.9)
        result = score([_sig(ProductId.COMMERCE, 8.0), _sig(ProductId.CONTENT_ONPREM, 2.0)], config)
        assert result.status is DetectionStatus.NONE


class TestMargin:
    def test_near_equal_incompatible_products_are_ambiguous(self):
        result = score([_sig(ProductId.COMMERCE, 8.0), _sig(ProductId.CONTENT_ONPREM, 6.0)], CONFIG)
        assert result.status is DetectionStatus.AMBIGUOUS
        assert result.is_ambiguous
        assert result.detected_product is None
        assert result.products == []
        assert {a.product for a in result.alternates} == {
            ProductId.COMMERCE,
            ProductId.CONTENT_ONPREM,
        }

    def test_tie_is_ordered_by_product_id(self):
        result = score([_sig(ProductId.CONTENT_ONPREM, 5.0), _sig(ProductId.COMMERCE, 5.0)], CONFIG)
        assert result.status is DetectionStatus.AMBIGUOUS
        assert [a.product for a in result.alternates] == [
            ProductId.COMMERCE,
            ProductId.CONTENT_ONPREM,
        ]

    def test_spread_out_evidence_is_none(self):
        signals = [
            _sig(ProductId.COMMERCE, 5.0),
            _sig(ProductId.CONTENT_ONPREM, 5.0),
            _sig(ProductId.DATA, 5.0),
            _sig(ProductId.SEARCH, 5.0),
        ]
        result = score(signals, CONFIG)
        assert result.status is DetectionStatus.NONE
        assert len(result.alternates) == 4


class TestMultiProduct:
    def test_coinstalled_products_are_not_ambiguous(self):
        result = score([_sig(ProductId.COMMERCE, 8.0), _sig(ProductId.EXPERIMENTATION, 7.0)], CONFIG)
        assert result.status is DetectionStatus.MULTI_PRODUCT
        assert result.is_resolved
        assert result.detected_product is ProductId.COMMERCE
        assert result.products == [ProductId.COMMERCE, ProductId.EXPERIMENTATION]
        assert result.confidence == pytest.approx(1.0)

    def test_products_outside_window_are_not_routed(self):
        signals = [
            _sig(ProductId.COMMERCE, 8.0),
            _sig(ProductId.EXPERIMENTATION, 8.0),
            _sig(ProductId.CONTENT_ONPREM, 1.0),
        ]
        result = score(signals, CONFIG)
        assert result.status is DetectionStatus.MULTI_PRODUCT
        assert ProductId.CONTENT_ONPREM not in result.products
        assert result.confidence == pytest.approx(16 / 17)

    def test_without_groups_coinstall_is_ambiguous(self):
        config = ScoringConfig(coinstall_groups=())
        result = score([_sig(ProductId.COMMERCE, 8.0), _sig(ProductId.EXPERIMENTATION, 7.0)], config)
        assert result.status is DetectionStatus.AMBIGUOUS


class TestOverride:
    def test_override_result_has_full_confidence(self):
        result = override_result(ProductId.CONTENT_CLOUD, project_root="/tmp/x")
        assert result.status is DetectionStatus.DETECTED
        assert result.detected_product is ProductId.CONTENT_CLOUD
        assert result.confidence == 1.0
        assert result.evidence == []
        assert result.overridden is True


class TestProperties:
    @pytest.mark.parametrize("seed", range(20))
    def test_adding_evidence_never_lowers_confidence(self, seed):
        rng = random.Random(seed)
        products = ProductId.detectable()
        signals = [
            _sig(rng.choice(products), rng.uniform(0.5, 8.0), value=f"v{i}")
            for i in range(rng.randint(1, 8))
        ]
        target = rng.choice(products)

        before = _confidence_of(target, signals)
        after = _confidence_of(target, signals + [_sig(target, rng.uniform(0.5, 8.0), value="extra")])
        assert after >= before - 1e-12

    @pytest.mark.parametrize("seed", range(10))
    def test_scoring_is_deterministic(self, seed):
        rng = random.Random(seed)
        products = ProductId.detectable()
        signals = [
            _sig(rng.choice(products), rng.uniform(0.5, 8.0), value=f"v{i}")
            for i in range(rng.randint(0, 8))
        ]
        assert score(signals, CONFIG).to_dict() == score(list(signals), CONFIG).to_dict()


class TestScoringConfig:
    @pytest.mark.parametrize("kwargs", [
        {"threshold": 0.0},
        {"threshold": 1.5},
        {"margin": 1.0},
        {"repeat_decay": 0.0},
        {"max_repeats": 0},
        {"dependency_weight": 0.0},
    ])
    def test_invalid_values_rejected(self, kwargs):
        with pytest.raises(ValueError):
            ScoringConfig(**kwargs)

    def test_ambiguity_floor(self):
        assert ScoringConfig(threshold=0.6, margin=0.15).ambiguity_floor == pytest.approx(0.45)
