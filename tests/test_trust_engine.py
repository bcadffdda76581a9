"""
Unit tests for the trust engine.

Tests:
- Base score formula and karma blend
- Trust level buckets
- Red / green flags
- End-to-end scenarios (single fraud review, suspicious pattern, empty input)
- Range and monotonicity properties
"""
import pytest

from karmatic.detection.trust_engine import (
    analyze_trust,
    analyze_trust_with_metrics,
    blend_karma_score,
    calculate_trust_score,
    determine_trust_level,
    get_trust_summary,
    trust_engine
)
from karmatic.schemas import RatingPattern, TrustLevel


class TestTrustScoreFormula:
    """Weighted 40/30/20/10 base score."""

    def test_perfect_score(self):
        assert calculate_trust_score(100, 0, 100, RatingPattern.NATURAL) == 100

    def test_worst_score(self):
        assert calculate_trust_score(0, 10, 0, RatingPattern.SOSPECHOSO) == 0

    def test_mixed_score(self):
        """20 + (30 - 6) + 10 + 10"""
        assert calculate_trust_score(50, 2, 50, RatingPattern.NATURAL) == 64

    def test_fraud_penalty_capped(self):
        """The fraud component can lose at most its 30 points."""
        assert calculate_trust_score(100, 20, 100, RatingPattern.NATURAL) == 70
        assert calculate_trust_score(100, 10, 100, RatingPattern.NATURAL) == 70

    def test_karma_blend(self):
        """round(60 * 0.8 + 90 * 0.2) = 66"""
        assert blend_karma_score(60, 90) == 66

    def test_karma_blend_without_karma(self):
        assert blend_karma_score(60, None) == 60


class TestTrustLevel:
    """Inclusive lower bounds, highest first."""

    @pytest.mark.parametrize("score, level", [
        (100, TrustLevel.MUY_ALTA),
        (85, TrustLevel.MUY_ALTA),
        (84, TrustLevel.ALTA),
        (70, TrustLevel.ALTA),
        (69, TrustLevel.MEDIA),
        (55, TrustLevel.MEDIA),
        (54, TrustLevel.BAJA),
        (40, TrustLevel.BAJA),
        (39, TrustLevel.MUY_BAJA),
        (0, TrustLevel.MUY_BAJA),
    ])
    def test_buckets(self, score, level):
        assert determine_trust_level(score) == level


class TestScenarios:
    """End-to-end analyses over small review sets."""

    def test_single_fraud_review(self, make_review, now):
        """
        One 1-star "fraude" review: base 0 + 27 + 0 + 10 = 37,
        karma 0 -> round(37 * 0.8) = 30.
        """
        reviews = [make_review(1, text="Esto es un FRAUDE", days_ago=2)]
        analysis, metrics = analyze_trust_with_metrics(reviews, now=now)

        assert analysis.metrics.fraud_keywords_count >= 1
        assert analysis.trust_score == 30
        assert analysis.trust_level in (TrustLevel.BAJA, TrustLevel.MUY_BAJA)
        assert analysis.red_flags == [
            "Solo 0% de quejas reciben respuesta",
            "Solo 0% de reviews son positivas",
        ]
        assert analysis.green_flags == ["Patrón natural en ratings (reviews auténticas)"]
        assert metrics.karma_score_sample == 0.0

    def test_suspicious_pattern(self, make_review, now):
        """
        9 five-star + 1 one-star: 90% five-star, 0% middle -> suspicious.
        Base 36 + 30 + 0 + 0 = 66, karma 90 -> round(52.8 + 18) = 71.
        """
        reviews = [make_review(5) for _ in range(9)] + [make_review(1)]
        analysis, metrics = analyze_trust_with_metrics(reviews, now=now)

        assert analysis.metrics.rating_pattern == RatingPattern.SOSPECHOSO
        assert metrics.karma_score_sample == 90.0
        assert analysis.trust_score == 71
        assert analysis.trust_level == TrustLevel.ALTA
        assert analysis.red_flags == [
            "Solo 0% de quejas reciben respuesta",
            "Patrón sospechoso en ratings (posibles reviews falsas)",
        ]
        assert analysis.green_flags == ["90% de reviews son positivas"]

    def test_base_analysis_skips_karma(self, make_review):
        """The same suspicious set without metrics keeps the unblended 66."""
        reviews = [make_review(5) for _ in range(9)] + [make_review(1)]
        analysis = analyze_trust(reviews)

        assert analysis.trust_score == 66
        assert analysis.trust_level == TrustLevel.MEDIA
        assert blend_karma_score(analysis.trust_score, 90.0) == 71

    def test_empty_reviews(self, now):
        """No reviews: neutral 60 from the response-rate and pattern defaults."""
        analysis, metrics = analyze_trust_with_metrics([], now=now)

        assert analysis.trust_score == 60
        assert analysis.trust_level == TrustLevel.MEDIA
        assert analysis.metrics.positive_reviews_percent == 0
        assert analysis.metrics.response_rate == 100
        assert analysis.red_flags == ["Solo 0% de reviews son positivas"]
        assert analysis.green_flags == [
            "100% de quejas reciben respuesta del negocio",
            "Patrón natural en ratings (reviews auténticas)",
        ]
        assert metrics.processed_reviews_count == 0

    def test_missing_text_is_harmless(self, make_review, now):
        reviews = [make_review(4, text=None), make_review(5, text="")]
        analysis, _ = analyze_trust_with_metrics(reviews, now=now)
        assert analysis.metrics.fraud_keywords_count == 0

    def test_response_rate_shared_with_metrics(self, make_review, now):
        reviews = [
            make_review(1, responded=True),
            make_review(2),
            make_review(4),
        ]
        analysis, metrics = analyze_trust_with_metrics(reviews, now=now)
        assert analysis.metrics.response_rate == metrics.response_rate_percentage == 50

    def test_determinism(self, make_review, now):
        reviews = [
            make_review(5, text="Muy honestos", days_ago=3),
            make_review(2, text="Cobros ocultos", days_ago=10, responded=True),
            make_review(4, days_ago=40),
        ]
        assert analyze_trust_with_metrics(reviews, now=now) == analyze_trust_with_metrics(reviews, now=now)


class TestFlags:
    """Conditional red and green flags."""

    def test_many_fraud_mentions(self, make_review, now):
        reviews = [make_review(1, text="fraude") for _ in range(6)]
        analysis, _ = analyze_trust_with_metrics(reviews, now=now)
        assert analysis.red_flags[0] == "6 menciones de fraude o estafa detectadas"

    def test_five_fraud_mentions_not_flagged(self, make_review, now):
        reviews = [make_review(1, text="fraude") for _ in range(5)]
        analysis, _ = analyze_trust_with_metrics(reviews, now=now)
        assert not any("menciones de fraude" in flag for flag in analysis.red_flags)

    def test_many_trust_mentions(self, make_review, now):
        reviews = [make_review(5, text="Muy honestos") for _ in range(11)]
        analysis, _ = analyze_trust_with_metrics(reviews, now=now)
        assert "11 menciones de honestidad y transparencia" in analysis.green_flags

    def test_inactive_agency(self, make_review, now):
        """Newest review 190 days old, one every 200 days."""
        reviews = [make_review(4, days_ago=190 + 200 * i) for i in range(5)]
        analysis, metrics = analyze_trust_with_metrics(reviews, now=now)

        assert metrics.review_frequency_category.value == "Inactiva"
        assert "Sin actividad reciente: última reseña hace 190 días" in analysis.red_flags

    def test_inactive_but_recent_not_flagged(self, make_review, now):
        """Inactive cadence but the last review is recent enough."""
        reviews = [make_review(4, days_ago=30 + 200 * i) for i in range(5)]
        analysis, metrics = analyze_trust_with_metrics(reviews, now=now)

        assert metrics.review_frequency_category.value == "Inactiva"
        assert not any("Sin actividad" in flag for flag in analysis.red_flags)

    def test_very_active_agency(self, make_review, now):
        """15 reviews in 15 days: one a day, 15 per month."""
        reviews = [make_review(4, days_ago=1 + i) for i in range(15)]
        analysis, metrics = analyze_trust_with_metrics(reviews, now=now)

        assert metrics.avg_reviews_per_month == 15.0
        assert "Alta actividad: 15.0 reseñas por mes en promedio" in analysis.green_flags

    def test_flags_absent_without_metrics(self, make_review):
        """The base analysis never emits activity flags."""
        reviews = [make_review(4, days_ago=1 + i) for i in range(15)]
        analysis = analyze_trust(reviews)
        assert not any("Alta actividad" in flag for flag in analysis.green_flags)


class TestProperties:
    """Range and monotonicity."""

    def test_score_range(self, make_review, now):
        review_sets = [
            [make_review(1, text="fraude estafa robo ladrones mienten") for _ in range(20)],
            [make_review(5, text="honestos transparentes") for _ in range(20)],
            [make_review(r) for r in (1, 2, 3, 4, 5) * 3],
        ]
        for reviews in review_sets:
            analysis, metrics = analyze_trust_with_metrics(reviews, now=now)
            assert 0 <= analysis.trust_score <= 100
            assert 0 <= analysis.metrics.positive_reviews_percent <= 100
            assert 0 <= analysis.metrics.response_rate <= 100
            assert 0.0 <= metrics.karma_score_sample <= 100.0

    def test_more_five_stars_never_lowers_score(self, make_review, now):
        """Replacing 1-star reviews with 5-star ones, one at a time."""
        ratings = [1, 1, 3, 3, 3, 4, 4, 4, 5, 5]
        previous = -1
        for step in range(3):
            reviews = [make_review(r) for r in ratings]
            analysis, _ = analyze_trust_with_metrics(reviews, now=now)
            assert analysis.trust_score >= previous
            previous = analysis.trust_score
            if 1 in ratings:
                ratings[ratings.index(1)] = 5


class TestReporting:
    """Summary and detailed report helpers."""

    def test_summary(self, make_review, now):
        reviews = [make_review(5) for _ in range(9)] + [make_review(1)]
        analysis, _ = analyze_trust_with_metrics(reviews, now=now)
        assert get_trust_summary(analysis) == "🟢 Confianza alta (71/100) - 2 alertas, 1 señales positivas"

    def test_detailed_report(self, make_review, now):
        reviews = [
            make_review(1, text="Una estafa, no recomiendo"),
            make_review(2, text="estafa"),
            make_review(5, text="Profesionales"),
        ]
        analysis, _ = analyze_trust_with_metrics(reviews, now=now)
        report = trust_engine.get_detailed_report(reviews, analysis)

        assert report["fraud_keywords"]["detected"] == {"estafa": 2, "no recomiendo": 1}
        assert report["fraud_keywords"]["total_count"] == 3
        assert report["trust_keywords"]["total_count"] == 1
        assert report["metrics"]["rating_pattern"] == "natural"
        assert report["trust_score"] == analysis.trust_score
