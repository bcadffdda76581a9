"""
Trust Engine: Blends review signals into a trust score, level and flags.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple
from karmatic.schemas import (
    Review, ReviewMetrics, TrustAnalysis, TrustMetrics,
    TrustLevel, RatingPattern, FrequencyCategory
)
from karmatic.detection.keyword_detector import fraud_detector, trust_detector
from karmatic.detection.rating_pattern import (
    calculate_positive_reviews_percent,
    calculate_response_rate,
    detect_rating_pattern,
    rating_distribution
)
from karmatic.detection.review_metrics import calculate_review_metrics
from karmatic.utils.numbers import round_int
import config


LEVEL_MESSAGES = {
    TrustLevel.MUY_ALTA: "🟢 Confianza muy alta",
    TrustLevel.ALTA: "🟢 Confianza alta",
    TrustLevel.MEDIA: "🟡 Confianza media",
    TrustLevel.BAJA: "🟠 Confianza baja",
    TrustLevel.MUY_BAJA: "🔴 Confianza muy baja"
}


def calculate_trust_score(
    positive_percent: int,
    fraud_keywords: int,
    response_rate: int,
    rating_pattern: RatingPattern
) -> int:
    """
    Weighted base trust score (0-100).

    - positive reviews: up to 40 points
    - fraud mentions: 30 points minus 3 per mention, floored at 0
    - complaint response rate: up to 20 points
    - natural rating pattern: 10 points
    """
    weights = config.TRUST_SCORE_WEIGHTS
    score = 0.0

    score += positive_percent / 100 * weights["positive_reviews"]

    fraud_penalty = min(fraud_keywords * config.FRAUD_PENALTY_PER_MENTION, weights["fraud_keywords"])
    score += weights["fraud_keywords"] - fraud_penalty

    score += response_rate / 100 * weights["response_rate"]

    if rating_pattern == RatingPattern.NATURAL:
        score += weights["rating_pattern"]

    return max(0, min(100, round_int(score)))


def blend_karma_score(trust_score: int, karma_score: Optional[float]) -> int:
    """Apply the karma score as a 20% correction; unchanged when karma is None"""
    if karma_score is None:
        return trust_score
    weight = config.KARMA_BLEND_WEIGHT
    return round_int(trust_score * (1 - weight) + karma_score * weight)


def determine_trust_level(score: int) -> TrustLevel:
    for level, lower_bound in config.TRUST_LEVEL_THRESHOLDS:
        if score >= lower_bound:
            return TrustLevel(level)
    return TrustLevel(config.TRUST_LEVEL_FLOOR)


def generate_red_flags(
    fraud_keywords: int,
    response_rate: int,
    rating_pattern: RatingPattern,
    positive_percent: int,
    review_metrics: Optional[ReviewMetrics] = None
) -> List[str]:
    """Warning messages, in fixed order, for the signals that fired"""
    thresholds = config.RED_FLAG_THRESHOLDS
    red_flags = []

    if fraud_keywords > thresholds["fraud_keywords"]:
        red_flags.append(f"{fraud_keywords} menciones de fraude o estafa detectadas")

    if response_rate < thresholds["response_rate"]:
        red_flags.append(f"Solo {response_rate}% de quejas reciben respuesta")

    if rating_pattern == RatingPattern.SOSPECHOSO:
        red_flags.append("Patrón sospechoso en ratings (posibles reviews falsas)")

    if positive_percent < thresholds["positive_percent"]:
        red_flags.append(f"Solo {positive_percent}% de reviews son positivas")

    if review_metrics is not None:
        days = review_metrics.days_since_last_review
        if (review_metrics.review_frequency_category == FrequencyCategory.INACTIVA
                and days is not None and days > thresholds["inactive_days"]):
            red_flags.append(f"Sin actividad reciente: última reseña hace {days} días")

    return red_flags


def generate_green_flags(
    trust_keywords: int,
    response_rate: int,
    rating_pattern: RatingPattern,
    positive_percent: int,
    review_metrics: Optional[ReviewMetrics] = None
) -> List[str]:
    """Positive-signal messages, in fixed order"""
    thresholds = config.GREEN_FLAG_THRESHOLDS
    green_flags = []

    if trust_keywords > thresholds["trust_keywords"]:
        green_flags.append(f"{trust_keywords} menciones de honestidad y transparencia")

    if response_rate > thresholds["response_rate"]:
        green_flags.append(f"{response_rate}% de quejas reciben respuesta del negocio")

    if rating_pattern == RatingPattern.NATURAL:
        green_flags.append("Patrón natural en ratings (reviews auténticas)")

    if positive_percent > thresholds["positive_percent"]:
        green_flags.append(f"{positive_percent}% de reviews son positivas")

    if review_metrics is not None:
        per_month = review_metrics.avg_reviews_per_month
        if (review_metrics.review_frequency_category == FrequencyCategory.MUY_ACTIVA
                and per_month is not None and per_month > thresholds["reviews_per_month"]):
            green_flags.append(f"Alta actividad: {per_month} reseñas por mes en promedio")

    return green_flags


class TrustEngine:
    """
    Orchestrates keyword, rating and activity signals into a TrustAnalysis.

    Pure: no I/O and no shared state, safe to call concurrently per agency.

    Signals:
    1. Positive reviews (40 pts) - share of 4-5 star reviews
    2. Fraud keywords (30 pts) - penalized 3 pts per mention
    3. Response rate (20 pts) - complaints answered by the owner
    4. Rating pattern (10 pts) - natural vs fabricated distribution
    Then karma score as a 20% blend when metrics are available.
    """

    def analyze(self, reviews: Sequence[Review]) -> TrustAnalysis:
        """
        Base analysis without the karma blend or activity flags.

        Args:
            reviews: All reviews of one agency

        Returns:
            TrustAnalysis
        """
        return self._build(reviews, response_rate=calculate_response_rate(reviews))

    def analyze_with_metrics(
        self,
        reviews: Sequence[Review],
        now: Optional[datetime] = None
    ) -> Tuple[TrustAnalysis, ReviewMetrics]:
        """
        Full analysis: review metrics first, then trust score blended with karma.

        Args:
            reviews: All reviews of one agency
            now: Reference time for activity metrics (default: current UTC)

        Returns:
            (TrustAnalysis, ReviewMetrics)
        """
        review_metrics = calculate_review_metrics(reviews, now=now)

        # Shared with the metrics snapshot; None only for an empty review list
        response_rate = review_metrics.response_rate_percentage
        if response_rate is None:
            response_rate = calculate_response_rate(reviews)

        analysis = self._build(reviews, response_rate=response_rate, review_metrics=review_metrics)
        return analysis, review_metrics

    def _build(
        self,
        reviews: Sequence[Review],
        response_rate: int,
        review_metrics: Optional[ReviewMetrics] = None
    ) -> TrustAnalysis:
        positive_percent = calculate_positive_reviews_percent(reviews)
        fraud_count = fraud_detector.count(reviews)
        trust_count = trust_detector.count(reviews)

        if review_metrics is not None:
            distribution = review_metrics.rating_distribution_sample
        else:
            distribution = rating_distribution(reviews)
        rating_pattern = detect_rating_pattern(reviews, distribution)

        trust_score = calculate_trust_score(positive_percent, fraud_count, response_rate, rating_pattern)
        if review_metrics is not None:
            trust_score = blend_karma_score(trust_score, review_metrics.karma_score_sample)

        return TrustAnalysis(
            trust_score=trust_score,
            trust_level=determine_trust_level(trust_score),
            metrics=TrustMetrics(
                positive_reviews_percent=positive_percent,
                fraud_keywords_count=fraud_count,
                response_rate=response_rate,
                rating_pattern=rating_pattern
            ),
            red_flags=generate_red_flags(
                fraud_count, response_rate, rating_pattern, positive_percent, review_metrics
            ),
            green_flags=generate_green_flags(
                trust_count, response_rate, rating_pattern, positive_percent, review_metrics
            )
        )

    def get_detailed_report(self, reviews: Sequence[Review], analysis: TrustAnalysis) -> Dict[str, Any]:
        """
        Keyword breakdown alongside the verdict, for diagnostics and logging.
        """
        fraud_found, fraud_total = fraud_detector.detect(reviews)
        trust_found, trust_total = trust_detector.detect(reviews)

        return {
            "trust_score": analysis.trust_score,
            "trust_level": analysis.trust_level.value,
            "metrics": analysis.metrics.model_dump(mode="json"),
            "fraud_keywords": {"detected": fraud_found, "total_count": fraud_total},
            "trust_keywords": {"detected": trust_found, "total_count": trust_total},
            "red_flags": list(analysis.red_flags),
            "green_flags": list(analysis.green_flags)
        }


def get_trust_summary(analysis: TrustAnalysis) -> str:
    """One-line human summary of a trust analysis"""
    return (
        f"{LEVEL_MESSAGES[analysis.trust_level]} ({analysis.trust_score}/100) - "
        f"{len(analysis.red_flags)} alertas, {len(analysis.green_flags)} señales positivas"
    )


# Global instance
trust_engine = TrustEngine()


def analyze_trust(reviews: Sequence[Review]) -> TrustAnalysis:
    return trust_engine.analyze(reviews)


def analyze_trust_with_metrics(
    reviews: Sequence[Review],
    now: Optional[datetime] = None
) -> Tuple[TrustAnalysis, ReviewMetrics]:
    return trust_engine.analyze_with_metrics(reviews, now=now)
