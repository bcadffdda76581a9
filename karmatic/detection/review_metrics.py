"""
Review Metrics Calculator

Turns one agency's raw reviews into rating, response and activity statistics.
The karma score produced here is later blended into the trust score.
"""
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple
from karmatic.schemas import Review, ReviewMetrics, FrequencyCategory
from karmatic.detection.rating_pattern import rating_distribution, calculate_response_rate
from karmatic.utils.dates import parse_review_date, days_between, utcnow, to_iso
from karmatic.utils.numbers import round_half_up, round_int
import config


def calculate_karma_score(distribution: Dict[int, int]) -> Optional[float]:
    """
    Normalize an asymmetric weighted rating sum to 0-100.

    Weights (config.KARMA_WEIGHTS): 1★ -4, 2★ -2, 3★ 0, 4★ +1, 5★ +2.
    The weighted total is placed between the all-1★ and all-5★ extremes.

    Args:
        distribution: Star rating -> count

    Returns:
        Score rounded to 2 decimals, or None when there are no ratings
    """
    weights = config.KARMA_WEIGHTS
    total_reviews = sum(distribution.get(stars, 0) for stars in weights)
    if total_reviews == 0:
        return None

    weighted_total = sum(distribution.get(stars, 0) * weight for stars, weight in weights.items())

    theoretical_max = total_reviews * weights[5]
    theoretical_min = total_reviews * weights[1]
    score_range = theoretical_max - theoretical_min
    if score_range == 0:
        return config.KARMA_NEUTRAL_SCORE

    score = (weighted_total - theoretical_min) / score_range * 100
    return round_half_up(score, 2)


def _months(days: float) -> int:
    return round_int(days / config.DAYS_PER_MONTH)


def _every_n_months(days: float) -> str:
    months = _months(days)
    if months == 1:
        return "Aprox. 1 cada mes"
    return f"Aprox. 1 cada {months} meses"


def classify_frequency(avg_days_per_review: float) -> Tuple[FrequencyCategory, str]:
    """
    Map the average gap between reviews to a category and description.

    Examples:
        >>> classify_frequency(10)
        (<FrequencyCategory.ACTIVA: 'Activa'>, 'Aprox. 1 cada 1 semana')
    """
    days = avg_days_per_review

    if days < 0.5:
        return FrequencyCategory.MUY_ACTIVA, "Varias por día"
    if days < 1.5:
        return FrequencyCategory.MUY_ACTIVA, "Aprox. 1 cada día"
    if days < 7:
        return FrequencyCategory.MUY_ACTIVA, f"Aprox. 1 cada {round_int(days)} días"
    if days < 30:
        weeks = round_int(days / 7)
        unit = "semana" if weeks == 1 else "semanas"
        return FrequencyCategory.ACTIVA, f"Aprox. 1 cada {weeks} {unit}"
    if days < 90:
        return FrequencyCategory.MODERADA, _every_n_months(days)
    if days < 180:
        return FrequencyCategory.BAJA, _every_n_months(days)
    return FrequencyCategory.INACTIVA, _every_n_months(days)


def _dated_reviews(reviews: Sequence[Review]) -> List[datetime]:
    """Parseable review dates, newest first"""
    dates = [parse_review_date(review.date) for review in reviews]
    return sorted((d for d in dates if d is not None), reverse=True)


def calculate_review_metrics(
    reviews: Sequence[Review],
    now: Optional[datetime] = None
) -> ReviewMetrics:
    """
    Compute the metrics snapshot for one agency.

    Args:
        reviews: All reviews fetched for the agency
        now: Reference time for days_since_last_review (default: current UTC)

    Returns:
        ReviewMetrics; an empty input returns the all-null snapshot with
        category "No Determinada"
    """
    if not reviews:
        return ReviewMetrics()

    now = now or utcnow()
    processed = len(reviews)

    distribution = rating_distribution(reviews)
    rated_count = sum(distribution.values())
    rating_sum = sum(stars * count for stars, count in distribution.items())
    average_rating = round_half_up(rating_sum / rated_count, 2) if rated_count else None

    dates = _dated_reviews(reviews)

    newest_date = oldest_date = None
    days_since_last: Optional[int] = None
    avg_per_month: Optional[float] = None
    if dates:
        newest_date, oldest_date = dates[0], dates[-1]
        days_since_last = max(round_int(days_between(now, newest_date)), 0)
        if len(dates) == 1:
            avg_per_month = 1.0
        else:
            months_spanned = max(days_between(newest_date, oldest_date) / config.DAYS_PER_MONTH, 1)
            avg_per_month = round_half_up(processed / months_spanned, 2)

    # Frequency uses only the newest few reviews
    frequency: Optional[str] = None
    category = FrequencyCategory.NO_DETERMINADA
    avg_days_between: Optional[int] = None
    sample = dates[:config.FREQUENCY_SAMPLE_SIZE]
    if len(sample) >= 2:
        elapsed_days = days_between(sample[0], sample[-1])
        if elapsed_days == 0:
            category, frequency = FrequencyCategory.MUY_ACTIVA, "Múltiples en el mismo día"
            avg_days_between = 0
        else:
            avg_days_per_review = elapsed_days / (len(sample) - 1)
            category, frequency = classify_frequency(avg_days_per_review)
            avg_days_between = round_int(avg_days_per_review)

    return ReviewMetrics(
        processed_reviews_count=processed,
        average_rating_sample=average_rating,
        rating_distribution_sample=distribution,
        karma_score_sample=calculate_karma_score(distribution),
        response_rate_percentage=calculate_response_rate(reviews),
        newest_review_date_sample=to_iso(newest_date) if newest_date else None,
        oldest_review_date_sample=to_iso(oldest_date) if oldest_date else None,
        review_frequency_sample=frequency,
        review_frequency_category=category,
        avg_days_between_reviews=avg_days_between,
        days_since_last_review=days_since_last,
        avg_reviews_per_month=avg_per_month
    )
