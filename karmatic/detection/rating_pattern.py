"""
Signal: Rating Distribution

Positive share, complaint response rate and fabricated-review pattern detection.
"""
from typing import Dict, Optional, Sequence
from karmatic.schemas import Review, RatingPattern
from karmatic.utils.numbers import percent
import config


def rating_distribution(reviews: Sequence[Review]) -> Dict[int, int]:
    """Count of valid ratings per star, all five keys present"""
    distribution = {stars: 0 for stars in range(1, 6)}
    for review in reviews:
        stars = review.star_rating
        if stars is not None:
            distribution[stars] += 1
    return distribution


def calculate_positive_reviews_percent(reviews: Sequence[Review]) -> int:
    """Share of reviews rated 4 or 5 stars, over all reviews"""
    positive = sum(1 for review in reviews if (review.star_rating or 0) >= 4)
    return percent(positive, len(reviews))


def calculate_response_rate(reviews: Sequence[Review]) -> int:
    """
    Percentage of complaints (1-2 stars) that got an owner response.

    No complaints counts as a perfect 100.
    """
    complaints = [
        review for review in reviews
        if review.star_rating is not None and review.star_rating <= 2
    ]
    if not complaints:
        return 100

    responded = sum(1 for review in complaints if review.response is not None)
    return percent(responded, len(complaints))


def detect_rating_pattern(
    reviews: Sequence[Review],
    distribution: Optional[Dict[int, int]] = None
) -> RatingPattern:
    """
    Flag review sets dominated by 5 stars with almost no middle ratings.

    Args:
        reviews: All reviews of the agency
        distribution: Precomputed rating_distribution(reviews), optional

    Returns:
        SOSPECHOSO if >80% are 5 stars and <10% are 2-4 stars, else NATURAL.
        Fewer than 10 reviews is always NATURAL.
    """
    total = len(reviews)
    if total < config.RATING_PATTERN_MIN_REVIEWS:
        return RatingPattern.NATURAL

    counts = distribution or rating_distribution(reviews)
    five_star_percent = counts[5] / total * 100
    middle_ratings_percent = (counts[2] + counts[3] + counts[4]) / total * 100

    if (five_star_percent > config.SUSPICIOUS_FIVE_STAR_PERCENT
            and middle_ratings_percent < config.SUSPICIOUS_MIDDLE_MAX_PERCENT):
        return RatingPattern.SOSPECHOSO

    return RatingPattern.NATURAL
