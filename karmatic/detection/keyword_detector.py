"""
Signal: Keyword Mentions

Case-insensitive substring matching of fraud and trust vocabulary in review text.
"""
from typing import Dict, Iterable, List, Sequence, Tuple
from karmatic.schemas import Review
import config


class KeywordDetector:
    """
    Count keyword mentions across a set of reviews.

    A keyword counts once per review it appears in, so
    "fraude ... fraude" in one review is one mention and the same word in
    two reviews is two.
    """

    def __init__(self, keywords: Sequence[str]):
        self.keywords = tuple(keyword.lower() for keyword in keywords)

    def matches(self, text: str) -> List[str]:
        """Keywords found in a single text, in table order"""
        if not text:
            return []
        text_lower = text.lower()
        return [keyword for keyword in self.keywords if keyword in text_lower]

    def count(self, reviews: Iterable[Review]) -> int:
        """
        Total keyword mentions across reviews.

        Args:
            reviews: Reviews to scan (empty text contributes 0)

        Returns:
            Sum over reviews of the number of distinct keywords present
        """
        return sum(len(self.matches(review.text)) for review in reviews)

    def detect(self, reviews: Iterable[Review]) -> Tuple[Dict[str, int], int]:
        """
        Return per-keyword mention counts (for detailed reporting).

        Returns:
            Tuple of (keyword -> number of reviews mentioning it, total_count)
        """
        detected: Dict[str, int] = {}
        for review in reviews:
            for keyword in self.matches(review.text):
                detected[keyword] = detected.get(keyword, 0) + 1
        return detected, sum(detected.values())


# Global instances
fraud_detector = KeywordDetector(config.FRAUD_KEYWORDS)
trust_detector = KeywordDetector(config.TRUST_KEYWORDS)


def count_fraud_keywords(reviews: Sequence[Review]) -> int:
    return fraud_detector.count(reviews)


def count_trust_keywords(reviews: Sequence[Review]) -> int:
    return trust_detector.count(reviews)
