"""
Agency analysis pipeline: Orchestrates review fetching, trust analysis and ranking.
"""
import asyncio
import time
from collections import Counter
from datetime import datetime
from typing import List, Optional, Sequence

from karmatic.adapters.review_store import ReviewSource
from karmatic.detection.trust_engine import trust_engine
from karmatic.logging.event_logger import logger
from karmatic.schemas import (
    Agency, AgencyReviewMetrics, AnalysisResult, Location, PipelineMetadata,
    PipelineResult, PipelineStats, RatingPattern, Review, TrustAnalysis,
    TrustLevel, TrustMetrics
)
from karmatic.utils.geo import haversine_km
import config


class LowActivityError(Exception):
    """Agency publishes too few reviews per month to be ranked"""


def _usable(review: Review) -> bool:
    return review.rating is not None and 0 <= review.rating <= 5


def _distance(agency: Agency, user_location: Location) -> float:
    user_lat = user_location.lat if user_location.lat is not None else config.DEFAULT_LOCATION["lat"]
    user_lng = user_location.lng if user_location.lng is not None else config.DEFAULT_LOCATION["lng"]
    if agency.location.lat is None or agency.location.lng is None:
        return 0.0
    return haversine_km(agency.location.lat, agency.location.lng, user_lat, user_lng)


def _mean(values: List[float]) -> Optional[float]:
    if not values:
        return None
    return round(sum(values) / len(values), 1)


class AgencyAnalysisPipeline:
    """
    Ranks agencies by trust score.

    Flow:
    1. Skip agencies below the minimum Places rating, cap at MAX_AGENCIES
    2. Analyze accepted agencies in concurrent batches
    3. Drop agencies with too little review activity
    4. Fall back to neutral placeholders when nothing could be analyzed
    5. Sort by trust score, highest first
    """

    def __init__(
        self,
        review_source: ReviewSource,
        max_agencies: int = config.MAX_AGENCIES,
        batch_size: int = config.BATCH_SIZE,
        min_rating: float = config.MIN_AGENCY_RATING,
        min_monthly_reviews: float = config.MIN_MONTHLY_REVIEWS
    ):
        self.review_source = review_source
        self.max_agencies = max_agencies
        self.batch_size = max(batch_size, 1)
        self.min_rating = min_rating
        self.min_monthly_reviews = min_monthly_reviews

    async def run(
        self,
        agencies: Sequence[Agency],
        user_location: Optional[Location] = None,
        now: Optional[datetime] = None
    ) -> PipelineResult:
        """
        Analyze and rank agencies.

        Args:
            agencies: Candidate agencies (already located)
            user_location: Where the user is searching from
            now: Reference time for review activity metrics

        Returns:
            PipelineResult with agencies sorted by trust score
        """
        start = time.perf_counter()
        user_location = user_location or Location()
        errors: List[str] = []

        await logger.log_system_event(
            event_id=4001,
            message=f"Analysis pipeline started for {len(agencies)} agencies",
            details={"max_agencies": self.max_agencies, "batch_size": self.batch_size}
        )

        # Step 1: Rating filter
        accepted: List[Agency] = []
        for agency in agencies:
            if agency.rating is None or agency.rating < self.min_rating:
                await logger.log_agency_action(
                    place_id=agency.place_id,
                    agency_name=agency.name,
                    action="low_rating",
                    reason=f"Rating {agency.rating if agency.rating is not None else 'N/A'} below {self.min_rating}"
                )
                continue
            accepted.append(agency)
            if len(accepted) >= self.max_agencies:
                break

        # Step 2: Batched analysis
        results: List[AnalysisResult] = []
        excluded_by_low_activity = 0
        for i in range(0, len(accepted), self.batch_size):
            batch = accepted[i:i + self.batch_size]
            outcomes = await asyncio.gather(
                *(self.analyze_agency(agency, user_location, now) for agency in batch),
                return_exceptions=True
            )

            for agency, outcome in zip(batch, outcomes):
                if isinstance(outcome, AnalysisResult):
                    results.append(outcome)
                    continue

                if isinstance(outcome, LowActivityError):
                    excluded_by_low_activity += 1
                    errors.append(f"{agency.name} excluida: {outcome}")
                    action = "low_activity"
                else:
                    errors.append(f"Error analizando {agency.name}: {outcome}")
                    action = "failed"

                await logger.log_agency_action(
                    place_id=agency.place_id,
                    agency_name=agency.name,
                    action=action,
                    reason=str(outcome)
                )

        # Step 3: Fallback to basic data
        if not results and accepted:
            results = [
                self._fallback_result(agency, user_location)
                for agency in accepted[:config.FALLBACK_RESULTS]
            ]
            errors.append("Análisis completo no disponible. Mostrando datos básicos.")

        # Step 4: Rank
        ranked = sorted(results, key=lambda r: r.trust_analysis.trust_score, reverse=True)

        karma_scores = [
            r.review_metrics.karma_score for r in ranked
            if r.review_metrics and r.review_metrics.karma_score is not None
        ]
        per_month = [
            r.review_metrics.avg_reviews_per_month for r in ranked
            if r.review_metrics and r.review_metrics.avg_reviews_per_month is not None
        ]

        metadata = PipelineMetadata(
            total_agencies_found=len(agencies),
            total_processed=len(ranked),
            total_with_reviews=sum(1 for r in ranked if r.reviews_count > 0),
            total_accepted=len(accepted),
            total_excluded_by_low_activity=excluded_by_low_activity,
            execution_time_ms=int((time.perf_counter() - start) * 1000),
            errors=errors,
            avg_karma_score=_mean(karma_scores),
            avg_reviews_per_month=_mean(per_month)
        )

        await logger.log_system_event(
            event_id=4002,
            message=f"Analysis pipeline completed: {len(ranked)} agencies ranked",
            details={
                "total_processed": metadata.total_processed,
                "top_trust_score": ranked[0].trust_analysis.trust_score if ranked else 0,
                "errors": len(errors)
            }
        )

        return PipelineResult(agencies=ranked, metadata=metadata)

    async def analyze_agency(
        self,
        agency: Agency,
        user_location: Location,
        now: Optional[datetime] = None
    ) -> AnalysisResult:
        """
        Fetch reviews and run the full trust analysis for one agency.

        Raises:
            LowActivityError: fewer monthly reviews than min_monthly_reviews
        """
        reviews = await self.review_source.get_reviews(agency.place_id)
        valid_reviews = [review for review in reviews if _usable(review)]

        analysis, metrics = trust_engine.analyze_with_metrics(valid_reviews, now=now)

        if metrics.avg_reviews_per_month is not None and metrics.avg_reviews_per_month < self.min_monthly_reviews:
            raise LowActivityError(
                f"solo {metrics.avg_reviews_per_month:.1f} reseñas/mes "
                f"(mínimo: {self.min_monthly_reviews})"
            )

        await logger.log_trust_analysis(
            place_id=agency.place_id,
            agency_name=agency.name,
            analysis=analysis,
            reviews_count=len(valid_reviews)
        )

        return AnalysisResult(
            agency=agency,
            trust_analysis=analysis,
            reviews=valid_reviews,
            reviews_count=len(valid_reviews),
            distance=_distance(agency, user_location),
            review_metrics=AgencyReviewMetrics(
                karma_score=metrics.karma_score_sample,
                review_frequency=metrics.review_frequency_sample,
                avg_reviews_per_month=metrics.avg_reviews_per_month,
                days_since_last_review=metrics.days_since_last_review
            )
        )

    def _fallback_result(self, agency: Agency, user_location: Location) -> AnalysisResult:
        """Neutral placeholder when no agency could be fully analyzed"""
        return AnalysisResult(
            agency=agency,
            trust_analysis=TrustAnalysis(
                trust_score=config.FALLBACK_TRUST_SCORE,
                trust_level=TrustLevel.MEDIA,
                metrics=TrustMetrics(
                    positive_reviews_percent=0,
                    fraud_keywords_count=0,
                    response_rate=0,
                    rating_pattern=RatingPattern.NATURAL
                ),
                red_flags=["Sin análisis completo disponible"],
                green_flags=[]
            ),
            distance=_distance(agency, user_location)
        )


def get_pipeline_summary(result: PipelineResult) -> str:
    """One-paragraph summary of a pipeline run"""
    agencies, metadata = result.agencies, result.metadata

    if not agencies:
        return "No se encontraron agencias que cumplan con los criterios de confianza."

    top = agencies[0]
    avg_trust = round(sum(a.trust_analysis.trust_score for a in agencies) / len(agencies))

    return (
        f"Se analizaron {metadata.total_processed} agencias en {metadata.execution_time_ms}ms. "
        f"Mejor opción: {top.agency.name} ({top.trust_analysis.trust_score}/100). "
        f"Promedio de confianza: {avg_trust}/100. "
        f"{metadata.total_with_reviews} agencias con reviews completas."
    )


def get_pipeline_stats(result: PipelineResult) -> PipelineStats:
    """Trust level distribution and most common flags across a run"""
    agencies = result.agencies

    trust_distribution = Counter(a.trust_analysis.trust_level.value for a in agencies)
    average_reviews = (
        round(sum(a.reviews_count for a in agencies) / len(agencies)) if agencies else 0
    )
    red_counts = Counter(flag for a in agencies for flag in a.trust_analysis.red_flags)
    green_counts = Counter(flag for a in agencies for flag in a.trust_analysis.green_flags)

    return PipelineStats(
        trust_distribution=dict(trust_distribution),
        average_reviews_per_agency=average_reviews,
        top_red_flags=[flag for flag, _ in red_counts.most_common(3)],
        top_green_flags=[flag for flag, _ in green_counts.most_common(3)]
    )
