"""
Pydantic data models for the Karmatic trust engine.

Defines all core data structures: Reviews, Review Metrics, Trust Analysis,
Agency pipeline results and Events.
"""
import math
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Literal, Optional, Dict, Any, List
from datetime import datetime, timezone
from enum import Enum


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Base model: snake_case attributes, camelCase JSON."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ==================== Reviews ====================

class ReviewResponse(CamelModel):
    """Owner reply to a review. Only its presence is used."""
    text: str = ""
    date: str = ""

    @field_validator("text", "date", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class Review(CamelModel):
    """
    One customer review of an agency.

    Coerced at the boundary so the scoring code never sees None text or
    non-numeric ratings.
    """
    id: str = ""
    author: str = ""
    rating: Optional[float] = None
    text: str = ""
    date: str = ""
    response: Optional[ReviewResponse] = None

    @field_validator("id", "author", "text", "date", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("rating", mode="before")
    @classmethod
    def _coerce_rating(cls, value: Any) -> Optional[float]:
        """Numbers and numeric strings become floats, anything else None."""
        if value is None or isinstance(value, bool):
            return None
        try:
            rating = float(value)
        except (TypeError, ValueError):
            return None
        if math.isnan(rating) or math.isinf(rating):
            return None
        return rating

    @property
    def star_rating(self) -> Optional[int]:
        """Integral rating in [1, 5], or None when unusable."""
        if self.rating is None or not self.rating.is_integer():
            return None
        stars = int(self.rating)
        if 1 <= stars <= 5:
            return stars
        return None


# ==================== Review Metrics ====================

class FrequencyCategory(str, Enum):
    """Qualitative review activity level"""
    MUY_ACTIVA = "Muy Activa"
    ACTIVA = "Activa"
    MODERADA = "Moderada"
    BAJA = "Baja"
    INACTIVA = "Inactiva"
    NO_DETERMINADA = "No Determinada"


def _empty_distribution() -> Dict[int, int]:
    return {rating: 0 for rating in range(1, 6)}


class ReviewMetrics(CamelModel):
    """
    Statistical snapshot of one agency's reviews.

    Two frequency windows coexist on purpose:
    - review_frequency_* and avg_days_between_reviews use the 5 newest reviews
    - avg_reviews_per_month uses the full dated history
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    processed_reviews_count: int = 0
    average_rating_sample: Optional[float] = None
    rating_distribution_sample: Dict[int, int] = Field(default_factory=_empty_distribution)
    karma_score_sample: Optional[float] = Field(default=None, ge=0.0, le=100.0)
    response_rate_percentage: Optional[int] = Field(default=None, ge=0, le=100)
    newest_review_date_sample: Optional[str] = None
    oldest_review_date_sample: Optional[str] = None
    review_frequency_sample: Optional[str] = None
    review_frequency_category: FrequencyCategory = FrequencyCategory.NO_DETERMINADA
    avg_days_between_reviews: Optional[int] = None
    days_since_last_review: Optional[int] = None
    avg_reviews_per_month: Optional[float] = None


# ==================== Trust Analysis ====================

class TrustLevel(str, Enum):
    """Monotonic buckets of the trust score"""
    MUY_ALTA = "muy_alta"
    ALTA = "alta"
    MEDIA = "media"
    BAJA = "baja"
    MUY_BAJA = "muy_baja"


class RatingPattern(str, Enum):
    """Whether a star distribution looks organic"""
    NATURAL = "natural"
    SOSPECHOSO = "sospechoso"


class TrustMetrics(CamelModel):
    """Signals that feed the trust score"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    positive_reviews_percent: int = Field(ge=0, le=100)
    fraud_keywords_count: int = Field(ge=0)
    response_rate: int = Field(ge=0, le=100)
    rating_pattern: RatingPattern


class TrustAnalysis(CamelModel):
    """
    Final trust verdict for one agency.

    trust_score is the ranking key used to sort agencies.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    trust_score: int = Field(ge=0, le=100)
    trust_level: TrustLevel
    metrics: TrustMetrics
    red_flags: List[str] = Field(default_factory=list)
    green_flags: List[str] = Field(default_factory=list)


# ==================== Agency Pipeline ====================

class Location(CamelModel):
    """User or agency coordinates"""
    lat: Optional[float] = None
    lng: Optional[float] = None


class Agency(CamelModel):
    """Dealership as returned by the places lookup"""
    place_id: str
    name: str
    address: str = ""
    location: Location = Field(default_factory=Location)
    rating: Optional[float] = None
    total_reviews: Optional[int] = None
    phone_number: Optional[str] = None
    website: Optional[str] = None


class AgencyReviewMetrics(CamelModel):
    """Subset of ReviewMetrics attached to each pipeline result"""
    karma_score: Optional[float] = None
    review_frequency: Optional[str] = None
    avg_reviews_per_month: Optional[float] = None
    days_since_last_review: Optional[int] = None


class AnalysisResult(CamelModel):
    """One analyzed agency: agency + trust verdict + reviews + distance"""
    agency: Agency
    trust_analysis: TrustAnalysis
    reviews: List[Review] = Field(default_factory=list)
    reviews_count: int = 0
    distance: float
    review_metrics: Optional[AgencyReviewMetrics] = None
    timestamp: datetime = Field(default_factory=_utcnow)


class PipelineMetadata(CamelModel):
    """Aggregate counters for one pipeline run"""
    total_agencies_found: int
    total_processed: int
    total_with_reviews: int
    total_accepted: int
    total_excluded_by_low_activity: int
    execution_time_ms: int
    errors: List[str] = Field(default_factory=list)
    avg_karma_score: Optional[float] = None
    avg_reviews_per_month: Optional[float] = None


class PipelineResult(CamelModel):
    """Agencies sorted by trust score plus run metadata"""
    agencies: List[AnalysisResult]
    metadata: PipelineMetadata


class PipelineStats(CamelModel):
    """Distribution view over a pipeline result"""
    trust_distribution: Dict[str, int]
    average_reviews_per_agency: int
    top_red_flags: List[str]
    top_green_flags: List[str]


# ==================== Event System ====================

class EventLevel(str, Enum):
    """Windows Event Viewer style event levels"""
    INFORMATION = "Information"
    WARNING = "Warning"
    ERROR = "Error"
    CRITICAL = "Critical"


class EventCategory(str, Enum):
    """Event category taxonomy"""
    TRUST = "Trust"
    AGENCY = "Agency"
    SYSTEM = "System"


class Event(BaseModel):
    """
    Windows Event Viewer style event.

    Appended to logs/events.jsonl, one JSON object per line.
    """
    event_id: int
    timestamp: datetime = Field(default_factory=_utcnow)
    level: EventLevel
    category: EventCategory
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)

    def to_jsonl(self) -> str:
        """Serialize to JSONL format for logging"""
        return self.model_dump_json()


# ==================== API Request/Response Models ====================

class ReviewsRequest(CamelModel):
    """API request model carrying one agency's reviews"""
    reviews: List[Review] = Field(default_factory=list)


class TrustResponse(CamelModel):
    """API response model for a trust analysis"""
    trust_analysis: TrustAnalysis
    review_metrics: ReviewMetrics
    summary: str


class AgencyWithReviews(Agency):
    """Agency payload that carries its own reviews"""
    reviews: List[Review] = Field(default_factory=list)


class AgenciesRequest(CamelModel):
    """API request model for a batch agency analysis"""
    agencies: List[AgencyWithReviews] = Field(min_length=1, max_length=100)
    location: Location = Field(default_factory=Location)


class SystemStatus(BaseModel):
    """API response model for system health check"""
    status: Literal["ok", "degraded"]
    version: str
    seed_agencies: int
    event_count: int
