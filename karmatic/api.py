"""
FastAPI backend for the Karmatic trust engine.

Endpoints:
- POST /api/reviews/metrics: Review metrics for one agency
- POST /api/trust/analyze: Trust analysis + metrics for one agency
- POST /api/agencies/analyze: Rank a batch of agencies by trust score
- GET /api/seed/agencies/{place_id}/trust: Analyze a seed agency
- GET /api/events: Fetch recent events
- GET /api/status: System health check
"""
from typing import Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from karmatic.adapters.review_store import InMemoryReviewStore, seed_store
from karmatic.detection.review_metrics import calculate_review_metrics
from karmatic.detection.trust_engine import trust_engine, get_trust_summary
from karmatic.logging.event_logger import logger
from karmatic.pipeline import AgencyAnalysisPipeline
from karmatic.schemas import (
    AgenciesRequest, EventLevel, PipelineResult, ReviewMetrics,
    ReviewsRequest, SystemStatus, TrustResponse
)
import config

# Create FastAPI app
app = FastAPI(
    title="Karmatic Trust API",
    version=config.API_VERSION,
    description="Trust scoring for automotive dealerships from their customer reviews"
)

# CORS for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"]
)


# ==================== Scoring Endpoints ====================

@app.post("/api/reviews/metrics", response_model=ReviewMetrics)
async def review_metrics(request: ReviewsRequest):
    """Rating, response and activity metrics for one agency's reviews."""
    return calculate_review_metrics(request.reviews)


@app.post("/api/trust/analyze", response_model=TrustResponse)
async def analyze_trust(request: ReviewsRequest):
    """
    Full trust analysis for one agency's reviews.

    Computes review metrics first, then the trust score blended with the karma score.
    """
    analysis, metrics = trust_engine.analyze_with_metrics(request.reviews)
    return TrustResponse(
        trust_analysis=analysis,
        review_metrics=metrics,
        summary=get_trust_summary(analysis)
    )


@app.post("/api/agencies/analyze", response_model=PipelineResult)
async def analyze_agencies(request: AgenciesRequest):
    """
    Rank agencies by trust score.

    Each agency carries its own reviews; agencies below the minimum rating or
    with too little review activity are left out of the ranking.
    """
    store = InMemoryReviewStore(request.agencies)
    pipeline = AgencyAnalysisPipeline(review_source=store)
    try:
        return await pipeline.run(store.list_agencies(), request.location)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/api/seed/agencies/{place_id}/trust", response_model=TrustResponse)
async def analyze_seed_agency(place_id: str):
    """Trust analysis for an agency from the seed data file."""
    agency = seed_store.get_agency(place_id)
    if agency is None:
        raise HTTPException(status_code=404, detail=f"Agency {place_id} not found")

    reviews = await seed_store.get_reviews(place_id)
    analysis, metrics = trust_engine.analyze_with_metrics(reviews)

    await logger.log_trust_analysis(
        place_id=agency.place_id,
        agency_name=agency.name,
        analysis=analysis,
        reviews_count=len(reviews)
    )

    return TrustResponse(
        trust_analysis=analysis,
        review_metrics=metrics,
        summary=get_trust_summary(analysis)
    )


# ==================== Event Endpoints ====================

@app.get("/api/events")
async def get_events(
    limit: int = Query(default=100, ge=1, le=1000),
    level: Optional[EventLevel] = None
):
    """Fetch recent events, most recent first."""
    events = logger.read_events(limit=limit, level=level)
    return {
        "events": [event.model_dump(mode="json") for event in events],
        "count": len(events)
    }


# ==================== System Endpoints ====================

@app.get("/api/status", response_model=SystemStatus)
async def get_status():
    """System health check."""
    try:
        seed_agencies = seed_store.get_agency_count()
        status = "ok"
    except ValueError:
        # Malformed seed file (JSONDecodeError and ValidationError are ValueErrors)
        seed_agencies = 0
        status = "degraded"

    return SystemStatus(
        status=status,
        version=config.API_VERSION,
        seed_agencies=seed_agencies,
        event_count=logger.get_event_count()
    )


@app.get("/")
async def root():
    """Health check"""
    return {
        "status": "Karmatic Trust API running",
        "version": config.API_VERSION,
        "endpoints": {
            "docs": "/docs",
            "status": "/api/status"
        }
    }


# ==================== Startup ====================

@app.on_event("startup")
async def startup_event():
    """Load seed data at startup."""
    try:
        count = seed_store.load()
    except ValueError as e:
        print(f"ERROR loading seed data: {e}")
        await logger.log_system_event(
            event_id=4003,
            message=f"Seed data could not be loaded: {e}",
            details={"path": str(seed_store.path)}
        )
        return

    await logger.log_system_event(
        event_id=4003,
        message=f"Seed data loaded: {count} agencies",
        details={"path": str(seed_store.path)}
    )
