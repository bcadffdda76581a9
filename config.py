"""
Central configuration for the Karmatic trust engine.

All paths, keyword tables, score weights, thresholds and pipeline limits defined here.
"""
import os
from pathlib import Path

# Paths (absolute)
BASE_DIR = Path(__file__).parent.absolute()
DATA_DIR = BASE_DIR / "data"
LOGS_DIR = Path(os.getenv("KARMATIC_LOGS_DIR", str(BASE_DIR / "logs")))
SEED_DATA_FILE = Path(os.getenv("KARMATIC_SEED_FILE", str(DATA_DIR / "seed_agencies.json")))

# Create directories if they don't exist
LOGS_DIR.mkdir(parents=True, exist_ok=True)

# FastAPI
API_HOST = os.getenv("KARMATIC_API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("KARMATIC_API_PORT", "8000"))
API_VERSION = "1.0.0"

# Fraud keywords (Spanish, matched as case-insensitive substrings)
FRAUD_KEYWORDS = (
    # Direct fraud
    "fraude", "estafa", "robo", "robaron", "timadores", "ladrones",

    # Dishonest practices
    "engañan", "engaño", "mienten", "mentira", "mentirosos", "tramposos",
    "ocultan", "esconden", "no dicen", "no mencionan",

    # Hidden fees and pricing
    "cobros ocultos", "cobros extras", "comisiones ocultas", "cargos extras",
    "no respetan precio", "cambian precio", "precio diferente",

    # Paperwork
    "papeles falsos", "documentos falsos", "sin factura", "factura falsa",
    "no dan factura", "problemas legales", "sin papeles",

    # Vehicle condition
    "carros chocados", "accidentados", "golpeados", "inundados",
    "kilometraje alterado", "odómetro alterado", "no funciona",

    # Poor service
    "pésimo servicio", "terrible servicio", "muy mal servicio",
    "no recomiendo", "no vayan", "eviten este lugar",

    # Post-sale abandonment
    "no responden", "no contestan", "no se hacen responsables",
    "no dan garantía", "no respetan garantía", "abandonan clientes",
)

# Trust keywords
TRUST_KEYWORDS = (
    # Honesty
    "honestos", "honestidad", "transparentes", "transparencia", "claros",
    "sinceros", "confiables", "responsables", "serios", "formales",

    # Excellent service
    "excelente servicio", "muy buen servicio", "servicio increíble",
    "súper recomendado", "altamente recomendado", "los mejores",

    # Clear pricing
    "precios justos", "sin sorpresas", "todo claro", "explicaron todo",
    "proceso transparente", "sin cobros extras", "precio real",

    # Responsiveness
    "siempre responden", "atienden bien", "se hacen responsables",
    "cumplen garantía", "apoyan después", "seguimiento",

    # Professionalism
    "profesionales", "expertos", "conocen bien", "experiencia",
    "papeles en orden", "todo legal", "factura correcta",
)

# Karma score weights per star rating (asymmetric: 1-star warnings weigh most)
KARMA_WEIGHTS = {1: -4, 2: -2, 3: 0, 4: 1, 5: 2}
KARMA_NEUTRAL_SCORE = 50.0

# Trust score components (points out of 100)
TRUST_SCORE_WEIGHTS = {
    "positive_reviews": 40,
    "fraud_keywords": 30,
    "response_rate": 20,
    "rating_pattern": 10
}
FRAUD_PENALTY_PER_MENTION = 3

# Karma score share of the final blended trust score
KARMA_BLEND_WEIGHT = 0.2

# Trust levels (inclusive lower bounds, evaluated in descending order)
TRUST_LEVEL_THRESHOLDS = (
    ("muy_alta", 85),
    ("alta", 70),
    ("media", 55),
    ("baja", 40),
)
TRUST_LEVEL_FLOOR = "muy_baja"

# Rating pattern detection
RATING_PATTERN_MIN_REVIEWS = 10
SUSPICIOUS_FIVE_STAR_PERCENT = 80
SUSPICIOUS_MIDDLE_MAX_PERCENT = 10

# Review frequency
FREQUENCY_SAMPLE_SIZE = 5
DAYS_PER_MONTH = 30.44

# Flag thresholds
RED_FLAG_THRESHOLDS = {
    "fraud_keywords": 5,
    "response_rate": 30,
    "positive_percent": 40,
    "inactive_days": 180
}
GREEN_FLAG_THRESHOLDS = {
    "trust_keywords": 10,
    "response_rate": 70,
    "positive_percent": 80,
    "reviews_per_month": 10
}

# Agency pipeline
MAX_AGENCIES = int(os.getenv("KARMATIC_MAX_AGENCIES", "10"))
BATCH_SIZE = int(os.getenv("KARMATIC_BATCH_SIZE", "3"))
MIN_AGENCY_RATING = float(os.getenv("KARMATIC_MIN_AGENCY_RATING", "4.0"))
MIN_MONTHLY_REVIEWS = float(os.getenv("KARMATIC_MIN_MONTHLY_REVIEWS", "1.0"))
FALLBACK_RESULTS = 3
FALLBACK_TRUST_SCORE = 50

# Mexico City, used when the user location has no coordinates
DEFAULT_LOCATION = {"lat": 19.4326, "lng": -99.1332}

# Event ID definitions (Windows Event Viewer style)
EVENT_IDS = {
    # Trust events (1001-1999)
    1001: "Trust analysis completed",
    1002: "Low trust agency detected",
    1003: "Suspicious rating pattern detected",

    # Agency events (2001-2999)
    2001: "Agency excluded for low review activity",
    2002: "Agency skipped for low Places rating",
    2003: "Agency analysis failed",

    # System events (4001-4999)
    4001: "Analysis pipeline started",
    4002: "Analysis pipeline completed",
    4003: "Seed data loaded"
}

# Logging settings
EVENT_LOG_FILE = LOGS_DIR / "events.jsonl"
