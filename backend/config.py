import os
from dotenv import load_dotenv

load_dotenv()


def _int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except ValueError:
        return default


def _range(name: str, default: tuple[float, float]) -> tuple[float, float]:
    # "60,300" -> (60.0, 300.0)
    raw = os.getenv(name, "")
    parts = [p.strip() for p in raw.split(",") if p.strip()]
    if len(parts) != 2:
        return default
    try:
        low, high = float(parts[0]), float(parts[1])
    except ValueError:
        return default
    return (low, high) if low <= high else default


# --- Logging ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# --- JWT Configuration ---
JWT_SECRET = os.getenv("JWT_SECRET", "change-this-secret-key")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRY_HOURS = _int("JWT_EXPIRY_HOURS", 720)  # 30 days

# --- Database ---
# Default to local SQLite, but prefer environment variable (for Supabase Postgres)
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./data/tendly.db")

# Fix for common SQLAlchemy issues with postgres:// vs postgresql://
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)

# --- Supabase Configuration ---
SUPABASE_URL = os.getenv("SUPABASE_URL", "")
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")
SUPABASE_STATE_TABLE = os.getenv("SUPABASE_STATE_TABLE", "garden_state")

# --- Garden persistence: memory / sql / supabase ---
GARDEN_STORE = os.getenv("GARDEN_STORE", "sql").lower()
SEED_SAMPLE_DATA = os.getenv("SEED_SAMPLE_DATA", "false").lower() in ("1", "true", "yes")

# --- Focus timer (minutes) ---
FOCUS_MINUTES = _int("FOCUS_MINUTES", 25)
SHORT_BREAK_MINUTES = _int("SHORT_BREAK_MINUTES", 5)
LONG_BREAK_MINUTES = _int("LONG_BREAK_MINUTES", 15)
LONG_BREAK_EVERY = _int("LONG_BREAK_EVERY", 4)

# --- Rewards ---
PRIORITY_REWARDS = {
    "high": ("tree", 15),
    "medium": ("flower", 10),
    "low": ("sprout", 5),
}
INITIAL_PLANT_GROWTH = 25
FOCUS_PLANT_GROWTH = 10
COMPOST_PER_FOCUS_MINUTE = 2
RARE_SEED_COST = _int("RARE_SEED_COST", 50)
COMPOST_PER_LEVEL = 100

# Where new plants may be placed in the garden view
PLANT_X_RANGE = _range("PLANT_X_RANGE", (60.0, 300.0))
PLANT_Y_RANGE = _range("PLANT_Y_RANGE", (150.0, 350.0))

# --- Attestation: off / mock / http ---
ATTESTATION_MODE = os.getenv("ATTESTATION_MODE", "off").lower()
ATTESTATION_URL = os.getenv("ATTESTATION_URL", "")
ATTESTATION_API_KEY = os.getenv("ATTESTATION_API_KEY", "")
