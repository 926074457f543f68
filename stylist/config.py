"""Environment settings."""
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# --- Gemini ---
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
GEMINI_IMAGE_MODEL = os.getenv("GEMINI_IMAGE_MODEL", "gemini-2.5-flash-image-preview")

# --- Image handling ---
MAX_IMAGE_SIZE_PX = int(os.getenv("MAX_IMAGE_SIZE_PX", "1024"))
IMAGE_QUALITY = int(os.getenv("IMAGE_QUALITY", "95"))
# Upper bound for any mask canvas or export dimension.
MAX_MASK_SIZE_PX = int(os.getenv("MAX_MASK_SIZE_PX", str(MAX_IMAGE_SIZE_PX * 8)))
MAX_MASK_STROKES = 1000
MAX_STROKE_POINTS = 10000
ACCEPTED_MIME_TYPES = ("image/png", "image/jpeg", "image/webp")

# --- Masker ---
DEFAULT_BRUSH_SIZE = 40
MIN_BRUSH_SIZE = 5
MAX_BRUSH_SIZE = 150
MASKER_VIEWPORT_WIDTH_RATIO = 0.8
MASKER_VIEWPORT_HEIGHT_RATIO = 0.7

# --- API key persistence ---
API_KEY_STORAGE_KEY = "gemini-api-key"
API_KEY_STORE_PATH = Path(
    os.getenv("API_KEY_STORE_PATH", str(Path.home() / ".stylist" / "settings.json"))
).expanduser()


def get_cors_origins() -> list[str]:
    """Comma separated CORS_ORIGINS, defaulting to every origin."""
    raw = os.getenv("CORS_ORIGINS", "*")
    origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
    return origins or ["*"]
