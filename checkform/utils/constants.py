"""Application constants."""

from pathlib import Path

# ===================
# Application info
# ===================
APP_NAME = "Checkform Template Studio"
APP_VERSION = "1.0.0"
APP_AUTHOR = "Checkform"

# ===================
# Paths
# ===================
# Application data directory
APP_DATA_DIR = Path.home() / ".checkform"

# Version history database
DATABASE_PATH = APP_DATA_DIR / "versions.db"

# Log directory
LOG_DIR = APP_DATA_DIR / "logs"

# Template and asset storage
TEMPLATES_DIR = APP_DATA_DIR / "templates"
ASSETS_DIR = APP_DATA_DIR / "assets"

# ===================
# Page sizes (points)
# ===================
PAGE_SIZES: dict[str, tuple[int, int]] = {
    "A4": (595, 842),
    "Letter": (612, 792),
    "A5": (420, 595),
}
DEFAULT_PAGE_MARGINS = 15

# ===================
# Layout engine
# ===================
GRID_SIZE = 10
SNAP_THRESHOLD = 10
MIN_SECTION_WIDTH = 50
MIN_SECTION_HEIGHT = 30

# Arrow-key nudge distances
NUDGE_STEP = 1
NUDGE_STEP_LARGE = 10

# Paste offset relative to the copied section
PASTE_OFFSET = 20

# Default spot for newly added sections
NEW_SECTION_POSITION = (30, 400)

# ===================
# History
# ===================
MAX_HISTORY_DEPTH = 50

# ===================
# Assets
# ===================
SUPPORTED_IMAGE_FORMATS = {".jpg", ".jpeg", ".png", ".webp", ".bmp", ".gif"}

# Largest accepted upload (10MB)
MAX_IMAGE_FILE_SIZE = 10 * 1024 * 1024

# ===================
# UI
# ===================
WINDOW_MIN_WIDTH = 1024
WINDOW_MIN_HEIGHT = 768
DEFAULT_ZOOM = 0.7
MIN_ZOOM = 0.25
MAX_ZOOM = 3.0
ZOOM_STEP = 0.1
