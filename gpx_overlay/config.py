from __future__ import annotations

from pathlib import Path

PACKAGE_ROOT = Path(__file__).resolve().parent
ASSETS_DIR = PACKAGE_ROOT / "assets"
LOGO_PATH = ASSETS_DIR / "strava_symbol_white.png"
FONTS_DIR = ASSETS_DIR / "fonts"

DEFAULT_OUTPUT = "out.jpg"
GPX_EXTENSIONS = (".gpx",)
IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif")

EARTH_RADIUS_M = 6371e3
MAX_LATITUDE = 89.9999

# Enrichment
SPEED_WINDOW = 5
STATIONARY_DISTANCE_M = 3.0
CLIMB_NOISE_CEILING_M = 0.25

# Canvas layout, as fractions of the square canvas side
MARGIN_LEFT = 0.01
MARGIN_TOP = 0.05
MARGIN_RIGHT = 0.05
MARGIN_BOTTOM = 0.10
LABEL_BAND_RESERVE = 0.04

# Track stroke
STROKE_WIDTH_RATIO = 0.005
GLOW_BLUR_RATIO = 0.01
GLOW_COLOR = (255, 255, 255, 128)
GLOW_OFFSET = (1, 1)
HUE_SATURATION = 90
HUE_LIGHTNESS = 50

# Bottom gradient band
GRADIENT_START = 0.5
GRADIENT_MAX_ALPHA = 0.85

# Metric blocks
LABEL_FONT_RATIO = 0.04
VALUE_FONT_RATIO = 0.09
UNIT_FONT_RATIO = 0.03
VALUE_OFFSET_RATIO = 0.08
KMH_KM_OFFSET_RATIO = 0.05
KMH_DIVIDER_OFFSET_RATIO = 0.055
DIVIDER_WIDTH_RATIO = 0.001
LABEL_GLOW_RATIO = 0.1
VALUE_GLOW_RATIO = 0.001
BRANDING_FONT_RATIO = 0.8

FONT_CANDIDATES = [
    FONTS_DIR / "DINAlternate-Regular.ttf",
    Path("/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"),
    Path("/System/Library/Fonts/SFNSDisplay.ttf"),
]
