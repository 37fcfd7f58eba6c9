"""Application configuration constants."""

from dataclasses import dataclass


@dataclass
class AppConfig:
    """Application configuration settings."""

    # Application info
    APP_NAME: str = "Curve Digitizer"
    APP_VERSION: str = "1.0.0"

    # Image loading
    SUPPORTED_EXTENSIONS: tuple = (".png", ".jpg", ".jpeg")
    SUPPORTED_FORMATS: tuple = ("PNG", "JPEG")

    # Binarization
    DEFAULT_THRESHOLD: int = 128  # used when the threshold rect is empty

    # Tick detection
    TICK_MIN_OFFSET: int = 3  # pixels away from the axis a tick must reach
    TICK_MAX_OFFSET: int = 14
    TICK_MERGE_DISTANCE: float = 4  # pixels between candidates of one tick

    # Calibration
    DEGENERATE_EPSILON: float = 1e-6
    SNAP_RADIUS: float = 14  # pixels, calibration click -> detected tick

    # Structural ink exclusion
    AXIS_BAND: float = 4
    TICK_RADIUS: float = 6

    # Curve tracing
    CURVE_THRESHOLD: float = 45  # RGB distance
    CURVE_THRESHOLD_MIN: float = 1
    CURVE_THRESHOLD_MAX: float = 200
    TRACE_MODE: str = "centerline"
    MAX_JUMP: float = 20

    # Export settings
    DEFAULT_DECIMAL_PLACES: int = 6

    # Colors for visualization (BGR)
    CURVE_COLOR: tuple = (0, 0, 255)  # Red for traced curve
    TICK_COLOR: tuple = (0, 255, 0)  # Green for ticks
    AXIS_COLOR: tuple = (255, 0, 0)  # Blue for detected axes


# Global configuration instance
config = AppConfig()
