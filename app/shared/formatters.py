"""
Formatting utilities for display.

Used by API responses for the live tracking screen.
"""

# m/s -> km/h
MPS_TO_KMH = 3.6


def format_duration(seconds: float) -> str:
    """
    Format elapsed time as 'H:MM:SS', or 'M:SS' under an hour.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted string (e.g., '1:05:09' or '5:09')
    """
    total = max(int(seconds), 0)
    h = total // 3600
    m = (total % 3600) // 60
    s = total % 60

    if h > 0:
        return f"{h}:{m:02d}:{s:02d}"
    return f"{m}:{s:02d}"


def format_distance(meters: float) -> str:
    """
    Format distance.

    Args:
        meters: Distance in meters

    Returns:
        Formatted string (e.g., '12.50 km' or '850 m')
    """
    if meters >= 1000:
        return f"{meters / 1000.0:.2f} km"
    return f"{meters:.0f} m"


def speed_to_kmh(speed_mps: float) -> float:
    """Convert m/s to km/h."""
    return speed_mps * MPS_TO_KMH


def format_elevation(meters: float) -> str:
    """
    Format elevation with sign.

    Args:
        meters: Elevation in meters

    Returns:
        Formatted string (e.g., '+850 m')
    """
    if meters >= 0:
        return f"+{int(meters)} m"
    return f"{int(meters)} m"
