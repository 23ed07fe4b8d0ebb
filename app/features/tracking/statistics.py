"""
Track statistics.

Pure functions that fold a sequence of track points into distance,
elevation and speed aggregates. Inputs are never mutated.
"""

from typing import NamedTuple, Sequence

from app.shared.elevation import calculate_elevation_changes, elevation_range
from app.shared.geo import haversine_m

from .types import HikeStatistics, TrackPoint


class ElevationProfile(NamedTuple):
    gain: float
    loss: float
    min: float
    max: float


class MotionStatistics(NamedTuple):
    total_distance: float
    average_speed: float
    max_speed: float


def distance_between(a: TrackPoint, b: TrackPoint) -> float:
    """Great-circle distance between two points in meters."""
    return haversine_m(a.latitude, a.longitude, b.latitude, b.longitude)


def elevation_profile(points: Sequence[TrackPoint]) -> ElevationProfile:
    """
    Total gain/loss and altitude extremes of a track.

    Args:
        points: Track points in recording order

    Returns:
        ElevationProfile. An empty track yields all zeros; a single point
        yields zero gain/loss with min == max == its altitude.
    """
    altitudes = [p.altitude for p in points]
    gain, loss = calculate_elevation_changes(altitudes)
    low, high = elevation_range(altitudes)
    return ElevationProfile(gain=gain, loss=loss, min=low, max=high)


def motion_statistics(points: Sequence[TrackPoint]) -> MotionStatistics:
    """
    Total distance, average and maximum speed of a track.

    Raw GPS speed is often zero or negative noise while standing still, so
    only positive readings count towards the average. The maximum starts at
    zero and so is never negative.

    Args:
        points: Track points in recording order

    Returns:
        MotionStatistics (meters, m/s)
    """
    if len(points) < 2:
        single_speed = points[0].speed if points else 0.0
        return MotionStatistics(0.0, 0.0, single_speed)

    total_distance = 0.0
    speed_sum = 0.0
    speed_count = 0
    max_speed = 0.0

    for i in range(1, len(points)):
        total_distance += distance_between(points[i - 1], points[i])

        speed = points[i].speed
        if speed > 0:
            speed_sum += speed
            speed_count += 1
        max_speed = max(max_speed, speed)

    average_speed = speed_sum / speed_count if speed_count > 0 else 0.0
    return MotionStatistics(total_distance, average_speed, max_speed)


def compute_statistics(points: Sequence[TrackPoint], duration: float) -> HikeStatistics:
    """Build a fresh statistics snapshot for a track."""
    motion = motion_statistics(points)
    elevation = elevation_profile(points)
    return HikeStatistics(
        total_distance=motion.total_distance,
        total_duration=duration,
        average_speed=motion.average_speed,
        max_speed=motion.max_speed,
        elevation_gain=elevation.gain,
        elevation_loss=elevation.loss,
        min_altitude=elevation.min,
        max_altitude=elevation.max,
    )
