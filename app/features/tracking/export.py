"""
GPX export of recorded hikes.
"""

import logging

import gpxpy
import gpxpy.gpx

from .types import HikeRecord

logger = logging.getLogger(__name__)


def export_gpx(record: HikeRecord) -> str:
    """
    Render a hike record's track as a GPX 1.1 document.

    One track with one segment; points keep their recording order.

    Args:
        record: Hike record to export

    Returns:
        GPX XML as string
    """
    gpx = gpxpy.gpx.GPX()
    gpx.creator = "Hike Tracker"
    gpx.name = record.trail_name or f"Hike {record.start_time:%Y-%m-%d %H:%M}"
    gpx.description = record.notes

    track = gpxpy.gpx.GPXTrack(name=gpx.name)
    gpx.tracks.append(track)
    segment = gpxpy.gpx.GPXTrackSegment()
    track.segments.append(segment)

    for point in record.track_points:
        segment.points.append(gpxpy.gpx.GPXTrackPoint(
            latitude=point.latitude,
            longitude=point.longitude,
            elevation=point.altitude,
            time=point.timestamp,
            speed=point.speed if point.speed >= 0 else None,
        ))

    logger.debug(f"Exported hike {record.id} as GPX ({len(record.track_points)} points)")
    return gpx.to_xml(version="1.1")
