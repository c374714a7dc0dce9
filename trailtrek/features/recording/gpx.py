"""
GPX import/export for recorded trails.

Exports a coordinate path as a single-segment GPX track and
reads timestamped track (or route) points back into Coordinates.
"""

import logging
from typing import Optional, Sequence

import gpxpy
import gpxpy.gpx

from trailtrek.shared.coordinates import Coordinate, format_timestamp, parse_timestamp
from trailtrek.shared.geo import is_valid_coordinate

logger = logging.getLogger(__name__)


def recording_to_gpx(
    name: str,
    coordinates: Sequence[Coordinate],
    description: Optional[str] = None,
) -> str:
    """
    Serialize a coordinate path to GPX XML.

    Args:
        name: Track name
        coordinates: Points in chronological order
        description: Optional track description

    Returns:
        GPX document as string
    """
    gpx = gpxpy.gpx.GPX()
    gpx.name = name
    gpx.description = description

    track = gpxpy.gpx.GPXTrack(name=name, description=description)
    segment = gpxpy.gpx.GPXTrackSegment()
    track.segments.append(segment)
    gpx.tracks.append(track)

    for coord in coordinates:
        segment.points.append(
            gpxpy.gpx.GPXTrackPoint(
                latitude=coord.latitude,
                longitude=coord.longitude,
                elevation=coord.altitude,
                time=parse_timestamp(coord.timestamp),
            )
        )

    return gpx.to_xml()


def parse_gpx_coordinates(content: bytes) -> list[Coordinate]:
    """
    Extract timestamped coordinates from GPX content.

    Track points are used; route points only if there are no tracks.
    Points without a timestamp cannot be validated and are skipped.

    Raises:
        ValueError: If GPX is invalid or contains no usable points
    """
    try:
        gpx = gpxpy.parse(content.decode('utf-8'))
    except Exception as e:
        logger.error(f"Failed to parse GPX: {e}")
        raise ValueError(f"Invalid GPX file: {e}")

    raw_points = [
        point
        for track in gpx.tracks
        for segment in track.segments
        for point in segment.points
    ]
    if not raw_points:
        raw_points = [point for route in gpx.routes for point in route.points]

    coordinates: list[Coordinate] = []
    skipped = 0
    for point in raw_points:
        if point.time is None:
            skipped += 1
            continue
        coord = Coordinate(
            latitude=point.latitude,
            longitude=point.longitude,
            altitude=point.elevation,
            timestamp=format_timestamp(point.time),
        )
        if not is_valid_coordinate(coord):
            skipped += 1
            continue
        coordinates.append(coord)

    if skipped:
        logger.warning(f"Skipped {skipped} GPX points without valid time/position")

    if not coordinates:
        raise ValueError("GPX file contains no timestamped track or route points")

    return coordinates
