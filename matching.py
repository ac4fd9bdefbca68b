from typing import List, Sequence, Tuple
from models import Ride, RideStatus
from math import radians, sin, cos, sqrt, atan2
from datetime import datetime
import logging

logger = logging.getLogger("ridepool.matching")

SEARCH_RADIUS_KM = 10.0


def haversine_km(a: Tuple[float, float], b: Tuple[float, float]) -> float:
    lat1, lon1 = a
    lat2, lon2 = b
    R = 6371.0
    dlat = radians(lat2 - lat1)
    dlon = radians(lon2 - lon1)
    rlat1 = radians(lat1)
    rlat2 = radians(lat2)
    a_ = sin(dlat / 2) ** 2 + cos(rlat1) * cos(rlat2) * sin(dlon / 2) ** 2
    c = 2 * atan2(sqrt(a_), sqrt(1 - a_))
    return R * c


def lnglat_distance_km(p: Sequence[float], q: Sequence[float]) -> float:
    # GeoJSON order: [longitude, latitude]
    return haversine_km((p[1], p[0]), (q[1], q[0]))


def ride_distances(ride: Ride, from_coords: Sequence[float], to_coords: Sequence[float]) -> Tuple[float, float]:
    """Distance (km) between the query and the ride for the pickup and the drop-off legs."""
    d_from = lnglat_distance_km(from_coords, (ride.from_lng, ride.from_lat))
    d_to = lnglat_distance_km(to_coords, (ride.to_lng, ride.to_lat))
    return d_from, d_to


def search_rides(session, requester_id: int, from_coords: Sequence[float], to_coords: Sequence[float],
                 radius_km: float = SEARCH_RADIUS_KM, now: datetime = None) -> List[Ride]:
    """Linear proximity scan over bookable rides.

    Candidates are active, depart after ``now``, have a free seat and were not
    created by the requester. A candidate matches when both its pickup and
    drop-off lie within ``radius_km`` of the query points.
    """
    now = now or datetime.utcnow()
    candidates = (
        session.query(Ride)
        .filter(
            Ride.status == RideStatus.ACTIVE.value,
            Ride.departure_time > now,
            Ride.available_seats > 0,
            Ride.creator_id != requester_id,
        )
        .all()
    )
    matched = []
    for ride in candidates:
        d_from, d_to = ride_distances(ride, from_coords, to_coords)
        logger.debug("ride %s proximity: from=%.3fkm to=%.3fkm", ride.id, d_from, d_to)
        if d_from <= radius_km and d_to <= radius_km:
            matched.append(ride)
    matched.sort(key=lambda r: r.departure_time)
    logger.info("search from %s to %s: %d candidates, %d matched",
                list(from_coords), list(to_coords), len(candidates), len(matched))
    return matched
