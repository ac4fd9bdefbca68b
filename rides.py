"""Ride lifecycle: create, list, join, accept, reject, update, delete.

Each operation loads the ride, checks authorization and state, mutates it and
commits. Nothing here holds a lock or wraps the read-check-write sequence in a
transaction, so two processes joining the last seat at the same time can both
pass the seat check. Notifications are written after the ride is committed and
never undo it.
"""
import logging
from typing import List
from models import Ride, Participant, Notification, User, RideStatus, ParticipantStatus, NotificationType
from notifications import notify
from schemas import RideIn, RideUpdate
from errors import RideNotFound, NotFound, NotAuthorized, NoSeatsAvailable, AlreadyAccepted, ValidationFailed

logger = logging.getLogger("ridepool.rides")


def _route(ride: Ride) -> str:
    return f"{ride.from_address} to {ride.to_address}"


def _load(session, ride_id: int, details="The specified ride does not exist") -> Ride:
    ride = session.get(Ride, ride_id)
    if not ride:
        raise RideNotFound(details)
    return ride


def _require_creator(ride: Ride, user_id: int):
    if ride.creator_id != user_id:
        logger.error("unauthorized modification of ride %s: creator %s, actor %s", ride.id, ride.creator_id, user_id)
        raise NotAuthorized("Unauthorized", "You are not authorized to modify this ride")


def _find_participant(ride: Ride, participant_id: int) -> Participant:
    for p in ride.participants:
        if p.id == participant_id:
            return p
    logger.error("participant %s not found on ride %s (have %s)",
                 participant_id, ride.id, [p.id for p in ride.participants])
    raise NotFound("Participant not found", "The specified participant does not exist in this ride")


def _take_seat(ride: Ride):
    ride.available_seats -= 1
    if ride.available_seats <= 0:
        ride.status = RideStatus.FULL.value


def create_ride(session, creator_id: int, payload: RideIn) -> Ride:
    ride = Ride(
        creator_id=creator_id,
        from_address=payload.from_.address,
        from_lng=payload.from_.coordinates[0],
        from_lat=payload.from_.coordinates[1],
        to_address=payload.to.address,
        to_lng=payload.to.coordinates[0],
        to_lat=payload.to.coordinates[1],
        departure_time=payload.departure_time,
        available_seats=payload.available_seats,
        status=RideStatus.ACTIVE.value,
    )
    session.add(ride)
    session.commit()
    session.refresh(ride)
    logger.info("ride %s created by user %s (%s, %d seats)", ride.id, creator_id, _route(ride), ride.available_seats)
    return ride


def list_available(session) -> List[Ride]:
    return (
        session.query(Ride)
        .filter(Ride.available_seats > 0, Ride.status != RideStatus.FULL.value)
        .order_by(Ride.departure_time)
        .all()
    )


def list_created(session, user_id: int) -> List[Ride]:
    return session.query(Ride).filter(Ride.creator_id == user_id).order_by(Ride.departure_time).all()


def get_ride(session, ride_id: int) -> Ride:
    return _load(session, ride_id, details=None)


def join_ride(session, ride_id: int, user_id: int) -> Ride:
    """Append a pending participant and reserve one seat.

    The creator joining their own ride and repeat joins are not rejected.
    """
    user = session.get(User, user_id)
    if not user:
        raise NotFound("User not found", "Unable to locate user in the database")
    ride = _load(session, ride_id)
    if ride.available_seats <= 0:
        logger.error("no seats available on ride %s", ride.id)
        raise NoSeatsAvailable("No seats available", "This ride is already full")
    if not user.phone:
        raise ValidationFailed("participant phone is required")

    logger.info("ride %s before join: seats=%d participants=%d status=%s",
                ride.id, ride.available_seats, len(ride.participants), ride.status)
    ride.participants.append(Participant(
        user_id=user.id,
        name=user.name,
        phone=user.phone,
        status=ParticipantStatus.PENDING.value,
    ))
    _take_seat(ride)
    session.add(ride)
    session.commit()
    session.refresh(ride)
    logger.info("ride %s after join by user %s: seats=%d participants=%d status=%s",
                ride.id, user_id, ride.available_seats, len(ride.participants), ride.status)
    return ride


def accept_participant(session, ride_id: int, participant_id: int, actor_id: int) -> Ride:
    """Accept a pending request. Takes a second seat on top of the one held since join."""
    ride = _load(session, ride_id)
    _require_creator(ride, actor_id)
    participant = _find_participant(ride, participant_id)
    if participant.status == ParticipantStatus.ACCEPTED.value:
        logger.warning("participant %s already accepted on ride %s", participant_id, ride.id)
        raise AlreadyAccepted("Request already accepted", "This participant has already been accepted")
    accepted = sum(1 for p in ride.participants if p.status == ParticipantStatus.ACCEPTED.value)
    if accepted >= ride.available_seats:
        logger.error("no seats available on ride %s: accepted=%d seats=%d", ride.id, accepted, ride.available_seats)
        raise NoSeatsAvailable("No seats available", "All seats for this ride have been filled")

    participant.status = ParticipantStatus.ACCEPTED.value
    _take_seat(ride)
    recipient_id = participant.user_id
    session.add(ride)
    session.commit()
    session.refresh(ride)
    logger.info("ride %s: accepted participant %s (user %s)", ride.id, participant_id, recipient_id)

    notify(
        session, recipient_id, NotificationType.RIDE_CONFIRMATION,
        f"Your ride request has been accepted for ride from {_route(ride)}",
        ride_id=ride.id, user_id=actor_id,
    )
    return ride


def reject_participant(session, ride_id: int, participant_id: int, actor_id: int) -> Ride:
    """Remove a participant with a single DELETE. Seats held since join are not released."""
    ride = _load(session, ride_id)
    _require_creator(ride, actor_id)
    # read from the copy loaded above; another request may change the row first
    recipient_id = _find_participant(ride, participant_id).user_id

    session.query(Participant).filter(
        Participant.id == participant_id,
        Participant.ride_id == ride.id,
    ).delete(synchronize_session=False)
    session.commit()
    session.expire_all()
    ride = _load(session, ride_id)
    logger.info("ride %s: rejected participant %s (user %s)", ride.id, participant_id, recipient_id)

    notify(
        session, recipient_id, NotificationType.RIDE_CANCEL,
        f"Your ride request has been rejected for ride from {_route(ride)}",
        ride_id=ride.id, user_id=actor_id,
    )
    return ride


def update_ride(session, ride_id: int, actor_id: int, changes: RideUpdate) -> Ride:
    ride = _load(session, ride_id, details=None)
    if ride.creator_id != actor_id:
        raise NotAuthorized("User not authorized", status_code=401)

    fields = changes.model_dump(exclude_unset=True)
    logger.info("ride %s update by user %s: %s", ride.id, actor_id, sorted(fields))
    if changes.from_ is not None:
        ride.from_address = changes.from_.address
        ride.from_lng, ride.from_lat = changes.from_.coordinates
    if changes.to is not None:
        ride.to_address = changes.to.address
        ride.to_lng, ride.to_lat = changes.to.coordinates
    if changes.departure_time is not None:
        ride.departure_time = changes.departure_time
    if changes.available_seats is not None:
        ride.available_seats = changes.available_seats
    if changes.status is not None:
        ride.status = changes.status.value
    session.add(ride)
    session.commit()
    session.refresh(ride)

    recipients = [p.user_id for p in ride.participants]
    sent = 0
    for user_id in recipients:
        if notify(
            session, user_id, NotificationType.RIDE_UPDATE,
            f"Ride details updated for {_route(ride)}",
            ride_id=ride.id, user_id=actor_id,
        ):
            sent += 1
    logger.info("ride %s: %d/%d update notifications created", ride.id, sent, len(recipients))
    return ride


def delete_ride(session, ride_id: int, actor_id: int):
    ride = session.get(Ride, ride_id)
    if not ride:
        raise NotFound("Ride not found")
    if ride.creator_id != actor_id:
        raise NotAuthorized("Not authorized to delete this ride", status_code=401)
    # notifications outlive the ride; SQLite may hand its id to the next one
    session.query(Notification).filter(Notification.ride_id == ride.id).update(
        {Notification.ride_id: None}, synchronize_session=False
    )
    session.delete(ride)
    session.commit()
    logger.info("ride %s deleted by user %s", ride_id, actor_id)
