from starlette.applications import Starlette
from starlette.authentication import requires
from starlette.exceptions import HTTPException
from starlette.middleware import Middleware
from starlette.middleware.authentication import AuthenticationMiddleware
from starlette.responses import JSONResponse
from starlette.requests import Request
from starlette.routing import Route
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from contextlib import asynccontextmanager
import functools
import logging

from config import get_settings
from logging_config import setup_logging
from db import init_db, get_session
from models import User
from auth import BearerTokenBackend, on_auth_error
from errors import ApiError, NotFound, ValidationFailed
from schemas import RideIn, RideUpdate, SearchIn, ProfileUpdate, ride_out, notification_out, user_out, contract_schemas
from matching import search_rides
import notifications
import rides

logger = logging.getLogger("ridepool.api")


@asynccontextmanager
async def lifespan(app):
    setup_logging(get_settings().log_level)
    init_db()
    yield


def _validation_details(exc: ValidationError) -> str:
    return ", ".join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" if err["loc"] else err["msg"]
        for err in exc.errors()
    )


def api_errors(style="msg"):
    """Render service errors as JSON. ``style`` picks ``{msg, details, error}`` or ``{message}`` bodies."""
    def decorate(handler):
        @functools.wraps(handler)
        async def wrapper(request: Request):
            try:
                return await handler(request)
            except ApiError as e:
                return JSONResponse(e.body(style), status_code=e.status_code)
            except ValidationError as e:
                return JSONResponse(ValidationFailed(_validation_details(e)).body(style), status_code=400)
            except SQLAlchemyError as e:
                logger.exception("server error in %s", handler.__name__)
                err = ApiError("Server Error", str(e), flagged=True)
                return JSONResponse(err.body(style), status_code=500)
        return wrapper
    return decorate


async def _json(request: Request):
    try:
        return await request.json()
    except ValueError:
        raise ValidationFailed("Request body must be valid JSON")


async def http_error(request: Request, exc: HTTPException):
    msg = "No token, authorization denied" if exc.status_code == 401 else exc.detail
    return JSONResponse({"msg": msg}, status_code=exc.status_code)


async def root(request: Request):
    return JSONResponse({"message": "Campus ride pool API running"})


async def get_schema(request: Request):
    return JSONResponse(contract_schemas())


# ────────────────────────── rides ───────────────────────────────────────────

@requires("authenticated", status_code=401)
@api_errors()
async def list_rides(request: Request):
    with get_session() as session:
        return JSONResponse([ride_out(r) for r in rides.list_available(session)])


@requires("authenticated", status_code=401)
@api_errors()
async def create_ride(request: Request):
    payload = RideIn.model_validate(await _json(request))
    with get_session() as session:
        ride = rides.create_ride(session, request.user.id, payload)
        return JSONResponse(ride_out(ride))


@requires("authenticated", status_code=401)
@api_errors()
async def created_rides(request: Request):
    with get_session() as session:
        return JSONResponse([ride_out(r) for r in rides.list_created(session, request.user.id)])


@requires("authenticated", status_code=401)
@api_errors()
async def get_ride(request: Request):
    ride_id = request.path_params["ride_id"]
    with get_session() as session:
        return JSONResponse(ride_out(rides.get_ride(session, ride_id)))


@requires("authenticated", status_code=401)
@api_errors()
async def update_ride(request: Request):
    ride_id = request.path_params["ride_id"]
    changes = RideUpdate.model_validate(await _json(request))
    with get_session() as session:
        ride = rides.update_ride(session, ride_id, request.user.id, changes)
        return JSONResponse(ride_out(ride))


@requires("authenticated", status_code=401)
@api_errors(style="message")
async def delete_ride(request: Request):
    ride_id = request.path_params["ride_id"]
    with get_session() as session:
        rides.delete_ride(session, ride_id, request.user.id)
    return JSONResponse({"message": "Ride removed"})


@requires("authenticated", status_code=401)
@api_errors()
async def join_ride(request: Request):
    ride_id = request.path_params["ride_id"]
    with get_session() as session:
        ride = rides.join_ride(session, ride_id, request.user.id)
        return JSONResponse({
            "message": "Ride join request sent successfully",
            "ride": ride_out(ride),
            "availableSeats": ride.available_seats,
        })


@requires("authenticated", status_code=401)
@api_errors()
async def accept_participant(request: Request):
    ride_id = request.path_params["ride_id"]
    participant_id = request.path_params["participant_id"]
    with get_session() as session:
        ride = rides.accept_participant(session, ride_id, participant_id, request.user.id)
        return JSONResponse({
            "ride": ride_out(ride),
            "message": "Ride request accepted successfully",
            "participantId": participant_id,
        })


@requires("authenticated", status_code=401)
@api_errors()
async def reject_participant(request: Request):
    ride_id = request.path_params["ride_id"]
    participant_id = request.path_params["participant_id"]
    with get_session() as session:
        ride = rides.reject_participant(session, ride_id, participant_id, request.user.id)
        return JSONResponse({
            "ride": ride_out(ride),
            "message": "Ride request rejected successfully",
            "participantId": participant_id,
        })


@requires("authenticated", status_code=401)
@api_errors()
async def search(request: Request):
    payload = SearchIn.model_validate(await _json(request))
    if not payload.from_coordinates or not payload.to_coordinates:
        raise ValidationFailed("Both source and destination coordinates are required", msg="Invalid search")
    with get_session() as session:
        matched = search_rides(session, request.user.id, payload.from_coordinates, payload.to_coordinates)
        return JSONResponse([ride_out(r, default_creator=True) for r in matched])


# ────────────────────────── notifications ───────────────────────────────────

@requires("authenticated", status_code=401)
@api_errors(style="message")
async def list_notifications(request: Request):
    with get_session() as session:
        rows = notifications.list_notifications(session, request.user.id)
        return JSONResponse([notification_out(n) for n in rows])


@requires("authenticated", status_code=401)
@api_errors(style="message")
async def mark_notification_read(request: Request):
    notification_id = request.path_params["notification_id"]
    with get_session() as session:
        n = notifications.mark_as_read(session, notification_id, request.user.id)
        return JSONResponse(notification_out(n))


# ────────────────────────── users ───────────────────────────────────────────

@requires("authenticated", status_code=401)
@api_errors()
async def get_user(request: Request):
    user_id = request.path_params["user_id"]
    with get_session() as session:
        user = session.get(User, user_id)
        if not user:
            raise NotFound("User not found")
        return JSONResponse(user_out(user))


@requires("authenticated", status_code=401)
@api_errors()
async def update_profile(request: Request):
    changes = ProfileUpdate.model_validate(await _json(request))
    with get_session() as session:
        user = session.get(User, request.user.id)
        if not user:
            raise NotFound("User not found")
        # empty strings leave the stored value alone
        for field, value in changes.model_dump().items():
            if value:
                setattr(user, field, value)
        session.add(user)
        session.commit()
        session.refresh(user)
        return JSONResponse(user_out(user))


routes = [
    Route("/", root, methods=["GET"]),
    Route("/schema", get_schema, methods=["GET"]),
    Route("/rides", list_rides, methods=["GET"]),
    Route("/rides", create_ride, methods=["POST"]),
    Route("/rides/created", created_rides, methods=["GET"]),
    Route("/rides/search", search, methods=["POST"]),
    Route("/rides/{ride_id:int}", get_ride, methods=["GET"]),
    Route("/rides/{ride_id:int}", update_ride, methods=["PUT"]),
    Route("/rides/{ride_id:int}", delete_ride, methods=["DELETE"]),
    Route("/rides/{ride_id:int}/join", join_ride, methods=["POST"]),
    Route("/rides/{ride_id:int}/accept/{participant_id:int}", accept_participant, methods=["POST"]),
    Route("/rides/{ride_id:int}/reject-participant/{participant_id:int}", reject_participant, methods=["POST"]),
    Route("/notifications", list_notifications, methods=["GET"]),
    Route("/notifications/{notification_id:int}/read", mark_notification_read, methods=["PATCH"]),
    Route("/users/profile", update_profile, methods=["PUT"]),
    Route("/users/{user_id:int}", get_user, methods=["GET"]),
]

middleware = [
    Middleware(AuthenticationMiddleware, backend=BearerTokenBackend(), on_error=on_auth_error),
]

app = Starlette(
    debug=get_settings().debug,
    routes=routes,
    middleware=middleware,
    exception_handlers={HTTPException: http_error},
    lifespan=lifespan,
)


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port)
