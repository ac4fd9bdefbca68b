"""Bearer-token authentication.

Tokens are opaque strings stored in the ``authtoken`` table. Issuing them
(login, registration) happens elsewhere; this module only resolves an
``Authorization: Bearer <token>`` header to the user it belongs to.
"""
import secrets
from starlette.authentication import AuthenticationBackend, AuthenticationError, AuthCredentials, BaseUser
from starlette.responses import JSONResponse
from db import get_session
from models import AuthToken, User


class AuthenticatedUser(BaseUser):
    def __init__(self, user_id: int, name: str):
        self.id = user_id
        self.name = name

    @property
    def is_authenticated(self) -> bool:
        return True

    @property
    def display_name(self) -> str:
        return self.name

    @property
    def identity(self) -> str:
        return str(self.id)


class BearerTokenBackend(AuthenticationBackend):
    async def authenticate(self, conn):
        header = conn.headers.get("Authorization")
        if not header:
            return None
        scheme, _, token = header.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            raise AuthenticationError("Token is not valid")
        with get_session() as session:
            row = session.get(AuthToken, token.strip())
            user = session.get(User, row.user_id) if row else None
            if user is None:
                raise AuthenticationError("Token is not valid")
            return AuthCredentials(["authenticated"]), AuthenticatedUser(user.id, user.name)


def on_auth_error(conn, exc: Exception):
    return JSONResponse({"msg": str(exc)}, status_code=401)


def issue_token(session, user_id: int) -> str:
    token = secrets.token_hex(24)
    session.add(AuthToken(token=token, user_id=user_id))
    session.commit()
    return token
