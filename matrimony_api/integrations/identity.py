"""Bearer token verification delegated to Firebase Authentication."""

import asyncio
import logging
from functools import lru_cache

import firebase_admin
from firebase_admin import auth as firebase_auth
from firebase_admin import credentials
from pydantic import BaseModel

from ..config import get_settings
from ..errors import Unauthenticated, UpstreamFailure
from ..models.identifiers import normalize_email

LOGGER = logging.getLogger("uvicorn.error")

FIREBASE_APP_NAME = "matrimony-api"


class VerifiedIdentity(BaseModel):
    email: str
    uid: str


@lru_cache()
def ensure_initialized() -> firebase_admin.App:
    settings = get_settings()
    if settings.firebase_credentials_file:
        cred = credentials.Certificate(settings.firebase_credentials_file)
    else:
        cred = credentials.Certificate(
            {
                "type": "service_account",
                "project_id": settings.firebase_project_id,
                "private_key_id": settings.firebase_private_key_id,
                "private_key": settings.firebase_private_key,
                "client_email": settings.firebase_client_email,
                "token_uri": "https://oauth2.googleapis.com/token",
            }
        )
    options = {"projectId": settings.firebase_project_id} if settings.firebase_project_id else None
    app = firebase_admin.initialize_app(cred, options, name=FIREBASE_APP_NAME)
    LOGGER.info("Firebase identity provider initialised for project=%s", settings.firebase_project_id or "file")
    return app


def verify_token_sync(token: str) -> VerifiedIdentity:
    app = ensure_initialized()
    try:
        claims = firebase_auth.verify_id_token(token, app=app)
    except firebase_auth.CertificateFetchError as exc:
        raise UpstreamFailure("identity provider unavailable", details=str(exc)) from exc
    except (firebase_auth.InvalidIdTokenError, ValueError) as exc:
        raise Unauthenticated("invalid token") from exc

    email = normalize_email(claims.get("email"))
    uid = str(claims.get("uid") or claims.get("sub") or "")
    if not email or not uid:
        raise Unauthenticated("token carries no email identity")
    return VerifiedIdentity(email=email, uid=uid)


async def verify_token(token: str) -> VerifiedIdentity:
    """Verify a bearer token off the event loop; the SDK fetches signing certs over HTTP."""

    return await asyncio.to_thread(verify_token_sync, token)


__all__ = ["VerifiedIdentity", "ensure_initialized", "verify_token", "verify_token_sync"]
