import os
from dataclasses import dataclass
from typing import Optional
from fastapi import Depends, HTTPException, Request
from core.config import logger, ADMIN_EMAILS


firebase_enabled = False
try:
    import firebase_admin
    from firebase_admin import auth as fb_auth, credentials as fb_credentials

    FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID", "")
    FIREBASE_SERVICE_ACCOUNT_JSON = os.getenv("FIREBASE_SERVICE_ACCOUNT_JSON", "")
    FIREBASE_SERVICE_ACCOUNT_JSON_PATH = (os.getenv("FIREBASE_SERVICE_ACCOUNT_JSON_PATH", "") or "").strip().strip('"').strip("'")

    if not getattr(firebase_admin, "_apps", []):
        if FIREBASE_SERVICE_ACCOUNT_JSON:
            import json
            cred = fb_credentials.Certificate(json.loads(FIREBASE_SERVICE_ACCOUNT_JSON))
            firebase_admin.initialize_app(cred, {"projectId": FIREBASE_PROJECT_ID} if FIREBASE_PROJECT_ID else None)
        elif FIREBASE_SERVICE_ACCOUNT_JSON_PATH and os.path.isfile(FIREBASE_SERVICE_ACCOUNT_JSON_PATH):
            cred = fb_credentials.Certificate(FIREBASE_SERVICE_ACCOUNT_JSON_PATH)
            firebase_admin.initialize_app(cred, {"projectId": FIREBASE_PROJECT_ID} if FIREBASE_PROJECT_ID else None)
        else:
            firebase_admin.initialize_app(options={"projectId": FIREBASE_PROJECT_ID} if FIREBASE_PROJECT_ID else None)
    firebase_enabled = True
    logger.info("Firebase Admin initialized")
except Exception as ex:
    logger.warning(f"Firebase Admin not initialized: {ex}")
    fb_auth = None  # type: ignore


@dataclass
class SessionUser:
    """The signed-in caller, resolved once per request and passed explicitly."""
    id: str
    email: str = ""
    display_name: Optional[str] = None
    is_admin: bool = False

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "displayName": self.display_name,
            "isAdmin": self.is_admin,
        }


def is_admin_email(email: Optional[str]) -> bool:
    return bool(email) and email.strip().lower() in ADMIN_EMAILS


def _bearer_token(request: Request) -> Optional[str]:
    auth_header = request.headers.get("authorization") or request.headers.get("Authorization")
    if not auth_header or not auth_header.lower().startswith("bearer "):
        return None
    token = auth_header.split(" ", 1)[1].strip()
    return token or None


def verify_request_token(request: Request) -> Optional[dict]:
    token = _bearer_token(request)
    if not token:
        return None
    if not firebase_enabled or not fb_auth:
        return None
    try:
        return fb_auth.verify_id_token(token)
    except Exception as ex:
        logger.warning(f"Token verification failed: {ex}")
        return None


def get_current_user(request: Request) -> SessionUser:
    """FastAPI dependency: the verified caller or 401."""
    decoded = verify_request_token(request)
    uid = (decoded or {}).get("uid")
    if not uid:
        raise HTTPException(status_code=401, detail="Unauthorized")
    email = (decoded.get("email") or "").lower()
    return SessionUser(
        id=uid,
        email=email,
        display_name=decoded.get("name"),
        is_admin=is_admin_email(email),
    )


def require_admin(user: SessionUser = Depends(get_current_user)) -> SessionUser:
    """FastAPI dependency: the caller when their email is on the admin allow-list."""
    if not user.is_admin:
        logger.warning(f"[admin.gate] denied uid={user.id} email={user.email or '-'}")
        raise HTTPException(status_code=403, detail="Admin only")
    return user
