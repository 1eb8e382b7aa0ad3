"""
Firebase-backed identity supplier.
Initializes the Firebase Admin SDK once and resolves the signed-in user from a
Firebase ID token.
"""
import json
import os
import logging
from typing import Optional
import firebase_admin
from firebase_admin import credentials, auth
from expense_ai.config import settings

logger = logging.getLogger(__name__)


# Global Firebase app instance
_firebase_app: Optional[firebase_admin.App] = None


def initialize_firebase() -> None:
    """
    Initialize Firebase Admin SDK.

    Supports two methods for credentials:
    1. FIREBASE_CREDENTIALS_JSON as file path
    2. FIREBASE_CREDENTIALS_JSON as JSON string

    If neither is provided, uses default credentials (for local dev with gcloud).
    """
    global _firebase_app

    if _firebase_app is not None:
        return

    if not settings.firebase_project_id:
        raise ValueError("FIREBASE_PROJECT_ID must be set")

    if settings.firebase_credentials_json:
        credential_path = os.path.expanduser(settings.firebase_credentials_json)
        if os.path.exists(credential_path):
            cred = credentials.Certificate(credential_path)
            logger.info(f"Loaded Firebase credentials from file: {credential_path}")
        else:
            try:
                cred = credentials.Certificate(json.loads(settings.firebase_credentials_json))
                logger.info("Loaded Firebase credentials from JSON string")
            except json.JSONDecodeError:
                raise ValueError(
                    "FIREBASE_CREDENTIALS_JSON must be a valid file path or JSON string"
                )
    else:
        cred = credentials.ApplicationDefault()

    _firebase_app = firebase_admin.initialize_app(
        cred,
        {"projectId": settings.firebase_project_id}
    )


def verify_firebase_token(token: str) -> dict:
    """
    Verify Firebase ID token and return decoded token claims.

    Raises:
        ValueError: If token is invalid, expired, or revoked
    """
    if _firebase_app is None:
        raise RuntimeError("Firebase Admin SDK not initialized. Call initialize_firebase() first.")

    try:
        return auth.verify_id_token(token)
    except ValueError:
        raise
    except Exception as e:
        raise ValueError(f"Token verification failed: {str(e)}")


class FirebaseIdentity:
    """
    Identity supplier holding the uid of the last verified Firebase ID token.

    A failed verification signs the user out rather than keeping a stale uid,
    so remote config access falls back to the local cache.
    """

    def __init__(self):
        self._uid: Optional[str] = None

    def current_user_id(self) -> Optional[str]:
        return self._uid

    def sign_in_with_token(self, token: str) -> Optional[str]:
        """Verify the token and adopt its uid. Returns the uid or None."""
        try:
            claims = verify_firebase_token(token)
        except ValueError as e:
            logger.warning(f"Firebase sign-in rejected: {e}")
            self._uid = None
            return None
        self._uid = claims.get("uid")
        return self._uid

    def sign_out(self) -> None:
        self._uid = None
