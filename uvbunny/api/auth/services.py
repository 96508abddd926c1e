# uvbunny/api/auth/services.py
import logging
from typing import Dict, Any, Tuple
from firebase_admin import firestore, auth as firebase_auth

from uvbunny.models.user import User
from uvbunny.utils.datetime_utils import DateTimeUtils
from uvbunny.utils.paths import get_user_path


class AuthService:
    """
    Maps a Firebase Authentication identity onto the API. The uid is opaque
    and only used to partition the per-user Firestore tree.
    """
    def __init__(self, db=None):
        self.db = db or firestore.client()

    def verify_id_token(self, id_token: str) -> Dict[str, Any]:
        """Decoded claims of a valid Firebase ID token; raises PermissionError otherwise."""
        try:
            return firebase_auth.verify_id_token(id_token)
        except (ValueError, firebase_auth.InvalidIdTokenError, firebase_auth.ExpiredIdTokenError,
                firebase_auth.RevokedIdTokenError, firebase_auth.UserDisabledError) as e:
            logging.warning(f"Rejected Firebase ID token: {e}")
            raise PermissionError("Invalid or expired ID token")

    def get_or_create_user(self, claims: Dict[str, Any]) -> Tuple[User, bool]:
        """
        Upsert users/{uid}. Creating the document fires the bootstrap function
        that writes the default config.
        """
        uid = claims.get('uid') or claims.get('sub')
        if not uid:
            raise ValueError("ID token claims must contain 'uid'.")

        user_ref = self.db.document(get_user_path(uid))
        doc = user_ref.get()
        now = DateTimeUtils.now()

        if doc.exists:
            user = User.from_dict(uid, doc.to_dict())
            user.last_login_at = now
            user_ref.set(DateTimeUtils.for_firestore({'lastLoginAt': now}), merge=True)
            return user, False

        user = User(
            uid=uid,
            email=claims.get('email'),
            display_name=claims.get('name'),
            created_at=now,
            last_login_at=now
        )
        user_ref.set(DateTimeUtils.for_firestore(user.to_dict()))
        logging.info(f"User document created for {uid}")
        return user, True
