import hashlib
import logging
import time
from supabase import Client
from huddle.core.errors import Unauthenticated, ActionError
from huddle.modules.auth.schemas import SessionResponse
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)

# In-memory cache for get_current_user to reduce Supabase auth calls (e.g. many parallel requests with same token)
_AUTH_USER_CACHE: Dict[str, tuple] = {}
_AUTH_CACHE_TTL_SEC = 60
_AUTH_CACHE_MAX_SIZE = 500


def clear_auth_cache():
    _AUTH_USER_CACHE.clear()


class AuthService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_current_user(self, token: str) -> Dict[str, Any]:
        """Get current user details from Supabase Auth token. Uses short TTL cache to reduce auth API calls."""
        try:
            cache_key = hashlib.sha256(token.encode()).hexdigest()
            now = time.monotonic()
            if cache_key in _AUTH_USER_CACHE:
                user_data, expiry = _AUTH_USER_CACHE[cache_key]
                if now < expiry:
                    return user_data
                del _AUTH_USER_CACHE[cache_key]
            user_response = self.supabase.auth.get_user(jwt=token)
            if not user_response or not user_response.user:
                raise Unauthenticated("Invalid or expired token")
            user_data = self._user_to_dict(user_response.user)
            if len(_AUTH_USER_CACHE) < _AUTH_CACHE_MAX_SIZE:
                _AUTH_USER_CACHE[cache_key] = (user_data, now + _AUTH_CACHE_TTL_SEC)
            return user_data
        except ActionError:
            raise
        except Exception as e:
            error_msg = str(e)
            if "JWT" in error_msg or "expired" in error_msg.lower() or "invalid" in error_msg.lower():
                raise Unauthenticated("Invalid or expired token")
            raise Unauthenticated("Authentication failed")

    def exchange_code_for_session(self, code: str, code_verifier: Optional[str] = None) -> SessionResponse:
        """Exchange the one-time code from the OAuth / email-link return path for a session"""
        params = {"auth_code": code}
        if code_verifier:
            params["code_verifier"] = code_verifier
        try:
            auth_response = self.supabase.auth.exchange_code_for_session(params)
        except Exception as e:
            logger.error(f"Code exchange failed: {e}")
            raise Unauthenticated("Could not complete sign-in")

        if not auth_response or not auth_response.user or not auth_response.session:
            raise Unauthenticated("Could not complete sign-in")

        user = self._user_to_dict(auth_response.user)
        self.ensure_profile(user)
        return SessionResponse(
            access_token=auth_response.session.access_token,
            refresh_token=getattr(auth_response.session, "refresh_token", None),
            user_id=user["id"],
            email=user.get("email") or "",
        )

    def ensure_profile(self, user: Dict[str, Any]) -> None:
        """Create the profile on first sign-in; fill name/avatar from OAuth metadata when missing"""
        metadata = user.get("user_metadata") or {}
        full_name = metadata.get("name") or metadata.get("full_name")
        avatar_url = metadata.get("picture") or metadata.get("avatar_url")
        try:
            result = self.supabase.table("profiles")\
                .select("id, full_name, avatar_url")\
                .eq("id", user["id"])\
                .limit(1)\
                .execute()
            if not result.data:
                self.supabase.table("profiles").insert({
                    "id": user["id"],
                    "email": user.get("email"),
                    "full_name": full_name,
                    "avatar_url": avatar_url,
                }).execute()
                logger.info(f"Created profile for user {user['id']}")
                return
            profile = result.data[0]
            if not profile.get("full_name") or not profile.get("avatar_url"):
                self.supabase.table("profiles")\
                    .update({
                        "full_name": full_name or profile.get("full_name"),
                        "avatar_url": avatar_url or profile.get("avatar_url"),
                    })\
                    .eq("id", user["id"])\
                    .execute()
        except Exception as e:
            # Sign-in still succeeds; the profile can be filled later
            logger.error(f"Error ensuring profile for {user['id']}: {e}")

    def logout(self, token: str) -> bool:
        """Logout user using Supabase Auth"""
        _AUTH_USER_CACHE.pop(hashlib.sha256(token.encode()).hexdigest(), None)
        try:
            # Supabase Auth tokens are stateless JWTs, so logout is mainly client-side
            self.supabase.auth.sign_out()
            return True
        except Exception:
            return False

    @staticmethod
    def _user_to_dict(user) -> Dict[str, Any]:
        return {
            "id": user.id,
            "email": user.email,
            "user_metadata": user.user_metadata or {},
            "app_metadata": user.app_metadata or {},
            "created_at": user.created_at,
            "updated_at": getattr(user, "updated_at", None),
        }
