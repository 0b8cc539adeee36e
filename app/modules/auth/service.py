import hashlib
import logging
import time
from datetime import datetime, timezone
from supabase import Client
from app.modules.auth.schemas import LoginRequest, RegisterRequest, TokenResponse, RegisterResponse
from app.config.settings import settings
from fastapi import HTTPException
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)

# In-memory cache for get_current_user to reduce Supabase auth calls (e.g. many parallel requests with same token)
_AUTH_USER_CACHE: Dict[str, tuple] = {}


def default_full_name(email: str, full_name: Optional[str] = None) -> str:
    """Profiles without a name fall back to the local part of the email"""
    if full_name and full_name.strip():
        return full_name.strip()
    return (email or "").split("@")[0]


def clear_auth_cache():
    _AUTH_USER_CACHE.clear()


def _evict_expired(now: float):
    for key in [k for k, (_, expiry) in _AUTH_USER_CACHE.items() if expiry <= now]:
        del _AUTH_USER_CACHE[key]


class AuthService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def upsert_profile(self, user_id: str, email: str, full_name: Optional[str] = None,
                       avatar_url: Optional[str] = None) -> Dict[str, Any]:
        """Create or refresh the public users row for an auth user"""
        result = self.supabase.table("users").upsert({
            "id": user_id,
            "email": email,
            "full_name": default_full_name(email, full_name),
            "avatar_url": avatar_url,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }).execute()
        if not result.data:
            raise HTTPException(status_code=500, detail="Failed to save user profile")
        return result.data[0]

    def register(self, register_data: RegisterRequest) -> RegisterResponse:
        """Register a new user using Supabase Auth and create their profile"""
        try:
            full_name = default_full_name(register_data.email, register_data.full_name)
            auth_response = self.supabase.auth.sign_up({
                "email": register_data.email,
                "password": register_data.password,
                "options": {
                    "data": {"full_name": full_name}
                }
            })

            if not auth_response.user:
                raise HTTPException(status_code=400, detail="Failed to register user")

            email = auth_response.user.email or register_data.email
            self.upsert_profile(auth_response.user.id, email, full_name)
            logger.info(f"Registered user {auth_response.user.id}")

            return RegisterResponse(
                user_id=auth_response.user.id,
                email=email,
                full_name=full_name,
                message="User registered successfully"
            )
        except HTTPException:
            raise
        except Exception as e:
            error_message = str(e)
            if "already registered" in error_message.lower() or "already exists" in error_message.lower():
                raise HTTPException(status_code=400, detail="User already exists")
            logger.error(f"Registration failed: {error_message}")
            raise HTTPException(status_code=500, detail=f"Registration failed: {error_message}")

    def login(self, login_data: LoginRequest) -> TokenResponse:
        """Authenticate user using Supabase Auth"""
        try:
            auth_response = self.supabase.auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password
            })

            if not auth_response.user or not auth_response.session:
                raise HTTPException(status_code=401, detail="Invalid email or password")

            return TokenResponse(
                access_token=auth_response.session.access_token,
                token_type="bearer",
                user_id=auth_response.user.id,
                email=auth_response.user.email or login_data.email
            )
        except HTTPException:
            raise
        except Exception as e:
            error_message = str(e)
            if "invalid" in error_message.lower() or "credentials" in error_message.lower():
                raise HTTPException(status_code=401, detail="Invalid email or password")
            raise HTTPException(status_code=500, detail=f"Login failed: {error_message}")

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
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            user = user_response.user
            user_data = {
                "id": user.id,
                "email": user.email,
                "user_metadata": user.user_metadata or {},
            }
            if len(_AUTH_USER_CACHE) >= settings.auth_cache_max_size:
                _evict_expired(now)
            if len(_AUTH_USER_CACHE) < settings.auth_cache_max_size:
                _AUTH_USER_CACHE[cache_key] = (user_data, now + settings.auth_cache_ttl_sec)
            return user_data
        except HTTPException:
            raise
        except Exception as e:
            error_msg = str(e)
            if "JWT" in error_msg or "expired" in error_msg.lower() or "invalid" in error_msg.lower():
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            raise HTTPException(status_code=401, detail="Authentication failed")

    def logout(self, token: str) -> bool:
        """Logout user using Supabase Auth"""
        _AUTH_USER_CACHE.pop(hashlib.sha256(token.encode()).hexdigest(), None)
        try:
            # Tokens are stateless JWTs; they stay valid until they expire
            self.supabase.auth.sign_out()
            return True
        except Exception as e:
            logger.warning(f"Sign out failed: {e}")
            return False
