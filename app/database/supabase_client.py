from supabase import create_client, Client
from supabase.lib.client_options import ClientOptions
from app.config import settings


def _server_options() -> ClientOptions:
    # The API never holds a user session of its own; each request brings its token
    return ClientOptions(
        postgrest_client_timeout=settings.supabase_timeout_sec,
        auto_refresh_token=False,
        persist_session=False,
    )


class SupabaseClient:
    _client: Client = None
    _admin_client: Client = None

    @staticmethod
    def is_configured() -> bool:
        return bool(settings.supabase_url and settings.supabase_key)

    @classmethod
    def get_client(cls) -> Client:
        if cls._client is None:
            cls._client = create_client(settings.supabase_url, settings.supabase_key, options=_server_options())
        return cls._client

    @classmethod
    def get_admin_client(cls) -> Client:
        """Client with the service_role key, needed to create confirmed auth users when seeding."""
        if not settings.supabase_service_role_key:
            raise RuntimeError("SUPABASE_SERVICE_ROLE_KEY is not set")
        if cls._admin_client is None:
            cls._admin_client = create_client(
                settings.supabase_url, settings.supabase_service_role_key, options=_server_options()
            )
        return cls._admin_client


def get_supabase() -> Client:
    return SupabaseClient.get_client()
