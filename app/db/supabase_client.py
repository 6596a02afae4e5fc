"""Supabase client construction."""

from supabase import Client, create_client

from app.core.config import Settings


def create_supabase(settings: Settings) -> Client:
    """
    Build a Supabase client from settings.

    Called once by the application lifespan; the instance is stored on
    ``app.state`` and handed to the gateway functions explicitly.

    Returns:
        Supabase client configured with the service role key

    Raises:
        RuntimeError: If client initialization fails
    """
    try:
        return create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)
    except Exception as e:
        raise RuntimeError(f"Failed to initialize Supabase client: {e}") from e
