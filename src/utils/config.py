"""Configuration utility for the GradeUp gatekeeper.

This module provides centralized configuration management with:
- Environment variables as the only source
- Type-safe access to configuration values
"""

import os
from typing import Any


def parse_config_value(value: str) -> str | bool | int | float:
    if value.lower() == "true":
        return True
    elif value.lower() == "false":
        return False
    else:
        # Try to parse as a number
        try:
            return int(value)
        except ValueError:
            try:
                return float(value)
            except ValueError:
                # Return as string
                return value


def get_config_value(key: str, default: Any = None) -> Any:
    """Get a configuration value from environment variables.

    Args:
        key: Configuration key name (e.g., "DATABASE_URL")
        default: Default value if key not found

    Returns:
        Configuration value or default
    """
    env_value = os.environ.get(key)
    if env_value is not None:
        return parse_config_value(env_value)

    return default


def get_config_value_str(key: str, default: str | None = None) -> str | None:
    """
    Get a configuration value from environment variables without type coercion.

    Use this for secrets and identifiers, which must never be parsed as numbers.
    """
    return os.environ.get(key, default)


def require_config_value(key: str) -> str:
    value = os.environ.get(key)
    if not value:
        raise ValueError(f"Environment variable {key} is required")
    return value


def get_gradeup_environment() -> str:
    """Get GradeUp environment from env var."""
    return get_config_value("GRADEUP_ENVIRONMENT", "local")


def get_database_url() -> str:
    """Get the Supabase Postgres connection URL.

    Returns:
        PostgreSQL connection string from DATABASE_URL config

    Raises:
        ValueError: If DATABASE_URL is not configured
    """
    url = get_config_value_str("DATABASE_URL")
    if url:
        return url

    raise ValueError("Database URL not found. Please provide DATABASE_URL environment variable")


def get_supabase_url() -> str:
    """Get the Supabase project URL (used to reach edge functions)."""
    return require_config_value("SUPABASE_URL").rstrip("/")


def get_supabase_service_role_key() -> str | None:
    """Get the Supabase service role key used for internal calls."""
    return get_config_value_str("SUPABASE_SERVICE_ROLE_KEY")


def get_supabase_jwt_secret() -> str | None:
    """Get the secret Supabase signs user access tokens with."""
    return get_config_value_str("SUPABASE_JWT_SECRET")


def get_stattaq_webhook_secret() -> str | None:
    """Get the shared secret for StatTaq webhook signatures.

    Returns:
        The secret, or None when unset or empty (verification is then skipped)
    """
    return get_config_value_str("STATTAQ_WEBHOOK_SECRET") or None


def get_stattaq_client_id() -> str:
    return get_config_value_str("STATTAQ_CLIENT_ID", "") or ""


def get_stattaq_client_secret() -> str:
    return get_config_value_str("STATTAQ_CLIENT_SECRET", "") or ""


def get_stattaq_auth_url() -> str:
    return get_config_value_str("STATTAQ_AUTH_URL") or "https://api.stattaq.com/oauth/authorize"


def get_stattaq_token_url() -> str:
    return get_config_value_str("STATTAQ_TOKEN_URL") or "https://api.stattaq.com/oauth/token"


def get_stattaq_api_url() -> str:
    return (get_config_value_str("STATTAQ_API_URL") or "https://api.stattaq.com/v1").rstrip("/")


def get_stattaq_callback_url() -> str:
    return get_config_value_str("STATTAQ_CALLBACK_URL", "") or ""


def get_frontend_url() -> str:
    """Get frontend URL from config or env.

    Returns:
        Frontend URL (e.g., 'http://localhost:3000' or 'https://gradeup.app')
    """
    return (get_config_value_str("FRONTEND_URL") or "http://localhost:3000").rstrip("/")
