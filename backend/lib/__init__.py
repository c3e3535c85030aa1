"""Backend utilities"""
from .supabase_client import get_supabase_client, supabase_configured
from .logger import setup_logging, get_logger

__all__ = ["get_supabase_client", "supabase_configured", "setup_logging", "get_logger"]
