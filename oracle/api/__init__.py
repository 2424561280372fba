"""
API routers package.
"""
from oracle.api import health, sessions, interviews

__all__ = ["health", "sessions", "interviews"]
