"""FastAPI dependency injection providers."""

from fastapi import Depends

from wipecall.config import Settings, get_settings
from wipecall.wcl.source import WCLSource

# Set during lifespan, read by Depends()
_wcl_factory = None


def set_wcl_factory(factory) -> None:
    """Called once during app lifespan startup."""
    global _wcl_factory
    _wcl_factory = factory


def get_wcl_factory():
    """FastAPI dependency -- returns the shared WCL client factory."""
    if _wcl_factory is None:
        raise RuntimeError("WCL factory not initialized")
    return _wcl_factory


def get_source(factory=Depends(get_wcl_factory)) -> WCLSource:
    """FastAPI dependency -- a request-scoped WCL source."""
    return factory.source()


def get_app_settings() -> Settings:
    return get_settings()
