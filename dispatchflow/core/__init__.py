"""
Core package for DispatchFlow.
"""
from dispatchflow.core.config import settings, get_settings
from dispatchflow.core.celery_app import celery_app

__all__ = ["settings", "get_settings", "celery_app"]
