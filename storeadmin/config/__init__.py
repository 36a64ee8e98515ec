"""Configuration module for the Store Admin API."""
from .settings import AppConfig, load_settings

__all__ = ["AppConfig", "load_settings"]
