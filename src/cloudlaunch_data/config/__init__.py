"""Configuration management."""

from cloudlaunch_data.config.settings import Settings

__all__ = ["Settings"]
