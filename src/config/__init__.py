"""Configuration management for the encounter tracker."""

from src.config.loader import Config, load_config

__all__ = ["Config", "load_config"]
