"""lucidsearch.config

Configuration subsystem for the LucidSearch pipeline.

This package provides structured access to configuration loaded from a YAML
file. It exposes validated, documented accessors rather than raw
configuration dictionaries.

Modules
-------
global_config
    Global configuration loader and cached accessors.
"""
from .global_config import GlobalConfig

__all__ = ["GlobalConfig"]
