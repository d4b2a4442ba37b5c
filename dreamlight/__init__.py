"""Dreamlight: production-management backend for media and TV projects."""

__version__ = "1.0.0"
