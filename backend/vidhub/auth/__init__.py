# vidhub/auth/__init__.py
"""
Authentication modules for the video platform.

This package contains:
- identity.py: immutable authenticated-account context handed to route handlers
"""
from vidhub.auth.identity import AuthContext

__all__ = ["AuthContext"]
