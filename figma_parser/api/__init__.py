"""
API Module

FastAPI HTTP shell for the parser service.
"""

from .server import create_app

__all__ = ['create_app']
