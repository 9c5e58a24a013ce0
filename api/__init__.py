"""
API module for the quote sync system.
Provides FastAPI-based REST API over the QuoteManager.
"""

__all__ = ['app', 'routes', 'models', 'middleware']
