"""
TrendSpotter full-stack application package.

This package contains a small product-discovery application for AI
tools.  It includes the backend persistence and query layer, a FastAPI
HTTP server, an HTTP client and a Streamlit frontend.
"""

__version__ = "0.1.0"
