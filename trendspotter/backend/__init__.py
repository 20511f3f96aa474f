"""
Backend package for the TrendSpotter application.

Contains database models, the product query layer, request schemas,
CSV import helpers, seeding and the FastAPI server.
"""
