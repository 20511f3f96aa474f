"""
Frontend package for the TrendSpotter application.

Contains the HTTP API client, the Streamlit UI and the command-line
launcher.
"""
