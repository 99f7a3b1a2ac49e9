"""
Utilities for the alumni event report service: formatting, PDF and DOCX
helpers, authentication and the combined API router.
"""
