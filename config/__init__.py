"""
Configuration package for the alumni event report service
"""
from .settings import (
    INSTITUTION_CONFIG,
    API_CONFIG,
    REPORT_STORE_CONFIG,
    DATABASE_CONFIG,
    IMAGE_CONFIG,
    AUTH_CONFIG,
    FILE_PATHS,
    LOG_LEVEL,
    get_database_connection_string,
    get_institution_config
)

__all__ = [
    'INSTITUTION_CONFIG',
    'API_CONFIG',
    'REPORT_STORE_CONFIG',
    'DATABASE_CONFIG',
    'IMAGE_CONFIG',
    'AUTH_CONFIG',
    'FILE_PATHS',
    'LOG_LEVEL',
    'get_database_connection_string',
    'get_institution_config'
]
