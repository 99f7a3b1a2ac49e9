"""
Configuration settings for the alumni event report service
"""
import os
from typing import Dict, Any
from dotenv import load_dotenv

# Load environment variables from .env or environment.env file
env_file = '.env' if os.path.exists('.env') else 'environment.env'
load_dotenv(env_file, override=False)  # existing env vars take precedence


def _split_csv(value: str):
    return [item.strip().lower() for item in value.split(',') if item.strip()]


# Institution branding printed on every report
INSTITUTION_CONFIG = {
    'name': os.getenv('INSTITUTION_NAME', 'INSTITUTION NAME'),
    'footer_name': os.getenv('INSTITUTION_FOOTER_NAME', 'Institution Name'),
    'portal_name': os.getenv('PORTAL_NAME', 'Alumni Management Portal'),
    'report_title': 'ALUMNI EVENT REPORT',
}

# Backend-as-a-service (PostgREST style) API holding events, attendees and reports
API_CONFIG = {
    'base_url': os.getenv('ALUMNI_API_URL', 'http://localhost:54321').rstrip('/'),
    'api_key': os.getenv('ALUMNI_API_KEY', ''),
    'service_token': os.getenv('ALUMNI_SERVICE_TOKEN', ''),
    'timeout': float(os.getenv('ALUMNI_API_TIMEOUT', '30')),
}

# Where generated report records are appended: 'rest' or 'sql'
REPORT_STORE_CONFIG = {
    'backend': os.getenv('REPORT_STORE_BACKEND', 'rest').lower(),
    'table': os.getenv('REPORT_STORE_TABLE', 'event_report_data'),
}

# SQL Server settings, only used by the 'sql' report store
DATABASE_CONFIG = {
    'server': os.getenv('DB_SERVER', 'localhost'),
    'port': os.getenv('DB_PORT', '1433'),
    'database': os.getenv('DB_NAME', 'alumni'),
    'driver': os.getenv('DB_DRIVER', 'ODBC Driver 18 for SQL Server'),
    'username': os.getenv('DB_USERNAME', ''),
    'password': os.getenv('DB_PASSWORD', ''),
    'encrypt': os.getenv('DB_ENCRYPT', 'yes'),
    'trust_server_certificate': os.getenv('DB_TRUST_SERVER_CERTIFICATE', 'yes'),
    'connect_timeout': int(os.getenv('DB_CONNECT_TIMEOUT', '30000')),
}

# Image fetching and re-encoding
IMAGE_CONFIG = {
    'timeout': float(os.getenv('IMAGE_FETCH_TIMEOUT', '20')),
    'jpeg_quality': int(os.getenv('IMAGE_JPEG_QUALITY', '80')),
    'max_bytes': int(os.getenv('IMAGE_MAX_BYTES', str(15 * 1024 * 1024))),
    # Empty list means any host may serve images
    'allowed_hosts': _split_csv(os.getenv('IMAGE_ALLOWED_HOSTS', '')),
}

# JWT validation; tokens are issued by the authentication provider
AUTH_CONFIG = {
    'jwt_secret': os.getenv('JWT_SECRET', 'change-me'),
    'jwt_algorithm': os.getenv('JWT_ALGORITHM', 'HS256'),
    'report_roles': _split_csv(os.getenv('REPORT_ROLES', 'director,hod')),
}

# File Paths
FILE_PATHS = {
    'fonts': os.getenv('PDF_FONTS_DIR', 'fonts'),
}

LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()


def get_database_connection_string() -> str:
    """Build the ODBC connection string for the SQL report store."""
    config = DATABASE_CONFIG
    conn_parts = [
        f"DRIVER={{{config['driver']}}};",
        f"SERVER={config['server']},{config['port']};",
        f"DATABASE={config['database']};",
        f"UID={config['username']};",
        f"PWD={config['password']};",
        f"Encrypt={config['encrypt']};",
        f"TrustServerCertificate={config['trust_server_certificate']};",
        # "Connect Timeout" is in seconds
        f"Connect Timeout={config['connect_timeout'] // 1000};",
    ]
    return ''.join(conn_parts)


def get_institution_config() -> Dict[str, Any]:
    """Return a copy of the institution branding settings"""
    return dict(INSTITUTION_CONFIG)
