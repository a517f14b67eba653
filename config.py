import os
import sys

from dotenv import load_dotenv

from enums.runtime_environment import RuntimeEnvironment

# Load .env but don't override existing environment variables
# This allows test scripts to set RUNTIME_ENVIRONMENT=TEST before import
load_dotenv(".env", override=False)

# Parse RUNTIME_ENVIRONMENT with clear error message on misconfiguration
try:
    RUNTIME_ENVIRONMENT = RuntimeEnvironment(os.environ.get("RUNTIME_ENVIRONMENT", "DEV"))
except ValueError as e:
    valid_values = [env.value for env in RuntimeEnvironment]
    print(f"\n ERROR: Invalid RUNTIME_ENVIRONMENT configuration\n", file=sys.stderr)
    print(f"Reason: {e}", file=sys.stderr)
    print(f"Valid values: {', '.join(valid_values)}", file=sys.stderr)
    print(f"\nAdd to .env: RUNTIME_ENVIRONMENT={valid_values[0]}\n", file=sys.stderr)
    sys.exit(1)

# Database
DB_URL = os.environ.get("DB_URL", "sqlite+aiosqlite:///data/pakety.db")

# HTTP server
WEBAPP_HOST = os.environ.get("WEBAPP_HOST", "0.0.0.0")
WEBAPP_PORT = int(os.environ.get("WEBAPP_PORT", "5000"))

# Admin endpoints are open when no token is configured (DEV only)
ADMIN_API_TOKEN = os.environ.get("ADMIN_API_TOKEN", "")

_cors_origins_str = os.environ.get("CORS_ALLOWED_ORIGINS", "")
CORS_ALLOWED_ORIGINS = [origin.strip() for origin in _cors_origins_str.split(",") if origin.strip()]

# Cart API client (used by the client-side cart store)
API_BASE_URL = os.environ.get("API_BASE_URL", "http://localhost:5000")

try:
    API_TIMEOUT_SECONDS = float(os.environ.get("API_TIMEOUT_SECONDS", "10"))
    if API_TIMEOUT_SECONDS <= 0:
        raise ValueError("API_TIMEOUT_SECONDS must be positive")
except ValueError as e:
    print(f"\n ERROR: Invalid API_TIMEOUT_SECONDS configuration\n", file=sys.stderr)
    print(f"Reason: {e}", file=sys.stderr)
    print(f"Current value: {os.environ.get('API_TIMEOUT_SECONDS', '(not set)')}\n", file=sys.stderr)
    sys.exit(1)

# Delivery fee used when the "delivery_fee" setting is missing or unparseable
try:
    DEFAULT_DELIVERY_FEE = int(os.environ.get("DEFAULT_DELIVERY_FEE", "3500"))
    if DEFAULT_DELIVERY_FEE < 0:
        raise ValueError("DEFAULT_DELIVERY_FEE must not be negative")
except ValueError as e:
    print(f"\n ERROR: Invalid DEFAULT_DELIVERY_FEE configuration\n", file=sys.stderr)
    print(f"Reason: {e}", file=sys.stderr)
    print(f"Current value: {os.environ.get('DEFAULT_DELIVERY_FEE', '(not set)')}\n", file=sys.stderr)
    sys.exit(1)

# Logging
LOG_LEVEL = os.environ.get("LOG_LEVEL", "DEBUG" if RUNTIME_ENVIRONMENT == RuntimeEnvironment.DEV else "INFO")
LOG_RETENTION_DAYS = int(os.environ.get("LOG_RETENTION_DAYS", "7"))
LOG_MASK_SECRETS = os.environ.get("LOG_MASK_SECRETS", "true") == "true"  # Default: enabled

# Language of user-facing messages ("ar" or "en")
STORE_LANGUAGE = os.environ.get("STORE_LANGUAGE", "ar")
