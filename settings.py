import os

API_PREFIX = "/api/v1"

DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME")

JWT_SECRET = os.getenv("JWT_SECRET", "secret-dev-key")
JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET", "refresh-secret-dev-key")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24))
REFRESH_TOKEN_EXPIRE_DAYS = int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", 7))
BCRYPT_ROUNDS = 10
PASSWORD_RESET_TTL_MINUTES = 10

ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
CLIENT_URL = os.getenv("CLIENT_URL", "*")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_JSON = os.getenv("LOG_JSON", "false").lower() in ("1", "true", "yes")

ORDER_NUMBER_PREFIX = os.getenv("ORDER_NUMBER_PREFIX", "BEY")

# Pricing rules
TAX_RATE = 0.20
FREE_SHIPPING_THRESHOLD = 50
SHIPPING_FEE = 4.99
LOYALTY_POINT_DIVISOR = 10

MAX_REVIEW_IMAGES = 5


def is_production() -> bool:
    return ENVIRONMENT == "production"
