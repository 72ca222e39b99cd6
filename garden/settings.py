from datetime import timedelta

from decouple import Choices, Csv, config

BASE_MODULE = 'garden'

COMPANY_NAME = config('COMPANY_NAME', default='Community Gardens')
SUPPORT_EMAIL = config('SUPPORT_EMAIL', default='support@communitygardens.app')
COMPANY_WEBSITE = config('COMPANY_WEBSITE', default='https://communitygardens.app')

# API Documentation
API_TITLE = config('API_TITLE', default=f'{COMPANY_NAME} API')
API_DESCRIPTION = config('API_DESCRIPTION', default='Account registration, verification and sign in')

HOST = 'http://127.0.0.1'
SECRET_KEY = config('SECRET_KEY', default='secret')
DEBUG = config('DEBUG', default=False, cast=bool)
ENVIRONMENT = config('ENVIRONMENT', default='local', cast=Choices(['local', 'testing', 'staging', 'production']))
IS_LOCAL = ENVIRONMENT == 'local'
IS_PRODUCTION = ENVIRONMENT == 'production'
IS_STAGING = ENVIRONMENT == 'staging'
IS_TESTING = ENVIRONMENT == 'testing'  # Set in tests/conftest.py
IS_DEPLOYED_ENV = IS_PRODUCTION or IS_STAGING

BACKEND_CORS_ORIGINS = config('BACKEND_CORS_ORIGINS', default='http://localhost:3000', cast=Csv())
CORS_ALLOWED_METHODS = config('CORS_ALLOWED_METHODS', default='GET,POST,PUT,PATCH,DELETE,OPTIONS', cast=Csv())
CORS_ALLOWED_HEADERS = config(
    'CORS_ALLOWED_HEADERS',
    default='Accept,Accept-Language,Content-Type,Content-Language,Authorization,X-Requested-With',
    cast=Csv(),
)

# Security Headers Configuration
ENABLE_SECURITY_HEADERS = config('ENABLE_SECURITY_HEADERS', default=True, cast=bool)
# Only enable HSTS in deployed environments to avoid development issues
ENABLE_HSTS = config('ENABLE_HSTS', default=IS_DEPLOYED_ENV, cast=bool)
CSP_POLICY = config(
    'CSP_POLICY',
    default=(
        "default-src 'self'; "
        "img-src 'self' data: https:; "
        "connect-src 'self'; "
        "frame-ancestors 'none'; "
        "base-uri 'self'; "
        "form-action 'self'"
    ),
)

API_PREFIX = ''

ATOMIC_REQUESTS = config('ATOMIC_REQUESTS', default=True, cast=bool)
LOG_LEVEL = config('LOG_LEVEL', 'INFO')

AUTH_SETTINGS = {
    'SESSION_TOKEN_LIFETIME': timedelta(days=7),
    'VERIFICATION_CODE_LIFETIME': timedelta(minutes=10),
    'VERIFICATION_CODE_MAX_ATTEMPTS': 5,
    'TWO_FACTOR_CODE_LIFETIME': timedelta(minutes=5),
    'TWO_FACTOR_CODE_MAX_ATTEMPTS': 3,
    'PASSWORD_MIN_LENGTH': 6,
}
JWT_ISSUER = config('JWT_ISSUER', default='garden-management-system')
JWT_AUDIENCE = config('JWT_AUDIENCE', default='garden-users')

# Accounts start unverified and must confirm their email before signing in
REQUIRE_EMAIL_VERIFICATION = config('REQUIRE_EMAIL_VERIFICATION', default=True, cast=bool)

# Pending verification / 2FA codes
CODE_STORE_BACKEND = config('CODE_STORE_BACKEND', default='memory', cast=Choices(['memory', 'redis']))
CODE_SWEEP_INTERVAL_SECONDS = config('CODE_SWEEP_INTERVAL_SECONDS', default=300, cast=int)
CODE_STORE_KEY_PREFIX = config('CODE_STORE_KEY_PREFIX', default='garden:code')

# Auth endpoint throttling per client ip
AUTH_RATE_LIMIT_ENABLED = config('AUTH_RATE_LIMIT_ENABLED', default=True, cast=bool)
AUTH_RATE_LIMIT_MAX_REQUESTS = config('AUTH_RATE_LIMIT_MAX_REQUESTS', default=20, cast=int)
AUTH_RATE_LIMIT_WINDOW_SECONDS = config('AUTH_RATE_LIMIT_WINDOW_SECONDS', default=900, cast=int)
# memory:// is per process, point at redis:// to share budgets across workers
AUTH_RATE_LIMIT_STORAGE_URI = config('AUTH_RATE_LIMIT_STORAGE_URI', default='memory://')

DATABASE_URL = config('DATABASE_URL', default='sqlite:///./garden.db')
DB_AUTO_CREATE_TABLES = config('DB_AUTO_CREATE_TABLES', default=True, cast=bool)
DB_LOG_STATEMENTS = config('DB_LOG_STATEMENTS', default=False, cast=bool)

# Define boundaries whose models are registered at startup
BOUNDARIES = [
    'core.user',
]

# Support REDIS_URL or individual vars (local)
REDIS_URL = config('REDIS_URL', default=None)
if not REDIS_URL:
    REDIS_DOMAIN = config('REDIS_DOMAIN', default='localhost')
    REDIS_PORT = config('REDIS_PORT', default=6379)
    REDIS_URL = f'redis://{REDIS_DOMAIN}:{REDIS_PORT}'


# AWS delivery
AWS_REGION_NAME = config('AWS_REGION_NAME', default='us-east-1')
AWS_SES_ACCESS_KEY_ID = config('AWS_SES_ACCESS_KEY_ID', default=None)
AWS_SES_SECRET_ACCESS_KEY = config('AWS_SES_SECRET_ACCESS_KEY', default=None)
AWS_SNS_ACCESS_KEY_ID = config('AWS_SNS_ACCESS_KEY_ID', default=None)
AWS_SNS_SECRET_ACCESS_KEY = config('AWS_SNS_SECRET_ACCESS_KEY', default=None)

# Email
EMAIL_FROM_ADDRESS = config('EMAIL_FROM_ADDRESS', default='noreply@communitygardens.app')
# console only logs messages, which is what local development wants
EMAIL_BACKEND = config('EMAIL_BACKEND', default='console', cast=Choices(['console', 'smtp', 'live']))
EMAIL_SMTP_HOST = config('EMAIL_SMTP_HOST', default='localhost')
EMAIL_SMTP_PORT = config('EMAIL_SMTP_PORT', default=1025, cast=int)
EMAIL_SMTP_USER = config('EMAIL_SMTP_USER', default=None)
EMAIL_SMTP_PASSWORD = config('EMAIL_SMTP_PASSWORD', default=None)
EMAIL_SMTP_USE_TLS = config('EMAIL_SMTP_USE_TLS', default=False, cast=bool)

# SMS
SMS_BACKEND = config('SMS_BACKEND', default='console', cast=Choices(['console', 'live']))
SMS_SENDER_ID = config('SMS_SENDER_ID', default='Gardens')

# Sentry
SENTRY_DSN = config('SENTRY_DSN', default=None)
SENTRY_DEFAULT_SAMPLE_RATE = config('SENTRY_DEFAULT_SAMPLE_RATE', default=1.0, cast=float)

# Mocks
USE_MOCK_SENTRY_CLIENT = config('USE_MOCK_SENTRY_CLIENT', default=False, cast=bool)
USE_MOCK_EMAIL_CLIENT = config('USE_MOCK_EMAIL_CLIENT', default=False, cast=bool)
USE_MOCK_SMS_CLIENT = config('USE_MOCK_SMS_CLIENT', default=False, cast=bool)
