import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./test.db")
    # Create missing tables on API startup (local development only)
    DB_CREATE_TABLES = bool(data.get("DB_CREATE_TABLES", False))
    API_PREFIX = data.get("API_PREFIX", "/api")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    AUTH_DISABLED = bool(data.get("AUTH_DISABLED", False))
    ENABLE_SENTRY = data.get("ENABLE_SENTRY", 0)
    DSN_SENTRY = data.get("DSN_SENTRY", "")
    SENTRY_ENVIRONMENT = data.get("SENTRY_ENVIRONMENT", "dev")

    # Credit ledger
    # "preserve" keeps available credit unclamped when a limit is lowered below usage,
    # "clamp" forces it back into [0, credit_limit]
    CREDIT_LIMIT_REDUCTION_POLICY = data.get("CREDIT_LIMIT_REDUCTION_POLICY", "preserve")

    # Payments & refunds
    NON_REFUNDABLE_PAYMENT_METHODS = data.get("NON_REFUNDABLE_PAYMENT_METHODS", ["COD"])
    PAYMENT_GATEWAY_BACKEND = data.get("PAYMENT_GATEWAY_BACKEND", "fake")  # fake | http
    PAYMENT_GATEWAY_URL = data.get("PAYMENT_GATEWAY_URL", "http://localhost:9000")
    PAYMENT_GATEWAY_API_KEY = data.get("PAYMENT_GATEWAY_API_KEY", "")
    PAYMENT_GATEWAY_TIMEOUT_SECONDS = float(data.get("PAYMENT_GATEWAY_TIMEOUT_SECONDS", 10.0))

    # Audit trail sink (state transitions are always logged; webhook is optional)
    AUDIT_WEBHOOK_URL = data.get("AUDIT_WEBHOOK_URL", None)

    # Ledger Reconciliation
    RECONCILIATION_ENABLED = bool(data.get("RECONCILIATION_ENABLED", True))
    RECONCILIATION_INTERVAL_SECONDS = data.get("RECONCILIATION_INTERVAL_SECONDS", 86400)  # Daily

    # Pending Refund Reconciliation
    REFUND_RECONCILIATION_ENABLED = bool(data.get("REFUND_RECONCILIATION_ENABLED", True))
    REFUND_RECONCILIATION_INTERVAL_SECONDS = data.get("REFUND_RECONCILIATION_INTERVAL_SECONDS", 300)
    REFUND_PENDING_THRESHOLD_SECONDS = data.get("REFUND_PENDING_THRESHOLD_SECONDS", 600)
