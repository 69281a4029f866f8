"""Built-in defaults for local-postgresql."""

DEFAULT_IMAGE = "postgres:16"
POSTGRESQL_PORT = 5432
DEFAULT_STARTUP_TIMEOUT = 60.0
READINESS_POLL_INTERVAL = 1.0
DEFAULT_DRIVER = "psycopg2"
NOT_CONFIGURED = "[not configured]"
CONTAINER_SCRIPT_DIR = "/tmp"
DEFAULT_CONFIG_FILE = ".local-postgresql.yml"
