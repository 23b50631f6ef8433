import os

from dotenv import load_dotenv

load_dotenv()

BANK_API_DOMAIN: str = os.getenv("BANK_API_DOMAIN", "https://bank.local.fr").rstrip("/")
BANK_HTTP_TIMEOUT: float = float(os.getenv("BANK_HTTP_TIMEOUT", "30.0"))

# "truncate": a malformed transaction list stops pagination and keeps earlier pages.
# "fail": a malformed transaction list fails the whole fetch.
MALFORMED_PAGE_POLICY: str = os.getenv("MALFORMED_PAGE_POLICY", "truncate").lower()

SERVICE_NAME: str = os.getenv("SERVICE_NAME", "bankin-test")
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

CORS_ORIGINS: list[str] = os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")
