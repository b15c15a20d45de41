# carwash/config.py

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./carwash.db")
DB_ECHO = os.getenv("DB_ECHO", "false").lower() == "true"

# Wall-clock zone used for working hours and for naive timestamps in the DB
BUSINESS_TIMEZONE = os.getenv("BUSINESS_TIMEZONE", "America/Sao_Paulo")

# Upper bound for a reservation transaction waiting on locks or commit
RESERVATION_TIMEOUT_SECONDS = float(os.getenv("RESERVATION_TIMEOUT_SECONDS", "5"))

SLOT_STEP_MINUTES = int(os.getenv("SLOT_STEP_MINUTES", "30"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
