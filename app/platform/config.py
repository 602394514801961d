from pathlib import Path
from typing import Literal, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── App ─────────────────────────────────────
    APP_NAME: str = "Referral Waitlist"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    LOG_FILE: str = "waitlist.log"

    # ── Contact directory (Loops) ───────────────
    LOOPS_API_URL: str = "https://app.loops.so/api/v1"
    LOOPS_API_KEY: str = ""
    LOOPS_TRANSACTIONAL_ID: str = ""
    LOOPS_BADGE_TRANSACTIONAL_ID: str = ""
    LOOPS_TIMEOUT: Optional[float] = 10.0

    # ── Referrals ───────────────────────────────
    BASE_URL: str = "http://localhost:3000"
    REFERRER_LOOKUP: Literal["lookup_key", "scan"] = "lookup_key"
    REFERRER_SCAN_MAX_PAGES: int = 5
    REFERRER_SCAN_PAGE_SIZE: int = 50

    class Config:
        env_file = str(Path(__file__).parent.parent.parent / ".env")
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"
        env_parse_none_str = "None"


settings = Settings()
