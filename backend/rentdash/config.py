"""
Configuration settings for the Rent Collection Dashboard.
"""
from pathlib import Path

from pydantic_settings import BaseSettings
from functools import lru_cache


DEFAULT_STORAGE_DIR = Path(__file__).parent / "db" / "data"


class Settings(BaseSettings):
    # Persistence (single JSON blob holding the latest parsed workbook)
    storage_dir: str = str(DEFAULT_STORAGE_DIR)
    report_blob_name: str = "rent-dashboard.json"

    # Shared secret for triggering the weekly report (empty = no check)
    report_secret: str = ""

    # Resend email API
    resend_api_key: str = ""
    resend_api_url: str = "https://api.resend.com/emails"
    report_email_to: str = ""
    report_email_from: str = "MPIRE Reports <reports@resend.dev>"

    # Frontend origin allowed by CORS (Netlify/Vercel URL in production)
    frontend_url: str = ""

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
