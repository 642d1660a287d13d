from pydantic_settings import BaseSettings
from typing import List
import os
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseSettings):
    # App Settings
    APP_NAME: str = os.getenv("APP_NAME", "SalonBooking")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # MongoDB Settings
    MONGO_URI: str = os.getenv("MONGO_URI", "mongodb://localhost:27017")
    DB_NAME: str = os.getenv("DB_NAME", "salon_booking_db")

    # CORS
    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",  # Web frontend
        "http://localhost:4200",  # Admin panel
    ]

    # Email settings
    EMAIL_HOST: str = os.getenv("EMAIL_HOST", "smtp.gmail.com")
    EMAIL_PORT: int = int(os.getenv("EMAIL_PORT", "587"))
    EMAIL_USERNAME: str = os.getenv("EMAIL_USERNAME", "")
    EMAIL_PASSWORD: str = os.getenv("EMAIL_PASSWORD", "")
    EMAIL_FROM: str = os.getenv("EMAIL_FROM", "")
    EMAIL_TIMEOUT: int = int(os.getenv("EMAIL_TIMEOUT", "20"))

    # Shop details printed on invoices and reports
    SHOP_NAME: str = os.getenv("SHOP_NAME", "My Salon")
    SHOP_ADDRESS: str = os.getenv("SHOP_ADDRESS", "Salon address")
    SHOP_TAX_ID: str = os.getenv("SHOP_TAX_ID", "Tax ID: 9999999999")

    # Bank account shown to clients paying by transfer
    BANK_NAME: str = os.getenv("BANK_NAME", "Banco Pichincha")
    BANK_ACCOUNT_TYPE: str = os.getenv("BANK_ACCOUNT_TYPE", "Checking account")
    BANK_ACCOUNT_NUMBER: str = os.getenv("BANK_ACCOUNT_NUMBER", "0000000000")
    BANK_ACCOUNT_HOLDER: str = os.getenv("BANK_ACCOUNT_HOLDER", "Company name")

    # Admin notifications
    ADMIN_EMAIL: str = os.getenv("ADMIN_EMAIL", "")
    ADMIN_CONFIRM_URL_BASE: str = os.getenv(
        "ADMIN_CONFIRM_URL_BASE", "http://localhost:4200/admin/payments/confirm"
    )

    # Reports are bucketed in this time zone
    REPORTS_TIMEZONE: str = os.getenv("REPORTS_TIMEZONE", "America/Guayaquil")

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
