from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    BUSINESS_CLIENT_ID: str = "client_1"

    BOOKING_API_BASE_URL: str | None = None
    SERVICES_PATH: str = "/api/public/client/{client_id}/services"
    STYLISTS_PATH: str = "/api/public/clients/{client_id}/website-staff"
    PAYMENT_INTENT_PATH: str = "/api/bookings/payment-intent"
    BOOKING_CONFIRM_PATH: str = "/api/bookings/confirm"

    PAYMENT_PROVIDER_BASE_URL: str | None = None
    PAYMENT_PROVIDER_SECRET_KEY: str | None = None

    HTTP_TIMEOUT_SECONDS: float = 10.0

    DEFAULT_TIP_PERCENTAGE: int = 0
    DEFAULT_SERVICE_DURATION_MINUTES: int = 60
    PROGRESS_MODE: str = "fixed"  # "fixed" or "effective"


settings = Settings()
