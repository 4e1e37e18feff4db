from pydantic_settings import BaseSettings
from pydantic import ConfigDict


class Settings(BaseSettings):
    DATABASE_URL: str
    LOG_LEVEL: str = "INFO"
    RISK_DAY_TIMEZONE: str = "UTC"

    # drawdown monitor
    ALERT_THRESHOLDS_PCT: list[int] = [50, 70, 90]
    SIGNALS_PAUSED_THRESHOLD_PCT: int = 90
    RECOVERY_MODE_THRESHOLD_PCT: float = 70.0
    RECOVERY_MODE_EXIT_WINNING_DAYS: int = 3
    RECOVERY_MODE_RISK_PCT: float = 0.5
    MONITOR_MAX_WORKERS: int = 1
    # renewed after every account, so it bounds one account rather than the whole cycle
    MONITOR_CYCLE_LEASE_SECONDS: int = 900

    # position sizing
    MIN_POSITION_SIZE: float = 0.01
    DEFAULT_MAX_RISK_PER_TRADE_PCT: float = 2.0

    # notifications
    PUSH_GATEWAY_URL: str = ""
    PUSH_GATEWAY_TOKEN: str = ""
    TELEGRAM_BOT_TOKEN: str = ""
    TELEGRAM_CHAT_ID: str = ""
    NOTIFY_TIMEOUT_SECONDS: float = 8.0

    model_config = ConfigDict(
        env_file=".env",
        extra="ignore"
    )


settings = Settings()
