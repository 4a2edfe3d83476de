"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine configuration loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="LEDGERFLOW_",
        extra="ignore",
    )

    # Service
    service_name: str = "ledgerflow"
    log_level: str = "INFO"

    # Loan override table
    database_url: str = "sqlite:///./ledgerflow.db"

    # Ledger
    max_range_years: int = 30  # Ceiling on range expansion

    # Forecast heuristics
    forecast_trailing_months: int = 6
    forecast_weekend_dampening: float = 0.4
    forecast_confidence_floor: float = 0.05
    forecast_confidence_ceiling: float = 0.10
    forecast_seasonal_min: float = 0.85
    forecast_seasonal_max: float = 1.15

    # Insights
    insight_window_months: int = 3
    weak_month_warning_pct: float = -15.0
    weak_month_high_pct: float = -30.0
    slow_payer_warning_days: int = 30
    slow_payer_high_days: int = 60
    expense_spike_warning_pct: float = 25.0
    expense_spike_high_pct: float = 40.0

    # Daily summary
    summary_balance_threshold: float = -150_000.0
    summary_horizon_days: int = 10
    summary_overdue_days: int = 45

    # Executive summary
    executive_overdue_days: int = 30


settings = Settings()
