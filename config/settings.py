"""
config/settings.py
──────────────────
Application configuration loaded from environment variables.
"""
import os
from dataclasses import dataclass


@dataclass
class Settings:
    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Key-value persistence (SQLite path, ":memory:" for throwaway sessions)
    DATABASE_URL: str = os.getenv("DATABASE_URL", "aethergrid.db")

    # Telemetry simulation
    TELEMETRY_CAPACITY: int = int(os.getenv("TELEMETRY_CAPACITY", "100"))
    TICK_INTERVAL_S: float = float(os.getenv("TICK_INTERVAL_S", "2.0"))

    # Site coordinates (Grid Sector 7) and weather feed
    SITE_LAT: float = float(os.getenv("SITE_LAT", "54.321"))
    SITE_LNG: float = float(os.getenv("SITE_LNG", "-2.145"))
    WEATHER_URL: str = os.getenv("WEATHER_URL", "https://api.open-meteo.com/v1/forecast")
    WEATHER_REFRESH_S: float = float(os.getenv("WEATHER_REFRESH_S", "600"))
    WEATHER_TIMEOUT_S: float = float(os.getenv("WEATHER_TIMEOUT_S", "5.0"))

    # Reasoning backend (empty key → simulation path)
    GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", os.getenv("API_KEY", ""))
    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
    GEMINI_BASE_URL: str = os.getenv(
        "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
    )
    REASONING_TIMEOUT_S: float = float(os.getenv("REASONING_TIMEOUT_S", "30.0"))
    REASONING_TEMPERATURE: float = float(os.getenv("REASONING_TEMPERATURE", "0.2"))

    # Agent loop
    AGENT_MAX_TURNS: int = int(os.getenv("AGENT_MAX_TURNS", "5"))
    AGENT_DEADLINE_S: float = float(os.getenv("AGENT_DEADLINE_S", "120.0"))
    TOOL_LATENCY_S: float = float(os.getenv("TOOL_LATENCY_S", "0.0"))

    # Solar financials ($/kWh)
    ELECTRICITY_RATE: float = float(os.getenv("ELECTRICITY_RATE", "0.15"))


settings = Settings()
