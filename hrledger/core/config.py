from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Tuple

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="HRLEDGER_", env_file=".env", extra="ignore")

    APP_NAME: str = Field("HRLedger", description="Prefix for per-tenant logger names")
    LOG_LEVEL: str = Field("INFO", description="Logging level name")
    LOG_PATH: str = Field("./data/logs", description="Directory for rotating logs and audit trails")
    LOG_TO_CONSOLE: bool = Field(False, description="Mirror tenant logs to stderr")
    LOG_MAX_BYTES: int = 10_000_000
    LOG_BACKUP_COUNT: int = 5
    DATA_DIR: str = Field("./data", description="Root directory of the JSON repositories")
    STRICT_INPUTS: bool = Field(False, description="Clamp negative amounts and reject non-finite ones")
    CURRENCY: str = "KES"

    # PAYE (KRA 2024/2025), annual bands: (inclusive upper bound, marginal rate)
    PAYE_ANNUAL_BANDS: List[Tuple[float,float]] = [
        (288000, 0.10),
        (388000, 0.25),
        (6000000, 0.30),
        (9600000, 0.325),
        (float("inf"), 0.35),
    ]
    PERSONAL_RELIEF_ANNUAL: float = 28800.0

    # NHIF monthly bands: (inclusive upper bound, fixed contribution)
    NHIF_BANDS: List[Tuple[float,int]] = [
        (5999, 150),
        (7999, 300),
        (11999, 400),
        (14999, 500),
        (19999, 600),
        (24999, 750),
        (29999, 850),
        (34999, 900),
        (39999, 950),
        (44999, 1000),
        (49999, 1100),
        (59999, 1200),
        (69999, 1300),
        (79999, 1400),
        (89999, 1500),
        (99999, 1600),
        (float("inf"), 1700),
    ]

    # NSSF (2024): 6% employee share, Tier I up to 7,000, Tier II up to 36,000
    NSSF_RATE: float = 0.06
    NSSF_TIER_1_UPPER: float = 7000.0
    NSSF_TIER_2_UPPER: float = 36000.0

    # Affordable Housing Levy
    HOUSING_LEVY_RATE: float = 0.015

settings = Settings()
