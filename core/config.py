from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

# ---------------------------------------------------------------------------
# Project paths
# ---------------------------------------------------------------------------

PROJECT_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_DATA_DIR = PROJECT_ROOT / "data"
DEFAULT_LOG_DIR = PROJECT_ROOT / "logs"

# Rows beyond this are dropped on load to bound response/render cost.
MAX_ROWS_PER_DATASET = 5000

DEFAULT_CORS_ORIGINS = ("http://localhost:3000", "http://127.0.0.1:3000")


@dataclass(frozen=True)
class DatasetSpec:
    key: str
    name: str
    source: str
    numeric_fields: List[str] = field(default_factory=list)
    filter_fields: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class Settings:
    db_path: Path = DEFAULT_DATA_DIR / "gym_dashboard.db"
    data_dir: Path = DEFAULT_DATA_DIR
    membership_source: str = str(DEFAULT_DATA_DIR / "gym_membership.csv")
    health_source: str = str(DEFAULT_DATA_DIR / "health_fitness_dataset.csv")
    activity_log_file: Optional[Path] = DEFAULT_LOG_DIR / "activities.log"
    admin_password: str = "admin456"
    bcrypt_rounds: int = 10
    fetch_timeout: float = 15.0
    max_rows: int = MAX_ROWS_PER_DATASET
    cors_origins: Tuple[str, ...] = DEFAULT_CORS_ORIGINS
    port: int = 5000

    @classmethod
    def from_env(cls) -> "Settings":
        data_dir = Path(os.getenv("GYM_DATA_DIR", str(DEFAULT_DATA_DIR))).expanduser()
        activity_log = os.getenv("GYM_ACTIVITY_LOG", str(DEFAULT_LOG_DIR / "activities.log")).strip()
        origins = os.getenv("GYM_CORS_ORIGINS", ",".join(DEFAULT_CORS_ORIGINS))
        return cls(
            db_path=Path(os.getenv("GYM_DB_PATH", str(data_dir / "gym_dashboard.db"))).expanduser(),
            data_dir=data_dir,
            membership_source=os.getenv("GYM_MEMBERSHIP_CSV", str(data_dir / "gym_membership.csv")).strip(),
            health_source=os.getenv("GYM_HEALTH_CSV", str(data_dir / "health_fitness_dataset.csv")).strip(),
            activity_log_file=Path(activity_log).expanduser() if activity_log else None,
            admin_password=os.getenv("GYM_ADMIN_PASSWORD", "admin456"),
            bcrypt_rounds=_env_int("GYM_BCRYPT_ROUNDS", 10),
            fetch_timeout=_env_float("GYM_FETCH_TIMEOUT", 15.0),
            cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
            port=_env_int("PORT", 5000),
        )

    def datasets(self) -> Dict[str, DatasetSpec]:
        """Dataset registry keyed by the short name the API uses."""
        return {
            "gym": DatasetSpec(
                key="gym",
                name="Gym Membership Dataset",
                source=self.membership_source,
                numeric_fields=["visit_per_week", "days_per_week", "avg_time_in_gym"],
                # Both spellings occur in exported membership files.
                filter_fields=["gender", "abonement_type", "abonoment_type"],
            ),
            "health": DatasetSpec(
                key="health",
                name="FitLife Health & Fitness Dataset",
                source=self.health_source,
                numeric_fields=["daily_steps", "calories_burned", "hours_sleep", "avg_heart_rate", "bmi"],
                filter_fields=["gender", "activity_type"],
            ),
        }


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default
