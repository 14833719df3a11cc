from __future__ import annotations

from pathlib import Path

import pytest

from core.activity import ActivityLogger
from core.auth import CredentialVerifier
from core.config import Settings
from core.store import CredentialStore

GYM_CSV = """id,first_name,last_name,gender,Age,abonoment_type,visit_per_week,days_per_week,avg_time_in_gym,attend_group_lesson,has_fav_group_lesson,Group_Lesson_Yoga,Group_Lesson_Zumba,fav_drink_lemon,fav_drink_orange,drink_abo,name_personal_trainer,avg_time_check_in
1,Anna,Berg,Female,23,Premium,3,Mon,60,1,1,1,0,1,0,1,Jeff,08:30:00
2,Ben,Cole,Male,31,Standard,2,Tue,45,0,0,0,1,0,1,0,No PT,13:15:00
3,Cara,Diaz,Female,40,Standard,3,Wed,,true,Yes,1,1,1,1,1,Jeff,17:05:00
4,Dan,Eck,Male,52,Premium,5,Thu,90,0,0,0,0,0,0,0,Mia,21:40:00
"""

HEALTH_CSV = """id,Age,gender,hours_sleep,stress_level,intensity,bmi,daily_steps,activity_type
1,23,Female,7.5,4.6,Low,22.4,8000,Running
2,31,Male,6,5.1,High,27.1,12000,Cycling
3,40,Female,8,5.4,medium,31.0,6000,Yoga
5,19,Male,abc,9.9,Low,,4000,Running
"""


@pytest.fixture
def gym_csv(tmp_path: Path) -> Path:
    path = tmp_path / "gym_membership.csv"
    path.write_text(GYM_CSV, encoding="utf-8")
    return path


@pytest.fixture
def health_csv(tmp_path: Path) -> Path:
    path = tmp_path / "health_fitness_dataset.csv"
    path.write_text(HEALTH_CSV, encoding="utf-8")
    return path


@pytest.fixture
def settings(tmp_path: Path, gym_csv: Path, health_csv: Path) -> Settings:
    return Settings(
        db_path=tmp_path / "db" / "gym_dashboard.db",
        data_dir=tmp_path,
        membership_source=str(gym_csv),
        health_source=str(health_csv),
        activity_log_file=tmp_path / "logs" / "activities.log",
        admin_password="admin456",
        bcrypt_rounds=4,
        fetch_timeout=2.0,
    )


@pytest.fixture
def store(settings: Settings) -> CredentialStore:
    s = CredentialStore(settings.db_path)
    s.init_schema()
    return s


@pytest.fixture
def activity(store: CredentialStore, settings: Settings) -> ActivityLogger:
    return ActivityLogger(store, settings.activity_log_file)


@pytest.fixture
def verifier(store: CredentialStore, activity: ActivityLogger) -> CredentialVerifier:
    return CredentialVerifier(store, activity)
