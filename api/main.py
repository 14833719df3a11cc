from __future__ import annotations

import logging
import math
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import List, Optional

import numpy as np
import pandas as pd
from fastapi import FastAPI, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.schemas import (
    ActivityLogModel,
    CheckAuthResponse,
    DashboardFiltersModel,
    DatasetInfoModel,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    UsernameRequest,
)
from core.activity import ActivityLogger
from core.auth import GENERIC_FAILURE, CredentialVerifier
from core.config import Settings
from core.data import load_dataset, load_health_rows, load_membership_rows
from core.errors import FetchError, ParseError, ValidationError
from core.filters import ALL, normalize_filters
from core.metrics_dashboard import compute_dashboard
from core.metrics_member import compute_member_profile
from core.metrics_members import compute_members_visualization
from core.metrics_preferences import compute_preferences
from core.metrics_trainers import compute_trainers
from core.store import CredentialStore

logger = logging.getLogger(__name__)

ACTIVITY_LOG_LIMIT = 50


def _json(data: object, status_code: int = 200) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        ),
    )


def _error(exc: Exception, status_code: int = 500) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


def _require_credentials(body: Optional[LoginRequest]) -> LoginRequest:
    if body is None or not body.username or not body.password:
        raise ValidationError("Username and password are required")
    return body


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store = CredentialStore(settings.db_path)
        store.init_schema()
        activity = ActivityLogger(store, settings.activity_log_file)
        app.state.settings = settings
        app.state.store = store
        app.state.activity = activity
        app.state.verifier = CredentialVerifier(store, activity)
        if store.count_users() == 0:
            logger.warning("No users found. Run: python -m core.seed")
        logger.info("Database location: %s", settings.db_path)
        yield
        logger.info("Shutting down gym dashboard API")

    app = FastAPI(title="Gym Dashboard API", version="0.1.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ---------------- auth ----------------
    @app.post("/api/login", response_model=LoginResponse)
    def login(request: Request, body: Optional[LoginRequest] = None):
        try:
            creds = _require_credentials(body)
        except ValidationError as exc:
            return JSONResponse(status_code=400, content={"success": False, "message": str(exc)})
        try:
            result = request.app.state.verifier.verify(creds.username, creds.password)
            if not result.ok:
                return JSONResponse(status_code=401, content={"success": False, "message": GENERIC_FAILURE})
            return {"success": True, "message": result.message, "user": result.record.public()}
        except Exception:
            logger.exception("login failed")
            return JSONResponse(status_code=500, content={"success": False, "message": "Server error"})

    @app.post("/api/check-auth", response_model=CheckAuthResponse, response_model_exclude_none=True)
    def check_auth(request: Request, body: Optional[UsernameRequest] = None):
        try:
            username = body.username if body else None
            if not username:
                return {"authenticated": False}
            record = request.app.state.store.get_user(username)
            if record is None:
                return {"authenticated": False}
            return {"authenticated": True, "username": record.username}
        except Exception:
            logger.exception("check_auth failed")
            return JSONResponse(status_code=500, content={"authenticated": False})

    @app.post("/api/logout", response_model=MessageResponse)
    def logout(request: Request, body: Optional[UsernameRequest] = None):
        try:
            request.app.state.activity.log(body.username if body else None, "Logged out")
            return {"success": True, "message": "Logged out successfully"}
        except Exception:
            logger.exception("logout failed")
            return JSONResponse(status_code=500, content={"success": False, "message": "Server error"})

    @app.get("/api/activity-logs", response_model=List[ActivityLogModel])
    def activity_logs(request: Request):
        try:
            entries = request.app.state.activity.recent(ACTIVITY_LOG_LIMIT)
            return _json([asdict(e) for e in entries])
        except Exception:
            logger.exception("activity_logs failed")
            return JSONResponse(status_code=500, content={"error": "Failed to fetch logs"})

    @app.get("/api/health")
    def health():
        return {"status": "Server is running"}

    # ---------------- datasets ----------------
    @app.get("/api/datasets", response_model=List[DatasetInfoModel])
    def datasets(request: Request):
        registry = request.app.state.settings.datasets()
        return [
            {"key": s.key, "name": s.name, "numeric_fields": s.numeric_fields, "filter_fields": s.filter_fields}
            for s in registry.values()
        ]

    @app.post("/api/datasets/{key}/summary")
    def dataset_summary(key: str, request: Request, filters: Optional[DashboardFiltersModel] = None):
        registry = request.app.state.settings.datasets()
        spec = registry.get(key)
        if spec is None:
            return JSONResponse(status_code=404, content={"error": f"Unknown dataset: {key}", "type": "NotFound"})
        try:
            dataset = load_dataset(spec, request.app.state.settings)
            raw = (filters or DashboardFiltersModel()).model_dump()
            f = normalize_filters(raw, filter_fields=dataset.filter_fields, numeric_fields=dataset.numeric_fields)
            return _json(compute_dashboard(f, dataset))
        except (FetchError, ParseError) as exc:
            logger.warning("dataset_summary %s: %s", key, exc)
            return _error(exc, 502)
        except Exception as exc:
            logger.exception("dataset_summary failed")
            return _error(exc)

    @app.get("/api/members/visualization")
    def members_visualization(request: Request):
        settings_: Settings = request.app.state.settings
        try:
            gym_rows = load_membership_rows(settings_)
            health_rows = load_health_rows(settings_)
            return _json(compute_members_visualization(gym_rows, health_rows))
        except (FetchError, ParseError) as exc:
            logger.warning("members_visualization: %s", exc)
            return _error(exc, 502)
        except Exception as exc:
            logger.exception("members_visualization failed")
            return _error(exc)

    @app.get("/api/members/{member_id}")
    def member_profile(member_id: str, request: Request):
        settings_: Settings = request.app.state.settings
        try:
            gym_rows = load_membership_rows(settings_)
            health_rows = load_health_rows(settings_)
            profile = compute_member_profile(member_id, gym_rows, health_rows)
            if profile is None:
                return JSONResponse(status_code=404, content={"error": "User not found", "type": "NotFound"})
            return _json(profile)
        except (FetchError, ParseError) as exc:
            logger.warning("member_profile %s: %s", member_id, exc)
            return _error(exc, 502)
        except Exception as exc:
            logger.exception("member_profile failed")
            return _error(exc)

    @app.get("/api/preferences")
    def preferences(request: Request, membership: str = Query(default=ALL)):
        try:
            rows = load_membership_rows(request.app.state.settings)
            return _json(compute_preferences(rows, membership))
        except (FetchError, ParseError) as exc:
            logger.warning("preferences: %s", exc)
            return _error(exc, 502)
        except Exception as exc:
            logger.exception("preferences failed")
            return _error(exc)

    @app.get("/api/trainers")
    def trainers(request: Request):
        try:
            rows = load_membership_rows(request.app.state.settings)
            return _json(compute_trainers(rows))
        except (FetchError, ParseError) as exc:
            logger.warning("trainers: %s", exc)
            return _error(exc, 502)
        except Exception as exc:
            logger.exception("trainers failed")
            return _error(exc)

    return app


app = create_app()
