from __future__ import annotations

import os

from fastapi import APIRouter, Request

from settings import settings

router = APIRouter(tags=["health"])


def _resolve_env() -> str:
    return (os.getenv("ENVIRONMENT") or os.getenv("ENV") or settings.ENV or "").strip()


def _resolve_git_sha() -> str | None:
    return (os.getenv("GIT_SHA") or "").strip() or None


@router.get("/health")
async def health():
    return {
        "ok": True,
        "env": _resolve_env(),
        "gateway_mode": settings.GATEWAY_MODE,
        "git_sha": _resolve_git_sha(),
    }


@router.get("/healthz")
async def healthz(request: Request):
    engine = getattr(request.app.state, "engine", None)
    running = 0
    total = 0
    if engine is not None:
        statuses = engine.list_statuses()
        total = len(statuses)
        running = sum(1 for s in statuses if not s.is_terminal)
    return {
        "ok": engine is not None,
        "version": os.getenv("APP_VERSION", settings.APP_VERSION),
        "git_sha": _resolve_git_sha(),
        "subscriptions_total": total,
        "subscriptions_running": running,
    }


@router.get("/version")
async def version():
    return {
        "version": os.getenv("APP_VERSION", settings.APP_VERSION),
        "git_sha": _resolve_git_sha(),
        "env": _resolve_env(),
    }
