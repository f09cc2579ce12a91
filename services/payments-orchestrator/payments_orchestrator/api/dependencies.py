from __future__ import annotations

from fastapi import Request

from payments_orchestrator.core.config import Settings
from payments_orchestrator.services.orchestrator import PaymentOrchestrator


def get_orchestrator(request: Request) -> PaymentOrchestrator:
    return request.app.state.orchestrator


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings
