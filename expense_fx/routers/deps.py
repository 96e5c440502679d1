"""Shared FastAPI dependencies.

Providers live on ``app.state`` so an app built with a settings override gets its
own provider (and cache); tests swap them through ``dependency_overrides``.
"""

from datetime import date

from fastapi import Request

from expense_fx.core.config import Settings
from expense_fx.services.rates.base import RateProvider


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_rate_provider(request: Request) -> RateProvider:
    return request.app.state.rate_provider


def get_today() -> date:
    return date.today()
