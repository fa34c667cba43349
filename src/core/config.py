"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Permite que adaptadores (HTTP/scheduler/render) lean config de forma consistente.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "ogs-board"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "ogs-board"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "ogs-board"
    return Path.home() / ".config" / "ogs-board"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


class AppSettings(BaseSettings):
    """Configuración central de la aplicación.

    Un único contrato de configuración para CLI, scheduler y render.
    """

    model_config = SettingsConfigDict(
        env_prefix="OGS_BOARD_",
        extra="ignore",
        case_sensitive=False,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    api_root: str = Field(
        default="https://online-go.com/api/v1",
        min_length=8,
        description="Raíz de la API REST JSON.",
    )
    site_root: str = Field(
        default="https://online-go.com",
        min_length=8,
        description="Raíz pública para enlaces a jugadores y partidas.",
    )
    http_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Timeout por request (segundos).",
    )
    user_agent: str = Field(
        default="ogs-board/0.1 (+https://local)",
        min_length=1,
        description="User-Agent para peticiones a la API.",
    )

    max_in_flight: int = Field(
        default=10,
        ge=1,
        le=500,
        description="Máximo de peticiones simultáneas admitidas por el scheduler.",
    )
    admission_poll_seconds: float = Field(
        default=0.5,
        gt=0,
        description="Intervalo de re-chequeo mientras el cupo está lleno (segundos).",
    )
    backoff_step_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Espera por intento ante HTTP 429 (intento × paso).",
    )
    max_retries: int = Field(
        default=20,
        ge=0,
        le=100,
        description="Reintentos máximos ante HTTP 429 antes de abandonar la petición.",
    )

    default_tournament_id: int = Field(
        default=59567,
        ge=1,
        description="Torneo renderizado cuando no se indica uno.",
    )
    log_level: str = Field(
        default="WARNING",
        description="Nivel de logging (DEBUG, INFO, WARNING, ERROR).",
    )
