"""
Chat backend configuration loader (catalog, assistant, image proxy, display).
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

REPO_ROOT = Path(__file__).parent.parent.parent


class CatalogConfig(BaseModel):
    path: str = "data/produtos.json"
    max_results: int = Field(default=3, ge=1, le=50)

    def resolved_path(self) -> Path:
        p = Path(self.path)
        return p if p.is_absolute() else REPO_ROOT / p


class AssistantConfig(BaseModel):
    api_key_env: str = "OPENAI_API_KEY"
    assistant_id_env: str = "ASSISTANT_ID"
    poll_interval: float = Field(default=1.0, gt=0.0, le=30.0)
    max_wait_seconds: float = Field(default=60.0, gt=0.0, le=600.0)

    def api_key(self) -> Optional[str]:
        return os.getenv(self.api_key_env) or None

    def assistant_id(self) -> Optional[str]:
        return os.getenv(self.assistant_id_env) or None


class ProxyConfig(BaseModel):
    timeout_seconds: float = Field(default=60.0, gt=0.0, le=300.0)


class DisplayConfig(BaseModel):
    logo_url: str = "/images/informatica_logo.png"
    logo_alt: str = "Cia da Informática Logo"
    image_alt: str = "Imagem do Produto"


class ChatConfig(BaseModel):
    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    assistant: AssistantConfig = Field(default_factory=AssistantConfig)
    proxy: ProxyConfig = Field(default_factory=ProxyConfig)
    display: DisplayConfig = Field(default_factory=DisplayConfig)


def load_chat_config(config_path: Optional[Path] = None) -> ChatConfig:
    if config_path is None:
        config_path = REPO_ROOT / "config" / "chat_config.yml"

    if not config_path.exists():
        logger.info("Chat config file not found at %s; using defaults", config_path)
        return ChatConfig()

    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    try:
        cfg = ChatConfig(**data)
        logger.info("Successfully loaded chat config from %s", config_path)
        return cfg
    except ValidationError as e:
        logger.error("Chat config validation failed: %s", e)
        raise
