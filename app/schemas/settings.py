"""Runtime configuration schemas (GET/POST /api/settings)."""

from __future__ import annotations

from typing import Any, Optional, Union

from pydantic import BaseModel, Field

SECRET_FIELDS = ("verify_token", "access_token", "ai_api_key")
MASK_PREFIX = "****"


class Product(BaseModel):
    """Catalog item used as context for AI replies."""

    id: str
    name: str
    price: float
    description: str = ""
    in_stock: bool = True


class RuntimeConfig(BaseModel):
    """Effective configuration: persisted overrides merged over environment defaults."""

    verify_token: Optional[str] = None
    access_token: Optional[str] = None
    whatsapp_phone_number_id: Optional[str] = None
    graph_api_version: str
    ai_api_key: Optional[str] = None
    ai_api_base: str
    ai_model: str
    # Plain text, or a JSON array of {label, content, isActive}
    ai_instruction: Optional[Union[str, list[dict[str, Any]]]] = None
    products: list[Product] = Field(default_factory=list)

    def secret_values(self) -> list[str]:
        """Non-empty secret values, for redacting log payloads."""
        return [v for v in (getattr(self, f) for f in SECRET_FIELDS) if v]

    def masked(self) -> dict[str, Any]:
        """Dump with secrets replaced by '****' + last 4 characters."""
        data = self.model_dump(mode="json")
        for field in SECRET_FIELDS:
            value = data.get(field)
            if value:
                data[field] = MASK_PREFIX + value[-4:]
        return data


class RuntimeConfigUpdate(BaseModel):
    """Partial update; None means 'leave unchanged'."""

    verify_token: Optional[str] = None
    access_token: Optional[str] = None
    whatsapp_phone_number_id: Optional[str] = None
    graph_api_version: Optional[str] = None
    ai_api_key: Optional[str] = None
    ai_api_base: Optional[str] = None
    ai_model: Optional[str] = None
    ai_instruction: Optional[Union[str, list[dict[str, Any]]]] = None
    products: Optional[list[Product]] = None
