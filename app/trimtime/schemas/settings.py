from __future__ import annotations

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

TaxMode = Literal["included", "excluded"]


class TaxConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    rate: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    mode: TaxMode = "excluded"


class ShopSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    shop_name: str
    currency: str = "$"
    language: Literal["en", "ur", "fa"] = "en"
    whatsapp_enabled: bool = False
    whatsapp_number: str = ""
    receipt_footer: str = ""
    tax_rate: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    tax_type: TaxMode = "excluded"

    @property
    def tax_config(self) -> TaxConfig:
        return TaxConfig(rate=self.tax_rate, mode=self.tax_type)
