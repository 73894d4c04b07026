"""Pydantic models for nutrition API payloads."""

from pydantic import BaseModel, ConfigDict, Field


class ResolveRequest(BaseModel):
    """Body of a single nutrition resolution request."""

    model_config = ConfigDict(populate_by_name=True)

    food_text: str | None = Field(default=None, alias="foodText")
    user_id: str | None = Field(default=None, alias="userId")
    ai_provider: str | None = Field(default=None, alias="aiProvider")


class BatchResolveRequest(BaseModel):
    """Body of a batch resolution request."""

    model_config = ConfigDict(populate_by_name=True)

    food_texts: list[str] = Field(default_factory=list, alias="foodTexts")
    user_id: str | None = Field(default=None, alias="userId")
    ai_provider: str | None = Field(default=None, alias="aiProvider")


class FavoriteFoodRequest(BaseModel):
    """Body for adding or refreshing a favorite food."""

    model_config = ConfigDict(populate_by_name=True)

    food_label: str | None = Field(default=None, alias="foodLabel")
    portion_qty: float = Field(default=100.0, alias="portionQty")
    portion_unit: str = Field(default="g", alias="portionUnit")
