"""Category entity model."""

from pydantic import Field

from .base import CatalogModel, Record


class CategoryBase(CatalogModel):
    """Fields accepted when creating or updating a category."""

    name: str = Field(..., min_length=1, title="Name")
    name_ar: str | None = Field(default=None, title="Name (Arabic)")
    description: str | None = Field(default=None, title="Description")
    description_ar: str | None = Field(default=None, title="Description (Arabic)")


class Category(Record, CategoryBase):
    """Shared tag applied to providers and APIs."""
