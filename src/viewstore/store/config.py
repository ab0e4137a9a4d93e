"""
Store Config — Construction options for an entity store.
"""

from typing import Any, TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from viewstore.urls import ResourceUrlBuilder


class StoreConfig(BaseModel):
    """
    Options recognized when building a store.

    - name: collection identifier, one store per resource type
    - id_attr: business-key field name
    - fk: foreign-key field name (used only for resource URLs)
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(
        ...,
        min_length=1,
        description="Resource type; also the backing collection's name",
    )

    id_attr: str = Field(
        default="id",
        min_length=1,
        description="Application-level identity field",
    )

    fk: str | None = Field(
        default=None,
        description="Foreign-key field name for parent-scoped resources",
    )

    def url_builder(self, endpoint: str | None = None, **kwargs: Any) -> "ResourceUrlBuilder":
        """Build a URL builder for this resource, keyed on the store's fk."""
        from viewstore.urls import ResourceUrlBuilder

        return ResourceUrlBuilder(
            endpoint=endpoint or self.name,
            fk_attr=self.fk,
            **kwargs,
        )
