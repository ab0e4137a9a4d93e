"""
Resource URL Builder — Endpoint paths for a store's remote resource.

Paths are relative to a configurable root and always end in ``.json``.
"""

from dataclasses import dataclass
from typing import Any

POSTFIX = ".json"


@dataclass
class ResourceUrlBuilder:
    """
    Builds collection and object URLs for one resource.

    - fk_attr: field holding the parent (or self) id on an object
    - parent_resource: resource the endpoint is nested under
    - root_resource: resource addressed by an object's ``rootId``
    - resource: wrapping key for serialized payloads
    """
    endpoint: str
    root_path: str = ""
    fk_attr: str | None = None
    parent_resource: str | None = None
    root_resource: str | None = None
    resource: str | None = None

    def resource_url(self, obj: dict[str, Any] | None = None) -> str:
        root = self.root_path
        if not obj:
            url = f"{root}/{self.endpoint}"
        elif obj.get("rootId"):
            url = f"{root}/{self.root_resource}/{obj['rootId']}/{self.endpoint}"
        elif not self.parent_resource:
            fk = obj.get(self.fk_attr) if self.fk_attr else None
            if fk:
                url = f"{root}/{self.endpoint}/{fk}"
            elif obj.get("loadId"):
                url = f"{root}/{self.endpoint}/{obj['loadId']}"
            else:
                url = f"{root}/{self.endpoint}"
        else:
            fk = obj.get(self.fk_attr) if self.fk_attr else None
            url = f"{root}/{self.parent_resource}/{fk}/{self.endpoint}"
        return f"{url}{POSTFIX}"

    def object_url(self, id: Any) -> str:
        return f"{self.root_path}/{self.endpoint}/{id}{POSTFIX}"

    def serialize(self, obj: dict[str, Any]) -> dict[str, Any]:
        """Wrap obj under the resource key, if one is configured."""
        if self.resource:
            return {self.resource: obj}
        return obj
