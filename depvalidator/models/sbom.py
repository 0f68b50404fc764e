"""
CycloneDX SBOM data model for depvalidator.

Only the subset of the CycloneDX JSON schema that depvalidator reads is
modelled: the format header, components, and their name/value properties.
Unknown fields are ignored.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional


@dataclass(frozen=True)
class ComponentProperty:
    """A ``{name, value}`` pair attached to a component."""

    name: str
    value: str


@dataclass
class SbomComponent:
    """
    A single CycloneDX component.

    Attributes:
        type: Component type (``"library"``, ``"file"``, ``"application"``...).
        name: Component name.
        version: Component version, if present.
        purl: Package URL, if present.
        properties: Tool-specific properties (e.g. syft metadata).
    """

    type: str
    name: str
    version: Optional[str] = None
    purl: Optional[str] = None
    properties: List[ComponentProperty] = field(default_factory=list)

    def get_property(self, name: str) -> Optional[str]:
        """Return the value of the first property called ``name``."""
        for prop in self.properties:
            if prop.name == name:
                return prop.value
        return None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SbomComponent":
        properties = [
            ComponentProperty(
                name=str(prop.get("name", "")), value=str(prop.get("value", ""))
            )
            for prop in data.get("properties") or []
            if isinstance(prop, Mapping)
        ]
        return cls(
            type=str(data.get("type", "")),
            name=str(data.get("name", "")),
            version=data.get("version"),
            purl=data.get("purl"),
            properties=properties,
        )


@dataclass
class Sbom:
    """
    A CycloneDX document.

    Attributes:
        bom_format: Value of ``bomFormat``; must be ``"CycloneDX"`` to be used.
        spec_version: Value of ``specVersion``.
        components: Components in document order.
    """

    bom_format: Optional[str]
    spec_version: Optional[str] = None
    components: List[SbomComponent] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Sbom":
        """Build an :class:`Sbom` from decoded JSON.

        Raises:
            ValueError: ``components`` is present but not a list.
        """
        raw_components = data.get("components") or []
        if not isinstance(raw_components, list):
            raise ValueError("'components' must be a list")

        return cls(
            bom_format=data.get("bomFormat"),
            spec_version=data.get("specVersion"),
            components=[
                SbomComponent.from_dict(item)
                for item in raw_components
                if isinstance(item, Mapping)
            ],
        )

    def libraries(self) -> List[SbomComponent]:
        """Return components whose type is ``library``, in document order."""
        return [c for c in self.components if c.type == "library"]

    def to_log_dict(self) -> Dict[str, Any]:
        return {
            "bom_format": self.bom_format,
            "spec_version": self.spec_version,
            "components": len(self.components),
        }
