"""
Component Registry - Index of Scene Components in One Exported Map Layer

Builds the lookup tables the transform resolver walks:
    - ComponentKey -> ComponentDefinition (last write wins on duplicates)
    - owner name   -> [ComponentDefinition, ...] in first-seen order

Attach-parent references arrive as engine object paths, e.g.

    SceneComponent'/Game/Maps/Gorodok/Gorodok_AAS_v1.Gorodok_AAS_v1:PersistentLevel.BP_Spawner_C_3.DefaultSceneRoot'

and are reduced to ComponentKey("BP_Spawner_C_3", "DefaultSceneRoot").
Anything that cannot be reduced yields None, which the resolver treats as
an unattached (root) component rather than an error.

Usage:
    registry = ComponentRegistry.build(records)
    root = registry.actor_root("BP_Spawner_C_3")
    children = registry.components_of("BP_Spawner_C_3")

Author: Layer Export Project
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence

from spatial import Rotation, Vector3, UNIT_SCALE, ZERO_ROTATION, ZERO_VECTOR

logger = logging.getLogger(__name__)

DEFAULT_ROOT_COMPONENT_NAMES = ("DefaultSceneRoot", "Root")


# =============================================================================
# Enums
# =============================================================================

class ComponentKind(Enum):
    """Component classes that share the scene-component transform shape."""
    SCENE = "SceneComponent"
    BOX = "BoxComponent"
    SPHERE = "SphereComponent"
    CAPSULE = "CapsuleComponent"

    @classmethod
    def from_type_tag(cls, type_tag: Optional[str]) -> ComponentKind:
        """Map an export `Type` to a kind; unknown tags are plain scene nodes."""
        for kind in cls:
            if kind.value == type_tag:
                return kind
        return cls.SCENE

    @property
    def is_volume(self) -> bool:
        return self in (ComponentKind.BOX, ComponentKind.SPHERE, ComponentKind.CAPSULE)


# =============================================================================
# Core Data Structures
# =============================================================================

@dataclass(frozen=True)
class ComponentKey:
    """Identity of a component within one exported world."""
    owner: str
    name: str

    def __str__(self) -> str:
        return f"{self.owner}.{self.name}"


@dataclass(frozen=True)
class RawComponentRecord:
    """
    One component as handed over by the export adapter.

    Attributes:
        type_tag: Export `Type` (e.g. "SceneComponent", "BoxComponent")
        owner: Owning actor name (`Outer`)
        name: Component name
        attach_parent: Raw attach-parent object path, if any
        location: RelativeLocation
        rotation: RelativeRotation
        scale: RelativeScale3D, None when absent from the export
        box_extent: BoxExtent half extents (box components)
        sphere_radius: SphereRadius (sphere components)
        capsule_radius: CapsuleRadius (capsule components)
        capsule_half_height: CapsuleHalfHeight (capsule components)
    """
    type_tag: str
    owner: Optional[str]
    name: Optional[str]
    attach_parent: Optional[str] = None
    location: Vector3 = ZERO_VECTOR
    rotation: Rotation = ZERO_ROTATION
    scale: Optional[Vector3] = None
    box_extent: Vector3 = ZERO_VECTOR
    sphere_radius: float = 0.0
    capsule_radius: float = 0.0
    capsule_half_height: float = 0.0


@dataclass(frozen=True)
class ComponentDefinition:
    """Registered component with its parent link and local transform."""
    key: ComponentKey
    kind: ComponentKind
    parent_key: Optional[ComponentKey]
    local_location: Vector3 = ZERO_VECTOR
    local_rotation: Rotation = ZERO_ROTATION
    local_scale: Vector3 = UNIT_SCALE
    box_extent: Vector3 = ZERO_VECTOR
    sphere_radius: float = 0.0
    capsule_radius: float = 0.0
    capsule_half_height: float = 0.0

    @classmethod
    def from_record(cls, record: RawComponentRecord) -> Optional[ComponentDefinition]:
        """Build a definition, or None when the record has no usable identity."""
        if _is_blank(record.owner) or _is_blank(record.name):
            return None
        return cls(
            key=ComponentKey(record.owner, record.name),
            kind=ComponentKind.from_type_tag(record.type_tag),
            parent_key=parse_attach_parent(record.attach_parent),
            local_location=record.location,
            local_rotation=record.rotation,
            local_scale=record.scale if record.scale is not None else UNIT_SCALE,
            box_extent=record.box_extent,
            sphere_radius=record.sphere_radius,
            capsule_radius=record.capsule_radius,
            capsule_half_height=record.capsule_half_height,
        )


# =============================================================================
# Reference Parsing
# =============================================================================

def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def strip_object_quotes(object_name: str) -> str:
    """
    Return the text inside the outermost single quotes, if any.

    Examples:
        >>> strip_object_quotes("SceneComponent'/Game/Map.Map:PersistentLevel.A.Root'")
        "/Game/Map.Map:PersistentLevel.A.Root"
        >>> strip_object_quotes("A.Root")
        "A.Root"
    """
    first = object_name.find("'")
    last = object_name.rfind("'")
    if first >= 0 and last > first:
        return object_name[first + 1:last]
    return object_name


def normalize_owner(owner: str) -> str:
    """Drop namespace (before the last ':') and enclosing scope (before the last '.')."""
    last_colon = owner.rfind(':')
    if 0 <= last_colon < len(owner) - 1:
        owner = owner[last_colon + 1:]
    last_dot = owner.rfind('.')
    if 0 <= last_dot < len(owner) - 1:
        owner = owner[last_dot + 1:]
    return owner


def parse_attach_parent(reference: Optional[str]) -> Optional[ComponentKey]:
    """
    Reduce an attach-parent object path to a registry key.

    Args:
        reference: Raw `AttachParent.ObjectName` string (may be None)

    Returns:
        ComponentKey of the parent, or None if the reference is absent
        or has no "<owner>.<component>" separator
    """
    if _is_blank(reference):
        return None
    normalized = strip_object_quotes(reference.strip())
    last_dot = normalized.rfind('.')
    if last_dot < 0:
        logger.debug(f"  [Registry] Unparseable attach parent: {reference!r}")
        return None
    owner = normalize_owner(normalized[:last_dot])
    name = normalized[last_dot + 1:]
    if not owner or not name:
        logger.debug(f"  [Registry] Incomplete attach parent: {reference!r}")
        return None
    return ComponentKey(owner, name)


# =============================================================================
# Registry
# =============================================================================

class ComponentRegistry:
    """
    Lookup tables for the components of one exported document.

    Built once per document and treated as read-only afterwards. Duplicate
    keys keep the last definition in `components`, while `by_owner` keeps
    every registered entry in insertion order.
    """

    def __init__(self, root_component_names: Sequence[str] = DEFAULT_ROOT_COMPONENT_NAMES):
        self.components: Dict[ComponentKey, ComponentDefinition] = {}
        self.by_owner: Dict[str, List[ComponentDefinition]] = {}
        self.root_component_names = tuple(root_component_names)
        self.skipped = 0

    @classmethod
    def build(cls, records: Iterable[RawComponentRecord],
              root_component_names: Sequence[str] = DEFAULT_ROOT_COMPONENT_NAMES) -> ComponentRegistry:
        """
        Index a flat sequence of component records.

        Args:
            records: Records from the export adapter, in export order
            root_component_names: Preferred actor-root component names, best first

        Returns:
            Populated registry
        """
        registry = cls(root_component_names)
        for record in records:
            registry.register(record)
        logger.debug(f"  [Registry] Indexed {len(registry.components)} components "
                     f"across {len(registry.by_owner)} owners ({registry.skipped} skipped)")
        return registry

    def register(self, record: RawComponentRecord) -> Optional[ComponentDefinition]:
        """Add one record; returns the stored definition or None if skipped."""
        definition = ComponentDefinition.from_record(record)
        if definition is None:
            self.skipped += 1
            return None
        if definition.key in self.components:
            logger.debug(f"  [Registry] Duplicate component {definition.key}, keeping latest")
        self.components[definition.key] = definition
        self.by_owner.setdefault(definition.key.owner, []).append(definition)
        return definition

    def get(self, key: Optional[ComponentKey]) -> Optional[ComponentDefinition]:
        if key is None:
            return None
        return self.components.get(key)

    def components_of(self, owner: str) -> List[ComponentDefinition]:
        """Components registered for `owner` (empty list if unknown)."""
        return list(self.by_owner.get(owner, ()))

    def owners(self) -> List[str]:
        return list(self.by_owner)

    def actor_root(self, owner: str) -> Optional[ComponentDefinition]:
        """
        Pick the component that stands for the actor itself.

        Preference: each name in `root_component_names` in order, then the
        first component registered for the owner.
        """
        definitions = self.by_owner.get(owner)
        if not definitions:
            return None
        for preferred in self.root_component_names:
            for definition in definitions:
                if definition.key.name == preferred:
                    return definition
        return definitions[0]

    def __contains__(self, key: object) -> bool:
        return key in self.components

    def __len__(self) -> int:
        return len(self.components)

    def __repr__(self) -> str:
        return f"ComponentRegistry(components={len(self.components)}, owners={len(self.by_owner)})"
