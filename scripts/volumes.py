"""
Bounding Volumes - World-Space Extents of Collision Components

Box, sphere and capsule components of an actor become bounding volumes once
their world transform is known. Scene components carry no volume.

    box:     extent = box_extent * scale,     radius = |extent|
    sphere:  radius = sphere_radius * scale.x, extent = (r, r, r)
    capsule: oriented hull of (rx, ry, half_height + r), re-projected through
             the component rotation with Rotation.rotate_extents

Author: Layer Export Project
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set

from component_registry import ComponentDefinition, ComponentKey, ComponentKind, ComponentRegistry
from spatial import Rotation, Vector3, ZERO_VECTOR
from transform_resolver import ResolvedTransform, TransformResolver


@dataclass(frozen=True)
class BoundingVolume:
    """
    World-space volume of one collision component.

    Attributes:
        name: Component name
        kind: BOX, SPHERE or CAPSULE
        location: World location
        rotation: World rotation
        scale: World scale
        extent: Half extents after scaling (oriented hull for capsules)
        radius: Effective radius, used for ordering volumes
        capsule_radius: Scaled capsule radius (capsules only)
        capsule_length: Scaled capsule length, 2 * half height (capsules only)
    """
    name: str
    kind: ComponentKind
    location: Vector3
    rotation: Rotation
    scale: Vector3
    extent: Vector3
    radius: float
    capsule_radius: Optional[float] = None
    capsule_length: Optional[float] = None

    def to_dict(self) -> Dict[str, object]:
        result: Dict[str, object] = {
            "objectName": self.name,
            "kind": self.kind.value,
            "location": self.location.to_list(),
            "rotation": [self.rotation.pitch, self.rotation.yaw, self.rotation.roll],
            "extent": self.extent.to_list(),
            "radius": self.radius,
        }
        if self.kind is ComponentKind.CAPSULE:
            result["capsuleRadius"] = self.capsule_radius
            result["capsuleLength"] = self.capsule_length
        return result


def build_volume(definition: ComponentDefinition, transform: ResolvedTransform) -> Optional[BoundingVolume]:
    """
    Bounding volume of a collision component at its resolved transform.

    Args:
        definition: Registered component (extents taken from here)
        transform: World transform from the resolver

    Returns:
        BoundingVolume, or None for components without a volume
    """
    scale = transform.scale
    common = dict(
        name=definition.key.name,
        kind=definition.kind,
        location=transform.location,
        rotation=transform.rotation,
        scale=scale,
    )

    if definition.kind is ComponentKind.BOX:
        extent = definition.box_extent.multiply(scale)
        return BoundingVolume(extent=extent, radius=extent.magnitude(), **common)

    if definition.kind is ComponentKind.SPHERE:
        radius = definition.sphere_radius * scale.x
        return BoundingVolume(extent=Vector3(radius, radius, radius), radius=radius, **common)

    if definition.kind is ComponentKind.CAPSULE:
        radius_x = definition.capsule_radius * scale.x
        radius_y = definition.capsule_radius * scale.y
        radius = max(radius_x, radius_y)
        half_height = definition.capsule_half_height * scale.z
        length = half_height * 2.0
        local_extents = Vector3(radius_x, radius_y, half_height + radius)
        return BoundingVolume(
            extent=transform.rotation.rotate_extents(local_extents),
            radius=max(radius, length / 2.0),
            capsule_radius=radius,
            capsule_length=length,
            **common,
        )

    return None


def actor_volumes(registry: ComponentRegistry, resolver: TransformResolver, owner: str) -> List[BoundingVolume]:
    """
    All volumes of an actor, smallest radius first, then by component name.

    A component registered more than once yields a single volume built from
    its latest definition.
    """
    volumes: List[BoundingVolume] = []
    seen: Set[ComponentKey] = set()
    for entry in registry.components_of(owner):
        if entry.key in seen:
            continue
        seen.add(entry.key)
        definition = registry.get(entry.key)
        if definition is None or not definition.kind.is_volume:
            continue
        volume = build_volume(definition, resolver.resolve(definition.key))
        if volume is not None:
            volumes.append(volume)
    volumes.sort(key=lambda volume: (volume.radius, volume.name))
    return volumes


def average_location(locations: Iterable[Vector3]) -> Vector3:
    """Mean of a set of locations (origin when empty)."""
    points = list(locations)
    if not points:
        return ZERO_VECTOR
    count = len(points)
    return Vector3(
        sum(p.x for p in points) / count,
        sum(p.y for p in points) / count,
        sum(p.z for p in points) / count,
    )
