"""
Transform Resolver - World-Space Transforms for Registered Components

Composes a component's local transform with every ancestor on its
attach-parent chain, memoizing each resolved key for the resolver's lifetime.

COMPOSITION (parent -> child):
    world_scale    = parent.scale * local.scale
    world_location = parent.location + parent.rotation.rotate(local.location * parent.scale)
    world_rotation = parent.rotation.compose(local.rotation)

SOFT FAILURES:
    The resolver is total over ComponentKey values. A None key, a key that was
    never registered, or a dangling parent reference all resolve to IDENTITY.
    A parent cycle (A -> B -> A) also resolves to IDENTITY for every member of
    the cycle; the cycle is recorded in `TransformResolver.cycles` and logged.

One resolver belongs to one document; do not share it across documents.

Author: Layer Export Project
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from component_registry import ComponentDefinition, ComponentKey, ComponentRegistry
from spatial import Rotation, Vector3, UNIT_SCALE, ZERO_ROTATION, ZERO_VECTOR

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedTransform:
    """World-space location, rotation and scale of a component."""
    location: Vector3
    rotation: Rotation
    scale: Vector3

    def to_dict(self) -> Dict[str, float]:
        """Flatten into the location/rotation/scale fields used by exported objects."""
        return {
            "location_x": self.location.x,
            "location_y": self.location.y,
            "location_z": self.location.z,
            "rotation_x": self.rotation.pitch,
            "rotation_y": self.rotation.roll,
            "rotation_z": self.rotation.yaw,
            "scale_x": self.scale.x,
            "scale_y": self.scale.y,
            "scale_z": self.scale.z,
        }


IDENTITY = ResolvedTransform(ZERO_VECTOR, ZERO_ROTATION, UNIT_SCALE)


def compose_transform(parent: ResolvedTransform, definition: ComponentDefinition) -> ResolvedTransform:
    """
    Place a component's local transform inside its parent's world transform.

    Args:
        parent: Already-resolved transform of the attach parent (IDENTITY for roots)
        definition: Component whose local transform is applied

    Returns:
        World transform of the component
    """
    scaled_location = definition.local_location.multiply(parent.scale)
    rotated_location = parent.rotation.rotate(scaled_location)
    return ResolvedTransform(
        location=parent.location.add(rotated_location),
        rotation=parent.rotation.compose(definition.local_rotation),
        scale=parent.scale.multiply(definition.local_scale),
    )


class TransformResolver:
    """
    Memoizing world-transform resolver over one ComponentRegistry.

    Usage:
        resolver = TransformResolver(registry)
        transform = resolver.resolve(ComponentKey("BP_Spawner_C_3", "DefaultSceneRoot"))
        actor_transform = resolver.resolve_actor("BP_Spawner_C_3")
    """

    def __init__(self, registry: ComponentRegistry):
        self.registry = registry
        self._cache: Dict[ComponentKey, ResolvedTransform] = {}
        self.cycles: List[Tuple[ComponentKey, ...]] = []

    def resolve(self, key: Optional[ComponentKey]) -> ResolvedTransform:
        """
        Resolve the world transform of `key`.

        The ancestor chain is walked upward until a cached key, a root, a
        missing definition or a cycle is reached, then composed downward.
        Every key on the walked chain is cached.
        """
        if key is None:
            return IDENTITY
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        chain: List[ComponentDefinition] = []
        in_flight: Dict[ComponentKey, int] = {}
        base = IDENTITY
        current: Optional[ComponentKey] = key

        while current is not None:
            cached = self._cache.get(current)
            if cached is not None:
                base = cached
                break
            if current in in_flight:
                self._record_cycle(chain[in_flight[current]:])
                del chain[in_flight[current]:]
                break
            definition = self.registry.get(current)
            if definition is None:
                if current != key:
                    logger.debug(f"  [Resolver] Missing parent {current}, treating as identity")
                self._cache[current] = IDENTITY
                break
            in_flight[current] = len(chain)
            chain.append(definition)
            current = definition.parent_key

        for definition in reversed(chain):
            base = compose_transform(base, definition)
            self._cache[definition.key] = base

        return self._cache[key]

    def _record_cycle(self, members: List[ComponentDefinition]) -> None:
        cycle = tuple(definition.key for definition in members)
        self.cycles.append(cycle)
        for member in cycle:
            self._cache[member] = IDENTITY
        logger.warning(f"  [Resolver] Attach-parent cycle detected: "
                       f"{' -> '.join(str(k) for k in cycle)} -> {cycle[0]}")

    def resolve_actor(self, owner: str) -> ResolvedTransform:
        """World transform of an actor via its root component (IDENTITY if it has none)."""
        root = self.registry.actor_root(owner)
        if root is None:
            logger.debug(f"  [Resolver] Actor {owner!r} has no components")
            return IDENTITY
        return self.resolve(root.key)

    @property
    def cache_size(self) -> int:
        return len(self._cache)
