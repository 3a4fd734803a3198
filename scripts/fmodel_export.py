"""
FModel Export Adapter - JSON Objects to Core Records

An FModel export of a map layer is a JSON array of objects shaped like:

    {
        "Type": "SceneComponent",
        "Name": "DefaultSceneRoot",
        "Outer": "BP_CaptureZoneCluster_C_2",
        "Properties": {
            "RelativeLocation": {"X": 100.0, "Y": 0.0, "Z": 50.0},
            "RelativeRotation": {"Pitch": 0.0, "Yaw": 90.0, "Roll": 0.0},
            "AttachParent": {"ObjectName": "SceneComponent'...:PersistentLevel.Foo.Root'"}
        }
    }

This module reads the parts the core needs: component records for the
registry and design links for the capture graph. Gameplay-specific record
kinds are left to their own extractors.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from capture_graph import RawLink
from component_registry import RawComponentRecord
from spatial import Rotation, Vector3, ZERO_ROTATION, ZERO_VECTOR

logger = logging.getLogger(__name__)

COMPONENT_TYPES = ("SceneComponent", "BoxComponent", "SphereComponent", "CapsuleComponent")
GRAPH_INITIALIZER_TYPE = "SQGraphRAASInitializerComponent"


class ExportFormatError(Exception):
    """Raised when an export does not have the expected shape."""
    pass


# =============================================================================
# Loading
# =============================================================================

def load_export(path: Union[Path, str]) -> List[Dict[str, Any]]:
    """
    Load an FModel export file.

    Raises:
        ExportFormatError: If the file is not a JSON array
    """
    path = Path(path)
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    return validate_export(data)


def validate_export(data: Any) -> List[Dict[str, Any]]:
    if not isinstance(data, list):
        raise ExportFormatError("FModel export is expected to be a JSON array of objects")
    return [node for node in data if isinstance(node, dict)]


# =============================================================================
# Field Readers
# =============================================================================

def _as_float(value: Any, default: float = 0.0) -> float:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return default
    return default


def _as_text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def read_vector(node: Any, default: Optional[Vector3] = ZERO_VECTOR) -> Optional[Vector3]:
    """Read {"X", "Y", "Z"}; missing object -> default, missing axis -> 0."""
    if not isinstance(node, dict):
        return default
    return Vector3(_as_float(node.get("X")), _as_float(node.get("Y")), _as_float(node.get("Z")))


def read_rotation(node: Any) -> Rotation:
    """Read {"Pitch", "Yaw", "Roll"} in degrees."""
    if not isinstance(node, dict):
        return ZERO_ROTATION
    return Rotation(_as_float(node.get("Pitch")), _as_float(node.get("Yaw")), _as_float(node.get("Roll")))


def read_object_name(reference: Any) -> Optional[str]:
    """`ObjectName` of an object reference, or None."""
    if not isinstance(reference, dict):
        return None
    object_name = _as_text(reference.get("ObjectName"))
    if object_name is None or not object_name.strip():
        return None
    return object_name


def extract_node_name(object_name: Optional[str]) -> str:
    """
    Bare node identifier from a graph node reference.

    Examples:
        >>> extract_node_name("BP_CaptureZoneCluster_C'/Game/Maps/X.X:PersistentLevel.Cluster_A'")
        "Cluster_A"

    Raises:
        ExportFormatError: If the reference is empty or not "<path>.<name>'" shaped
    """
    if object_name is None or not object_name.strip():
        raise ExportFormatError("Object name is missing for graph node reference")
    last_dot = object_name.rfind('.')
    last_quote = object_name.rfind("'")
    if last_dot < 0 or last_quote < 0 or last_quote <= last_dot:
        raise ExportFormatError(f"Unexpected object name format: {object_name}")
    return object_name[last_dot + 1:last_quote]


# =============================================================================
# Component Records
# =============================================================================

def read_component_record(node: Dict[str, Any]) -> RawComponentRecord:
    """Build a component record from one export object."""
    properties = node.get("Properties")
    if not isinstance(properties, dict):
        properties = {}
    return RawComponentRecord(
        type_tag=_as_text(node.get("Type")) or "",
        owner=_as_text(node.get("Outer")),
        name=_as_text(node.get("Name")),
        attach_parent=read_object_name(properties.get("AttachParent")),
        location=read_vector(properties.get("RelativeLocation")),
        rotation=read_rotation(properties.get("RelativeRotation")),
        scale=read_vector(properties.get("RelativeScale3D"), default=None),
        box_extent=read_vector(properties.get("BoxExtent")),
        sphere_radius=_as_float(properties.get("SphereRadius")),
        capsule_radius=_as_float(properties.get("CapsuleRadius")),
        capsule_half_height=_as_float(properties.get("CapsuleHalfHeight")),
    )


def read_component_records(nodes: Iterable[Dict[str, Any]],
                           component_types: Sequence[str] = COMPONENT_TYPES) -> List[RawComponentRecord]:
    """Component records for every object whose Type is a component type, export order."""
    wanted = set(component_types)
    records = [read_component_record(node) for node in nodes if node.get("Type") in wanted]
    logger.debug(f"  [Export] Read {len(records)} component records")
    return records


def actors_of_type(nodes: Iterable[Dict[str, Any]], type_tag: str) -> List[str]:
    """Names of all objects of `type_tag`, export order, no duplicates."""
    names: List[str] = []
    for node in nodes:
        if node.get("Type") != type_tag:
            continue
        name = _as_text(node.get("Name"))
        if name and name not in names:
            names.append(name)
    return names


# =============================================================================
# Capture Graph Links
# =============================================================================

def find_initializer(nodes: Iterable[Dict[str, Any]],
                     initializer_type: str = GRAPH_INITIALIZER_TYPE) -> Dict[str, Any]:
    for node in nodes:
        if node.get("Type") == initializer_type:
            return node
    raise ExportFormatError(f"Unable to locate {initializer_type} in the export")


def read_capture_links(nodes: Iterable[Dict[str, Any]],
                       initializer_type: str = GRAPH_INITIALIZER_TYPE) -> List[RawLink]:
    """
    Read DesignOutgoingLinks from the graph initializer component.

    Raises:
        ExportFormatError: If the initializer or its link array is missing,
            or a link endpoint reference is malformed
    """
    initializer = find_initializer(nodes, initializer_type)
    properties = initializer.get("Properties")
    design_links = properties.get("DesignOutgoingLinks") if isinstance(properties, dict) else None
    if not isinstance(design_links, list):
        raise ExportFormatError("DesignOutgoingLinks array is missing in the initializer component")

    links: List[RawLink] = []
    for index, link_node in enumerate(design_links):
        if not isinstance(link_node, dict):
            raise ExportFormatError(f"Design link {index} is not an object")
        node_a = extract_node_name(read_object_name(link_node.get("NodeA")))
        node_b = extract_node_name(read_object_name(link_node.get("NodeB")))
        links.append(RawLink(f"Link{index}", node_a, node_b))

    logger.debug(f"  [Export] Read {len(links)} design links")
    return links
