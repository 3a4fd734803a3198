"""
Export Core Parameters

User-adjustable settings for the layer export core, loaded from a JSON file
with comment support:

    {
        // Component names that stand for an actor, best first
        "root_component_names": ["DefaultSceneRoot", "Root"],
        "component_types": ["SceneComponent", "BoxComponent", "SphereComponent", "CapsuleComponent"],
        "capture_graph": {
            "initializer_type": "SQGraphRAASInitializerComponent",
            "attack_main_label": "00-Team1 Main",
            "defense_main_label": "Z-Team2 Main"
        },
        "logging": {"level": "INFO"}
    }

Missing keys keep their defaults.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Union

from component_registry import DEFAULT_ROOT_COMPONENT_NAMES
from fmodel_export import COMPONENT_TYPES, GRAPH_INITIALIZER_TYPE
from main_names import ATTACK_MAIN_LABEL, DEFENSE_MAIN_LABEL

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _string_list(value: Any, default: List[str], key: str) -> List[str]:
    if isinstance(value, list) and value and all(isinstance(v, str) and v for v in value):
        return list(value)
    if value is not None:
        logger.warning(f"Invalid '{key}' value {value!r}, using default")
    return list(default)


def _string(value: Any, default: str, key: str) -> str:
    if isinstance(value, str) and value.strip():
        return value
    if value is not None:
        logger.warning(f"Invalid '{key}' value {value!r}, using default")
    return default


@dataclass
class CoreParameters:
    """
    Settings for one export run.

    Attributes:
        root_component_names: Preferred actor-root component names, best first
        component_types: Export Types read as components
        initializer_type: Export Type holding the capture graph's design links
        attack_main_label: Label for the first main on the push line
        defense_main_label: Label for the last main on the push line
        log_level: Logging level name for the command-line entry point
    """
    root_component_names: List[str] = field(default_factory=lambda: list(DEFAULT_ROOT_COMPONENT_NAMES))
    component_types: List[str] = field(default_factory=lambda: list(COMPONENT_TYPES))
    initializer_type: str = GRAPH_INITIALIZER_TYPE
    attack_main_label: str = ATTACK_MAIN_LABEL
    defense_main_label: str = DEFENSE_MAIN_LABEL
    log_level: str = "INFO"

    @classmethod
    def from_file(cls, path: Union[Path, str]) -> CoreParameters:
        """Load parameters from JSON file (with comment support)."""
        with open(path, 'r', encoding='utf-8') as f:
            content = f.read()

        # Strip JavaScript-style comments
        content = re.sub(r'^\s*//.*?$', '', content, flags=re.MULTILINE)
        content = re.sub(r'/\*.*?\*/', '', content, flags=re.DOTALL)

        data = json.loads(content)
        if not isinstance(data, dict):
            raise ValueError(f"Parameters file {path} must contain a JSON object")
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict) -> CoreParameters:
        defaults = cls()
        graph = data.get("capture_graph", {})
        if not isinstance(graph, dict):
            logger.warning("Invalid 'capture_graph' section, using defaults")
            graph = {}
        logging_opts = data.get("logging", {})
        if not isinstance(logging_opts, dict):
            logging_opts = {}

        level = str(logging_opts.get("level", defaults.log_level)).upper()
        if level not in LOG_LEVELS:
            logger.warning(f"Unknown log level '{level}', using {defaults.log_level}")
            level = defaults.log_level

        return cls(
            root_component_names=_string_list(
                data.get("root_component_names"), defaults.root_component_names, "root_component_names"),
            component_types=_string_list(
                data.get("component_types"), defaults.component_types, "component_types"),
            initializer_type=_string(
                graph.get("initializer_type"), defaults.initializer_type, "initializer_type"),
            attack_main_label=_string(
                graph.get("attack_main_label"), defaults.attack_main_label, "attack_main_label"),
            defense_main_label=_string(
                graph.get("defense_main_label"), defaults.defense_main_label, "defense_main_label"),
            log_level=level,
        )

    @classmethod
    def defaults(cls) -> CoreParameters:
        """Return default parameters."""
        return cls()
