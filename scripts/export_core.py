#!/usr/bin/env python3
"""
Layer Export Core - Command-Line Entry Point

Resolves actor transforms and capture-graph ordering for one or more FModel
layer exports and writes a JSON summary.

Each export is processed independently: a structural error in one document
(ambiguous graph start/end, no connecting path, malformed or undecodable
export, unreadable file) is logged and the run continues with the next
document.

Usage:
  python export_core.py Gorodok_AAS_v1.json --graph
  python export_core.py layer.json -a BP_VehicleSpawner_C_1 -t BP_CaptureZoneMain_C
  python export_core.py a.json b.json --config export_core.json -o summary.json

Author: Layer Export Project
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from capture_graph import CaptureGraphError, extract_topology
from component_registry import ComponentRegistry
from core_config import CoreParameters
from fmodel_export import (
    ExportFormatError,
    actors_of_type,
    load_export,
    read_capture_links,
    read_component_records,
)
from transform_resolver import TransformResolver
from volumes import actor_volumes

logger = logging.getLogger(__name__)


def process_document(path: Path,
                     params: CoreParameters,
                     actors: Sequence[str] = (),
                     actor_types: Sequence[str] = (),
                     include_graph: bool = False) -> Dict[str, Any]:
    """
    Build registry, resolver and (optionally) capture topology for one export.

    Args:
        path: FModel export file
        params: Run parameters
        actors: Actor names to resolve
        actor_types: Export Types whose actors are all resolved
        include_graph: Also extract the capture-point graph topology

    Returns:
        JSON-ready summary for the document

    Raises:
        ExportFormatError: If the export is malformed
        CaptureGraphError: If the capture graph violates its structural invariants
    """
    nodes = load_export(path)
    registry = ComponentRegistry.build(
        read_component_records(nodes, params.component_types),
        root_component_names=params.root_component_names,
    )
    resolver = TransformResolver(registry)
    logger.info(f"  [Core] {path.name}: {registry}")

    wanted: List[str] = list(actors)
    for type_tag in actor_types:
        for name in actors_of_type(nodes, type_tag):
            if name not in wanted:
                wanted.append(name)

    actor_summaries: Dict[str, Any] = {}
    for name in wanted:
        if not registry.components_of(name):
            logger.warning(f"  [Core] Actor {name!r} has no registered components")
        actor_summaries[name] = {
            **resolver.resolve_actor(name).to_dict(),
            "volumes": [volume.to_dict() for volume in actor_volumes(registry, resolver, name)],
        }

    summary: Dict[str, Any] = {
        "file": str(path),
        "components": len(registry),
        "actors": actor_summaries,
    }

    if include_graph:
        topology = extract_topology(
            read_capture_links(nodes, params.initializer_type),
            attack_label=params.attack_main_label,
            defense_label=params.defense_main_label,
        )
        summary["captureGraph"] = topology.to_dict()
        summary["mainNames"] = dict(topology.main_names)
        summary["mainOverrides"] = dict(topology.main_overrides)

    if resolver.cycles:
        summary["parentCycles"] = [[str(key) for key in cycle] for cycle in resolver.cycles]

    return summary


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description='Resolve component world transforms and capture-graph order from FModel layer exports')
    parser.add_argument(
        'exports', nargs='+', type=Path,
        help='FModel export JSON file(s), one document each')
    parser.add_argument(
        '--config', '-c', type=Path, default=None,
        help='Parameters JSON file (defaults built in)')
    parser.add_argument(
        '--actor', '-a', action='append', default=[],
        help='Actor name to resolve (repeatable)')
    parser.add_argument(
        '--type', '-t', dest='actor_types', action='append', default=[],
        help='Resolve every actor of this export Type (repeatable)')
    parser.add_argument(
        '--graph', '-g', action='store_true',
        help='Extract capture-point graph topology')
    parser.add_argument(
        '--output', '-o', type=Path, default=None,
        help='Write JSON summary here instead of stdout')
    args = parser.parse_args(argv)

    params = CoreParameters.from_file(args.config) if args.config else CoreParameters.defaults()
    logging.basicConfig(level=getattr(logging, params.log_level, logging.INFO),
                        format='%(levelname)s: %(message)s')

    documents: List[Dict[str, Any]] = []
    failures = 0
    for export_path in args.exports:
        if not export_path.exists():
            logger.error(f"Export not found: {export_path}")
            failures += 1
            continue
        try:
            documents.append(process_document(
                export_path, params,
                actors=args.actor,
                actor_types=args.actor_types,
                include_graph=args.graph,
            ))
        except (CaptureGraphError, ExportFormatError, ValueError, OSError) as e:
            logger.error(f"  [Core] Skipping {export_path.name}: {e}")
            failures += 1

    report = {"documents": documents, "failures": failures}
    if args.output:
        with open(args.output, 'w', encoding='utf-8') as f:
            json.dump(report, f, indent=2)
        logger.info(f"Summary written: {args.output}")
    else:
        json.dump(report, sys.stdout, indent=2)
        sys.stdout.write("\n")

    return 1 if failures else 0


if __name__ == '__main__':
    sys.exit(main())
