#!/usr/bin/env python3
"""FModel export adapter tests using small mock export documents."""

import json
import sys
import tempfile
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

from fmodel_export import (
    ExportFormatError,
    actors_of_type,
    extract_node_name,
    load_export,
    read_capture_links,
    read_component_records,
    read_vector,
)
from spatial import Rotation, Vector3

LEVEL = "/Game/Maps/Test/Test_Layer.Test_Layer:PersistentLevel"


def make_component_node(name, outer, type_tag="SceneComponent", parent=None, **properties):
    """Mock export object for a component."""
    props = dict(properties)
    if parent:
        props["AttachParent"] = {"ObjectName": f"SceneComponent'{LEVEL}.{parent}'"}
    return {"Type": type_tag, "Name": name, "Outer": outer, "Properties": props}


def make_node_ref(name):
    return {"ObjectName": f"BP_CaptureZoneCluster_C'{LEVEL}.{name}'"}


def make_initializer(*pairs):
    """Mock graph initializer with DesignOutgoingLinks for (node_a, node_b) pairs."""
    return {
        "Type": "SQGraphRAASInitializerComponent",
        "Name": "SQGraphRAASInitializer",
        "Outer": "BP_RAAS_Graph_C_1",
        "Properties": {
            "DesignOutgoingLinks": [{"NodeA": make_node_ref(a), "NodeB": make_node_ref(b)} for a, b in pairs],
        },
    }


class TestFieldReaders(unittest.TestCase):

    def test_read_vector_missing_axis(self):
        self.assertEqual(read_vector({"X": 1.5, "Z": "2"}), Vector3(1.5, 0.0, 2.0))

    def test_read_vector_missing_object(self):
        self.assertIsNone(read_vector(None, default=None))

    def test_extract_node_name(self):
        self.assertEqual(extract_node_name(f"BP_CaptureZoneCluster_C'{LEVEL}.Cluster_A'"), "Cluster_A")

    def test_extract_node_name_malformed(self):
        for bad in (None, "", "NoDotOrQuote", "Quote'Before.Dot"):
            with self.subTest(value=bad):
                with self.assertRaises(ExportFormatError):
                    extract_node_name(bad)


class TestComponentRecords(unittest.TestCase):

    def test_reads_transform_fields(self):
        nodes = [make_component_node(
            "DefaultSceneRoot", "BP_Spawner_C_3",
            parent="BP_Base_C_1.DefaultSceneRoot",
            RelativeLocation={"X": 100.0, "Y": 0.0, "Z": 50.0},
            RelativeRotation={"Pitch": 0.0, "Yaw": 90.0, "Roll": 0.0},
        )]
        record = read_component_records(nodes)[0]
        self.assertEqual(record.owner, "BP_Spawner_C_3")
        self.assertEqual(record.location, Vector3(100.0, 0.0, 50.0))
        self.assertEqual(record.rotation, Rotation(0.0, 90.0, 0.0))
        self.assertIsNone(record.scale)
        self.assertTrue(record.attach_parent.endswith(".BP_Base_C_1.DefaultSceneRoot'"))

    def test_collision_fields(self):
        nodes = [
            make_component_node("Box", "Zone", "BoxComponent", BoxExtent={"X": 1, "Y": 2, "Z": 3}),
            make_component_node("Capsule", "Zone", "CapsuleComponent", CapsuleRadius=10, CapsuleHalfHeight=50),
        ]
        box, capsule = read_component_records(nodes)
        self.assertEqual(box.box_extent, Vector3(1, 2, 3))
        self.assertEqual((capsule.capsule_radius, capsule.capsule_half_height), (10.0, 50.0))

    def test_filters_by_type(self):
        nodes = [
            make_component_node("Root", "A"),
            make_component_node("Mesh", "A", "StaticMeshComponent"),
            {"Type": "BP_Spawner_C", "Name": "A"},
        ]
        self.assertEqual([r.name for r in read_component_records(nodes)], ["Root"])
        records = read_component_records(nodes, component_types=["StaticMeshComponent"])
        self.assertEqual([r.name for r in records], ["Mesh"])

    def test_actors_of_type(self):
        nodes = [
            {"Type": "BP_CaptureZoneMain_C", "Name": "Main_1"},
            {"Type": "BP_CaptureZone_C", "Name": "Zone_1"},
            {"Type": "BP_CaptureZoneMain_C", "Name": "Main_2"},
            {"Type": "BP_CaptureZoneMain_C", "Name": "Main_1"},
        ]
        self.assertEqual(actors_of_type(nodes, "BP_CaptureZoneMain_C"), ["Main_1", "Main_2"])


class TestCaptureLinks(unittest.TestCase):

    def test_reads_design_links(self):
        nodes = [make_component_node("Root", "A"), make_initializer(("Team1Main", "A1"), ("A1", "Team2Main"))]
        links = read_capture_links(nodes)
        self.assertEqual([(l.name, l.node_a, l.node_b) for l in links], [
            ("Link0", "Team1Main", "A1"),
            ("Link1", "A1", "Team2Main"),
        ])

    def test_missing_initializer(self):
        with self.assertRaises(ExportFormatError):
            read_capture_links([make_component_node("Root", "A")])

    def test_missing_link_array(self):
        initializer = make_initializer()
        del initializer["Properties"]["DesignOutgoingLinks"]
        with self.assertRaises(ExportFormatError):
            read_capture_links([initializer])

    def test_missing_endpoint(self):
        initializer = make_initializer(("A", "B"))
        del initializer["Properties"]["DesignOutgoingLinks"][0]["NodeB"]
        with self.assertRaises(ExportFormatError):
            read_capture_links([initializer])


class TestLoadExport(unittest.TestCase):

    def test_load_array(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "layer.json"
            path.write_text(json.dumps([make_component_node("Root", "A"), "junk"]), encoding='utf-8')
            nodes = load_export(path)
        self.assertEqual(len(nodes), 1)

    def test_load_rejects_object(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "layer.json"
            path.write_text(json.dumps({"Type": "SceneComponent"}), encoding='utf-8')
            with self.assertRaises(ExportFormatError):
                load_export(path)


if __name__ == '__main__':
    unittest.main(verbosity=2)
