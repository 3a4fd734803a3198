#!/usr/bin/env python3
"""
End-to-end tests for the export core: parameters file loading,
per-document processing and the command-line entry point.
"""

import json
import sys
import tempfile
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

from core_config import CoreParameters
from export_core import main, process_document

LEVEL = "/Game/Maps/Test/Test_Layer.Test_Layer:PersistentLevel"


def make_layer_export():
    """Mock layer: one spawner attached to a base, plus a three-node capture graph."""
    def ref(name):
        return {"ObjectName": f"BP_CaptureZone_C'{LEVEL}.{name}'"}

    return [
        {"Type": "BP_Base_C", "Name": "BP_Base_C_1"},
        {"Type": "SceneComponent", "Name": "DefaultSceneRoot", "Outer": "BP_Base_C_1",
         "Properties": {"RelativeLocation": {"X": 1000, "Y": 0, "Z": 0},
                        "RelativeRotation": {"Pitch": 0, "Yaw": 90, "Roll": 0}}},
        {"Type": "BP_Spawner_C", "Name": "BP_Spawner_C_3"},
        {"Type": "SceneComponent", "Name": "DefaultSceneRoot", "Outer": "BP_Spawner_C_3",
         "Properties": {"RelativeLocation": {"X": 100, "Y": 0, "Z": 0},
                        "AttachParent": {"ObjectName": f"SceneComponent'{LEVEL}.BP_Base_C_1.DefaultSceneRoot'"}}},
        {"Type": "BoxComponent", "Name": "Trigger", "Outer": "BP_Spawner_C_3",
         "Properties": {"BoxExtent": {"X": 10, "Y": 10, "Z": 10},
                        "AttachParent": {"ObjectName": f"SceneComponent'{LEVEL}.BP_Spawner_C_3.DefaultSceneRoot'"}}},
        {"Type": "SQGraphRAASInitializerComponent", "Name": "Initializer", "Outer": "BP_Graph_C_1",
         "Properties": {"DesignOutgoingLinks": [
             {"NodeA": ref("Team1_Main_1"), "NodeB": ref("A1")},
             {"NodeA": ref("A1"), "NodeB": ref("Team2Main")},
         ]}},
    ]


def write_json(directory, name, data):
    path = Path(directory) / name
    path.write_text(json.dumps(data), encoding='utf-8')
    return path


class TestCoreParameters(unittest.TestCase):

    def test_defaults(self):
        params = CoreParameters.defaults()
        self.assertEqual(params.root_component_names, ["DefaultSceneRoot", "Root"])
        self.assertEqual(params.initializer_type, "SQGraphRAASInitializerComponent")
        self.assertEqual(params.log_level, "INFO")

    def test_from_file_with_comments(self):
        content = """
        {
            // Prefer a custom pivot
            "root_component_names": ["Pivot"],
            /* graph labels */
            "capture_graph": {"attack_main_label": "Attack"},
            "logging": {"level": "debug"}
        }
        """
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "params.json"
            path.write_text(content, encoding='utf-8')
            params = CoreParameters.from_file(path)
        self.assertEqual(params.root_component_names, ["Pivot"])
        self.assertEqual(params.attack_main_label, "Attack")
        self.assertEqual(params.defense_main_label, "Z-Team2 Main")
        self.assertEqual(params.log_level, "DEBUG")

    def test_invalid_values_fall_back(self):
        params = CoreParameters.from_dict({
            "component_types": [],
            "capture_graph": "nope",
            "logging": {"level": "LOUD"},
        })
        self.assertEqual(params.component_types, CoreParameters().component_types)
        self.assertEqual(params.attack_main_label, "00-Team1 Main")
        self.assertEqual(params.log_level, "INFO")


class TestProcessDocument(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.export_path = write_json(self.tmp.name, "layer.json", make_layer_export())

    def tearDown(self):
        self.tmp.cleanup()

    def test_actor_transform_through_parent(self):
        summary = process_document(self.export_path, CoreParameters.defaults(), actors=["BP_Spawner_C_3"])
        actor = summary["actors"]["BP_Spawner_C_3"]
        self.assertAlmostEqual(actor["location_x"], 1000.0)
        self.assertAlmostEqual(actor["location_y"], 100.0)
        self.assertAlmostEqual(actor["rotation_z"], 90.0)
        self.assertEqual(len(actor["volumes"]), 1)
        self.assertNotIn("captureGraph", summary)

    def test_actor_types_expand(self):
        summary = process_document(self.export_path, CoreParameters.defaults(),
                                   actor_types=["BP_Spawner_C", "BP_Base_C"])
        self.assertEqual(list(summary["actors"]), ["BP_Spawner_C_3", "BP_Base_C_1"])

    def test_capture_graph(self):
        summary = process_document(self.export_path, CoreParameters.defaults(), include_graph=True)
        self.assertEqual(summary["captureGraph"]["pointsOrder"], ["Team1 Main", "A1", "Team2 Main"])
        self.assertEqual(summary["mainOverrides"]["Team1_Main_1"], "00-Team1 Main")


class TestMain(unittest.TestCase):

    def test_bad_document_does_not_stop_run(self):
        with tempfile.TemporaryDirectory() as tmp:
            good = write_json(tmp, "good.json", make_layer_export())
            ambiguous = make_layer_export()
            ambiguous[-1]["Properties"]["DesignOutgoingLinks"].append({
                "NodeA": {"ObjectName": f"BP_CaptureZone_C'{LEVEL}.Extra'"},
                "NodeB": {"ObjectName": f"BP_CaptureZone_C'{LEVEL}.A1'"},
            })
            bad = write_json(tmp, "bad.json", ambiguous)
            output = Path(tmp) / "summary.json"

            code = main([str(good), str(bad), "--graph", "-a", "BP_Spawner_C_3", "-o", str(output)])
            report = json.loads(output.read_text(encoding='utf-8'))

        self.assertEqual(code, 1)
        self.assertEqual(report["failures"], 1)
        self.assertEqual([Path(d["file"]).name for d in report["documents"]], ["good.json"])

    def test_undecodable_document_does_not_stop_run(self):
        with tempfile.TemporaryDirectory() as tmp:
            bad = Path(tmp) / "bad.json"
            bad.write_bytes(b'\xff\xfe\x00garbage')
            good = write_json(tmp, "good.json", make_layer_export())
            output = Path(tmp) / "summary.json"

            code = main([str(bad), str(good), "-o", str(output)])
            report = json.loads(output.read_text(encoding='utf-8'))

        self.assertEqual(code, 1)
        self.assertEqual(report["failures"], 1)
        self.assertEqual([Path(d["file"]).name for d in report["documents"]], ["good.json"])

    def test_directory_path_counts_as_failure(self):
        with tempfile.TemporaryDirectory() as tmp:
            folder = Path(tmp) / "layer.json"
            folder.mkdir()
            good = write_json(tmp, "good.json", make_layer_export())
            output = Path(tmp) / "summary.json"

            code = main([str(folder), str(good), "-o", str(output)])
            report = json.loads(output.read_text(encoding='utf-8'))

        self.assertEqual(code, 1)
        self.assertEqual(len(report["documents"]), 1)

    def test_missing_file_counts_as_failure(self):
        with tempfile.TemporaryDirectory() as tmp:
            output = Path(tmp) / "summary.json"
            code = main([str(Path(tmp) / "absent.json"), "-o", str(output)])
            report = json.loads(output.read_text(encoding='utf-8'))
        self.assertEqual(code, 1)
        self.assertEqual(report["documents"], [])

    def test_success_returns_zero(self):
        with tempfile.TemporaryDirectory() as tmp:
            good = write_json(tmp, "good.json", make_layer_export())
            output = Path(tmp) / "summary.json"
            self.assertEqual(main([str(good), "-o", str(output)]), 0)


if __name__ == '__main__':
    unittest.main(verbosity=2)
