from __future__ import annotations

import unittest

from dataset_builder import build_tables, find

from nsd.errors import DanglingReference, DatasetValidationError, DuplicateToken, InvalidField, NotFound
from nsd.index.token_index import (
    ANNOTATIONS_BY_SAMPLE,
    MAPS_BY_LOG,
    SAMPLE_DATA_BY_STREAM,
    SAMPLES_BY_SCENE,
    StreamKey,
    build_token_index,
)


class TokenIndexTests(unittest.TestCase):
    def test_counts_and_table_order(self) -> None:
        index = build_token_index(build_tables())

        self.assertEqual(index.count("scene"), 3)
        self.assertEqual(index.count("sample_data"), 8)
        self.assertEqual(index.tokens("sample"), ("s1-3", "s1-1", "s2-2", "s1-2", "s2-1"))
        self.assertEqual(index.kinds()[0], "attribute")

    def test_grouping_indices_follow_table_order(self) -> None:
        index = build_token_index(build_tables())

        self.assertEqual(index.group(SAMPLES_BY_SCENE, "scene-1"), ("s1-3", "s1-1", "s1-2"))
        self.assertEqual(index.group(SAMPLES_BY_SCENE, "scene-3"), ())
        self.assertEqual(index.group(ANNOTATIONS_BY_SAMPLE, "s1-1"), ("ann-1",))
        self.assertEqual(index.group(MAPS_BY_LOG, "log-1"), ("map-1",))
        self.assertEqual(
            index.group(SAMPLE_DATA_BY_STREAM, StreamKey("cs-cam", "scene-1")),
            ("sd-c1-1", "sd-c1-2"),
        )
        self.assertEqual(
            index.group_keys(SAMPLE_DATA_BY_STREAM),
            (
                StreamKey("cs-lidar", "scene-1"),
                StreamKey("cs-cam", "scene-1"),
                StreamKey("cs-lidar", "scene-2"),
            ),
        )

    def test_records_are_read_only(self) -> None:
        index = build_token_index(build_tables())
        record = index.get("scene", "scene-1")

        self.assertEqual(record["name"], "scene-0001")
        with self.assertRaises(TypeError):
            record["name"] = "changed"  # type: ignore[index]

    def test_nested_values_are_read_only(self) -> None:
        index = build_token_index(build_tables())

        annotation = index.get("sample_annotation", "ann-1")
        self.assertEqual(annotation["attribute_tokens"], ("attr-moving",))
        with self.assertRaises(AttributeError):
            annotation["translation"].append(0.0)  # type: ignore[attr-defined]

        intrinsic = index.get("calibrated_sensor", "cs-cam")["camera_intrinsic"]
        self.assertIsInstance(intrinsic[0], tuple)
        with self.assertRaises(TypeError):
            intrinsic[0][0] = 0.0  # type: ignore[index]

    def test_missing_timestamp_is_invalid(self) -> None:
        tables = build_tables()
        del find(tables, "sample", "s1-2")["timestamp"]

        with self.assertRaises(InvalidField) as ctx:
            build_token_index(tables)
        self.assertEqual(ctx.exception.kind, "sample")
        self.assertEqual(ctx.exception.token, "s1-2")
        self.assertEqual(ctx.exception.field, "timestamp")

    def test_non_integer_timestamp_is_invalid(self) -> None:
        tables = build_tables()
        find(tables, "sample_data", "sd-c1-2")["timestamp"] = "1500010"

        with self.assertRaises(InvalidField) as ctx:
            build_token_index(tables)
        self.assertEqual(ctx.exception.kind, "sample_data")
        self.assertEqual(ctx.exception.token, "sd-c1-2")
        self.assertIsInstance(ctx.exception, DatasetValidationError)

    def test_unknown_token_is_not_found(self) -> None:
        index = build_token_index(build_tables())

        with self.assertRaises(NotFound) as ctx:
            index.get("sample", "missing")
        self.assertIsInstance(ctx.exception, KeyError)
        self.assertEqual(ctx.exception.kind, "sample")
        self.assertFalse(index.contains("sample", "missing"))

    def test_duplicate_token(self) -> None:
        tables = build_tables()
        tables["sample"].append(dict(find(tables, "sample", "s1-1")))

        with self.assertRaises(DuplicateToken) as ctx:
            build_token_index(tables)
        self.assertEqual(ctx.exception.kind, "sample")
        self.assertEqual(ctx.exception.token, "s1-1")

    def test_empty_token_is_rejected(self) -> None:
        tables = build_tables()
        tables["category"].append({"token": "", "name": "nameless"})

        with self.assertRaises(DuplicateToken) as ctx:
            build_token_index(tables)
        self.assertEqual(ctx.exception.kind, "category")
        self.assertEqual(ctx.exception.token, "")

    def test_dangling_annotation_sample(self) -> None:
        tables = build_tables()
        find(tables, "sample_annotation", "ann-2")["sample_token"] = "does-not-exist"

        with self.assertRaises(DanglingReference) as ctx:
            build_token_index(tables)
        error = ctx.exception
        self.assertEqual(error.kind, "sample_annotation")
        self.assertEqual(error.token, "ann-2")
        self.assertEqual(error.field, "sample_token")
        self.assertEqual(error.missing, "does-not-exist")

    def test_dangling_annotation_instance(self) -> None:
        tables = build_tables()
        find(tables, "sample_annotation", "ann-3")["instance_token"] = "inst-404"

        with self.assertRaises(DanglingReference) as ctx:
            build_token_index(tables)
        self.assertEqual(ctx.exception.field, "instance_token")
        self.assertEqual(ctx.exception.missing, "inst-404")

    def test_first_dangling_reference_in_scan_order_wins(self) -> None:
        tables = build_tables()
        find(tables, "sample_data", "sd-l2-2")["ego_pose_token"] = "gone"
        find(tables, "calibrated_sensor", "cs-cam")["sensor_token"] = "gone"

        with self.assertRaises(DanglingReference) as ctx:
            build_token_index(tables)
        self.assertEqual(ctx.exception.kind, "calibrated_sensor")
        self.assertEqual(ctx.exception.token, "cs-cam")

    def test_empty_required_reference(self) -> None:
        tables = build_tables()
        find(tables, "scene", "scene-2")["log_token"] = ""

        with self.assertRaises(DanglingReference) as ctx:
            build_token_index(tables)
        self.assertEqual(ctx.exception.field, "log_token")
        self.assertEqual(ctx.exception.missing, "")

    def test_dangling_attribute_in_list(self) -> None:
        tables = build_tables()
        find(tables, "sample_annotation", "ann-1")["attribute_tokens"] = ["attr-moving", "attr-gone"]

        with self.assertRaises(DanglingReference) as ctx:
            build_token_index(tables)
        self.assertEqual(ctx.exception.field, "attribute_tokens")
        self.assertEqual(ctx.exception.missing, "attr-gone")

    def test_empty_optional_references_are_absent(self) -> None:
        tables = build_tables()
        tables.pop("map")

        index = build_token_index(tables)

        self.assertEqual(index.count("map"), 0)
        self.assertEqual(index.group(MAPS_BY_LOG, "log-1"), ())
        self.assertEqual(index.get("sample_annotation", "ann-3")["visibility_token"], "")


if __name__ == "__main__":
    unittest.main()
