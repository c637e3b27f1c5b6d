"""Small on-disk dataset used by the tests.

Three scenes in one log: scene-1 (three samples, a lidar and a camera
stream), scene-2 (two samples, earlier in time than scene-1) and scene-3
(no samples). Sample and sample_data tables are deliberately stored out of
chronological order.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

VERSION = "v1.0-test"

Tables = dict[str, list[dict[str, Any]]]


def _linked(records: list[dict[str, Any]]) -> list[dict[str, Any]]:
    for position, record in enumerate(records):
        record["prev"] = records[position - 1]["token"] if position > 0 else ""
        record["next"] = records[position + 1]["token"] if position + 1 < len(records) else ""
    return records


def _sample(token: str, scene: str, timestamp: int) -> dict[str, Any]:
    return {"token": token, "scene_token": scene, "timestamp": timestamp}


def _sample_data(
    token: str,
    sample: str,
    calibrated_sensor: str,
    timestamp: int,
    filename: str,
    fileformat: str,
    is_key_frame: bool = True,
) -> dict[str, Any]:
    return {
        "token": token,
        "sample_token": sample,
        "ego_pose_token": f"ep-{token}",
        "calibrated_sensor_token": calibrated_sensor,
        "timestamp": timestamp,
        "fileformat": fileformat,
        "is_key_frame": is_key_frame,
        "height": 0 if fileformat == "pcd" else 900,
        "width": 0 if fileformat == "pcd" else 1600,
        "filename": filename,
    }


def _annotation(token: str, sample: str, instance: str, attributes: list[str], visibility: str) -> dict[str, Any]:
    return {
        "token": token,
        "sample_token": sample,
        "instance_token": instance,
        "attribute_tokens": attributes,
        "visibility_token": visibility,
        "translation": [1.0, 2.0, 0.5],
        "size": [1.9, 4.5, 1.6],
        "rotation": [1.0, 0.0, 0.0, 0.0],
        "num_lidar_pts": 12,
        "num_radar_pts": 0,
    }


def build_tables() -> Tables:
    scene1 = _linked(
        [
            _sample("s1-1", "scene-1", 1_000_000),
            _sample("s1-2", "scene-1", 1_500_000),
            _sample("s1-3", "scene-1", 2_000_000),
        ]
    )
    scene2 = _linked(
        [
            _sample("s2-1", "scene-2", 100_000),
            _sample("s2-2", "scene-2", 600_000),
        ]
    )
    s1_1, s1_2, s1_3 = scene1
    s2_1, s2_2 = scene2

    lidar1 = _linked(
        [
            _sample_data("sd-l1-1", "s1-1", "cs-lidar", 1_000_000, "samples/LIDAR_TOP/l1-1.pcd.bin", "pcd"),
            _sample_data(
                "sd-l1-sweep", "s1-1", "cs-lidar", 1_250_000, "sweeps/LIDAR_TOP/l1-sweep.pcd.bin", "pcd", False
            ),
            _sample_data("sd-l1-2", "s1-2", "cs-lidar", 1_500_000, "samples/LIDAR_TOP/l1-2.pcd.bin", "pcd"),
            _sample_data("sd-l1-3", "s1-3", "cs-lidar", 2_000_000, "samples/LIDAR_TOP/l1-3.pcd.bin", "pcd"),
        ]
    )
    camera1 = _linked(
        [
            _sample_data("sd-c1-1", "s1-1", "cs-cam", 1_000_010, "samples/CAM_FRONT/c1-1.jpg", "jpg"),
            _sample_data("sd-c1-2", "s1-2", "cs-cam", 1_500_010, "samples/CAM_FRONT/c1-2.jpg", "jpg"),
        ]
    )
    lidar2 = _linked(
        [
            _sample_data("sd-l2-1", "s2-1", "cs-lidar", 100_000, "samples/LIDAR_TOP/l2-1.pcd.bin", "pcd"),
            _sample_data("sd-l2-2", "s2-2", "cs-lidar", 600_000, "samples/LIDAR_TOP/l2-2.pcd.bin", "pcd"),
        ]
    )
    sample_data = [lidar1[3], *camera1, lidar1[0], lidar1[1], lidar1[2], *lidar2]

    car_track = _linked(
        [
            _annotation("ann-1", "s1-1", "inst-1", ["attr-moving"], "vis-4"),
            _annotation("ann-2", "s1-2", "inst-1", [], "vis-4"),
        ]
    )
    single = _linked([_annotation("ann-3", "s2-1", "inst-2", [], "")])

    return {
        "attribute": [{"token": "attr-moving", "name": "vehicle.moving", "description": "moving"}],
        "visibility": [{"token": "vis-4", "level": "v80-100", "description": "fully visible"}],
        "category": [{"token": "cat-car", "name": "vehicle.car", "description": "car"}],
        "sensor": [
            {"token": "sensor-lidar", "channel": "LIDAR_TOP", "modality": "lidar"},
            {"token": "sensor-cam", "channel": "CAM_FRONT", "modality": "camera"},
        ],
        "calibrated_sensor": [
            {
                "token": "cs-lidar",
                "sensor_token": "sensor-lidar",
                "translation": [0.9, 0.0, 1.8],
                "rotation": [0.7, 0.0, 0.0, 0.7],
                "camera_intrinsic": [],
            },
            {
                "token": "cs-cam",
                "sensor_token": "sensor-cam",
                "translation": [1.7, 0.0, 1.5],
                "rotation": [0.5, -0.5, 0.5, -0.5],
                "camera_intrinsic": [[1266.4, 0.0, 816.3], [0.0, 1266.4, 491.5], [0.0, 0.0, 1.0]],
            },
        ],
        "ego_pose": [
            {
                "token": f"ep-{record['token']}",
                "timestamp": record["timestamp"],
                "translation": [400.0, 1100.0, 0.0],
                "rotation": [0.6, 0.0, 0.0, -0.8],
            }
            for record in sample_data
        ],
        "log": [
            {
                "token": "log-1",
                "logfile": "n015-2018-07-24-11-22-45+0800",
                "vehicle": "n015",
                "date_captured": "2018-07-24",
                "location": "singapore-onenorth",
            }
        ],
        "map": [
            {
                "token": "map-1",
                "log_tokens": ["log-1"],
                "category": "semantic_prior",
                "filename": "maps/map-1.png",
            }
        ],
        "scene": [
            {
                "token": "scene-1",
                "log_token": "log-1",
                "nbr_samples": 3,
                "first_sample_token": "s1-1",
                "last_sample_token": "s1-3",
                "name": "scene-0001",
                "description": "later scene",
            },
            {
                "token": "scene-2",
                "log_token": "log-1",
                "nbr_samples": 2,
                "first_sample_token": "s2-1",
                "last_sample_token": "s2-2",
                "name": "scene-0002",
                "description": "earlier scene",
            },
            {
                "token": "scene-3",
                "log_token": "log-1",
                "nbr_samples": 0,
                "first_sample_token": "",
                "last_sample_token": "",
                "name": "scene-0003",
                "description": "no samples",
            },
        ],
        "sample": [s1_3, s1_1, s2_2, s1_2, s2_1],
        "instance": [
            {
                "token": "inst-1",
                "category_token": "cat-car",
                "nbr_annotations": 2,
                "first_annotation_token": "ann-1",
                "last_annotation_token": "ann-2",
            },
            {
                "token": "inst-2",
                "category_token": "cat-car",
                "nbr_annotations": 1,
                "first_annotation_token": "ann-3",
                "last_annotation_token": "ann-3",
            },
        ],
        "sample_annotation": [*car_track, *single],
        "sample_data": sample_data,
    }


def find(tables: Tables, kind: str, token: str) -> dict[str, Any]:
    for record in tables[kind]:
        if record["token"] == token:
            return record
    raise KeyError(f"{kind} {token}")


def write_dataset(root: Path, tables: Tables | None = None, version: str = VERSION) -> Path:
    """Write ``tables`` as ``root/version/<kind>.json`` and return ``root``."""
    tables = build_tables() if tables is None else tables
    meta_dir = root / version
    meta_dir.mkdir(parents=True, exist_ok=True)
    for kind, records in tables.items():
        (meta_dir / f"{kind}.json").write_text(json.dumps(records, indent=1), encoding="utf-8")
    return root
