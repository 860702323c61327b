import csv
import json
from datetime import datetime, timezone

import pytest

from configs.settings import LoggerConfig
from exceptions import ExportError
from record.data_logger import CSV_HEADER, DataLogger, TargetData, closest_target_number

FIXED_TIME = datetime(2024, 5, 4, 13, 45, 9, tzinfo=timezone.utc)

TARGETS = [
    {"centerX": 100.4, "centerY": 80.0, "radius": 18.0, "targetNumber": 1, "isCircular": True, "quadrant": 1},
    {"centerX": 240.0, "centerY": 160.0, "radius": 18.0, "targetNumber": 2, "isCircular": True, "quadrant": 4},
]


def _ball(x, y, vx=1.5, vy=-2.0):
    return {"x": x, "y": y, "radius": 8.0, "velocityX": vx, "velocityY": vy, "trackId": 1}


@pytest.fixture
def data_logger() -> DataLogger:
    return DataLogger(LoggerConfig(max_frame_data=5), clock=lambda: FIXED_TIME)


def test_frame_buffer_is_bounded(data_logger: DataLogger) -> None:
    for frame in range(1, 9):
        data_logger.log_frame(frame, None, [], False)

    assert len(data_logger.frame_data) == 5
    assert data_logger.frame_data[0].frame_number == 4


def test_ball_position_is_truncated(data_logger: DataLogger) -> None:
    record = data_logger.log_frame(1, _ball(10.7, 20.2), TARGETS, False)

    assert record.ball_position == (10.0, 20.0)
    assert record.ball_velocity == (1.5, -2.0)
    assert record.targets[0].center_x == 100
    assert record.impact_position is None


def test_incomplete_targets_are_dropped() -> None:
    assert TargetData.from_dict({"centerX": 1, "centerY": 2}) is None
    assert TargetData.from_dict(dict(TARGETS[0], radius=None)) is None
    assert TargetData.from_dict(TARGETS[1]).quadrant == 4


def test_impact_event_records_closest_target(data_logger: DataLogger) -> None:
    data_logger.log_frame(1, _ball(230, 150), TARGETS, True)

    assert len(data_logger.impact_events) == 1
    event = data_logger.impact_events[0]
    assert event.target_hit == 2
    assert event.position == (230.0, 150.0)
    assert data_logger.frame_data[-1].impact_position == (230.0, 150.0)


def test_impact_without_ball_is_not_an_event(data_logger: DataLogger) -> None:
    data_logger.log_frame(1, None, TARGETS, True)
    assert data_logger.impact_events == []


def test_closest_target_number_skips_bad_targets() -> None:
    assert closest_target_number((0.0, 0.0), [{"centerX": "x"}]) is None
    assert closest_target_number((110.0, 90.0), TARGETS) == 1


def test_summary(data_logger: DataLogger) -> None:
    data_logger.log_frame(1, _ball(10, 10), TARGETS, False)
    data_logger.log_frame(2, None, TARGETS[:1], False)
    data_logger.log_frame(3, _ball(230, 150), [], True)

    summary = data_logger.summary()

    assert summary["totalFrames"] == 3
    assert summary["totalImpacts"] == 1
    assert summary["framesWithBall"] == 2
    assert summary["averageTargets"] == 1
    assert summary["sessionDuration"] == pytest.approx(0.1)


def test_summary_of_empty_log(data_logger: DataLogger) -> None:
    assert data_logger.summary() == {
        "totalFrames": 0,
        "totalImpacts": 0,
        "framesWithBall": 0,
        "averageTargets": 0,
        "sessionDuration": 0.0,
    }


def test_export_json(data_logger: DataLogger, tmp_path) -> None:
    data_logger.log_frame(1, _ball(230, 150), TARGETS, True)

    path = data_logger.export_json(tmp_path)

    assert path.name == "bounce_back_data_2024-05-04_13-45-09.json"
    payload = json.loads(path.read_text())
    assert payload["schemaVersion"]
    frame = payload["frameData"][0]
    assert frame["frameNumber"] == 1
    assert frame["ballPositionX"] == 230.0
    assert frame["impactPositionY"] == 150.0
    assert frame["targets"][0]["targetNumber"] == 1
    assert payload["impactEvents"][0]["targetHit"] == 2
    assert payload["summary"]["totalImpacts"] == 1


def test_export_csv(data_logger: DataLogger, tmp_path) -> None:
    data_logger.log_frame(1, _ball(10.9, 20.0), TARGETS, False)
    data_logger.log_frame(2, None, [], True)

    path = data_logger.export_csv(tmp_path)

    with path.open(newline="") as handle:
        rows = list(csv.reader(handle))
    assert rows[0] == CSV_HEADER
    assert rows[1][1:] == ["1", "10", "20", "1.5", "-2", "2", "false", "0", "0"]
    assert rows[2][1:] == ["2", "0", "0", "0", "0", "0", "true", "0", "0"]


def test_export_into_file_path_raises(data_logger: DataLogger, tmp_path) -> None:
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("x")

    with pytest.raises(ExportError):
        data_logger.export_json(blocker)
    with pytest.raises(ExportError):
        data_logger.export_csv(blocker)


def test_clear(data_logger: DataLogger) -> None:
    data_logger.log_frame(1, _ball(230, 150), TARGETS, True)
    data_logger.clear()

    assert len(data_logger.frame_data) == 0
    assert data_logger.impact_events == []
