import pytest

from helpers import event_group, project_a, project_b, scene_b, shape, simple, wrapper


@pytest.fixture
def dialect_b_bytes() -> bytes:
    """Two-scene dialect B project with click, tip-text and dangling groups."""
    first = scene_b(
        wave="intro.wav",
        bitmap="images\\maison.bmp",
        groups=(
            event_group(
                1,
                [simple(10, "porte.bmp 10 20 1"), simple(22, "SCORE 5"), wrapper(6, "2")],
            )
            + shape([(100, 120), (10, 20)], tag=100)
            + event_group(2, [simple(11, "ding.wav")])
            + simple(39, "Arial 12")
            + simple(38, "Open the door")
            + shape([(0, 0), (50, 0), (50, 50), (0, 50)])
            + event_group(3, [simple(23, "VISITS")])
        ),
    )
    second = scene_b(
        marker_value=0x81,
        wave="music.wav",
        bitmap="fontain2.bmp",
        layout=0,
        sentinel=True,
        groups=event_group(1, [simple(6, "1")]) + shape([(0, 0), (639, 479)], tag=100),
    )
    return project_b([first, second], pairs=[("score", 0), ("visits", 3)])


@pytest.fixture
def dialect_a_bytes() -> bytes:
    """Two-scene dialect A project with interleaved records."""
    hall = (
        simple(11, "hall.wav")
        + simple(10, "door.bmp 5 6 2")
        + simple(6, "Kitchen")
        + shape([(0, 0), (20, 20)], tag=100)
        + simple(10, "lamp.bmp 1 1 0")
        + simple(23, "LAMP")
    )
    kitchen = simple(10, "oven.bmp 0 0 0") + simple(22, "HOT 1") + shape([(5, 5), (10, 5), (10, 10)])
    return project_a([("Hall", hall), ("Kitchen", kitchen)], pairs=[("lamp", 0)])
