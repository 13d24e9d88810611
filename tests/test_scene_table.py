from vnd_re.vnd.cursor import ByteCursor
from vnd_re.vnd.model import Polygon, Rectangle
from vnd_re.vnd.scene_table import (
    decode_scene_table,
    find_next_descriptor,
    looks_like_descriptor,
)

from helpers import descriptor, shape, simple, u32


def test_flat_scenes_split_at_descriptors():
    data = (
        u32(2)
        + descriptor("Hall", 1, "hall.bmp")
        + simple(11, "hall.wav")
        + simple(10, "door.bmp 5 6 2")
        + simple(6, "Kitchen")
        + shape([(0, 0), (20, 20)], tag=100)
        + descriptor("Kitchen", 0, "kitchen.bmp")
        + simple(10, "oven.bmp")
        + shape([(5, 5), (10, 5), (10, 10)])
    )
    table = decode_scene_table(ByteCursor(data))

    assert table.count == 2
    hall, kitchen = table.scenes
    assert (hall.name, hall.flag, hall.background_path) == ("Hall", 1, "hall.bmp")
    assert [r.text for r in hall.on_enter_commands] == ["hall.wav"]
    (door,) = hall.hotspots
    assert door.position == (5, 6, 2)
    assert [r.describe() for r in door.trigger_commands] == ["SCENE Kitchen"]
    assert door.shape == Rectangle(0, 0, 20, 20)

    assert kitchen.name == "Kitchen"
    assert isinstance(kitchen.hotspots[0].shape, Polygon)
    assert table.scene_offsets == (4, data.index(b"Kitchen\x00"))


def test_descriptor_plausibility():
    data = descriptor("Hall", 1, "a.bmp")
    assert looks_like_descriptor(data, 0)
    assert not looks_like_descriptor(b"\x00" + data, 0)
    assert not looks_like_descriptor(descriptor("Hall", 9, "a.bmp"), 0)
    assert not looks_like_descriptor(b"Hall\x00x" + data[6:], 0)
    assert not looks_like_descriptor(data[:40], 0)


def test_next_descriptor_found_after_gap():
    data = b"\x01\x02\x03\x04" + descriptor("Garden", 0, "g.bmp")
    assert find_next_descriptor(data, 0) == 4
    assert find_next_descriptor(b"\x00" * 100, 0) is None


def test_missing_descriptors_end_the_table():
    data = u32(3) + descriptor("Only", 0, "") + simple(11, "a.wav")
    table = decode_scene_table(ByteCursor(data))
    assert table.count == 3
    assert [s.name for s in table.scenes] == ["Only"]
    assert table.scenes[0].on_enter_commands[0].text == "a.wav"
