import asyncio

import pytest

from vnd_re.engine.effects import EventType, RecordingEffects
from vnd_re.engine.interpreter import MAX_NESTING, CommandInterpreter
from vnd_re.engine.scenes import SceneManager
from vnd_re.engine.script import Instruction, parse_instruction
from vnd_re.engine.variables import VariableStore
from vnd_re.vnd.loader import link_sequential
from vnd_re.vnd.model import Hotspot, NullRecord, Scene, SimpleRecord, WrapperRecord


def make_interpreter(scenes=None):
    if scenes is None:
        scenes = link_sequential(
            (
                Scene(
                    0,
                    "Hall",
                    hotspots=(Hotspot(0), Hotspot(1)),
                    on_enter_commands=(SimpleRecord(11, "hall.wav"),),
                    on_exit_commands=(SimpleRecord(36, ""),),
                ),
                Scene(1, "Kitchen"),
                Scene(2, "Win"),
                Scene(3, "Lose"),
            )
        )
    effects = RecordingEffects()
    interp = CommandInterpreter(VariableStore(), SceneManager(scenes), effects)
    return interp, effects


def run(interp, *texts):
    asyncio.run(interp.execute([parse_instruction(t) for t in texts]))


def test_variable_commands_emit_changes():
    interp, effects = make_interpreter()
    asyncio.run(
        interp.execute(
            [
                SimpleRecord(22, "score 5"),
                SimpleRecord(23, "SCORE"),
                SimpleRecord(24, "SCORE 3"),
                SimpleRecord(23, "LIVES 2"),
            ]
        )
    )
    assert interp.variables.get("SCORE") == 3
    assert interp.variables.get("LIVES") == 2
    changes = [(e.data["name"], e.data["value"]) for e in effects.events_of(EventType.VARIABLE_CHANGE)]
    assert changes == [("SCORE", 5), ("SCORE", 6), ("SCORE", 3), ("LIVES", 2)]


def test_set_without_value_is_ignored():
    interp, effects = make_interpreter()
    run(interp, "set_var SCORE", "set_var SCORE abc")
    assert not interp.variables.exists("SCORE")
    assert effects.events_of(EventType.ERROR) == []


def test_if_selects_branch():
    interp, effects = make_interpreter()
    interp.variables.set("SCORE", 15)
    run(interp, "if SCORE > 10 then scene:Win else scene:Lose")
    assert interp.scenes.current_scene.name == "Win"

    interp.variables.set("SCORE", 1)
    run(interp, "if SCORE > 10 then scene:Win else scene:Lose")
    assert interp.scenes.current_scene.name == "Lose"


def test_malformed_condition_reports_error_and_continues():
    interp, effects = make_interpreter()
    run(interp, "if SCORE ~ 1 then quit", "inc_var AFTER")
    (error,) = effects.events_of(EventType.ERROR)
    assert error.data["verb"] == "IF"
    assert interp.variables.get("AFTER") == 1
    assert not interp.quit_requested


def test_scene_change_runs_exit_and_enter_lists():
    interp, effects = make_interpreter()
    asyncio.run(interp.go_to_scene(0))
    run(interp, "scene 2")
    assert effects.names() == [
        "go_to_scene",
        "play_wave",
        "stop_wave",
        "go_to_scene",
    ]
    assert effects.find("go_to_scene") == [(0,), (1,)]
    kinds = [e.type for e in effects.events if e.type in (EventType.SCENE_ENTER, EventType.SCENE_EXIT)]
    assert kinds == [EventType.SCENE_ENTER, EventType.SCENE_EXIT, EventType.SCENE_ENTER]


def test_unknown_scene_is_an_error():
    interp, effects = make_interpreter()
    run(interp, "scene Cellar")
    assert interp.scenes.current_index == -1
    assert "Cellar" in effects.events_of(EventType.ERROR)[0].data["error"]


def test_nested_scene_change_is_ignored_during_transition():
    scenes = (
        Scene(0, "A", on_enter_commands=(WrapperRecord(6, "B"),)),
        Scene(1, "B"),
    )
    interp, effects = make_interpreter(scenes)
    assert asyncio.run(interp.go_to_scene(0))
    assert interp.scenes.current_index == 0
    assert effects.find("go_to_scene") == [(0,)]


def test_directional_navigation():
    interp, effects = make_interpreter()
    asyncio.run(interp.go_to_scene(0))
    run(interp, "next", "next")
    assert interp.scenes.current_index == 2
    run(interp, "prev")
    assert interp.scenes.current_index == 1
    run(interp, "left")
    assert interp.scenes.current_index == 1
    assert effects.names().count("navigate_forward") == 2
    assert "navigate_backward" in effects.names()
    assert "navigate_left" not in effects.names()


def test_backward_falls_back_to_history():
    scenes = (Scene(0, "A"), Scene(1, "B"), Scene(2, "C"))
    interp, _ = make_interpreter(scenes)
    asyncio.run(interp.go_to_scene(2))
    asyncio.run(interp.go_to_scene(0))
    run(interp, "backward")
    assert interp.scenes.current_index == 2
    assert interp.scenes.history == [2, 0]
    assert interp.scenes.history_position == 0


def test_hotspot_enable_disable():
    interp, effects = make_interpreter()
    asyncio.run(interp.go_to_scene(0))
    run(interp, "hotspot 1 0")
    assert not interp.scenes.is_hotspot_enabled(0, 1)
    run(interp, "enable 1", "disable 0")
    assert interp.scenes.is_hotspot_enabled(0, 1)
    assert not interp.scenes.is_hotspot_enabled(0, 0)
    run(interp, "hotspot 9")
    assert len(effects.events_of(EventType.ERROR)) == 1


def test_hotspot_flag_must_be_numeric():
    interp, effects = make_interpreter()
    asyncio.run(interp.go_to_scene(0))
    run(interp, "disable 1", "hotspot 1 off")
    assert not interp.scenes.is_hotspot_enabled(0, 1)
    (error,) = effects.events_of(EventType.ERROR)
    assert error.data["verb"] == "HOTSPOT"


def test_media_and_display_commands():
    interp, effects = make_interpreter()
    asyncio.run(
        interp.execute(
            [
                SimpleRecord(11, "ding.wav 1 50"),
                SimpleRecord(12, "theme.mid"),
                SimpleRecord(9, "intro.avi 10 20 0"),
                SimpleRecord(10, "images\\door.bmp 1 2 3"),
                SimpleRecord(39, "Arial 12"),
                SimpleRecord(38, "Hello"),
                SimpleRecord(41, "label Some text"),
                SimpleRecord(27, "sprite cat.bmp 4 5 6"),
                SimpleRecord(44, "sprite"),
                SimpleRecord(43, "sprite"),
                SimpleRecord(26, "hand"),
                SimpleRecord(25, ""),
                SimpleRecord(36, ""),
                SimpleRecord(48, ""),
                SimpleRecord(47, ""),
                SimpleRecord(5, ""),
                NullRecord(),
            ]
        )
    )
    assert effects.find("play_wave") == [("ding.wav", True, 50)]
    assert effects.find("play_midi") == [("theme.mid", False)]
    assert effects.find("play_avi") == [("intro.avi", {"x": 10, "y": 20, "z": 0})]
    assert effects.find("show_image") == [
        ("door", {"path": "images\\door.bmp", "x": 1, "y": 2, "z": 3}),
        ("sprite", {"path": "cat.bmp", "x": 4, "y": 5, "z": 6}),
    ]
    assert effects.find("show_text") == [
        ("text", {"text": "Hello", "font": "Arial 12"}),
        ("label", {"text": "Some text", "font": "Arial 12"}),
    ]
    assert effects.find("hide_object") == [("sprite",)]
    assert effects.find("show_object") == [("sprite",)]
    assert effects.find("set_cursor") == [("hand",)]
    assert effects.names()[-4:] == ["invalidate", "stop_wave", "stop_midi", "stop_avi"]
    assert effects.events_of(EventType.ERROR) == []
    media = [e.data["kind"] for e in effects.events_of(EventType.MEDIA_START)]
    assert media == ["wave", "midi", "avi"]
    ended = [e.data["kind"] for e in effects.events_of(EventType.MEDIA_END)]
    assert ended == ["wave", "midi", "avi"]


def test_process_commands():
    interp, effects = make_interpreter()
    run(
        interp,
        "exec notepad.exe readme.txt",
        "explore http://example.com",
        "runprj other.vnd 3",
        "pause 250",
        "msgbox Hi there",
        "save slot1",
        "load slot1",
    )
    assert effects.find("execute_external") == [
        ("notepad.exe", "readme.txt"),
        ("http://example.com", ""),
    ]
    assert effects.find("run_project") == [("other.vnd", "3")]
    assert effects.find("pause") == [(250,)]
    assert effects.events_of(EventType.MESSAGE)[0].data["text"] == "Hi there"
    assert effects.events_of(EventType.SAVE_REQUEST)[0].data["slot"] == "slot1"
    assert effects.events_of(EventType.LOAD_REQUEST)[0].data["slot"] == "slot1"


def test_bad_pause_is_an_error():
    interp, effects = make_interpreter()
    run(interp, "pause soon")
    assert effects.find("pause") == []
    assert effects.events_of(EventType.ERROR)[0].data["verb"] == "PAUSE"


def test_quit_stops_the_list():
    interp, effects = make_interpreter()
    run(interp, "inc_var A", "quit", "inc_var A")
    assert interp.quit_requested
    assert interp.variables.get("A") == 1
    assert "quit" in effects.names()


def test_playcmd_runs_nested_instruction():
    interp, _ = make_interpreter()
    asyncio.run(interp.execute([SimpleRecord(35, "inc_var NESTED 4")]))
    assert interp.variables.get("NESTED") == 4


def test_nesting_is_bounded():
    interp, effects = make_interpreter()
    text = "playcmd " * (MAX_NESTING + 2) + "inc_var DEEP"
    run(interp, text)
    assert interp.variables.get("DEEP") == 0
    assert effects.events_of(EventType.ERROR)


def test_lists_run_one_after_another():
    interp, effects = make_interpreter()
    effects.pause_scale = 1.0

    async def main():
        first = asyncio.create_task(
            interp.execute([Instruction("SET_VAR", "STEP 1"), Instruction("PAUSE", "20"), Instruction("SET_VAR", "STEP 2")])
        )
        await asyncio.sleep(0)
        assert interp.busy
        await interp.execute([Instruction("INC_VAR", "STEP 10")])
        await first

    asyncio.run(main())
    assert interp.variables.get("STEP") == 12


def test_unhandled_verb_is_skipped():
    interp, effects = make_interpreter()
    run(interp, "frobnicate 3", "inc_var A")
    assert interp.variables.get("A") == 1
    assert effects.events_of(EventType.ERROR) == []


def test_timer_commands_without_manager():
    interp, effects = make_interpreter()
    run(interp, "timerstart T1 500 inc_var TICKS", "timerstop T1")
    ((timer_id, interval, commands),) = effects.find("start_timer")
    assert (timer_id, interval) == ("T1", 500)
    assert [str(c) for c in commands] == ["INC_VAR TICKS"]
    assert effects.find("stop_timer") == [("T1",)]


@pytest.mark.parametrize("text", ["about", "zoomin", "rem a note"])
def test_presentation_only_commands_are_no_ops(text):
    interp, effects = make_interpreter()
    run(interp, text)
    assert effects.calls == []
    assert effects.events_of(EventType.ERROR) == []


def test_stopall_ends_all_media():
    interp, effects = make_interpreter()
    run(interp, "stopall")
    assert effects.names() == ["stop_all"]
    (ended,) = effects.events_of(EventType.MEDIA_END)
    assert ended.data == {"kind": "all"}


class BusyDeviceEffects(RecordingEffects):
    async def play_wave(self, path, loop=False, volume=100):
        raise RuntimeError("device busy")


def test_failing_effect_reports_error_and_continues():
    effects = BusyDeviceEffects()
    scenes = SceneManager(link_sequential((Scene(0, "Hall"),)))
    interp = CommandInterpreter(VariableStore(), scenes, effects)
    run(interp, "playwav ding.wav", "inc_var AFTER")
    assert interp.variables.get("AFTER") == 1
    (error,) = effects.events_of(EventType.ERROR)
    assert error.data["verb"] == "PLAYWAV"
    assert error.data["error"] == "device busy"
