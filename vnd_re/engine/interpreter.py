"""Command interpreter.

Executes command lists (decoded records or parsed script instructions)
against the variable store and scene manager, sending every visible effect
to an :class:`~vnd_re.engine.effects.Effects` object.

All entry points (:meth:`CommandInterpreter.execute`,
:meth:`CommandInterpreter.run_timer`, :meth:`CommandInterpreter.go_to_scene`)
share one lock, so lists run one after another in the order they were
issued. Nested execution (IF branches, PLAYCMD, scene enter/exit lists) runs
inside the list that triggered it.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from pathlib import PureWindowsPath
from typing import Awaitable, Callable, Iterable, Union

from ..vnd.hotspots import parse_image_payload
from ..vnd.model import Record
from .effects import Effects, EngineEvent, EventType
from .scenes import Direction, SceneManager
from .script import (
    EngineError,
    Instruction,
    instruction_from_record,
    parse_condition,
    parse_instruction,
    parse_int,
    parse_media_args,
    parse_timer_args,
    parse_var_payload,
)
from .timers import Timer, TimerManager
from .variables import VariableStore

log = logging.getLogger(__name__)

Command = Union[Record, Instruction]

MAX_NESTING = 16

# Commands with nothing to do outside a real presentation layer
PRESENTATION_ONLY = frozenset({"ABOUT", "PREFS", "ZOOM", "ZOOMIN", "ZOOMOUT", "PLAYSEQ", "CLOSEDLL"})


class InterpreterState(str, Enum):
    IDLE = "idle"
    EXECUTING = "executing"


def _object_id(path: str) -> str:
    return PureWindowsPath(path).stem or path


def _split_first(text: str) -> tuple[str, str]:
    parts = text.split(None, 1)
    if not parts:
        return "", ""
    return parts[0], parts[1] if len(parts) > 1 else ""


class CommandInterpreter:
    def __init__(
        self,
        variables: VariableStore,
        scenes: SceneManager,
        effects: Effects | None = None,
        timers: TimerManager | None = None,
    ):
        self.variables = variables
        self.scenes = scenes
        self.effects = effects if effects is not None else Effects()
        self.timers = timers
        self.state = InterpreterState.IDLE
        self.font: str | None = None
        self.quit_requested = False
        self._lock = asyncio.Lock()
        self._depth = 0
        self._handlers: dict[str, Callable[[Instruction], Awaitable[None]]] = {
            "QUIT": self._quit,
            "PREV": self._prev,
            "NEXT": self._next,
            "FORWARD": self._next,
            "BACKWARD": self._prev,
            "LEFT": self._left,
            "RIGHT": self._right,
            "SCENE": self._scene,
            "HOTSPOT": self._hotspot,
            "ENABLE": self._enable,
            "DISABLE": self._disable,
            "TIPTEXT": self._tiptext,
            "PLAYAVI": self._playavi,
            "PLAYBMP": self._playbmp,
            "PLAYWAV": self._playwav,
            "PLAYMID": self._playmid,
            "PLAYCDA": self._playcda,
            "PLAYHTML": self._playhtml,
            "PAUSE": self._pause,
            "EXEC": self._exec,
            "EXPLORE": self._explore,
            "RUNDLL": self._exec,
            "RUNPRJ": self._runprj,
            "IF": self._if,
            "SET_VAR": self._set_var,
            "INC_VAR": self._inc_var,
            "DEC_VAR": self._dec_var,
            "INVALIDATE": self._invalidate,
            "UPDATE": self._invalidate,
            "DEFCURSOR": self._defcursor,
            "ADDBMP": self._addbmp,
            "DELBMP": self._hide,
            "HIDEBMP": self._hide,
            "DELOBJ": self._hide,
            "HIDEOBJ": self._hide,
            "SHOWBMP": self._show,
            "SHOWOBJ": self._show,
            "MSGBOX": self._msgbox,
            "PLAYCMD": self._playcmd,
            "CLOSEWAV": self._closewav,
            "CLOSEMID": self._closemid,
            "CLOSEAVI": self._closeavi,
            "STOPALL": self._stopall,
            "PLAYTEXT": self._playtext,
            "FONT": self._font,
            "REM": self._noop,
            "ADDTEXT": self._addtext,
            "LOAD": self._load,
            "SAVE": self._save,
            "TIMERSTART": self._timerstart,
            "TIMERSTOP": self._timerstop,
        }
        for verb in PRESENTATION_ONLY:
            self._handlers[verb] = self._noop

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def emit(self, event_type: EventType, **data) -> None:
        self.effects.emit_event(EngineEvent(event_type, data))

    # -- entry points ------------------------------------------------------

    async def execute(self, commands: Iterable[Command]) -> None:
        """Run a command list once every earlier list has finished."""
        async with self._lock:
            self.state = InterpreterState.EXECUTING
            try:
                await self._run(commands)
            finally:
                self.state = InterpreterState.IDLE

    async def run_timer(self, timer: Timer) -> None:
        """Tick handler for :class:`TimerManager`."""
        async with self._lock:
            if timer.stopped:
                return
            self.state = InterpreterState.EXECUTING
            try:
                self.emit(EventType.TIMER_TICK, timer=timer.id, tick=timer.tick_count)
                await self._run(timer.commands)
            finally:
                self.state = InterpreterState.IDLE

    async def go_to_scene(self, index: int, record_history: bool = True) -> bool:
        async with self._lock:
            self.state = InterpreterState.EXECUTING
            try:
                return await self._change_scene(index, record_history)
            finally:
                self.state = InterpreterState.IDLE

    # -- execution ---------------------------------------------------------

    async def _run(self, commands: Iterable[Command]) -> None:
        for command in commands:
            if self.quit_requested:
                break
            await self._execute_one(command)

    async def _execute_one(self, command: Command) -> None:
        if isinstance(command, Instruction):
            instr = command
        else:
            instr = instruction_from_record(command)
            if instr is None:
                return

        handler = self._handlers.get(instr.verb)
        if handler is None:
            log.warning("Unhandled command %s", instr)
            return

        self.emit(EventType.COMMAND_EXECUTE, verb=instr.verb, args=instr.args)
        try:
            await handler(instr)
        except (EngineError, ValueError) as e:
            log.warning("Command %s failed: %s", instr, e)
            self.emit(EventType.ERROR, verb=instr.verb, args=instr.args, error=str(e))
        except Exception as e:
            log.warning("Command %s raised %s: %s", instr, type(e).__name__, e)
            self.emit(EventType.ERROR, verb=instr.verb, args=instr.args, error=str(e))

    async def _run_nested(self, text: str) -> None:
        if self._depth >= MAX_NESTING:
            raise EngineError(f"Command nesting deeper than {MAX_NESTING}")
        self._depth += 1
        try:
            await self._execute_one(parse_instruction(text))
        finally:
            self._depth -= 1

    async def _change_scene(self, index: int, record_history: bool = True) -> bool:
        target = self.scenes.get_scene(index)
        if not self.scenes.begin_transition():
            log.warning("Scene change to %d ignored, a transition is in progress", index)
            return False
        try:
            previous = self.scenes.current_scene
            if previous is not None:
                self.emit(EventType.SCENE_EXIT, scene=previous.index)
                await self._run(previous.on_exit_commands)
            self.scenes.enter(target.index, record_history)
            await self.effects.go_to_scene(target.index)
            self.emit(EventType.SCENE_ENTER, scene=target.index, name=target.name)
            await self._run(target.auto_commands)
        finally:
            self.scenes.end_transition()
        return True

    async def _navigate(self, direction: Direction) -> None:
        if self.scenes.transitioning:
            log.warning("Navigation %s ignored, a transition is in progress", direction.value)
            return
        target = self.scenes.link_target(direction)
        record_history = True
        if target is None and direction is Direction.BACKWARD:
            target = self.scenes.back()
            record_history = False
        if target is None:
            log.debug("No %s link from scene %d", direction.value, self.scenes.current_index)
            return
        await getattr(self.effects, f"navigate_{direction.value}")()
        await self._change_scene(target, record_history)

    # -- handlers ----------------------------------------------------------

    async def _noop(self, instr: Instruction) -> None:
        log.debug("No-op %s", instr)

    async def _quit(self, instr: Instruction) -> None:
        self.quit_requested = True
        self.effects.quit()

    async def _prev(self, instr: Instruction) -> None:
        await self._navigate(Direction.BACKWARD)

    async def _next(self, instr: Instruction) -> None:
        await self._navigate(Direction.FORWARD)

    async def _left(self, instr: Instruction) -> None:
        await self._navigate(Direction.LEFT)

    async def _right(self, instr: Instruction) -> None:
        await self._navigate(Direction.RIGHT)

    async def _scene(self, instr: Instruction) -> None:
        await self._change_scene(self.scenes.resolve(instr.args))

    def _set_hotspot(self, ref: str, enabled: bool) -> None:
        hotspot_id = parse_int(ref)
        if hotspot_id is None:
            raise EngineError(f"Bad hotspot id {ref!r}")
        self.scenes.set_hotspot_enabled(self.scenes.current_index, hotspot_id, enabled)

    async def _hotspot(self, instr: Instruction) -> None:
        ref, rest = _split_first(instr.args)
        flag = parse_int(rest) if rest else 1
        if flag is None:
            raise EngineError(f"Bad hotspot flag {rest!r}")
        self._set_hotspot(ref, flag != 0)

    async def _enable(self, instr: Instruction) -> None:
        self._set_hotspot(instr.args, True)

    async def _disable(self, instr: Instruction) -> None:
        self._set_hotspot(instr.args, False)

    async def _tiptext(self, instr: Instruction) -> None:
        await self.effects.show_text("tiptext", {"text": instr.args, "font": self.font})

    async def _playavi(self, instr: Instruction) -> None:
        path, x, y, z = parse_image_payload(instr.args)
        await self.effects.play_avi(path, {"x": x, "y": y, "z": z})
        self.emit(EventType.MEDIA_START, kind="avi", path=path)

    async def _playbmp(self, instr: Instruction) -> None:
        path, x, y, z = parse_image_payload(instr.args)
        await self.effects.show_image(_object_id(path), {"path": path, "x": x, "y": y, "z": z})

    async def _playwav(self, instr: Instruction) -> None:
        media = parse_media_args(instr.args)
        await self.effects.play_wave(media.path, media.loop, media.volume)
        self.emit(EventType.MEDIA_START, kind="wave", path=media.path)

    async def _playmid(self, instr: Instruction) -> None:
        media = parse_media_args(instr.args)
        await self.effects.play_midi(media.path, media.loop)
        self.emit(EventType.MEDIA_START, kind="midi", path=media.path)

    async def _playcda(self, instr: Instruction) -> None:
        media = parse_media_args(instr.args)
        await self.effects.play_cda(media.path, media.loop)
        self.emit(EventType.MEDIA_START, kind="cda", path=media.path)

    async def _playhtml(self, instr: Instruction) -> None:
        path, x, y, z = parse_image_payload(instr.args)
        await self.effects.show_html(_object_id(path), {"path": path, "x": x, "y": y, "z": z})

    async def _pause(self, instr: Instruction) -> None:
        token, _ = _split_first(instr.args)
        duration = parse_int(token) if token else None
        if duration is None or duration < 0:
            raise EngineError(f"Bad pause duration {instr.args!r}")
        await self.effects.pause(duration)

    async def _exec(self, instr: Instruction) -> None:
        program, args = _split_first(instr.args)
        if not program:
            raise EngineError(f"{instr.verb} without a program")
        await self.effects.execute_external(program, args)

    async def _explore(self, instr: Instruction) -> None:
        if not instr.args:
            raise EngineError("EXPLORE without a target")
        await self.effects.execute_external(instr.args, "")

    async def _runprj(self, instr: Instruction) -> None:
        path, args = _split_first(instr.args)
        if not path:
            raise EngineError("RUNPRJ without a project")
        await self.effects.run_project(path, args)

    async def _if(self, instr: Instruction) -> None:
        condition = parse_condition(instr.args)
        branch = condition.select(self.variables.get)
        log.debug("IF %s -> %r", instr.args, branch)
        if branch:
            await self._run_nested(branch)

    def _changed(self, name: str, value: int) -> None:
        self.emit(EventType.VARIABLE_CHANGE, name=name.upper(), value=value)

    async def _set_var(self, instr: Instruction) -> None:
        name, value = parse_var_payload(instr.args)
        if value is None:
            log.warning("SET_VAR %r: no numeric value, ignored", instr.args)
            return
        self._changed(name, self.variables.set(name, value))

    async def _inc_var(self, instr: Instruction) -> None:
        name, value = parse_var_payload(instr.args)
        self._changed(name, self.variables.increment(name, 1 if value is None else value))

    async def _dec_var(self, instr: Instruction) -> None:
        name, value = parse_var_payload(instr.args)
        self._changed(name, self.variables.decrement(name, 1 if value is None else value))

    async def _invalidate(self, instr: Instruction) -> None:
        self.effects.invalidate()

    async def _defcursor(self, instr: Instruction) -> None:
        self.effects.set_cursor(instr.args or None)

    async def _addbmp(self, instr: Instruction) -> None:
        object_id, rest = _split_first(instr.args)
        if not rest:
            raise EngineError(f"ADDBMP needs an id and a file: {instr.args!r}")
        path, x, y, z = parse_image_payload(rest)
        await self.effects.show_image(object_id, {"path": path, "x": x, "y": y, "z": z})

    async def _hide(self, instr: Instruction) -> None:
        object_id, _ = _split_first(instr.args)
        self.effects.hide_object(object_id)

    async def _show(self, instr: Instruction) -> None:
        object_id, _ = _split_first(instr.args)
        self.effects.show_object(object_id)

    async def _msgbox(self, instr: Instruction) -> None:
        self.emit(EventType.MESSAGE, text=instr.args)

    async def _playcmd(self, instr: Instruction) -> None:
        await self._run_nested(instr.args)

    async def _closewav(self, instr: Instruction) -> None:
        self.effects.stop_wave()
        self.emit(EventType.MEDIA_END, kind="wave")

    async def _closemid(self, instr: Instruction) -> None:
        self.effects.stop_midi()
        self.emit(EventType.MEDIA_END, kind="midi")

    async def _closeavi(self, instr: Instruction) -> None:
        self.effects.stop_avi()
        self.emit(EventType.MEDIA_END, kind="avi")

    async def _stopall(self, instr: Instruction) -> None:
        self.effects.stop_all()
        self.emit(EventType.MEDIA_END, kind="all")

    async def _playtext(self, instr: Instruction) -> None:
        await self.effects.show_text("text", {"text": instr.args, "font": self.font})

    async def _font(self, instr: Instruction) -> None:
        self.font = instr.args or None

    async def _addtext(self, instr: Instruction) -> None:
        object_id, text = _split_first(instr.args)
        await self.effects.show_text(object_id, {"text": text, "font": self.font})

    async def _load(self, instr: Instruction) -> None:
        self.emit(EventType.LOAD_REQUEST, slot=instr.args)

    async def _save(self, instr: Instruction) -> None:
        self.emit(EventType.SAVE_REQUEST, slot=instr.args)

    async def _timerstart(self, instr: Instruction) -> None:
        timer_id, interval, body = parse_timer_args(instr.args)
        commands = [parse_instruction(body)]
        self.effects.start_timer(timer_id, interval, commands)
        if self.timers is not None:
            self.timers.start(timer_id, interval, commands)

    async def _timerstop(self, instr: Instruction) -> None:
        timer_id = instr.args.strip()
        self.effects.stop_timer(timer_id)
        if self.timers is not None:
            self.timers.stop(timer_id)
