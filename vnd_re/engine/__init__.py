"""Runtime for decoded projects: variables, scenes, commands and timers."""

from .script import EngineError, Instruction, MalformedCondition, parse_condition, parse_instruction
from .variables import VariableStore
from .scenes import Direction, SceneManager, SceneNotFound
from .effects import Effects, EngineEvent, EventType, RecordingEffects
from .timers import Timer, TimerManager
from .interpreter import CommandInterpreter, InterpreterState
from .engine import Engine

__all__ = [
    "EngineError",
    "Instruction",
    "MalformedCondition",
    "parse_condition",
    "parse_instruction",
    "VariableStore",
    "Direction",
    "SceneManager",
    "SceneNotFound",
    "Effects",
    "EngineEvent",
    "EventType",
    "RecordingEffects",
    "Timer",
    "TimerManager",
    "CommandInterpreter",
    "InterpreterState",
    "Engine",
]
