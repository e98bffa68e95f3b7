from .change_tracker import ChangeTracker, TrackerState, advance
from .executor import CommandExecutionError, CommandExecutor
from .platforms import COMMANDS, command_for, detect_os
from .poller import Poller, Renderer

__all__ = [
    "COMMANDS",
    "ChangeTracker",
    "CommandExecutionError",
    "CommandExecutor",
    "Poller",
    "Renderer",
    "TrackerState",
    "advance",
    "command_for",
    "detect_os",
]
