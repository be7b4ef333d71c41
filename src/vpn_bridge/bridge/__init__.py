"""Stage store, event stream and command channels."""

from .channel import (
    COMMAND_SETS,
    COMMANDS_V1,
    ChannelError,
    ChannelResult,
    ControlChannel,
)
from .notifications import KeepAliveService, NotificationActions
from .store import StageStore
from .stream import StageEventStream, StageListener

__all__ = [
    "StageStore",
    "StageEventStream",
    "StageListener",
    "ControlChannel",
    "ChannelResult",
    "ChannelError",
    "COMMANDS_V1",
    "COMMAND_SETS",
    "NotificationActions",
    "KeepAliveService",
]
