from .base import Base

# import models so Alembic/autoloaders can discover mappers
from .event import (  # noqa: F401
    STATUS_DRAWING,
    STATUS_IDLE,
    STATUS_REVEALING,
    DrawRound,
    LotteryEvent,
)
from .participant import Participant  # noqa: F401
from .winner import WinnerRecord  # noqa: F401

__all__ = [
    "Base",
    "DrawRound",
    "LotteryEvent",
    "Participant",
    "STATUS_DRAWING",
    "STATUS_IDLE",
    "STATUS_REVEALING",
    "WinnerRecord",
]
