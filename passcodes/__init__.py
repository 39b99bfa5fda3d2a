"""In-memory one-time passcode store."""

from .store import InvalidArgument, PasscodeStore
from .sweeper import PasscodeSweeper

__all__ = ["InvalidArgument", "PasscodeStore", "PasscodeSweeper"]
