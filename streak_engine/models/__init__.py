from .user import User
from .streak import Streak, ResetReason
from .checkin import CheckIn
from .journal_entry import JournalEntry
from .milestone_celebration import MilestoneCelebration

__all__ = [
    "User",
    "Streak",
    "ResetReason",
    "CheckIn",
    "JournalEntry",
    "MilestoneCelebration",
]
