from .subscription import Subscription
from .trial_history import TrialHistory
from .user import User

__all__ = ["Subscription", "TrialHistory", "User"]
