from .user import User
from .tracking import WeighIn, Injection, DailyHabit
from .notifications import NotificationPreference
from .session import AuthSession
