"""Count of tabs suspended today (UTC calendar day)."""

from .core import Clock, date_key, now_ms
from .storage import SUSPENDED_TODAY_DATE_KEY, SUSPENDED_TODAY_KEY, KeyValueStore


class DailyCounter:
    """Durable count of suspensions for the current day."""

    def __init__(self, store: KeyValueStore, clock: Clock = now_ms):
        self.store = store
        self.clock = clock

    def today(self) -> int:
        """Suspensions so far today; zero on a new day."""
        data = self.store.get_many([SUSPENDED_TODAY_KEY, SUSPENDED_TODAY_DATE_KEY])
        count = data.get(SUSPENDED_TODAY_KEY, 0)
        if data.get(SUSPENDED_TODAY_DATE_KEY) != date_key(self.clock()):
            return 0
        return count if isinstance(count, int) and count > 0 else 0

    def increment(self) -> int:
        """Count one confirmed suspension, starting over on a new day."""
        count = self.today() + 1
        self.store.set_many({
            SUSPENDED_TODAY_KEY: count,
            SUSPENDED_TODAY_DATE_KEY: date_key(self.clock()),
        })
        return count
