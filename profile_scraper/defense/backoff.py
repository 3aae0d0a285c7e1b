import random
import time


class BackoffController:
    """
    Delays between page loads:
    - settle_delay(): short pause after a navigation before the page is inspected
    - recovery_delay(attempt): exponential wait before retrying an unhealthy page
    """
    def __init__(self, min_delay=1.0, max_delay=2.5, recovery_base=5.0, recovery_cap=60.0):
        self.min_delay = float(min_delay)
        self.max_delay = float(max_delay)
        self.recovery_base = float(recovery_base)
        self.recovery_cap = float(recovery_cap)

    def settle_delay(self):
        time.sleep(random.uniform(self.min_delay, self.max_delay))

    def recovery_seconds(self, attempt: int) -> float:
        base = min(self.recovery_cap, self.recovery_base * (2 ** max(0, attempt)))
        return base * random.uniform(0.6, 1.4)

    def recovery_delay(self, attempt: int):
        time.sleep(self.recovery_seconds(attempt))
