import unittest

from skillpath.utils.exceptions import GenerationError
from skillpath.utils.rate_limiter import RequestRateLimiter


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestRequestRateLimiter(unittest.TestCase):
    def setUp(self):
        self.clock = FakeClock()
        self.limiter = RequestRateLimiter(per_minute=2, per_day=3, clock=self.clock)

    def test_minute_window(self):
        self.limiter.acquire()
        self.limiter.acquire()

        with self.assertRaises(GenerationError) as ctx:
            self.limiter.acquire()
        self.assertEqual(ctx.exception.error_code, "RATE_LIMITED")
        self.assertEqual(ctx.exception.context["retry_after_seconds"], 60)

        self.clock.now += 60
        self.limiter.acquire()

    def test_day_window(self):
        for _ in range(2):
            self.limiter.acquire()
        self.clock.now += 61
        self.limiter.acquire()
        self.clock.now += 61

        self.assertGreater(self.limiter.retry_after(), 60)
        with self.assertRaises(GenerationError):
            self.limiter.acquire()

        self.clock.now += 86400
        self.assertEqual(self.limiter.retry_after(), 0.0)
        self.limiter.acquire()

    def test_rejected_call_is_not_counted(self):
        limiter = RequestRateLimiter(per_minute=1, per_day=2, clock=self.clock)
        limiter.acquire()
        with self.assertRaises(GenerationError):
            limiter.acquire()
        self.clock.now += 60
        limiter.acquire()
        self.assertGreater(limiter.retry_after(), 0)


if __name__ == "__main__":
    unittest.main()
