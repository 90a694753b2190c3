from unittest.mock import patch

from draft.server.rate_limit import TokenBucket


class TestTokenBucket:
    def test_burst_allowed_immediately(self):
        bucket = TokenBucket(rate=1.0, burst=4)
        assert all(bucket.consume() for _ in range(4))

    def test_empty_bucket_rejects(self):
        bucket = TokenBucket(rate=1.0, burst=2)
        bucket.consume()
        bucket.consume()
        assert bucket.consume() is False

    def test_tokens_refill_over_time(self):
        bucket = TokenBucket(rate=4.0, burst=2)
        bucket.consume()
        bucket.consume()

        with patch("draft.server.rate_limit.time") as mock_time:
            mock_time.monotonic.return_value = bucket._last_refill + 0.25
            assert bucket.consume() is True
            assert bucket.consume() is False

    def test_refill_never_exceeds_burst(self):
        bucket = TokenBucket(rate=100.0, burst=3)

        with patch("draft.server.rate_limit.time") as mock_time:
            mock_time.monotonic.return_value = bucket._last_refill + 60.0
            assert [bucket.consume() for _ in range(4)] == [True, True, True, False]
