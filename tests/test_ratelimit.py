"""Tests for fixed-window rate limiting."""
import asyncio

from complexity_api.ratelimit import MemoryWindowCounter, RedisWindowCounter

from fakes import FakeModel


class FailingCounter:
    async def increment(self, ip, window, window_seconds):
        raise ConnectionError("redis unreachable")

    async def close(self):
        pass


class RecordingRedis:
    """Stands in for redis.asyncio.Redis, recording eval calls."""

    def __init__(self, reply=1):
        self.reply = reply
        self.calls = []
        self.closed = False

    async def eval(self, script, numkeys, *args):
        self.calls.append((script, numkeys, args))
        return self.reply

    async def aclose(self):
        self.closed = True


class TestMemoryWindowCounter:
    """Test suite for the in-process counter."""

    def test_counts_per_ip_and_window(self):
        counter = MemoryWindowCounter(window_seconds=60)

        async def scenario():
            first = [await counter.increment("1.1.1.1", 10, 60) for _ in range(3)]
            other_ip = await counter.increment("2.2.2.2", 10, 60)
            next_window = await counter.increment("1.1.1.1", 11, 60)
            return first, other_ip, next_window

        first, other_ip, next_window = asyncio.run(scenario())

        assert first == [1, 2, 3]
        assert other_ip == 1
        assert next_window == 1


class TestRateLimitMiddleware:
    """Test suite for the RateLimiter middleware."""

    def test_requests_over_quota_are_rejected(self, make_client, app_settings):
        settings = app_settings.model_copy(update={"RATE_LIMIT_MAX_REQUESTS": 2})
        client = make_client(FakeModel(), settings=settings)

        first = client.get("/status")
        second = client.get("/status")
        third = client.get("/status")

        assert first.status_code == 200
        assert first.headers["X-RateLimit-Remaining"] == "1"
        assert second.status_code == 200
        assert third.status_code == 429
        body = third.json()
        assert body["code"] == "RATE_LIMIT_EXCEEDED"
        assert body["message"] == "Too many requests from this IP, please try again later."
        assert body["error"]
        assert body["retryAfter"] > 0
        assert third.headers["Retry-After"] == str(body["retryAfter"])
        assert third.headers["X-RateLimit-Remaining"] == "0"

    def test_quota_is_per_forwarded_ip_behind_trusted_proxy(self, make_client, app_settings):
        settings = app_settings.model_copy(
            update={"RATE_LIMIT_MAX_REQUESTS": 1, "TRUST_PROXY_HEADERS": True}
        )
        client = make_client(FakeModel(), settings=settings)

        assert client.get("/status", headers={"X-Forwarded-For": "10.0.0.1"}).status_code == 200
        assert client.get("/status", headers={"X-Forwarded-For": "10.0.0.2, 172.16.0.1"}).status_code == 200
        assert client.get("/status", headers={"X-Forwarded-For": "10.0.0.1"}).status_code == 429

    def test_counter_failure_fails_closed(self, make_client):
        client = make_client(FakeModel())
        client.app.state.rate_limit_counter = FailingCounter()

        response = client.post("/analyze", json={"code": "x"})

        assert response.status_code == 503
        assert response.json()["code"] == "SERVICE_UNAVAILABLE"

    def test_forwarded_header_ignored_by_default(self, make_client, app_settings):
        settings = app_settings.model_copy(update={"RATE_LIMIT_MAX_REQUESTS": 1})
        client = make_client(FakeModel(), settings=settings)

        statuses = [
            client.get("/status", headers={"X-Forwarded-For": f"10.9.9.{i}"}).status_code
            for i in range(5)
        ]

        assert statuses == [200, 429, 429, 429, 429]

    def test_oversized_body_counts_against_quota(self, make_client, app_settings):
        settings = app_settings.model_copy(
            update={"RATE_LIMIT_MAX_REQUESTS": 1, "MAX_REQUEST_SIZE": 100}
        )
        client = make_client(FakeModel(), settings=settings)

        assert client.post("/analyze", json={"code": "x" * 200}).status_code == 413
        assert client.get("/status").status_code == 429


class TestRedisWindowCounter:
    """Test suite for the Redis-backed counter."""

    def test_increment_runs_script_with_key_and_ttl(self):
        redis = RecordingRedis(reply=3)
        counter = RedisWindowCounter(redis)

        count = asyncio.run(counter.increment("1.2.3.4", 42, 900))

        assert count == 3
        script, numkeys, args = redis.calls[0]
        assert "INCR" in script
        assert "EXPIRE" in script
        assert numkeys == 1
        assert args == ("complexity-analyzer:rl:42:ip:1.2.3.4", 900)

    def test_close_releases_client(self):
        redis = RecordingRedis()
        asyncio.run(RedisWindowCounter(redis).close())
        assert redis.closed
