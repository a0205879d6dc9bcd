"""Unit tests for the in-memory rate limit store."""

from unishare.api.middleware.rate_limit import InMemoryRateLimitStore


class TestInMemoryRateLimitStore:
    """Tests for the fixed-window rate limit store."""
    
    def test_allows_up_to_limit(self):
        """Test that requests pass until the limit is reached."""
        store = InMemoryRateLimitStore()
        
        results = [store.check_and_incr("auth:1.2.3.4", limit=3) for _ in range(4)]
        
        assert results == [True, True, True, False]
    
    def test_keys_are_independent(self):
        """Test that one key's usage does not affect another."""
        store = InMemoryRateLimitStore()
        store.check_and_incr("auth:a", limit=1)
        
        assert store.check_and_incr("auth:a", limit=1) is False
        assert store.check_and_incr("auth:b", limit=1) is True
    
    def test_window_expiry_resets_count(self):
        """Test that the count resets when the window ends."""
        store = InMemoryRateLimitStore()
        assert store.check_and_incr("k", limit=1, window_seconds=0) is True
        assert store.check_and_incr("k", limit=1, window_seconds=0) is True
    
    def test_clear(self):
        """Test that clear forgets every key."""
        store = InMemoryRateLimitStore()
        store.check_and_incr("k", limit=1)
        store.clear()
        
        assert store.check_and_incr("k", limit=1) is True
