# tests/integration/__init__.py
"""
Integration tests for the MC protocol client.

These tests run the client against a real loopback TCP server that
answers with scripted 3E responses, covering the full connection
lifecycle: dial, reuse, remote close, teardown and redial.

Running Integration Tests:
    pytest tests/integration/                    # All integration tests
    pytest tests/integration/ -k reconnect       # Reconnect tests only
"""
