"""Integration tests for vesyncair library.

These tests use real account credentials from a .env file and make actual API
calls. They are marked with @pytest.mark.integration and deselected by default.

To run integration tests:
    pytest tests/integration -v -m integration

Environment variables required in .env:
    VESYNC_EMAIL: Account email
    VESYNC_PASSWORD: Account password
    VESYNC_API_BASE_URL: API base URL (optional, defaults to production)
    VESYNC_TERMINAL_ID: Persisted terminal id (optional)
"""
