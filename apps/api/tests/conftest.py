import pytest

from main import app


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    """Keep in-memory rate-limit state isolated between tests."""
    previous = getattr(app.state, "disable_rate_limits", False)
    app.state.disable_rate_limits = True
    app.state.rate_limiter.reset()
    yield
    app.state.rate_limiter.reset()
    app.state.disable_rate_limits = previous
