"""
Pytest configuration and shared fixtures.
"""

import os
import sys
import pytest
from unittest.mock import AsyncMock, MagicMock

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


# ============================================================================
# Environment Fixtures
# ============================================================================

@pytest.fixture(autouse=True)
def mock_env(monkeypatch):
    """Set up test environment variables."""
    monkeypatch.setenv("TG_TOKEN", "test_token_123")
    monkeypatch.setenv("ALLOWED_USER_IDS", "")
    monkeypatch.setenv("POLL_INITIAL_DELAY", "5")
    monkeypatch.setenv("POLL_INTERVAL", "10")


# ============================================================================
# Mock Fixtures
# ============================================================================

@pytest.fixture
def mock_bot():
    """Create a mock Telegram Bot."""
    bot = MagicMock()
    bot.send_message = AsyncMock()
    bot.edit_message_text = AsyncMock()
    return bot


@pytest.fixture
def mock_update():
    """Create a mock Telegram Update."""
    update = MagicMock()
    update.effective_user.id = 123456
    update.effective_user.username = "testuser"
    update.effective_chat.id = 987654
    update.effective_chat.send_message = AsyncMock()
    update.effective_message.delete = AsyncMock()
    update.message.text = "/build https://github.com/acme/app"
    update.message.reply_text = AsyncMock()
    return update


@pytest.fixture
def mock_context(mock_bot):
    """Create a mock Telegram Context."""
    context = MagicMock()
    context.bot = mock_bot
    context.args = []
    context.user_data = {}
    return context


@pytest.fixture
def mock_response():
    """Factory for mock httpx responses."""
    def _make(status_code=200, json_data=None, text=""):
        response = MagicMock()
        response.status_code = status_code
        response.json.return_value = json_data
        response.text = text
        return response
    return _make


# ============================================================================
# Domain Fixtures
# ============================================================================

@pytest.fixture
def target():
    from apkbuilder.models.build import BuildTarget
    return BuildTarget("acme", "app", "release")


@pytest.fixture
def credentials():
    from apkbuilder.models.build import Credentials
    return Credentials(ci_token="ghp_test", notifier_token="123:abc", notifier_chat_id="42")


@pytest.fixture
def run_payload():
    """Factory for GitHub workflow run objects."""
    def _make(status="in_progress", conclusion=None, run_id=1001, run_number=7):
        return {
            "id": run_id,
            "name": "Android CI with APK Builder",
            "status": status,
            "conclusion": conclusion,
            "html_url": f"https://github.com/acme/app/actions/runs/{run_id}",
            "head_branch": "main",
            "event": "workflow_dispatch",
            "created_at": "2024-03-05T14:07:00Z",
            "updated_at": "2024-03-05T14:09:30Z",
            "run_number": run_number,
        }
    return _make


@pytest.fixture
def notifier_client():
    """NotifierClient double that hands out sequential message ids."""
    client = MagicMock()
    counter = {"next": 100}

    async def _send(token, chat_id, text):
        from apkbuilder.models.build import NotificationHandle
        counter["next"] += 1
        return NotificationHandle(message_id=str(counter["next"]))

    client.send = AsyncMock(side_effect=_send)
    client.edit = AsyncMock()
    return client


@pytest.fixture
def github():
    """GitHubClient double with every operation succeeding."""
    client = MagicMock()
    client.verify_access = AsyncMock(return_value=True)
    client.upsert_workflow_file = AsyncMock()
    client.dispatch_build = AsyncMock()
    client.fetch_latest_run = AsyncMock(return_value=None)
    client.cancel_run = AsyncMock()
    return client
