"""
In-memory storage for active build machines, one per chat.
"""

from apkbuilder.core.logging import get_logger
from apkbuilder.state.machine import BuildStageMachine

logger = get_logger(__name__)


class SessionStore:
    """Storage for the build machine of each chat."""

    def __init__(self):
        self._machines: dict[int, BuildStageMachine] = {}

    def add(self, chat_id: int, machine: BuildStageMachine) -> None:
        """Register a machine, stopping the one it replaces."""
        previous = self._machines.get(chat_id)
        if previous is not None and previous is not machine:
            previous.stop()
        self._machines[chat_id] = machine

    def pop(self, chat_id: int) -> BuildStageMachine | None:
        """Remove and return a machine by chat id."""
        return self._machines.pop(chat_id, None)

    def get(self, chat_id: int) -> BuildStageMachine | None:
        """Get a machine by chat id without removing."""
        return self._machines.get(chat_id)

    def stop_all(self) -> None:
        """Stop polling for every chat; used when the hosting UI shuts down."""
        for chat_id, machine in self._machines.items():
            logger.info(f"Stopping build polling for chat {chat_id}")
            machine.stop()
        self._machines.clear()

    def __contains__(self, chat_id: int) -> bool:
        return chat_id in self._machines

    def __len__(self) -> int:
        return len(self._machines)


# Singleton instance
active_builds = SessionStore()
