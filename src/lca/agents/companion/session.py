"""A persisted companion conversation: session bookkeeping around CompanionAgent."""

from __future__ import annotations

import logging
from typing import Any

from lca.agents.companion.agent import CompanionAgent
from lca.schemas.learning import CompanionReply, HistoryEntry, LearningPreferences
from lca.store.base import StoreError
from lca.store.learning import LearningStore

logger = logging.getLogger(__name__)


class CompanionChat:
    """Keeps the running history and mirrors every turn into the store.

    A session row is created lazily on the first question. Store failures
    are logged and the conversation carries on without persistence.
    """

    def __init__(
        self,
        agent: CompanionAgent,
        preferences: LearningPreferences,
        store: LearningStore | None = None,
        session_id: str | None = None,
    ) -> None:
        self.agent = agent
        self.preferences = preferences
        self.store = store
        self.session_id = session_id
        self.history: list[HistoryEntry] = []
        self.last_message_id: str | None = None

    def _ensure_session(self) -> str | None:
        if self.session_id or self.store is None:
            return self.session_id
        try:
            session = self.store.create_session(
                self.preferences.educational_level, self.preferences.preferred_style,
            )
        except StoreError as exc:
            logger.warning("Failed to create chat session: %s", exc)
            return None
        self.session_id = session.id
        logger.info("Started chat session %s", session.id)
        return self.session_id

    def _save(self, role: str, content: str, suggested: list[str] | None = None) -> str | None:
        if self.store is None or not self.session_id:
            return None
        try:
            return self.store.save_message(self.session_id, role, content, suggested).id
        except StoreError as exc:
            logger.warning("Failed to save %s message: %s", role, exc)
            return None

    async def ask(self, question: str, *, on_chunk: Any | None = None) -> CompanionReply:
        """One turn: persist the question, stream the answer, persist the answer."""
        if not question.strip():
            raise ValueError("Question must not be empty")

        self._ensure_session()
        self._save("user", question)

        reply = await self.agent.reply(
            question,
            level=self.preferences.educational_level,
            preferences=self.preferences,
            history=self.history,
            on_chunk=on_chunk,
        )

        self.history.append(HistoryEntry(role="user", content=question))
        self.history.append(HistoryEntry(role="assistant", content=reply.content))
        self.last_message_id = self._save("assistant", reply.content, reply.suggested_questions or None)
        reply.session_id = self.session_id
        return reply

    def record_suggestion_click(self, question: str) -> None:
        """Log that the learner followed one of the suggested questions."""
        if self.store is None:
            return
        try:
            self.store.record_suggestion_click(
                question, self.last_message_id or "", session_id=self.session_id,
            )
        except StoreError as exc:
            logger.warning("Failed to record suggestion click: %s", exc)

    def end(self) -> None:
        if self.store is None or not self.session_id:
            return
        try:
            self.store.end_session(self.session_id)
        except StoreError as exc:
            logger.warning("Failed to end chat session %s: %s", self.session_id, exc)
