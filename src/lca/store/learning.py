"""Supabase persistence for preferences, chat history, events, portraits and cards."""

from __future__ import annotations

import logging
from typing import Any, Iterable

from postgrest.exceptions import APIError

from lca.schemas.cards import KnowledgeCard
from lca.schemas.learning import (
    ChatMessage,
    ChatSession,
    HistoryEntry,
    LearningEvent,
    LearningPreferences,
    Profile,
    utc_now_iso,
)
from lca.schemas.portrait import LearningPortrait
from lca.store.base import NotFoundError, SupabaseStore, is_no_rows, run_query

logger = logging.getLogger(__name__)

DEFAULT_LEVEL = "high-school"
DEFAULT_STYLE = "detailed"
SESSION_LIST_LIMIT = 50


class LearningStore(SupabaseStore):
    """All learning-companion tables for one user."""

    # ------------------------------------------------------------------
    # Preferences
    # ------------------------------------------------------------------

    def get_preferences(self) -> LearningPreferences:
        """Stored preferences, or the defaults when none exist or the read fails."""
        defaults = LearningPreferences(
            user_id=self.user_id, educational_level=DEFAULT_LEVEL, preferred_style=DEFAULT_STYLE,
        )
        try:
            response = (
                self.table("learning_preferences")
                .select("*")
                .eq("user_id", self.user_id)
                .single()
                .execute()
            )
        except APIError as exc:
            if not is_no_rows(exc):
                logger.error("Error fetching learning preferences: %s", exc.message)
            return defaults
        if not response.data:
            return defaults
        return LearningPreferences.model_validate(response.data)

    def save_preferences(
        self, educational_level: str | None = None, preferred_style: str | None = None,
    ) -> LearningPreferences:
        """Insert or replace the user's preferences row."""
        row = {
            "user_id": self.user_id,
            "preferred_style": preferred_style or DEFAULT_STYLE,
            "educational_level": educational_level or DEFAULT_LEVEL,
        }
        data = run_query(
            self.table("learning_preferences").upsert(row, on_conflict="user_id"),
            "save learning preferences",
        )
        return LearningPreferences.model_validate(data[0] if data else row)

    def update_preferences(
        self, educational_level: str | None = None, preferred_style: str | None = None,
    ) -> LearningPreferences:
        """Update existing preferences; raises ``NotFoundError`` if the user has none."""
        updates = {
            k: v for k, v in (
                ("preferred_style", preferred_style), ("educational_level", educational_level),
            ) if v
        }
        data = run_query(
            self.table("learning_preferences").update(updates).eq("user_id", self.user_id),
            "update learning preferences",
        )
        if not data:
            raise NotFoundError("Learning preferences not found")
        return LearningPreferences.model_validate(data[0])

    # ------------------------------------------------------------------
    # Chat sessions
    # ------------------------------------------------------------------

    def create_session(
        self, educational_level: str | None = None, preferred_style: str | None = None,
    ) -> ChatSession:
        row = {
            "user_id": self.user_id,
            "educational_level": educational_level or DEFAULT_LEVEL,
            "preferred_style": preferred_style or DEFAULT_STYLE,
            "started_at": utc_now_iso(),
        }
        data = run_query(self.table("chat_sessions").insert(row), "create chat session")
        return ChatSession.model_validate(data[0])

    def list_sessions(self, limit: int = SESSION_LIST_LIMIT) -> list[ChatSession]:
        """Newest sessions first."""
        data = run_query(
            self.table("chat_sessions")
            .select("*")
            .eq("user_id", self.user_id)
            .order("started_at", desc=True)
            .limit(limit),
            "fetch chat sessions",
        )
        return [ChatSession.model_validate(row) for row in data or []]

    def update_session(self, session_id: str, **updates: Any) -> ChatSession:
        data = run_query(
            self.table("chat_sessions")
            .update(updates)
            .eq("id", session_id)
            .eq("user_id", self.user_id),
            "update chat session",
        )
        if not data:
            raise NotFoundError(f"Chat session not found: {session_id}")
        return ChatSession.model_validate(data[0])

    def end_session(self, session_id: str) -> ChatSession:
        return self.update_session(session_id, ended_at=utc_now_iso())

    def sessions_between(self, start: str, end: str) -> list[ChatSession]:
        """Sessions whose ``started_at`` falls in ``[start, end]``, oldest first."""
        data = run_query(
            self.table("chat_sessions")
            .select("*")
            .eq("user_id", self.user_id)
            .gte("started_at", start)
            .lte("started_at", end)
            .order("started_at"),
            "fetch chat sessions in range",
        )
        return [ChatSession.model_validate(row) for row in data or []]

    # ------------------------------------------------------------------
    # Chat messages
    # ------------------------------------------------------------------

    def save_message(
        self,
        session_id: str,
        role: str,
        content: str,
        suggested_questions: list[str] | None = None,
    ) -> ChatMessage:
        row = {
            "session_id": session_id,
            "user_id": self.user_id,
            "role": role,
            "content": content,
            "suggested_questions": suggested_questions or None,
            "timestamp": utc_now_iso(),
        }
        data = run_query(self.table("chat_messages").insert(row), "save chat message")
        self._bump_message_count(session_id, 1)
        return ChatMessage.model_validate(data[0])

    def save_messages(
        self, session_id: str, messages: Iterable[HistoryEntry | ChatMessage],
    ) -> list[ChatMessage]:
        """Batch insert; the session's message count grows by the batch size."""
        now = utc_now_iso()
        rows = [
            {
                "session_id": session_id,
                "user_id": self.user_id,
                "role": msg.role,
                "content": msg.content,
                "suggested_questions": getattr(msg, "suggested_questions", None) or None,
                "timestamp": getattr(msg, "timestamp", None) or now,
            }
            for msg in messages
        ]
        if not rows:
            return []
        data = run_query(self.table("chat_messages").insert(rows), "save chat messages")
        self._bump_message_count(session_id, len(rows))
        return [ChatMessage.model_validate(row) for row in data or []]

    def list_messages(self, session_id: str) -> list[ChatMessage]:
        """Messages of one session in chronological order."""
        data = run_query(
            self.table("chat_messages")
            .select("*")
            .eq("session_id", session_id)
            .eq("user_id", self.user_id)
            .order("timestamp"),
            "fetch chat messages",
        )
        return [ChatMessage.model_validate(row) for row in data or []]

    def recent_messages(self, limit: int = 50) -> list[ChatMessage]:
        """Newest messages first, across all sessions."""
        data = run_query(
            self.table("chat_messages")
            .select("*")
            .eq("user_id", self.user_id)
            .order("timestamp", desc=True)
            .limit(limit),
            "fetch recent chat messages",
        )
        return [ChatMessage.model_validate(row) for row in data or []]

    def messages_for_sessions(self, session_ids: list[str]) -> list[ChatMessage]:
        if not session_ids:
            return []
        data = run_query(
            self.table("chat_messages")
            .select("*")
            .eq("user_id", self.user_id)
            .in_("session_id", session_ids)
            .order("timestamp"),
            "fetch chat messages for sessions",
        )
        return [ChatMessage.model_validate(row) for row in data or []]

    def _bump_message_count(self, session_id: str, by: int) -> None:
        try:
            row = run_query(
                self.table("chat_sessions")
                .select("message_count")
                .eq("id", session_id)
                .eq("user_id", self.user_id)
                .single(),
                "read session message count",
            )
        except NotFoundError:
            logger.warning("Session %s not found; message count not updated", session_id)
            return
        run_query(
            self.table("chat_sessions")
            .update({"message_count": (row.get("message_count") or 0) + by})
            .eq("id", session_id)
            .eq("user_id", self.user_id),
            "update session message count",
        )

    # ------------------------------------------------------------------
    # Learning events
    # ------------------------------------------------------------------

    def record_event(
        self,
        event_type: str,
        payload: dict[str, Any] | None = None,
        session_id: str | None = None,
    ) -> LearningEvent:
        row = {
            "user_id": self.user_id,
            "event_type": event_type,
            "payload": payload,
            "session_id": session_id,
            "timestamp": utc_now_iso(),
        }
        data = run_query(self.table("learning_events").insert(row), "record learning event")
        return LearningEvent.model_validate(data[0])

    def record_suggestion_click(
        self, question_text: str, assistant_message_id: str, session_id: str | None = None,
    ) -> LearningEvent:
        return self.record_event(
            "suggestion_clicked",
            {"question_text": question_text, "assistant_message_id": assistant_message_id},
            session_id=session_id,
        )

    def recent_events(self, limit: int = 30) -> list[LearningEvent]:
        data = run_query(
            self.table("learning_events")
            .select("*")
            .eq("user_id", self.user_id)
            .order("timestamp", desc=True)
            .limit(limit),
            "fetch learning events",
        )
        return [LearningEvent.model_validate(row) for row in data or []]

    # ------------------------------------------------------------------
    # Learning portraits
    # ------------------------------------------------------------------

    def get_portrait(self) -> LearningPortrait | None:
        try:
            row = run_query(
                self.table("learning_portraits").select("*").eq("user_id", self.user_id).single(),
                "fetch learning portrait",
            )
        except NotFoundError:
            return None
        return LearningPortrait.model_validate(row) if row else None

    def save_portrait(self, portrait: LearningPortrait) -> LearningPortrait:
        row = portrait.model_dump(mode="json")
        row["user_id"] = self.user_id
        data = run_query(
            self.table("learning_portraits").upsert(row, on_conflict="user_id"),
            "save learning portrait",
        )
        return LearningPortrait.model_validate(data[0] if data else row)

    def delete_portrait(self) -> None:
        run_query(
            self.table("learning_portraits").delete().eq("user_id", self.user_id),
            "delete learning portrait",
        )

    # ------------------------------------------------------------------
    # Knowledge cards
    # ------------------------------------------------------------------

    def save_card(self, card: KnowledgeCard) -> KnowledgeCard:
        row = card.model_dump(mode="json")
        row["user_id"] = self.user_id
        data = run_query(self.table("knowledge_cards").insert(row), "save knowledge card")
        return KnowledgeCard.model_validate(data[0] if data else row)

    def list_cards(self, chat_id: str | None = None) -> list[KnowledgeCard]:
        query = self.table("knowledge_cards").select("*").eq("user_id", self.user_id)
        if chat_id:
            query = query.eq("source_chat_id", chat_id)
        data = run_query(query.order("created_at", desc=True), "fetch knowledge cards")
        return [KnowledgeCard.model_validate(row) for row in data or []]

    def delete_card(self, card_id: str) -> None:
        run_query(
            self.table("knowledge_cards").delete().eq("id", card_id).eq("user_id", self.user_id),
            "delete knowledge card",
        )

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    def get_profile(self) -> Profile:
        try:
            row = run_query(
                self.table("profiles").select("*").eq("user_id", self.user_id).single(),
                "fetch profile",
            )
        except NotFoundError:
            raise NotFoundError(f"Profile not found for user {self.user_id}") from None
        return Profile.model_validate(row)

    def create_profile(self, profile: Profile) -> Profile:
        row = profile.model_dump(exclude_none=True)
        row["user_id"] = self.user_id
        data = run_query(self.table("profiles").insert(row), "create profile")
        return Profile.model_validate(data[0])

    def update_profile(self, profile_id: str, **updates: Any) -> Profile:
        data = run_query(
            self.table("profiles").update(updates).eq("id", profile_id), "update profile",
        )
        if not data:
            raise NotFoundError(f"Profile not found: {profile_id}")
        return Profile.model_validate(data[0])

    def delete_profile(self, profile_id: str) -> None:
        run_query(self.table("profiles").delete().eq("id", profile_id), "delete profile")
