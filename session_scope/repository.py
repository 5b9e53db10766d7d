"""In-memory session collection with search, filtering and statistics."""

import logging
from collections import defaultdict
from datetime import datetime
from typing import Optional

from .config import SEARCH_CONTEXT_CHARS
from .models import SearchResult, Session
from .search import compile_query, match_context, parse_search_query

logger = logging.getLogger(__name__)

FILTER_KEYS = ("project", "duration")


def _naive_local(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is not None and dt.tzinfo is not None:
        return dt.astimezone().replace(tzinfo=None)
    return dt


def _session_texts(session: Session):
    yield session.project_name
    yield session.id
    for conversation in session.conversations:
        yield conversation.user_message
        yield conversation.assistant_response


class SessionRepository:
    """Ordered session collection consumed by the view state."""

    def __init__(self, sessions: Optional[list[Session]] = None):
        self.sessions: list[Session] = list(sessions or [])

    @classmethod
    def from_providers(cls) -> "SessionRepository":
        """Load sessions from every available transcript provider."""
        from .providers import discover_all_sessions

        return cls(discover_all_sessions())

    def replace(self, sessions: list[Session]):
        self.sessions = list(sessions)

    def get_session(self, session_id: str) -> Optional[Session]:
        for session in self.sessions:
            if session.id == session_id:
                return session
        return None

    def search(self, query: str, options: Optional[dict] = None, sessions: Optional[list[Session]] = None) -> list[Session]:
        """Sessions whose project, id or conversation text matches query.

        Supports plain substrings, ``a OR b`` and, with ``options["regex"]``,
        regular expressions. Outside regex mode ``project:``, ``after:`` and
        ``before:`` modifiers narrow the result. An invalid pattern matches
        nothing.
        """
        candidates = self.sessions if sessions is None else sessions
        options = options or {}

        modifiers: dict = {}
        if not options.get("regex"):
            query, modifiers = parse_search_query(query)

        if modifiers.get("project"):
            needle = modifiers["project"].lower()
            candidates = [s for s in candidates if needle in s.project_name.lower()]
        if modifiers.get("after"):
            after = _naive_local(modifiers["after"])
            candidates = [s for s in candidates if s.last_activity and _naive_local(s.last_activity) > after]
        if modifiers.get("before"):
            before = _naive_local(modifiers["before"])
            candidates = [s for s in candidates if s.last_activity and _naive_local(s.last_activity) < before]

        if not (query or "").strip():
            return list(candidates)

        pattern = compile_query(query, options)
        if pattern is None:
            return []
        return [s for s in candidates if any(text and pattern.search(text) for text in _session_texts(s))]

    def filter(self, criteria: dict, sessions: Optional[list[Session]] = None) -> list[Session]:
        """Apply filter criteria. Keys without a value and unknown keys are ignored."""
        result = self.sessions if sessions is None else sessions

        project = criteria.get("project")
        if project:
            result = [s for s in result if s.project_name == project]

        duration = criteria.get("duration")
        if duration:
            result = [s for s in result if s.duration_ms >= duration]

        return list(result)

    def search_conversations(self, query: str, options: Optional[dict] = None) -> list[SearchResult]:
        """Find conversations matching query, newest first.

        The user message is checked first, then the assistant response, then
        thinking. ``options["thinking_only"]`` restricts matching to thinking.
        """
        options = options or {}
        pattern = compile_query(query, options)
        if pattern is None:
            return []

        results: list[SearchResult] = []
        for session in self.sessions:
            for conversation in session.conversations:
                thinking = "\n".join(conversation.thinking)
                if options.get("thinking_only"):
                    candidates = [("thinking", thinking)]
                else:
                    candidates = [
                        ("user", conversation.user_message),
                        ("assistant", conversation.assistant_response),
                        ("thinking", thinking),
                    ]

                for match_type, text in candidates:
                    if text and pattern.search(text):
                        results.append(SearchResult(
                            session_id=session.id,
                            project_name=session.project_name,
                            conversation_index=conversation.index,
                            match_type=match_type,
                            match_context=match_context(text, query, options, SEARCH_CONTEXT_CHARS),
                            user_time=conversation.user_time,
                            response_time=conversation.response_time,
                            tool_count=conversation.tool_count,
                        ))
                        break

        results.sort(key=lambda r: r.user_time.timestamp() if r.user_time else 0.0, reverse=True)
        logger.debug(f"Conversation search {query!r}: {len(results)} matches")
        return results

    def get_projects(self) -> list[str]:
        return sorted({s.project_name for s in self.sessions if s.project_name})

    def get_daily_statistics(self) -> list[dict]:
        """Per-day totals keyed on session start date, oldest first."""
        days: dict[str, dict] = defaultdict(lambda: {
            "sessions": 0,
            "conversations": 0,
            "duration_ms": 0,
            "tools": 0,
            "tokens": 0,
        })
        for session in self.sessions:
            start = _naive_local(session.start_time)
            if start is None:
                continue
            day = days[start.strftime("%Y-%m-%d")]
            day["sessions"] += 1
            day["conversations"] += session.total_conversations
            day["duration_ms"] += session.duration_ms
            day["tools"] += session.tool_count
            day["tokens"] += session.total_tokens

        return [{"date": date, **totals} for date, totals in sorted(days.items())]

    def get_project_statistics(self) -> list[dict]:
        """Per-project totals, busiest project first."""
        projects: dict[str, dict] = {}
        for session in self.sessions:
            entry = projects.setdefault(session.project_name or "unknown", {
                "sessions": 0,
                "conversations": 0,
                "duration_ms": 0,
                "tools": 0,
                "tokens": 0,
                "last_activity": None,
            })
            entry["sessions"] += 1
            entry["conversations"] += session.total_conversations
            entry["duration_ms"] += session.duration_ms
            entry["tools"] += session.tool_count
            entry["tokens"] += session.total_tokens
            last = _naive_local(session.last_activity)
            if last and (entry["last_activity"] is None or last > entry["last_activity"]):
                entry["last_activity"] = last

        stats = [{"project": name, **totals} for name, totals in projects.items()]
        stats.sort(key=lambda s: (s["conversations"], s["sessions"]), reverse=True)
        return stats
