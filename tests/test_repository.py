"""Tests for the in-memory session repository."""

from session_scope.repository import SessionRepository


def ids(sessions):
    return [s.id[0] for s in sessions]


class TestSessionSearch:
    """Tests for session-level search."""

    def test_empty_query_returns_everything(self, repository):
        assert len(repository.search("")) == 3

    def test_substring(self, repository):
        assert ids(repository.search("react")) == ["b"]

    def test_matches_project_name(self, repository):
        assert ids(repository.search("webapp")) == ["b"]

    def test_or_terms(self, repository):
        assert ids(repository.search("react OR migrations")) == ["b", "c"]

    def test_regex(self, repository):
        assert ids(repository.search(r"refresh|database", {"regex": True})) == ["a", "c"]

    def test_invalid_regex_is_empty(self, repository):
        assert repository.search("[bad", {"regex": True}) == []

    def test_project_modifier(self, repository):
        assert ids(repository.search("project:api")) == ["a", "c"]
        assert ids(repository.search("project:api docs")) == ["a"]

    def test_restricted_candidates(self, repository, sample_sessions):
        assert ids(repository.search("api", sessions=sample_sessions[:1])) == ["a"]

    def test_date_modifiers_with_offsets(self, repository):
        assert ids(repository.search("after:2024-01-01T00:00:00+00:00")) == ["a", "b", "c"]
        assert repository.search("before:2024-01-01T12:00+02:00") == []
        assert ids(repository.search("project:api after:2024-01-01T00:00Z")) == ["a", "c"]


class TestFilter:
    """Tests for filter criteria."""

    def test_project(self, repository):
        assert ids(repository.filter({"project": "api"})) == ["a", "c"]

    def test_min_duration(self, repository):
        assert ids(repository.filter({"duration": 30 * 60 * 1000})) == ["a", "b"]

    def test_empty_criteria(self, repository):
        assert len(repository.filter({"project": None, "duration": None})) == 3

    def test_unknown_keys_ignored(self, repository):
        assert len(repository.filter({"colour": "blue"})) == 3


class TestConversationSearch:
    """Tests for conversation-level search."""

    def test_finds_user_messages(self, repository):
        results = repository.search_conversations("tokens")
        assert {(r.session_id[0], r.conversation_index, r.match_type) for r in results} == {
            ("a", 0, "assistant"),
            ("a", 1, "user"),
        }

    def test_newest_first(self, repository):
        results = repository.search_conversations("a")
        times = [r.user_time for r in results]
        assert times == sorted(times, reverse=True)

    def test_thinking_only(self, repository):
        results = repository.search_conversations("secure", {"thinking_only": True})
        assert [(r.match_type, r.conversation_index) for r in results] == [("thinking", 0)]
        assert repository.search_conversations("authentication", {"thinking_only": True}) == []

    def test_context(self, repository):
        result = repository.search_conversations("React component")[0]
        assert "React component" in result.match_context
        assert result.project_name == "webapp"

    def test_invalid_regex(self, repository):
        assert repository.search_conversations("(", {"regex": True}) == []


class TestStatistics:
    """Tests for aggregate statistics."""

    def test_projects(self, repository):
        assert repository.get_projects() == ["api", "webapp"]

    def test_daily(self, repository):
        stats = repository.get_daily_statistics()
        assert [day["date"] for day in stats] == ["2024-01-13", "2024-01-14", "2024-01-15"]
        assert stats[-1]["conversations"] == 3
        assert stats[-1]["tools"] == 2

    def test_projects_statistics(self, repository):
        stats = repository.get_project_statistics()
        assert stats[0]["project"] == "api"
        assert stats[0]["sessions"] == 2
        assert stats[0]["conversations"] == 4

    def test_get_session(self, repository):
        assert repository.get_session("bbbbbbbb-1111-2222-3333-444444444444").project_name == "webapp"
        assert repository.get_session("missing") is None

    def test_empty_repository(self):
        repository = SessionRepository()
        assert repository.search("x") == []
        assert repository.get_daily_statistics() == []
        assert repository.get_project_statistics() == []
