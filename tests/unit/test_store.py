"""
Unit tests for db/store.py
"""

import sqlite3

import pytest


class TestUserRepository:

    def test_create_and_lookup(self, users):
        user = users.create(name="Asha", email="asha@example.com", password_hash="x$y")

        assert user.id == 1
        assert user.platform == "web"
        assert users.get_by_id(user.id) == user
        assert users.find_by_email("ASHA@example.com") == user

    def test_public_dict_hides_password_hash(self, users):
        user = users.create(name="Asha", email="asha@example.com", password_hash="x$y")
        assert "password_hash" not in user.public_dict()

    def test_find_by_phone(self, users):
        assert users.find_by_phone("919999999999") is None
        user = users.create(phone="919999999999", platform="whatsapp")
        assert users.find_by_phone("919999999999").id == user.id

    def test_duplicate_email_rejected(self, users):
        users.create(name="A", email="a@example.com")
        with pytest.raises(sqlite3.IntegrityError):
            users.create(name="B", email="a@example.com")


class TestQueryRepository:

    @pytest.fixture
    def user_id(self, users):
        return users.create(name="Asha", email="asha@example.com").id

    def test_create_returns_record(self, queries, user_id):
        record = queries.create(user_id, "What is bail?", "Criminal Law", "en")

        assert record.id == 1
        assert record.user_id == user_id
        assert record.topic == "Criminal Law"
        assert record.created_at
        assert queries.get_by_id(record.id) == record

    def test_missing_query(self, queries):
        assert queries.get_by_id(404) is None

    def test_user_queries_newest_first_with_paging(self, queries, users, user_id):
        other = users.create(name="Ravi", email="ravi@example.com").id
        for i in range(5):
            queries.create(user_id, f"question {i}", "Civil Law", "en")
        queries.create(other, "not mine", "Tax Law", "en")

        page = queries.get_user_queries(user_id, limit=2)
        assert [q.query_text for q in page] == ["question 4", "question 3"]

        page = queries.get_user_queries(user_id, limit=10, offset=3)
        assert [q.query_text for q in page] == ["question 1", "question 0"]

    def test_analytics(self, queries, user_id):
        queries.create(user_id, "abcd", "Family Law", "en")
        queries.create(user_id, "abcdef", "Family Law", "hi")
        queries.create(user_id, "ab", "Tax Law", "en")

        stats = queries.analytics(user_id)

        assert stats["total_queries"] == 3
        assert stats["average_query_length"] == 4.0
        assert stats["top_topics"] == [
            {"topic": "Family Law", "count": 2},
            {"topic": "Tax Law", "count": 1},
        ]
        assert stats["language_distribution"][0] == {"language": "en", "count": 2}
        assert sum(day["count"] for day in stats["queries_timeline"]) == 3

    def test_analytics_empty(self, queries):
        stats = queries.analytics(99)
        assert stats["total_queries"] == 0
        assert stats["average_query_length"] == 0.0
        assert stats["top_topics"] == []
