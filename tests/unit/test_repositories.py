"""
Tests for Repository Components
===============================

Test suite for the user, feed, follow and post repositories, including the
feed selection order and duplicate post handling the ingestion engine
depends on.
"""

import pytest
from datetime import datetime, timezone, timedelta

from gatorfeed.database.models import NewPost
from gatorfeed.database import connection
from gatorfeed.database.connection import DatabaseConnection
from gatorfeed.database.schema import DatabaseSchema
from gatorfeed.storage import RepositoryGateway, PersistenceGateway
from gatorfeed.utils.exceptions import (
    DatabaseError,
    DuplicateKeyError,
    ErrorCode,
    NoFeedsAvailableError,
)

T0 = datetime(2024, 9, 1, 12, 0, 0, tzinfo=timezone.utc)


class TestDatabaseSchema:
    """Test suite for schema creation."""

    def test_verify_schema(self, tmp_path):
        schema = DatabaseSchema(str(tmp_path / "fresh.db"))
        assert not schema.verify_schema()

        schema.create_tables()
        assert schema.verify_schema()

    def test_create_tables_is_idempotent(self, temp_db):
        schema = DatabaseSchema(temp_db)
        schema.create_tables()

        assert schema.verify_schema()

    def test_db_manager_creates_verified_schema(self, tmp_path, monkeypatch):
        monkeypatch.setattr(connection, "_db_manager", None)
        db_path = str(tmp_path / "managed.db")

        db = connection.get_db_manager(db_path, pool_size=1)
        try:
            assert DatabaseSchema(db_path).verify_schema()
            assert connection.get_db_manager() is db
        finally:
            db.close_all_connections()

    def test_db_manager_rejects_incomplete_schema(self, tmp_path, monkeypatch):
        monkeypatch.setattr(connection, "_db_manager", None)
        monkeypatch.setattr(DatabaseSchema, "verify_schema", lambda self: False)

        with pytest.raises(DatabaseError) as exc_info:
            connection.get_db_manager(str(tmp_path / "managed.db"))

        assert exc_info.value.error_code == ErrorCode.DATABASE_SCHEMA
        assert connection._db_manager is None

    def test_unopenable_database(self, tmp_path):
        """Test that a path sqlite cannot open is reported as a connection error."""
        with pytest.raises(DatabaseError) as exc_info:
            DatabaseConnection(str(tmp_path), pool_size=1)

        assert exc_info.value.error_code == ErrorCode.DATABASE_CONNECTION


class TestUserRepository:
    """Test suite for UserRepository."""

    def test_create_and_get_user(self, user_repo):
        user = user_repo.create_user("alice")

        retrieved = user_repo.get_user_by_name("alice")
        assert retrieved.id == user.id
        assert user_repo.get_user_by_name("bob") is None

    def test_duplicate_user(self, user_repo):
        user_repo.create_user("alice")

        with pytest.raises(DuplicateKeyError):
            user_repo.create_user("alice")

    def test_list_users(self, user_repo):
        user_repo.create_user("alice")
        user_repo.create_user("bob")

        assert {user.name for user in user_repo.list_users()} == {"alice", "bob"}

    def test_reset_cascades(self, user_repo, feed_repo, post_repo, sample_feeds):
        """Test that deleting users removes their feeds and posts."""
        post_repo.create_post(NewPost(feed_id=sample_feeds[0].id, url="https://x.example.com/1"))

        deleted = user_repo.reset()

        assert deleted == 1
        assert user_repo.list_users() == []
        assert feed_repo.list_feeds_with_owner() == []
        assert post_repo.count_posts() == 0


class TestFeedRepository:
    """Test suite for FeedRepository."""

    def test_create_feed(self, feed_repo, sample_user):
        feed = feed_repo.create_feed("Boot.dev", "https://blog.boot.dev/index.xml", sample_user.id)

        retrieved = feed_repo.get_feed_by_url("https://blog.boot.dev/index.xml")
        assert retrieved.id == feed.id
        assert retrieved.last_fetched_at is None
        assert feed_repo.get_feed_by_id(feed.id).name == "Boot.dev"

    def test_duplicate_feed_url(self, feed_repo, sample_user):
        feed_repo.create_feed("One", "https://dup.example.com/rss", sample_user.id)

        with pytest.raises(DuplicateKeyError):
            feed_repo.create_feed("Two", "https://dup.example.com/rss", sample_user.id)

    def test_list_feeds_with_owner(self, feed_repo, sample_feeds):
        listed = feed_repo.list_feeds_with_owner()

        assert len(listed) == 3
        assert all(entry.user_name == "alice" for entry in listed)

    def test_select_with_no_feeds(self, feed_repo):
        with pytest.raises(NoFeedsAvailableError) as exc_info:
            feed_repo.select_next_feed()

        assert exc_info.value.error_code == ErrorCode.FEED_NONE_AVAILABLE

    def test_never_fetched_selected_first(self, feed_repo, sample_feeds):
        feed_repo.mark_feed_fetched(sample_feeds[0].id, T0)
        feed_repo.mark_feed_fetched(sample_feeds[2].id, T0)

        assert feed_repo.select_next_feed().id == sample_feeds[1].id

    def test_oldest_fetch_selected(self, feed_repo, sample_feeds):
        feed_repo.mark_feed_fetched(sample_feeds[0].id, T0 + timedelta(minutes=2))
        feed_repo.mark_feed_fetched(sample_feeds[1].id, T0 + timedelta(minutes=1))
        feed_repo.mark_feed_fetched(sample_feeds[2].id, T0 + timedelta(minutes=3))

        assert feed_repo.select_next_feed().id == sample_feeds[1].id

    def test_round_robin_covers_every_feed(self, feed_repo, sample_feeds):
        """Test that select-then-mark visits each feed once per round."""
        visited = []
        for n in range(len(sample_feeds)):
            feed = feed_repo.select_next_feed()
            visited.append(feed.id)
            feed_repo.mark_feed_fetched(feed.id, T0 + timedelta(seconds=n))

        assert sorted(visited) == sorted(feed.id for feed in sample_feeds)

        # Next round starts again with the least recently fetched feed
        assert feed_repo.select_next_feed().id == visited[0]

    def test_mark_fetched_is_monotonic(self, feed_repo, sample_feeds):
        feed_id = sample_feeds[0].id
        feed_repo.mark_feed_fetched(feed_id, T0 + timedelta(hours=1))

        feed_repo.mark_feed_fetched(feed_id, T0)

        assert feed_repo.get_feed_by_id(feed_id).last_fetched_at == T0 + timedelta(hours=1)

    def test_mark_fetched_defaults_to_now(self, feed_repo, sample_feeds):
        before = datetime.now(timezone.utc)

        feed_repo.mark_feed_fetched(sample_feeds[0].id)

        assert feed_repo.get_feed_by_id(sample_feeds[0].id).last_fetched_at >= before

    def test_mark_unknown_feed(self, feed_repo):
        with pytest.raises(DatabaseError) as exc_info:
            feed_repo.mark_feed_fetched("missing-feed-id")

        assert exc_info.value.error_code == ErrorCode.RESOURCE_NOT_FOUND


class TestFeedFollowRepository:
    """Test suite for FeedFollowRepository."""

    def test_create_follow(self, follow_repo, sample_user, sample_feeds):
        followed = follow_repo.create_follow(sample_user.id, sample_feeds[0].id)

        assert followed.user_name == "alice"
        assert followed.feed_name == "Feed 1"
        assert followed.feed_url == sample_feeds[0].url

    def test_duplicate_follow(self, follow_repo, sample_user, sample_feeds):
        follow_repo.create_follow(sample_user.id, sample_feeds[0].id)

        with pytest.raises(DuplicateKeyError):
            follow_repo.create_follow(sample_user.id, sample_feeds[0].id)

    def test_list_and_delete_follows(self, follow_repo, sample_user, sample_feeds):
        follow_repo.create_follow(sample_user.id, sample_feeds[0].id)
        follow_repo.create_follow(sample_user.id, sample_feeds[1].id)

        assert len(follow_repo.list_follows_for_user(sample_user.id)) == 2

        assert follow_repo.delete_follow(sample_user.id, sample_feeds[0].id) is True
        assert follow_repo.delete_follow(sample_user.id, sample_feeds[0].id) is False

        remaining = follow_repo.list_follows_for_user(sample_user.id)
        assert [r.follow.feed_id for r in remaining] == [sample_feeds[1].id]


class TestPostRepository:
    """Test suite for PostRepository."""

    def test_create_post(self, post_repo, sample_feeds):
        item = NewPost(
            feed_id=sample_feeds[0].id,
            title="Hello",
            url="https://feed1.example.com/hello",
            description="<p>Hi</p>",
            published_at=T0,
        )

        post = post_repo.create_post(item)

        stored = post_repo.get_post_by_url("https://feed1.example.com/hello")
        assert stored.id == post.id
        assert stored.published_at == T0
        assert stored.description == "<p>Hi</p>"

    def test_duplicate_url_is_classified(self, post_repo, sample_feeds):
        """Test that the same URL twice stores one post and reports a duplicate."""
        item = NewPost(feed_id=sample_feeds[0].id, url="https://feed1.example.com/a")
        post_repo.create_post(item)

        with pytest.raises(DuplicateKeyError) as exc_info:
            post_repo.create_post(item)

        assert exc_info.value.key == "https://feed1.example.com/a"
        assert post_repo.count_posts() == 1

    def test_duplicate_url_across_feeds(self, post_repo, sample_feeds):
        post_repo.create_post(NewPost(feed_id=sample_feeds[0].id, url="https://shared.example.com/a"))

        with pytest.raises(DuplicateKeyError):
            post_repo.create_post(NewPost(feed_id=sample_feeds[1].id, url="https://shared.example.com/a"))

    def test_unknown_feed_is_not_duplicate(self, post_repo, sample_feeds):
        """Test that other constraint failures are plain database errors."""
        with pytest.raises(DatabaseError) as exc_info:
            post_repo.create_post(NewPost(feed_id="no-such-feed", url="https://x.example.com/1"))

        assert not isinstance(exc_info.value, DuplicateKeyError)

    def test_posts_for_user_newest_first(self, post_repo, follow_repo, sample_user, sample_feeds):
        follow_repo.create_follow(sample_user.id, sample_feeds[0].id)
        for n, offset in enumerate([1, 3, 2]):
            post_repo.create_post(NewPost(
                feed_id=sample_feeds[0].id,
                title=f"Post {n}",
                url=f"https://feed1.example.com/{n}",
                published_at=T0 + timedelta(days=offset),
            ))
        post_repo.create_post(NewPost(feed_id=sample_feeds[0].id, title="Undated", url="https://feed1.example.com/u"))
        # Not followed
        post_repo.create_post(NewPost(feed_id=sample_feeds[1].id, title="Other", url="https://feed2.example.com/x"))

        views = post_repo.get_posts_for_user(sample_user.id, limit=10)

        assert [v.post.title for v in views] == ["Post 1", "Post 2", "Post 0", "Undated"]
        assert all(v.feed_name == "Feed 1" for v in views)
        assert len(post_repo.get_posts_for_user(sample_user.id)) == 2

    def test_long_title_truncated(self, post_repo, sample_feeds):
        post = post_repo.create_post(NewPost(
            feed_id=sample_feeds[0].id, title="x" * 1500, url="https://feed1.example.com/long"
        ))

        assert len(post.title) == 1000


class TestRepositoryGateway:
    """Test suite for the SQLite persistence gateway."""

    def test_implements_protocol(self, db_connection):
        gateway = RepositoryGateway.from_connection(db_connection)

        assert isinstance(gateway, PersistenceGateway)

    def test_delegates_to_repositories(self, db_connection, sample_feeds):
        gateway = RepositoryGateway.from_connection(db_connection)

        feed = gateway.select_next_feed()
        gateway.mark_feed_fetched(feed.id)
        gateway.create_post(NewPost(feed_id=feed.id, url="https://feed.example.com/p"))

        assert gateway.feeds.get_feed_by_id(feed.id).last_fetched_at is not None
        assert gateway.posts.count_posts(feed.id) == 1
