"""
Tests for the Command Line Interface
====================================

Commands run through click's CliRunner against a temporary database and
session file.
"""

from datetime import datetime, timezone

import pytest
from click.testing import CliRunner

from gatorfeed.cli import AppContext, _feed_by_url, cli
from gatorfeed.config.session import UserSession
from gatorfeed.database.models import NewPost
from gatorfeed.utils.exceptions import ErrorCode, ResourceNotFoundError


class TestCli:
    """Test suite for gator commands."""

    @pytest.fixture
    def app(self, test_settings, db_connection):
        return AppContext(test_settings, db=db_connection)

    @pytest.fixture
    def run(self, app):
        runner = CliRunner()

        def invoke(*args, **kwargs):
            return runner.invoke(cli, list(args), obj=app, **kwargs)

        return invoke

    @pytest.fixture
    def logged_in(self, run):
        result = run("register", "alice")
        assert result.exit_code == 0, result.output

    def test_register_logs_user_in(self, run, app):
        result = run("register", "alice")

        assert result.exit_code == 0
        assert "User alice created" in result.output
        assert UserSession.load(app.settings.session_file).current_user_name == "alice"
        assert app.users.get_user_by_name("alice") is not None

    def test_register_duplicate(self, run):
        run("register", "alice")

        result = run("register", "alice")

        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_login(self, run, app):
        run("register", "alice")
        run("register", "bob")

        result = run("login", "alice")

        assert result.exit_code == 0
        assert UserSession.load(app.settings.session_file).current_user_name == "alice"

    def test_login_unknown_user(self, run):
        result = run("login", "nobody")

        assert result.exit_code == 1
        assert "does not exist" in result.output

    def test_users_marks_current(self, run):
        run("register", "alice")
        run("register", "bob")

        result = run("users")

        assert "* alice" in result.output
        assert "* bob (current)" in result.output

    def test_addfeed_requires_login(self, run):
        result = run("addfeed", "Boot.dev", "https://blog.boot.dev/index.xml")

        assert result.exit_code == 1
        assert "Not logged in" in result.output

    def test_addfeed_follows_feed(self, run, app, logged_in):
        result = run("addfeed", "Boot.dev", "https://blog.boot.dev/index.xml")

        assert result.exit_code == 0, result.output
        feed = app.feeds.get_feed_by_url("https://blog.boot.dev/index.xml")
        user = app.users.get_user_by_name("alice")
        assert feed.user_id == user.id
        follows = app.follows.list_follows_for_user(user.id)
        assert [r.follow.feed_id for r in follows] == [feed.id]

    def test_addfeed_invalid_url(self, run, logged_in):
        result = run("addfeed", "Bad", "ftp://example.com/feed")

        assert result.exit_code == 1

    def test_feeds_lists_owner(self, run, logged_in):
        run("addfeed", "Boot.dev", "https://blog.boot.dev/index.xml")

        result = run("feeds")

        assert result.exit_code == 0
        assert "Boot.dev" in result.output
        assert "alice" in result.output

    def test_follow_following_unfollow(self, run, app, logged_in):
        run("addfeed", "Boot.dev", "https://blog.boot.dev/index.xml")
        run("register", "bob")

        assert run("follow", "https://blog.boot.dev/index.xml").exit_code == 0
        following = run("following")
        assert "Boot.dev" in following.output

        assert run("follow", "https://blog.boot.dev/index.xml").exit_code == 1

        assert run("unfollow", "https://blog.boot.dev/index.xml").exit_code == 0
        assert "does not follow any feeds" in run("following").output

        assert run("unfollow", "https://blog.boot.dev/index.xml").exit_code == 1

    def test_follow_unknown_feed(self, run, logged_in):
        result = run("follow", "https://unknown.example.com/rss")

        assert result.exit_code == 1
        assert "No feed with URL" in result.output

    def test_unknown_feed_error_code(self, app):
        with pytest.raises(ResourceNotFoundError) as exc_info:
            _feed_by_url(app, "https://unknown.example.com/rss")

        assert exc_info.value.error_code == ErrorCode.FEED_NOT_FOUND

    def test_browse_newest_posts(self, run, app, logged_in):
        run("addfeed", "Boot.dev", "https://blog.boot.dev/index.xml")
        feed = app.feeds.get_feed_by_url("https://blog.boot.dev/index.xml")
        for day in (1, 2, 3):
            app.posts.create_post(NewPost(
                feed_id=feed.id,
                title=f"Post {day}",
                url=f"https://blog.boot.dev/{day}",
                description=f"<p>Body <b>{day}</b></p>",
                published_at=datetime(2024, 9, day, tzinfo=timezone.utc),
            ))

        result = run("browse")

        assert result.exit_code == 0
        assert "Post 3" in result.output
        assert "Post 2" in result.output
        assert "Post 1" not in result.output
        assert "Body 3" in result.output
        assert "<b>" not in result.output

        assert "Post 1" in run("browse", "3").output

    def test_browse_without_posts(self, run, logged_in):
        result = run("browse")

        assert result.exit_code == 0
        assert "No posts yet" in result.output

    def test_reset(self, run, app, logged_in):
        result = run("reset", "--yes")

        assert result.exit_code == 0
        assert app.users.list_users() == []

    def test_agg_invalid_interval(self, run):
        result = run("agg", "abc")

        assert result.exit_code == 1
        assert "Invalid poll interval" in result.output

    def test_agg_bounded_run(self, run):
        result = run("agg", "1s", "--cycles", "1")

        assert result.exit_code == 0, result.output
        assert "Collecting feeds every 1s" in result.output
        assert "Stopped after 1 cycles" in result.output

    def test_agg_uses_configured_interval(self, run, app):
        app.settings.ingestion.poll_interval = "2m"

        result = run("agg", "--cycles", "1")

        assert result.exit_code == 0, result.output
        assert "Collecting feeds every 2m" in result.output
