"""
PyTest Configuration and Fixtures
=================================

Shared fixtures and configuration for GatorFeed tests.

Every test that touches storage gets its own temporary SQLite file, so tests
can run in any order.
"""

import os

import pytest

# Set test environment variables before any imports
os.environ["GATOR_DEBUG"] = "true"


# ============================================================================
# Sample Feed Documents
# ============================================================================

SAMPLE_RSS_FEED = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
    <channel>
        <title>Boot.dev Blog</title>
        <link>https://blog.boot.dev</link>
        <description>Learn backend &amp;amp; more</description>
        <item>
            <title>First Post</title>
            <link>https://blog.boot.dev/first</link>
            <description>The &lt;b&gt;first&lt;/b&gt; post</description>
            <pubDate>Mon, 02 Jan 2006 15:04:05 MST</pubDate>
        </item>
        <item>
            <title>Fish &amp;amp; Chips</title>
            <link>https://blog.boot.dev/second</link>
            <description>Second post</description>
            <pubDate>02 Jan 06 15:04:05 -0700</pubDate>
        </item>
        <item>
            <title>Undated Post</title>
            <link>https://blog.boot.dev/third</link>
            <description>No usable date</description>
            <pubDate>not a date</pubDate>
        </item>
    </channel>
</rss>"""

RSS_WITHOUT_LINKS = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
    <channel>
        <title>Partial Feed</title>
        <link>https://partial.example.com</link>
        <description>Some items have no link</description>
        <item>
            <title>Has Link</title>
            <link>https://partial.example.com/a</link>
        </item>
        <item>
            <title>No Link</title>
            <description>Orphan item</description>
        </item>
    </channel>
</rss>"""

MALFORMED_FEED = b"<rss><channel><title>Broken</title><item></channel>"


@pytest.fixture
def sample_rss():
    return SAMPLE_RSS_FEED


@pytest.fixture
def rss_without_links():
    return RSS_WITHOUT_LINKS


@pytest.fixture
def malformed_feed():
    return MALFORMED_FEED


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
def temp_db(tmp_path):
    """Temporary database file with the schema created."""
    from gatorfeed.database.schema import DatabaseSchema

    db_path = tmp_path / "gator_test.db"
    DatabaseSchema(str(db_path)).create_tables()

    return str(db_path)


@pytest.fixture
def db_connection(temp_db):
    """Create a database connection manager for testing."""
    from gatorfeed.database.connection import DatabaseConnection

    connection = DatabaseConnection(temp_db, pool_size=2)
    yield connection

    # Cleanup connections
    connection.close_all_connections()


@pytest.fixture
def user_repo(db_connection):
    from gatorfeed.storage import UserRepository

    return UserRepository(db_connection)


@pytest.fixture
def feed_repo(db_connection):
    from gatorfeed.storage import FeedRepository

    return FeedRepository(db_connection)


@pytest.fixture
def follow_repo(db_connection):
    from gatorfeed.storage import FeedFollowRepository

    return FeedFollowRepository(db_connection)


@pytest.fixture
def post_repo(db_connection):
    from gatorfeed.storage import PostRepository

    return PostRepository(db_connection)


@pytest.fixture
def sample_user(user_repo):
    """A registered user."""
    return user_repo.create_user("alice")


@pytest.fixture
def sample_feeds(feed_repo, sample_user):
    """Three feeds owned by ``sample_user``, in creation order."""
    return [
        feed_repo.create_feed(
            f"Feed {n}", f"https://feed{n}.example.com/rss", sample_user.id
        )
        for n in range(1, 4)
    ]


# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture
def test_settings(tmp_path, temp_db):
    """Settings pointing at temporary database and session files."""
    from gatorfeed.config.settings import GatorSettings, DatabaseSettings

    return GatorSettings(
        database=DatabaseSettings(path=temp_db, pool_size=2),
        session_file=str(tmp_path / "gatorconfig.json"),
    )
