"""Tests for cookie persistence: CookieStore and jar conversion."""

from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from trackerapi.cache import CookieStore, dump_jar, restore_jar
from trackerapi.cache.cookies import _domain_matches, open_cookie_store
from trackerapi.exceptions import CacheError
from trackerapi.models import StoredCookie

BASE = "https://tracker.example/"


@pytest.fixture()
def store(tmp_path: Path):
    s = CookieStore(tmp_path)
    yield s
    s.close()


class TestCookieStore:
    def test_nothing_saved(self, store: CookieStore) -> None:
        """A base URL with no record loads as an empty list."""
        assert store.load(BASE) == []

    def test_save_and_load(self, store: CookieStore) -> None:
        """Saved cookies load back field for field."""
        cookies = [StoredCookie(name="session", value="abc", domain="tracker.example")]
        store.save(BASE, cookies)
        assert store.load(BASE) == cookies

    def test_save_replaces_previous_record(self, store: CookieStore) -> None:
        """A second save overwrites the first record."""
        store.save(BASE, [StoredCookie(name="session", value="old")])
        store.save(BASE, [StoredCookie(name="session", value="new")])
        assert [c.value for c in store.load(BASE)] == ["new"]

    def test_records_are_per_base_url(self, store: CookieStore) -> None:
        """Records for different base URLs are independent."""
        store.save(BASE, [StoredCookie(name="session", value="abc")])
        assert store.load("https://other.example/") == []

    def test_empty_record_loads_as_empty(self, store: CookieStore) -> None:
        """Saving an empty list forgets the session."""
        store.save(BASE, [StoredCookie(name="session", value="abc")])
        store.save(BASE, [])
        assert store.load(BASE) == []

    def test_corrupt_record_degrades_to_empty_with_warning(
        self, store: CookieStore, capfd
    ) -> None:
        """An unreadable record warns and loads as empty."""
        store._cache.set(BASE, "{not json")
        assert store.load(BASE) == []
        assert "unreadable saved cookies" in capfd.readouterr().err

    def test_store_read_failure_raises(self, store: CookieStore, monkeypatch) -> None:
        """Store errors on load raise CacheError."""
        def boom(*args, **kwargs):
            raise OSError("disk gone")

        monkeypatch.setattr(store._cache, "get", boom)
        with pytest.raises(CacheError, match="Cookie read failed"):
            store.load(BASE)

    def test_store_write_failure_raises(self, store: CookieStore, monkeypatch) -> None:
        """An unconfirmed save raises CacheError."""
        monkeypatch.setattr(store._cache, "set", lambda *a, **k: False)
        with pytest.raises(CacheError):
            store.save(BASE, [])

    def test_open_cookie_store_respects_switches(self, tmp_path: Path) -> None:
        """No store is opened without a directory or with persistence off."""
        assert open_cookie_store(None, True) is None
        assert open_cookie_store(tmp_path, False) is None
        opened = open_cookie_store(tmp_path, True)
        assert isinstance(opened, CookieStore)
        opened.close()


class TestJarConversion:
    def test_dump_keeps_only_matching_hosts(self) -> None:
        """dump_jar drops cookies for other hosts."""
        jar = httpx.Cookies()
        jar.set("session", "abc", domain="tracker.example")
        jar.set("other", "zzz", domain="elsewhere.example")

        dumped = dump_jar(jar, BASE)
        assert [(c.name, c.value) for c in dumped] == [("session", "abc")]

    def test_restore_then_dump(self) -> None:
        """Restoring records and dumping them again is lossless."""
        stored = [
            StoredCookie(name="session", value="abc", domain="tracker.example", path="/"),
            StoredCookie(name="keeplogged", value="1", domain=".tracker.example", secure=True),
        ]
        jar = httpx.Cookies()
        restore_jar(jar, stored, BASE)

        assert jar.get("session", domain="tracker.example") == "abc"
        assert {c.name for c in dump_jar(jar, BASE)} == {"session", "keeplogged"}

    def test_restore_without_domain_uses_base_host(self) -> None:
        """Records without a domain are bound to the base URL host."""
        jar = httpx.Cookies()
        restore_jar(jar, [StoredCookie(name="session", value="abc")], BASE)
        assert [c.domain for c in jar.jar] == ["tracker.example"]

    def test_restored_cookie_is_sent(self) -> None:
        """A restored cookie is sent on the next request."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["cookie"] = request.headers.get("cookie")
            return httpx.Response(200)

        client = httpx.Client(transport=httpx.MockTransport(handler))
        restore_jar(client.cookies, [StoredCookie(name="session", value="abc")], BASE)
        client.get(BASE + "ajax.php?action=index")
        client.close()
        assert seen["cookie"] == "session=abc"


class TestDomainMatching:
    @pytest.mark.parametrize(
        ("cookie_domain", "host", "expected"),
        [
            ("tracker.example", "tracker.example", True),
            (".tracker.example", "www.tracker.example", True),
            ("tracker.example", "evil-tracker.example", False),
            ("localhost.local", "localhost", True),
            ("", "tracker.example", True),
        ],
    )
    def test_matches(self, cookie_domain: str, host: str, expected: bool) -> None:
        """Domain matching handles exact hosts and dotted parents."""
        assert _domain_matches(cookie_domain, host) is expected
