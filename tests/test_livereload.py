"""Tests for wren.server.livereload — script injection."""

from wren.server.livereload import (
    LIVE_RELOAD_SNIPPET,
    inject_live_reload,
    is_injectable,
)

SNIPPET = LIVE_RELOAD_SNIPPET.encode("ascii")


class TestInjection:
    def test_inserted_before_closing_body(self) -> None:
        html = b"<html><body><h1>Hi</h1></body></html>"
        result = inject_live_reload(html)
        assert result == b"<html><body><h1>Hi</h1>" + SNIPPET + b"</body></html>"

    def test_closing_tag_any_case(self) -> None:
        result = inject_live_reload(b"<p>x</p></BoDy>")
        assert result == b"<p>x</p>" + SNIPPET + b"</BoDy>"

    def test_only_first_closing_tag(self) -> None:
        result = inject_live_reload(b"a</body>b</body>")
        assert result.count(SNIPPET) == 1
        assert result.endswith(b"</body>b</body>")

    def test_no_body_tag_unchanged(self) -> None:
        assert inject_live_reload(b"<h1>fragment</h1>") == b"<h1>fragment</h1>"

    def test_non_utf8_bytes_kept(self) -> None:
        result = inject_live_reload(b"<body>caf\xe9</body>")
        assert result == b"<body>caf\xe9" + SNIPPET + b"</body>"

    def test_snippet_handles_all_messages(self) -> None:
        assert 'data-wren="live-reload"' in LIVE_RELOAD_SNIPPET
        assert '"reload"' in LIVE_RELOAD_SNIPPET
        assert '"refreshcss"' in LIVE_RELOAD_SNIPPET
        assert "WebSocket" in LIVE_RELOAD_SNIPPET


class TestInjectable:
    def test_html_like(self) -> None:
        for suffix in ("", ".html", ".HTM", ".xhtml", ".php"):
            assert is_injectable(suffix)

    def test_other_types(self) -> None:
        for suffix in (".css", ".js", ".txt", ".png"):
            assert not is_injectable(suffix)
