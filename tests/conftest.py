"""Shared sample site for static serving and end-to-end tests."""

import pytest


@pytest.fixture
def site(tmp_path):
    """Two fallback directories plus a custom not-found file.

    one/ is tried first, two/ second; ``1.txt`` exists in both.
    """
    one = tmp_path / "one"
    one.mkdir()
    (one / "1.txt").write_text("text 1 from file")
    (one / "index.html").write_text("<html><body><h1>One</h1></body></html>")
    (one / "page.html").write_text("<html><BODY><p>Page</p></BODY></html>")
    (one / "style.css").write_text("body { color: red; }")
    (one / "étoile.txt").write_text("étoile")
    (one / "cute monster#.txt").write_text("cute monster#")
    (one / "data.bin").write_bytes(b"0123456789")
    sub = one / "sub"
    sub.mkdir()
    (sub / "index.html").write_text("<html><body>Sub</body></html>")

    two = tmp_path / "two"
    two.mkdir()
    (two / "1.txt").write_text("shadowed")
    (two / "2.txt").write_text("Text for 2")

    (tmp_path / "not-found.txt").write_text("Custom not found message.")
    return tmp_path
