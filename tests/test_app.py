"""End-to-end tests for wren.app.Server through the ASGI interface."""

import pytest

from wren.app import Server
from wren.config import ServerConfig
from wren.errors import ConfigurationError, NotFound, RouteConflict
from wren.server.livereload import LIVE_RELOAD_SNIPPET
from wren.testing import TestClient


def _server(site, *, live_reload: bool = False, **kwargs) -> Server:
    paths = kwargs.pop("paths", {"": [site / "one", site / "two"]})
    return Server(ServerConfig(paths=paths, live_reload=live_reload, **kwargs))


class TestStaticServing:
    async def test_get_file(self, site) -> None:
        async with TestClient(_server(site)) as client:
            response = await client.get("/1.txt")
            assert response.status == 200
            assert response.text == "text 1 from file"
            assert response.content_type == "text/plain; charset=utf-8"

    async def test_fallback_directory(self, site) -> None:
        async with TestClient(_server(site)) as client:
            response = await client.get("/2.txt")
            assert response.status == 200
            assert response.text == "Text for 2"

    async def test_undefined_path(self, site) -> None:
        async with TestClient(_server(site)) as client:
            response = await client.get("/nope.txt")
            assert response.status == 404
            assert response.text == "Not found."

    async def test_custom_not_found_file(self, site) -> None:
        server = _server(site, not_found=str(site / "not-found.txt"))
        async with TestClient(server) as client:
            response = await client.get("/nope.txt")
            assert response.status == 404
            assert response.text == "Custom not found message."

    async def test_special_characters(self, site) -> None:
        async with TestClient(_server(site)) as client:
            assert (await client.get("/%C3%A9toile.txt")).text == "étoile"
            assert (await client.get("/cute%20monster%23.txt")).text == "cute monster#"

    async def test_unencoded_utf8_path(self, site) -> None:
        async with TestClient(_server(site)) as client:
            assert (await client.get("/étoile.txt")).text == "étoile"

    async def test_nul_in_path_is_not_found(self, site, caplog) -> None:
        async with TestClient(_server(site)) as client:
            response = await client.get("/a%00b.txt")
            assert response.status == 404
            assert response.text == "Not found."
        assert not any(r.levelname == "ERROR" for r in caplog.records)

    async def test_url_prefix_with_and_without_trailing_slash(self, site) -> None:
        (site / "two" / "index.html").write_text("<html><body>Two</body></html>")
        server = _server(site, paths={"two": site / "two"})
        async with TestClient(server) as client:
            bare = await client.get("/two")
            slashed = await client.get("/two/")
            assert bare.status == slashed.status == 200
            assert bare.text == slashed.text == "<html><body>Two</body></html>"
            assert (await client.get("/two/2.txt")).text == "Text for 2"

    async def test_only_get_is_served(self, site) -> None:
        async with TestClient(_server(site)) as client:
            response = await client.delete("/1.txt")
            assert response.status == 404

    async def test_range_request(self, site) -> None:
        async with TestClient(_server(site)) as client:
            response = await client.get("/data.bin", headers={"Range": "bytes=0-3"})
            assert response.status == 206
            assert response.body_bytes == b"0123"
            assert response.header("content-range") == "bytes 0-3/10"

    async def test_conditional_request(self, site) -> None:
        async with TestClient(_server(site)) as client:
            first = await client.get("/1.txt")
            etag = first.header("etag")
            assert etag is not None
            second = await client.get("/1.txt", headers={"If-None-Match": etag})
            assert second.status == 304
            assert second.body_bytes == b""


class TestLiveReloadInjection:
    async def test_script_injected(self, site) -> None:
        async with TestClient(_server(site, live_reload=True)) as client:
            response = await client.get("/")
            assert response.status == 200
            assert response.text.count(LIVE_RELOAD_SNIPPET) == 1
            assert response.text.endswith(LIVE_RELOAD_SNIPPET + "</body></html>")

    async def test_no_script_without_listen(self, site) -> None:
        async with TestClient(_server(site, live_reload=False)) as client:
            response = await client.get("/")
            assert response.text == "<html><body><h1>One</h1></body></html>"


class TestRestRoutes:
    async def test_post_json_with_route_variable(self, site) -> None:
        server = _server(site)

        @server.route("POST", "/api/v1.0/users/:userId")
        def update_user(request, responder):
            return responder.ok().data(
                {"userId": request.route_params["userId"], "name": request.body["name"]}
            )

        async with TestClient(server) as client:
            response = await client.post("/api/v1.0/users/42", json={"name": "a"})
            assert response.status == 200
            assert response.content_type == "application/json"
            assert response.text == '{"userId": "42", "name": "a"}'

    async def test_body_arrives_in_chunks(self, site) -> None:
        server = Server()

        @server.route("PUT", "/items/:itemId")
        async def put_item(request, responder):
            return responder.ok().data(request.body)

        async with TestClient(server) as client:
            response = await client.request(
                "PUT", "/items/1", body=b'{"a": [1, 2, 3]}', chunk_size=3
            )
            assert response.text == '{"a": [1, 2, 3]}'

    async def test_empty_body_is_none(self) -> None:
        server = Server()

        @server.route("POST", "/echo")
        def echo(request, responder):
            return responder.ok().content(repr(request.body))

        async with TestClient(server) as client:
            assert (await client.post("/echo")).text == "None"

    async def test_malformed_json_is_bad_request(self) -> None:
        server = Server()
        calls: list[object] = []

        @server.route("POST", "/echo")
        def echo(request, responder):
            calls.append(request)
            return responder.ok().content("unreachable")

        async with TestClient(server) as client:
            response = await client.post("/echo", body=b"{not json")
            assert response.status == 400
            assert response.text == "Bad request."
        assert calls == []

    async def test_get_body_is_not_parsed(self) -> None:
        server = Server()

        @server.route("GET", "/raw")
        async def raw(request, responder):
            return responder.ok().content(await request.text())

        async with TestClient(server) as client:
            response = await client.request("GET", "/raw", body=b"{not json")
            assert response.text == "{not json"

    async def test_api_route_wins_over_static(self, site) -> None:
        server = _server(site)

        @server.route("GET", "/api/status")
        def status(request, responder):
            return responder.ok().data({"ok": True})

        async with TestClient(server) as client:
            assert (await client.get("/api/status")).text == '{"ok": true}'
            assert (await client.get("/1.txt")).text == "text 1 from file"

    async def test_from_status_and_redirect(self) -> None:
        server = Server()

        @server.route("POST", "/things")
        def create(request, responder):
            return responder.from_status(201).data({"created": True})

        @server.route("GET", "/old")
        def old(request, responder):
            return responder.redirect("/new")

        async with TestClient(server) as client:
            assert (await client.post("/things", json={})).status == 201
            moved = await client.get("/old")
            assert moved.status == 301
            assert moved.header("location") == "/new"

    async def test_patch_and_delete(self) -> None:
        server = Server()

        @server.route("PATCH", "/users/:userId")
        def patch(request, responder):
            return responder.ok().content(f"patched {request.route_params['userId']}")

        @server.route("DELETE", "/users/:userId")
        def delete(request, responder):
            return responder.from_status(204).content("")

        async with TestClient(server) as client:
            assert (await client.patch("/users/7")).text == "patched 7"
            assert (await client.delete("/users/7")).status == 204


class TestErrors:
    async def test_handler_raising_http_error(self) -> None:
        server = Server()

        @server.route("GET", "/users/:userId")
        def get_user(request, responder):
            raise NotFound(f"no user {request.route_params['userId']}")

        async with TestClient(server) as client:
            response = await client.get("/users/9")
            assert response.status == 404
            assert response.text == "Not found."

    async def test_handler_exception_is_internal_error(self, caplog) -> None:
        server = Server()

        @server.route("GET", "/boom")
        def boom(request, responder):
            raise ValueError("kaput")

        async with TestClient(server) as client:
            response = await client.get("/boom")
            assert response.status == 500
            assert response.text == "Internal server error."
        assert any(r.exc_info and "kaput" in str(r.exc_info[1]) for r in caplog.records)

    async def test_handler_returning_none_is_internal_error(self) -> None:
        server = Server()

        @server.route("GET", "/nothing")
        def nothing(request, responder):
            return None

        async with TestClient(server) as client:
            assert (await client.get("/nothing")).status == 500

    async def test_custom_callable_defaults(self) -> None:
        server = Server()
        server.not_found_default(lambda responder: responder.from_status(404).data({"error": "nf"}))
        server.internal_server_error_default(
            lambda responder: responder.from_status(500).content("custom 500")
        )

        @server.route("GET", "/boom")
        def boom(request, responder):
            raise RuntimeError("boom")

        async with TestClient(server) as client:
            assert (await client.get("/missing")).text == '{"error": "nf"}'
            assert (await client.get("/boom")).text == "custom 500"

    async def test_failing_500_default_still_answers(self) -> None:
        server = Server()

        def broken(responder):
            raise RuntimeError("default is broken too")

        server.internal_server_error_default(broken)

        @server.route("GET", "/boom")
        def boom(request, responder):
            raise RuntimeError("boom")

        async with TestClient(server) as client:
            response = await client.get("/boom")
            assert response.status == 500
            assert response.text == "Internal server error."

    async def test_custom_bad_request_file(self, site) -> None:
        (site / "bad.txt").write_text("Custom bad request.")
        server = Server(ServerConfig(bad_request=str(site / "bad.txt")))

        @server.route("PUT", "/x")
        def put(request, responder):
            return responder.ok().content("ok")

        async with TestClient(server) as client:
            response = await client.put("/x", body=b"[1, 2")
            assert response.status == 400
            assert response.text == "Custom bad request."

    async def test_do_default_from_handler(self, site) -> None:
        server = Server(ServerConfig(not_found=str(site / "not-found.txt")))

        @server.route("GET", "/users/:userId")
        async def get_user(request, responder):
            return await responder.not_found().do_default()

        async with TestClient(server) as client:
            response = await client.get("/users/1")
            assert response.status == 404
            assert response.text == "Custom not found message."


class TestConfiguration:
    def test_missing_default_file(self, tmp_path) -> None:
        with pytest.raises(ConfigurationError, match="does not exist"):
            Server(ServerConfig(not_found=str(tmp_path / "missing.html")))

    def test_default_must_be_path_or_callable(self) -> None:
        with pytest.raises(ConfigurationError):
            Server().bad_request_default(42)  # type: ignore[arg-type]

    def test_route_conflict(self) -> None:
        server = Server()
        server.add_route("GET", "/users/:userId", lambda request, responder: None)
        with pytest.raises(RouteConflict):
            server.add_route("GET", "/users/:id/posts", lambda request, responder: None)

    def test_static_paths(self, site) -> None:
        server = _server(site, paths={"/docs/": site / "one", "": [site / "one", site / "two"]})
        assert server.static_paths == {
            "docs": (str(site / "one"),),
            "": (str(site / "one"), str(site / "two")),
        }
        assert sorted(route.path for route in server.routes) == ["::filePath", "docs/::filePath"]

    async def test_no_registration_after_start(self) -> None:
        server = Server()
        async with TestClient(server) as client:
            await client.get("/")
        with pytest.raises(RuntimeError, match="Cannot modify"):
            server.add_route("GET", "/late", lambda request, responder: None)
        with pytest.raises(RuntimeError):
            server.add_paths("late", "somewhere")


class TestNotificationChannel:
    async def test_rejected_without_listen(self) -> None:
        async with TestClient(Server(ServerConfig(live_reload=False))) as client:
            async with client.websocket() as ws:
                assert ws.accepted is False
                assert ws.close_code == 1000

    async def test_connected_then_notifications(self) -> None:
        server = Server()
        async with TestClient(server) as client:
            async with client.websocket("/any/path") as ws:
                assert ws.accepted
                assert await ws.receive_text() == "connected"
                server.broadcaster.notify("site/style.css")
                assert await ws.receive_text() == "refreshcss"
                server.broadcaster.notify("site/index.html")
                assert await ws.receive_text() == "reload"
