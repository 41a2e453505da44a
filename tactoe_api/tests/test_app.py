import asyncio
import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

from fastapi.testclient import TestClient

from tactoe_api.app import create_app
from tactoe_api.config import Settings
from tactoe_api.errors import DatabaseOperationFailed, DatabaseUnavailable
from tactoe_api.services import Services

ALLOWED_ORIGIN = "https://lewistactoe.lewisunivcs.com"


def _settings(**overrides) -> Settings:
    values = {
        "use_in_memory_backends": True,
        "static_dir": "__no_static_dir__",
    }
    values.update(overrides)
    return Settings(**values)


class LoginApiTests(unittest.TestCase):
    def setUp(self):
        self.services = Services.in_memory()
        self.client = TestClient(create_app(_settings(), self.services))

    def test_log_login_then_list(self):
        response = self.client.post(
            "/api/log-login",
            json={
                "email": "ada@lewisu.edu",
                "name": "Ada",
                "timestamp": "2026-10-01T10:00:00Z",
            },
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok"})

        logins = self.client.get("/api/logins").json()
        self.assertEqual(len(logins), 1)
        self.assertEqual(logins[0]["email"], "ada@lewisu.edu")
        self.assertEqual(logins[0]["name"], "Ada")
        self.assertIn("_id", logins[0])

    def test_logins_are_newest_first(self):
        for stamp in [
            "2026-10-02T09:00:00Z",
            "2026-10-03T09:00:00Z",
            "2026-10-01T09:00:00Z",
        ]:
            self.client.post(
                "/api/log-login",
                json={"email": "a@b.c", "name": "A", "timestamp": stamp},
            )

        stamps = [row["timestamp"] for row in self.client.get("/api/logins").json()]
        self.assertEqual(len(stamps), 3)
        self.assertEqual(stamps, sorted(stamps, reverse=True))

    def test_log_login_accepts_partial_body(self):
        response = self.client.post("/api/log-login", json={"email": "a@b.c"})
        self.assertEqual(response.status_code, 200)
        self.client.post(
            "/api/log-login",
            json={"email": "d@e.f", "name": "D", "timestamp": "2026-10-01"},
        )

        logins = self.client.get("/api/logins").json()
        self.assertEqual([row["email"] for row in logins], ["d@e.f", "a@b.c"])
        self.assertIsNone(logins[1]["timestamp"])
        self.assertIsNone(logins[1]["name"])

    def test_log_login_keeps_numeric_timestamp(self):
        response = self.client.post(
            "/api/log-login",
            json={"email": "a@b.c", "name": "A", "timestamp": 1700000000000},
        )
        self.assertEqual(response.status_code, 200)
        logins = self.client.get("/api/logins").json()
        self.assertEqual(logins[0]["timestamp"], "1700000000000")

    def test_insert_failure_returns_json_error(self):
        self.services.db.insert_login = MagicMock(
            side_effect=DatabaseOperationFailed("Database insert failed")
        )
        response = self.client.post(
            "/api/log-login",
            json={"email": "a@b.c", "name": "A", "timestamp": "t"},
        )
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "Database insert failed"})

    def test_lost_connection_returns_503(self):
        self.services.db.list_logins = MagicMock(side_effect=DatabaseUnavailable())
        response = self.client.get("/api/logins")
        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.json(), {"error": "Database not connected"})


class AppBehaviourTests(unittest.TestCase):
    def test_not_connected_without_services(self):
        # Lifespan is not run outside a `with` block, so nothing is attached.
        client = TestClient(create_app(_settings()))
        response = client.get("/api/logins")
        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.json()["error"], "Database not connected")

    def test_lifespan_attaches_and_closes_services(self):
        app = create_app(_settings())
        with TestClient(app) as client:
            self.assertIsNotNone(app.state.services)
            response = client.get("/api/logins")
            self.assertEqual(response.status_code, 200)
            self.assertEqual(response.json(), [])
        self.assertIsNone(app.state.services)

    def test_startup_fails_when_database_unreachable(self):
        services = Services.in_memory()
        services.db.connect = MagicMock(side_effect=DatabaseUnavailable())
        app = create_app(_settings())

        async def start():
            async with app.router.lifespan_context(app):
                pass

        with patch(
            "tactoe_api.app.Services.from_settings", return_value=services
        ):
            with self.assertRaises(DatabaseUnavailable):
                asyncio.run(start())
        self.assertIsNone(app.state.services)

    def test_unknown_route_is_plain_text_404(self):
        client = TestClient(create_app(_settings(), Services.in_memory()))
        response = client.get("/no/such/route")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.text, "404 - Not Found")
        self.assertTrue(response.headers["content-type"].startswith("text/plain"))

    def test_wrong_method_is_plain_text_404(self):
        client = TestClient(create_app(_settings(), Services.in_memory()))
        for method, path in [("POST", "/api/logins"), ("GET", "/api/upload")]:
            response = client.request(method, path)
            self.assertEqual(response.status_code, 404)
            self.assertEqual(response.text, "404 - Not Found")
            self.assertTrue(response.headers["content-type"].startswith("text/plain"))

    def test_unhandled_error_is_plain_text_500(self):
        services = Services.in_memory()
        services.db.list_logins = MagicMock(side_effect=RuntimeError("boom"))
        client = TestClient(
            create_app(_settings(), services), raise_server_exceptions=False
        )
        with self.assertLogs("tactoe_api.app", level="ERROR") as logs:
            response = client.get("/api/logins")
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.text, "500 - Server Error")
        self.assertIsNotNone(logs.records[0].exc_info)
        self.assertIs(logs.records[0].exc_info[0], RuntimeError)

    def test_cors_allows_configured_origin_only(self):
        client = TestClient(create_app(_settings(), Services.in_memory()))
        allowed = client.get("/api/logins", headers={"Origin": ALLOWED_ORIGIN})
        self.assertEqual(
            allowed.headers.get("access-control-allow-origin"), ALLOWED_ORIGIN
        )

        other = client.get("/api/logins", headers={"Origin": "https://evil.test"})
        self.assertNotIn("access-control-allow-origin", other.headers)

    def test_cors_preflight_rejects_put(self):
        client = TestClient(create_app(_settings(), Services.in_memory()))
        response = client.options(
            "/api/log-login",
            headers={
                "Origin": ALLOWED_ORIGIN,
                "Access-Control-Request-Method": "PUT",
            },
        )
        self.assertEqual(response.status_code, 400)

    def test_static_directory_is_served(self):
        with tempfile.TemporaryDirectory() as static_dir:
            Path(static_dir, "index.html").write_text("<h1>hi</h1>")
            client = TestClient(
                create_app(_settings(static_dir=static_dir), Services.in_memory())
            )
            self.assertEqual(client.get("/").text, "<h1>hi</h1>")
            self.assertEqual(client.get("/2plus2").text, "4")
            missing = client.get("/missing.css")
            self.assertEqual(missing.status_code, 404)
            self.assertEqual(missing.text, "404 - Not Found")


if __name__ == "__main__":
    unittest.main()
