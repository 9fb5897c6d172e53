import unittest
import uuid
from unittest.mock import patch

from fastapi.testclient import TestClient

from hello_api.app import create_app
from hello_api.config import Settings
from hello_api.db import InMemoryDbClient, SqlDbClient
from hello_api.errors import StoreUnavailable


class BackendApiTests(unittest.TestCase):
    def setUp(self):
        self.db = InMemoryDbClient()
        self.client = TestClient(create_app(db=self.db, settings=Settings()))

    def test_root_greeting(self):
        response = self.client.get("/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.text, "Hello, World!")

    def test_health(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok"})

    def test_create_and_list_users(self):
        response = self.client.post("/users", json={"username": "alice"})
        self.assertEqual(response.status_code, 201)
        payload = response.json()
        self.assertEqual(payload["username"], "alice")
        uuid.UUID(payload["user_id"])

        list_resp = self.client.get("/users")
        self.assertEqual(list_resp.status_code, 200)
        self.assertEqual(list_resp.json(), [payload])

    def test_duplicate_username_conflicts(self):
        self.client.post("/users", json={"username": "alice"})
        response = self.client.post(
            "/users", json={"username": "alice", "nickname": "other"}
        )
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json(), {"error": "Username already exists"})
        self.assertEqual(len(self.db.users), 1)

    def test_todo_scenario(self):
        created = self.client.post("/todos", json={"text": "buy milk"})
        self.assertEqual(created.status_code, 201)
        todo = created.json()
        self.assertEqual(todo["text"], "buy milk")
        self.assertFalse(todo["is_done"])

        updated = self.client.put(f"/todos/{todo['id']}", json={"is_done": True})
        self.assertEqual(updated.status_code, 200)
        self.assertEqual(
            updated.json(), {"id": todo["id"], "text": "buy milk", "is_done": True}
        )

        fetched = self.client.get(f"/todos/{todo['id']}")
        self.assertEqual(fetched.status_code, 200)
        self.assertEqual(fetched.json(), updated.json())

    def test_missing_todo_returns_not_found(self):
        missing = uuid.uuid4()
        response = self.client.get(f"/todos/{missing}")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"error": "Not Found"})

        response = self.client.put(f"/todos/{missing}", json={"is_done": True})
        self.assertEqual(response.status_code, 404)
        self.assertIn("error", response.json())

    def test_list_todos_capped_and_ordered(self):
        for i in range(12):
            self.client.post("/todos", json={"text": f"todo {i}"})
        response = self.client.get("/todos")
        self.assertEqual(response.status_code, 200)
        todos = response.json()
        self.assertEqual(len(todos), 10)
        ids = [uuid.UUID(todo["id"]) for todo in todos]
        self.assertEqual(ids, sorted(ids))

    def test_malformed_json_rejected_before_store(self):
        for path in ("/users", "/todos"):
            response = self.client.post(
                path,
                content=b'{"text": ',
                headers={"content-type": "application/json"},
            )
            self.assertEqual(response.status_code, 400)
            self.assertIn("invalid JSON", response.json()["error"])
        self.assertEqual(self.db.users, {})
        self.assertEqual(self.db.todos, {})

    def test_malformed_update_leaves_todo_unchanged(self):
        todo = self.client.post("/todos", json={"text": "walk dog"}).json()
        response = self.client.put(
            f"/todos/{todo['id']}",
            content=b"not json",
            headers={"content-type": "application/json"},
        )
        self.assertEqual(response.status_code, 400)

        response = self.client.put(f"/todos/{todo['id']}", json={"is_done": "yes"})
        self.assertEqual(response.status_code, 400)
        self.assertFalse(self.client.get(f"/todos/{todo['id']}").json()["is_done"])

    def test_missing_field_is_bad_request(self):
        response = self.client.post("/todos", json={"txt": "typo"})
        self.assertEqual(response.status_code, 400)
        self.assertIn("body.text", response.json()["error"])

    def test_invalid_path_identifier_is_bad_request(self):
        response = self.client.get("/todos/not-a-uuid")
        self.assertEqual(response.status_code, 400)
        self.assertIn("error", response.json())

    def test_bad_identifier_is_not_echoed(self):
        for response in (
            self.client.get("/todos/zzzzzzzz-marker"),
            self.client.put("/todos/zzzzzzzz-marker", json={"is_done": True}),
        ):
            self.assertEqual(response.status_code, 400)
            error = response.json()["error"]
            self.assertNotIn("marker", error)
            self.assertNotIn("zzzz", error)
            self.assertEqual(error, "Invalid request at path.todo_id: must be a UUID")

    def test_wrong_type_is_not_echoed(self):
        response = self.client.put(
            f"/todos/{uuid.uuid4()}", json={"is_done": "marker"}
        )
        self.assertEqual(response.status_code, 400)
        self.assertNotIn("marker", response.json()["error"])

    def test_nul_character_rejected_before_store(self):
        for path, body in (
            ("/todos", {"text": "a\u0000b"}),
            ("/users", {"username": "a\u0000b"}),
        ):
            response = self.client.post(path, json=body)
            self.assertEqual(response.status_code, 400)
            self.assertIn("error", response.json())
        self.assertEqual(self.db.todos, {})
        self.assertEqual(self.db.users, {})

    def test_unknown_route_uses_error_body(self):
        response = self.client.get("/nope")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"error": "Not Found"})

        response = self.client.delete("/users")
        self.assertEqual(response.status_code, 405)
        self.assertIn("error", response.json())

    def test_store_failure_is_generic_internal_error(self):
        with patch.object(
            self.db, "list_users", side_effect=StoreUnavailable("pool exhausted")
        ):
            with self.assertLogs("hello_api.errors", level="ERROR"):
                response = self.client.get("/users")
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "Internal server error"})

    def test_unexpected_exception_is_not_leaked(self):
        with patch.object(
            self.db, "insert_todo", side_effect=RuntimeError("secret detail")
        ):
            with self.assertLogs("hello_api.errors", level="ERROR"):
                response = self.client.post("/todos", json={"text": "x"})
        self.assertEqual(response.status_code, 500)
        self.assertNotIn("secret", response.text)

    def test_api_prefix(self):
        client = TestClient(
            create_app(db=self.db, settings=Settings(api_prefix="/api"))
        )
        self.assertEqual(client.get("/api/todos").status_code, 200)


class SqlBackedApiTests(unittest.TestCase):
    def setUp(self):
        self.db = SqlDbClient("sqlite+pysqlite:///:memory:")
        self.db.init_schema()
        self.client = TestClient(create_app(db=self.db, settings=Settings()))

    def tearDown(self):
        self.db.dispose()

    def test_user_round_trip_and_conflict(self):
        created = self.client.post("/users", json={"username": "bob"})
        self.assertEqual(created.status_code, 201)
        self.assertEqual(created.json()["username"], "bob")

        duplicate = self.client.post("/users", json={"username": "bob"})
        self.assertEqual(duplicate.status_code, 409)
        self.assertEqual(self.client.get("/users").json(), [created.json()])

    def test_todo_update_and_fetch(self):
        todo = self.client.post("/todos", json={"text": "buy milk"}).json()
        self.client.put(f"/todos/{todo['id']}", json={"is_done": True})
        fetched = self.client.get(f"/todos/{todo['id']}").json()
        self.assertEqual(fetched["text"], "buy milk")
        self.assertTrue(fetched["is_done"])


if __name__ == "__main__":
    unittest.main()
