"""Integration tests for the HTTP API."""

import unittest

from fastapi.testclient import TestClient

from src.presentation.api.app import create_app
from tests.fixtures.test_data import TestDataFactory


class TestAPI(unittest.TestCase):

    def setUp(self):
        self.client = TestClient(create_app())

    def test_root_lists_endpoints(self):
        response = self.client.get("/")

        self.assertEqual(response.status_code, 200)
        self.assertIn("transform", response.json()["endpoints"])

    def test_transform(self):
        # Act
        response = self.client.post("/api/v1/transform", json={"diagram": TestDataFactory.create_shop_diagram()})

        # Assert
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body["success"])
        names = [t["name"] for t in body["physical_model"]["tables"]]
        self.assertEqual(names, ["customer", "order", "order_line"])

    def test_transform_failure_is_reported_in_body(self):
        diagram = {"elements": {"c": {"name": "NoKey", "attributes": ["name: String"]}}, "relationships": {}}

        response = self.client.post("/api/v1/transform", json={"diagram": diagram})

        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.json()["success"])
        self.assertTrue(any("NoKey" in e for e in response.json()["errors"]))

    def test_initial_then_incremental_migration(self):
        diagram = TestDataFactory.create_shop_diagram()

        first = self.client.post("/api/v1/migrations", json={"diagram": diagram}).json()
        self.assertTrue(first["success"], first["errors"])
        self.assertEqual(first["migration"]["fileName"], "V1__initial_schema.sql")

        diagram["elements"]["c1"]["attributes"].append("+birthday: Date")
        second = self.client.post(
            "/api/v1/migrations",
            json={
                "diagram": diagram,
                "previous_model": first["physical_model"],
                "existing_migrations": [first["migration"]["fileName"]],
            },
        ).json()

        self.assertTrue(second["success"], second["errors"])
        self.assertEqual(second["migration"]["version"], 2)
        self.assertIn("ADD COLUMN IF NOT EXISTS birthday DATE", second["migration"]["sql"])
        self.assertEqual(second["changes"]["modifiedTables"][0]["newColumns"], ["birthday"])

    def test_unchanged_diagram_gives_no_migration(self):
        diagram = TestDataFactory.create_shop_diagram()

        response = self.client.post(
            "/api/v1/migrations",
            json={"diagram": diagram, "previous_diagram": diagram, "existing_migrations": ["V1__initial_schema.sql"]},
        ).json()

        self.assertTrue(response["success"])
        self.assertIsNone(response["migration"])

    def test_unsupported_dialect_rejected(self):
        response = self.client.post(
            "/api/v1/migrations",
            json={"diagram": TestDataFactory.create_shop_diagram(), "dialect": "oracle"},
        )

        self.assertEqual(response.status_code, 422)
