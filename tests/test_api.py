"""Tests for the design session HTTP API."""

from unittest.mock import patch

from fastapi.testclient import TestClient

from py_earring.api import main
from py_earring.api.main import app

from conftest import INNER_SITES, ring_sites


class TestDesignAPI:
    """Drive a design session end to end over HTTP."""

    def setup_method(self):
        """Set up test client with an empty session registry."""
        main.sessions.clear()
        main.session_created.clear()
        self.client = TestClient(app)

    def create_session(self, **parameters):
        body = {"parameters": parameters} if parameters else None
        response = self.client.post("/sessions", json=body)
        assert response.status_code == 201
        return response.json()["session_id"]

    def add_sites(self, session_id, sites):
        data = None
        for site in sites:
            response = self.client.post(f"/sessions/{session_id}/sites", json={"x": site[0], "y": site[1]})
            assert response.status_code == 200
            data = response.json()
        return data

    def test_root_and_health(self):
        assert self.client.get("/").json()["status"] == "running"
        health = self.client.get("/health").json()
        assert health == {"status": "healthy", "sessions": 0}

    def test_new_session_is_empty(self):
        session_id = self.create_session()
        data = self.client.get(f"/sessions/{session_id}").json()

        assert data["sites"] == []
        assert data["hole"] is None
        assert data["mode"] == "add_sites"
        assert data["can_export"] is False
        assert data["geometry"]["final_polygons"] == []
        assert data["parameters"]["gap_width"] == 1.0

    def test_create_with_parameters(self):
        session_id = self.create_session(gap_width=3.0, corner_radius=1.0)
        params = self.client.get(f"/sessions/{session_id}").json()["parameters"]
        assert params["gap_width"] == 3.0
        assert params["corner_radius"] == 1.0

    def test_export_without_geometry_conflicts(self):
        session_id = self.create_session()
        response = self.client.get(f"/sessions/{session_id}/export")
        assert response.status_code == 409
        assert response.json()["detail"].startswith("<!-- Error")

    def test_add_sites_and_export(self):
        session_id = self.create_session()
        data = self.add_sites(session_id, ring_sites() + INNER_SITES)

        assert len(data["sites"]) == 15
        assert data["can_export"] is True
        geometry = data["geometry"]
        assert len(geometry["final_polygons"]) == 5
        assert geometry["polygon_roles"] == ["cell"] * 5
        assert len(geometry["shadow_polygons"]) == 10
        assert len(geometry["boundary_paths"]) == 1
        assert all(path.startswith("M ") and path.endswith("Z") for path in geometry["display_paths"])

        response = self.client.get(f"/sessions/{session_id}/export", params={"include_outline": True})
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("image/svg+xml")
        assert "attachment" in response.headers["content-disposition"]
        assert response.text.startswith("<svg")
        assert response.text.count("<path") == 2

    def test_unknown_session(self):
        assert self.client.get("/sessions/missing").status_code == 404
        assert self.client.post("/sessions/missing/sites", json={"x": 1, "y": 1}).status_code == 404
        assert self.client.get("/sessions/missing/export").status_code == 404

    def test_move_and_delete_site(self):
        session_id = self.create_session()
        self.add_sites(session_id, ring_sites() + INNER_SITES)

        response = self.client.put(f"/sessions/{session_id}/sites/14", json={"x": 57.0, "y": 53.0})
        assert response.status_code == 200
        assert response.json()["sites"][14] == {"x": 57.0, "y": 53.0}

        response = self.client.delete(f"/sessions/{session_id}/sites/14")
        assert response.status_code == 200
        assert len(response.json()["geometry"]["final_polygons"]) == 4

        assert self.client.delete(f"/sessions/{session_id}/sites/99").status_code == 404
        assert self.client.put(f"/sessions/{session_id}/sites/99", json={"x": 0, "y": 0}).status_code == 404

    def test_click_in_hole_mode(self):
        session_id = self.create_session()
        self.add_sites(session_id, ring_sites() + INNER_SITES)

        response = self.client.put(f"/sessions/{session_id}/mode", json={"mode": "place_hole"})
        assert response.json()["mode"] == "place_hole"

        data = self.client.post(f"/sessions/{session_id}/click", json={"x": 50, "y": 50}).json()
        assert data["hole"] == {"x": 50.0, "y": 50.0}
        assert len(data["sites"]) == 15
        assert data["geometry"]["hole_included"] is True
        assert data["geometry"]["polygon_roles"][-1] == "hole"

        data = self.client.delete(f"/sessions/{session_id}/hole").json()
        assert data["hole"] is None
        assert data["geometry"]["hole_included"] is False

    def test_invalid_mode(self):
        session_id = self.create_session()
        response = self.client.put(f"/sessions/{session_id}/mode", json={"mode": "erase"})
        assert response.status_code == 422

    def test_parameter_update(self):
        session_id = self.create_session()
        self.add_sites(session_id, ring_sites() + INNER_SITES)

        data = self.client.patch(f"/sessions/{session_id}/parameters", json={"corner_radius": 1.0}).json()
        assert data["parameters"]["corner_radius"] == 1.0
        assert data["parameters"]["gap_width"] == 1.0
        assert any("Q " in path for path in data["geometry"]["display_paths"])

    def test_invalid_parameter(self):
        session_id = self.create_session()
        response = self.client.patch(f"/sessions/{session_id}/parameters", json={"gap_width": -1.0})
        assert response.status_code == 422

    def test_spread(self):
        session_id = self.create_session()
        before = self.add_sites(session_id, ring_sites() + INNER_SITES)["sites"]

        data = self.client.post(f"/sessions/{session_id}/spread").json()
        assert data["moved"] is True
        assert data["session"]["sites"] != before

    def test_clear_sites_and_clear_all(self):
        session_id = self.create_session()
        self.add_sites(session_id, ring_sites() + INNER_SITES)
        self.client.put(f"/sessions/{session_id}/hole", json={"x": 50, "y": 50})

        data = self.client.delete(f"/sessions/{session_id}/sites").json()
        assert data["sites"] == []
        assert data["hole"] == {"x": 50.0, "y": 50.0}

        data = self.client.post(f"/sessions/{session_id}/clear").json()
        assert data["hole"] is None
        assert data["can_export"] is False

    def test_delete_session(self):
        session_id = self.create_session()
        assert self.client.delete(f"/sessions/{session_id}").status_code == 204
        assert self.client.get(f"/sessions/{session_id}").status_code == 404

    def test_site_limit(self):
        session_id = self.create_session()
        main.sessions[session_id].max_sites = 1
        self.add_sites(session_id, [(10, 10)])
        response = self.client.post(f"/sessions/{session_id}/sites", json={"x": 20, "y": 20})
        assert response.status_code == 400

    def test_session_limit(self):
        with patch.object(main.settings, "max_sessions", 1):
            self.create_session()
            response = self.client.post("/sessions")
            assert response.status_code == 429

    def test_site_hit_test(self):
        session_id = self.create_session()
        self.add_sites(session_id, [(10, 10), (30, 10)])

        hit = self.client.get(f"/sessions/{session_id}/sites/hit", params={"x": 28, "y": 11})
        assert hit.status_code == 200
        assert hit.json() == {"index": 1}

        miss = self.client.get(f"/sessions/{session_id}/sites/hit", params={"x": 20, "y": 10})
        assert miss.json() == {"index": None}

        wide = self.client.get(f"/sessions/{session_id}/sites/hit", params={"x": 12, "y": 10, "radius": 30})
        assert wide.json() == {"index": 0}

        bad = self.client.get(f"/sessions/{session_id}/sites/hit", params={"x": 0, "y": 0, "radius": 0})
        assert bad.status_code == 422
