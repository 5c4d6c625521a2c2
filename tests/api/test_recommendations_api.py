import pytest
from fastapi.testclient import TestClient

from apps.api.app.error_codes import ErrorCode, error_code_for_status
from apps.api.app.main import app
from apps.api.app.routes.recommendations import get_service
from game_recommender.catalog import CatalogItem
from game_recommender.config import RecommenderConfig
from game_recommender.service.recommender_service import RecommenderService


class ExplodingService:
    def recommend(self, names):
        raise RuntimeError("catalog cursor died")


class MalformedCatalog:
    """Catalog whose stored documents carry neither steam_appid nor _id."""

    def get_items_by_names(self, names):
        return [CatalogItem.from_document({"name": name}) for name in names]

    def get_all_items_excluding(self, names, limit):
        return []


@pytest.fixture
def service(sample_catalog, quiet_logger):
    return RecommenderService(
        sample_catalog, config=RecommenderConfig(top_k=3, random_seed=3), logger=quiet_logger
    )


@pytest.fixture
def client(service):
    app.dependency_overrides[get_service] = lambda: service
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


def test_post_recommendations_returns_ranked_games(client, seed_names):
    resp = client.post("/v1/recommendations", json={"games": seed_names})

    assert resp.status_code == 200
    body = resp.json()
    assert len(body["recommendations"]) == 3
    assert body["recommendations"][0]["name"] == "Elden Ring"
    assert body["recommendations"][0]["steam_appid"] == "400"
    assert [g["name"] for g in body["user_games"]] == seed_names
    assert set(body["recommendations"][0]) == {
        "steam_appid", "name", "similarity_score", "genres", "categories", "platforms",
    }
    assert resp.headers["X-Request-ID"]


def test_request_id_is_echoed(client, seed_names):
    resp = client.post(
        "/v1/recommendations", json={"games": seed_names}, headers={"X-Request-ID": "req-123"}
    )
    assert resp.headers["X-Request-ID"] == "req-123"


def test_unresolved_games_return_404_with_found_count(client):
    resp = client.post(
        "/v1/recommendations",
        json={"games": ["Dark Souls III", "Elden Ring", "Half-Life 3"]},
        headers={"X-Request-ID": "req-404"},
    )

    assert resp.status_code == 404
    error = resp.json()["error"]
    assert error["code"] == "NOT_FOUND"
    assert error["request_id"] == "req-404"
    assert error["details"]["found_count"] == 2
    assert error["details"]["requested"] == ["Dark Souls III", "Elden Ring", "Half-Life 3"]
    assert error["message"].startswith("Only found 2 games in database")


def test_wrong_number_of_games_is_a_validation_error(client):
    resp = client.post("/v1/recommendations", json={"games": ["Dark Souls III", "Elden Ring"]})

    assert resp.status_code == 422
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"


def test_duplicate_games_are_a_bad_request(client):
    resp = client.post(
        "/v1/recommendations", json={"games": ["Elden Ring", "Elden Ring", "Stardew Valley"]}
    )

    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "BAD_REQUEST"


def test_unexpected_errors_use_envelope():
    app.dependency_overrides[get_service] = lambda: ExplodingService()
    try:
        client = TestClient(app, raise_server_exceptions=False)
        resp = client.post("/v1/recommendations", json={"games": ["a", "b", "c"]})
    finally:
        app.dependency_overrides.clear()

    assert resp.status_code == 500
    assert resp.json()["error"]["code"] == "INTERNAL_ERROR"


def test_missing_service_returns_503():
    app.state.recommender_service = None
    client = TestClient(app)

    resp = client.post("/v1/recommendations", json={"games": ["a", "b", "c"]})

    assert resp.status_code == 503
    assert resp.json()["error"]["code"] == "SERVICE_UNAVAILABLE"


def test_health_and_readiness(service):
    client = TestClient(app)
    assert client.get("/v1/health").json() == {"status": "ok"}

    app.state.recommender_service = None
    assert client.get("/v1/ready").status_code == 503

    app.state.recommender_service = service
    try:
        assert client.get("/v1/ready").json() == {"status": "ready"}
    finally:
        app.state.recommender_service = None


@pytest.mark.parametrize(
    "status_code,expected",
    [(400, ErrorCode.BAD_REQUEST), (503, ErrorCode.SERVICE_UNAVAILABLE), (418, ErrorCode.HTTP_ERROR)],
)
def test_error_code_for_status(status_code, expected):
    assert error_code_for_status(status_code) is expected


def test_malformed_catalog_document_is_a_server_error(quiet_logger, seed_names):
    service = RecommenderService(MalformedCatalog(), logger=quiet_logger)
    app.dependency_overrides[get_service] = lambda: service
    try:
        client = TestClient(app, raise_server_exceptions=False)
        resp = client.post("/v1/recommendations", json={"games": seed_names})
    finally:
        app.dependency_overrides.clear()

    assert resp.status_code == 500
    assert resp.json()["error"]["code"] == "INTERNAL_ERROR"
