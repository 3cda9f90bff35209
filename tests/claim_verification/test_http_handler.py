import json

import flask
import pytest

from src.functions.claim_verification.functions import main

PAGE_TEXT = (
    "The unemployment rate fell to 3.5% in March 2023, according to the Labor Department. "
    "The city council approved a budget of $2.1 billion on June 5, 2023 after a long debate."
)


@pytest.fixture
def app():
    return flask.Flask(__name__)


def _call(app, method="POST", path="/analyze", **kwargs):
    with app.test_request_context(path, method=method, **kwargs):
        response = main.claim_verification_handler(flask.request)
        body = response.get_data(as_text=True)
    return response, body


def test_analyze_returns_result_json(app):
    response, body = _call(app, json={"text": PAGE_TEXT, "options": {"offline": True}})

    payload = json.loads(body)
    assert response.status_code == 200
    assert response.headers["Access-Control-Allow-Origin"] == "*"
    assert payload["status"] == "complete"
    assert len(payload["claims"]) == 2
    assert payload["used_fallback_sources"] is True
    assert 0.0 <= payload["credibility_score"] <= 1.0
    assert payload["consensus"]["disclaimer"]


def test_blank_text_is_a_bad_request(app):
    response, body = _call(app, json={"text": "  "})

    assert response.status_code == 400
    assert json.loads(body)["status"] == "error"


def test_per_request_cache_options_are_rejected(app):
    response, body = _call(
        app,
        json={"text": PAGE_TEXT, "options": {"offline": True, "cache": {"nli_max_entries": 5}}},
    )

    assert response.status_code == 400
    assert "options.cache" in json.loads(body)["message"]


def test_missing_body_is_a_bad_request(app):
    response, _ = _call(app, data="not json", content_type="text/plain")

    assert response.status_code == 400


def test_method_handling(app):
    options, _ = _call(app, method="OPTIONS")
    put, _ = _call(app, method="PUT")
    health, body = _call(app, method="GET", path="/health")

    assert options.status_code == 204
    assert put.status_code == 405
    assert health.status_code == 200
    assert json.loads(body) == {"status": "ok", "service": "claim_verification"}


def test_streaming_request_returns_ndjson_events(app):
    response, body = _call(
        app, json={"text": PAGE_TEXT, "stream": True, "options": {"offline": True}}
    )

    lines = [json.loads(line) for line in body.splitlines() if line.strip()]
    assert response.mimetype == "application/x-ndjson"
    assert lines[0]["type"] == "status"
    assert lines[-1]["type"] == "complete"
    assert sum(1 for line in lines if line["type"] == "claim_result") == 2
