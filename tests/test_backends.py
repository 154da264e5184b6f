from __future__ import annotations

import json
import textwrap

import httpx
import pytest

from packrunner.backends import BackendManager, QueryError, StubQueryBackend, backend_manager
from packrunner.backends.http import HttpQueryBackend
from packrunner.config import RunnerConfig
from packrunner.core.parser import parse_sources


def _backend(handler, **kwargs) -> HttpQueryBackend:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return HttpQueryBackend("http://qa.test/query", client=client, **kwargs)


def test_http_backend_posts_project_and_prompt() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"response": "Yes - required."})

    backend = _backend(handler, method="hybrid")
    assert backend.query("ITB-42", "Is it required?") == "Yes - required."
    assert seen == [{"itb_id": "ITB-42", "method": "hybrid", "query": "Is it required?"}]


def test_http_backend_accepts_answer_field() -> None:
    backend = _backend(lambda request: httpx.Response(200, json={"answer": "12"}))
    assert backend.query("ITB-42", "How many?") == "12"


@pytest.mark.parametrize(
    "response, message",
    [
        (httpx.Response(500), "QA service error: 500 Internal Server Error"),
        (httpx.Response(200, text="<html>oops</html>"), "non-JSON"),
        (httpx.Response(200, json={"response": "   "}), "empty answer"),
        (httpx.Response(200, json={"response": 12}), "not text"),
        (httpx.Response(200, json=["Yes"]), "unexpected payload"),
    ],
)
def test_http_backend_bad_responses(response: httpx.Response, message: str) -> None:
    backend = _backend(lambda request: response)
    with pytest.raises(QueryError, match=message):
        backend.query("ITB-42", "prompt")


def test_http_backend_retries_transport_errors(monkeypatch) -> None:
    monkeypatch.setattr("packrunner.backends.http.time.sleep", lambda seconds: None)
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) == 1:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, json={"response": "ok"})

    assert _backend(handler, retries=1).query("ITB-42", "prompt") == "ok"
    assert len(calls) == 2


def test_http_backend_timeout_is_a_query_error(monkeypatch) -> None:
    monkeypatch.setattr("packrunner.backends.http.time.sleep", lambda seconds: None)

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("too slow", request=request)

    with pytest.raises(QueryError, match="unreachable"):
        _backend(handler, retries=2).query("ITB-42", "prompt")


def test_http_preflight_checks_endpoint() -> None:
    HttpQueryBackend("https://qa.example.com/query").preflight()
    with pytest.raises(QueryError):
        HttpQueryBackend("ftp://qa.example.com/query").preflight()


def test_http_backend_leaves_injected_client_open() -> None:
    client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
    HttpQueryBackend("http://qa.test/query", client=client).close()
    assert not client.is_closed


def test_stub_backend_from_file(tmp_path) -> None:
    path = tmp_path / "responses.yaml"
    path.write_text(
        textwrap.dedent(
            """
            responses:
              - match: parking
                text: There are 12 spaces.
                sources:
                  - filename: Civil_Plans.pdf
                    human_readable: Civil Plans
                    page_num: 3
              - match: sprinkler
                error: "QA service error: 503 Service Unavailable"
            default: No information found.
            """
        ),
        encoding="utf-8",
    )
    backend = StubQueryBackend.from_file(str(path))
    parsed = parse_sources(backend.query("ITB-42", "How many PARKING spaces?"))
    assert parsed.clean_response == "There are 12 spaces."
    assert parsed.sources[0].page_num == 3
    with pytest.raises(QueryError, match="503"):
        backend.query("ITB-42", "Is a sprinkler required?")
    assert backend.query("ITB-42", "Who is the architect?") == "No information found."
    assert [call[0] for call in backend.calls] == ["ITB-42"] * 3


def test_stub_without_default_raises() -> None:
    with pytest.raises(QueryError, match="no scripted response"):
        StubQueryBackend().query("ITB-42", "anything")


def test_builtin_backends_registered(tmp_path) -> None:
    assert "http" in backend_manager
    assert "stub" in backend_manager
    http_backend = backend_manager.create("http", RunnerConfig(endpoint="http://qa.test/query", retries=2))
    try:
        assert isinstance(http_backend, HttpQueryBackend)
        assert http_backend.endpoint == "http://qa.test/query"
    finally:
        http_backend.close()
    responses = tmp_path / "responses.yaml"
    responses.write_text("default: \"Yes\"\n", encoding="utf-8")
    stub = backend_manager.create("stub", RunnerConfig(responses_path=responses))
    assert stub.query("ITB-42", "anything") == "Yes"


def test_backend_manager_rejects_duplicates_and_unknown_names() -> None:
    manager = BackendManager()
    manager.register("stub", lambda config: StubQueryBackend())
    with pytest.raises(ValueError, match="already registered"):
        manager.register("stub", lambda config: StubQueryBackend())
    with pytest.raises(KeyError, match="available: stub"):
        manager.create("grpc", RunnerConfig())
    assert tuple(manager.names()) == ("stub",)
