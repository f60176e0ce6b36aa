"""FastAPI boundary tests."""
import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient
from pydantic import BaseModel

from ursa.validation import (
    HTTPRequest,
    MinLength,
    Object,
    ObjectResult,
    Required,
    WithDefault,
)
from ursa.validation.boundaries import (
    error_status,
    register_exception_handlers,
    validated_request,
)

SIGNUP = Object().string("Name", MinLength(5)).int("Count")
SEARCH = Object().string("q", Required(), MinLength(1)).int("page", WithDefault(1))


class SignupForm(BaseModel):
    Name: str
    Count: int


app = FastAPI()
register_exception_handlers(app)


@app.post("/signup")
async def signup(result: ObjectResult = validated_request(SIGNUP)):
    return result.value


@app.post("/signup-model")
async def signup_model(form: SignupForm = validated_request(SIGNUP, SignupForm)):
    return {"name": form.Name, "count": form.Count}


@app.post("/tiny")
async def tiny(result: ObjectResult = validated_request(SIGNUP.with_max_body_size(8))):
    return result.value


@app.get("/search")
async def search(result: ObjectResult = validated_request(SEARCH)):
    return result.value


@app.get("/unwrap")
async def unwrap(request: Request):
    return SEARCH.parse(dict(request.query_params)).unwrap()


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.mark.integration
def test_json_body(client: TestClient) -> None:
    response = client.post("/signup", json={"Name": "abcdef", "Count": 5})
    assert response.status_code == 200
    assert response.json() == {"Name": "abcdef", "Count": 5}


@pytest.mark.integration
def test_urlencoded_body(client: TestClient) -> None:
    response = client.post("/signup", data={"Name": "abcdef", "Count": "5"})
    assert response.status_code == 200
    assert response.json() == {"Name": "abcdef", "Count": 5}


@pytest.mark.integration
def test_multipart_body(client: TestClient) -> None:
    response = client.post(
        "/signup",
        data={"Name": "abcdef", "Count": "5"},
        files={"attachment": ("a.txt", b"ignored", "text/plain")},
    )
    assert response.status_code == 200
    assert response.json() == {"Name": "abcdef", "Count": 5}


@pytest.mark.integration
def test_unmarshalled_model(client: TestClient) -> None:
    response = client.post("/signup-model", json={"Name": "abcdef", "Count": "7"})
    assert response.status_code == 200
    assert response.json() == {"name": "abcdef", "count": 7}


@pytest.mark.integration
def test_query_with_default(client: TestClient) -> None:
    response = client.get("/search", params={"q": "bears"})
    assert response.status_code == 200
    assert response.json() == {"q": "bears", "page": 1}


@pytest.mark.integration
def test_invalid_data_is_422(client: TestClient) -> None:
    response = client.post("/signup", json={"Name": "abc", "Count": "many"})
    assert response.status_code == 422
    detail = response.json()["detail"]
    assert [(d["field"], d["code"]) for d in detail] == [
        ("Name", "E2010_TOO_SHORT"),
        ("Count", "E1000_INVALID_TYPE"),
    ]


@pytest.mark.integration
def test_oversized_body_is_413(client: TestClient) -> None:
    response = client.post("/tiny", json={"Name": "abcdef", "Count": 5})
    assert response.status_code == 413
    assert response.json()["detail"][0]["code"] == "E3000_BODY_TOO_LARGE"


@pytest.mark.integration
def test_unsupported_media_type_is_415(client: TestClient) -> None:
    response = client.post("/signup", content=b"Name=abcdef", headers={"Content-Type": "text/plain"})
    assert response.status_code == 415


@pytest.mark.integration
def test_malformed_json_is_400(client: TestClient) -> None:
    response = client.post(
        "/signup", content=b"{broken", headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 400


@pytest.mark.integration
def test_unwrap_in_handler_is_422(client: TestClient) -> None:
    response = client.get("/unwrap")
    assert response.status_code == 422
    error = response.json()["error"]
    assert error["type"] == "validation_error"
    assert error["errors"][0]["code"] == "E1003_REQUIRED_PROPERTY_MISSING"


@pytest.mark.unit
def test_error_status_prefers_source_errors() -> None:
    request = HTTPRequest.build("POST", content_type="application/json", body=b"{}")
    assert error_status(SIGNUP.with_max_body_size(1).parse(request)) == 413
    assert error_status(SIGNUP.parse({"Name": "abc"})) == 422
