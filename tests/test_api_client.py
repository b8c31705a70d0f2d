import httpx
import pytest

from ibarize.core.urls import api_path, media_url
from ibarize.schemas.property import normalize_property
from ibarize.services.api import ApiError, ApiService
from ibarize.services.uploads import LocalFile

def test_api_path_inserts_leading_slash():
    assert api_path("api/properties") == "http://localhost:3001/api/properties"
    assert api_path("/api/health") == "http://localhost:3001/api/health"

def test_media_url():
    assert media_url("") == ""
    assert media_url(None) == ""
    assert media_url("HTTPS://cdn.example.com/a.jpg") == "HTTPS://cdn.example.com/a.jpg"
    assert media_url("uploads/a.jpg") == "http://localhost:3001/uploads/a.jpg"
    assert media_url("/uploads/a.jpg") == "http://localhost:3001/uploads/a.jpg"

def test_normalize_property_coerces_numeric_strings():
    p = normalize_property({
        "id": 7, "price": "1500.5", "bedrooms": "3", "bathrooms": None, "size": "", "yearBuilt": "",
        "parking": "2", "floor": 4, "images": None, "custom": "kept",
    })
    assert p["id"] == "7"
    assert p["price"] == 1500.5
    assert p["bedrooms"] == 3
    assert p["bathrooms"] == 0
    assert p["size"] == 0.0
    assert p["yearBuilt"] is None
    assert p["parking"] == 2
    assert p["images"] == []
    assert p["custom"] == "kept"

@pytest.mark.asyncio
async def test_get_properties_normalizes(api):
    properties = await api.get_properties()
    assert [p["id"] for p in properties] == ["1", "2", "3"]
    assert properties[1]["price"] == 450000.0
    assert properties[1]["bedrooms"] == 4

@pytest.mark.asyncio
async def test_null_body_means_no_properties():
    api = ApiService(transport=httpx.MockTransport(lambda request: httpx.Response(200, json=None)))
    assert await api.get_properties() == []

@pytest.mark.asyncio
async def test_http_error_carries_status(api):
    with pytest.raises(ApiError) as exc:
        await api.get_property("missing")
    assert exc.value.status_code == 404
    assert str(exc.value) == "HTTP error! status: 404"

@pytest.mark.asyncio
async def test_requests_send_json_content_type():
    seen = []

    def handler(request):
        seen.append(request.headers.get("content-type"))
        return httpx.Response(200, json={"message": "ok"})

    api = ApiService(transport=httpx.MockTransport(handler))
    await api.update_settings({"display": {"theme": "dark"}})
    assert seen == ["application/json"]

@pytest.mark.asyncio
async def test_create_property_failure_message(api, backend):
    backend.fail = True
    with pytest.raises(ApiError) as exc:
        await api.create_property({"title": "x"})
    assert str(exc.value) == "Failed to create property: 500"

@pytest.mark.asyncio
async def test_create_returns_generated_id(api, backend):
    result = await api.create_property({"title": "New Villa", "price": 1})
    assert result["id"] in backend.properties

@pytest.mark.asyncio
async def test_transport_failure_is_wrapped():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    api = ApiService(transport=httpx.MockTransport(handler))
    with pytest.raises(ApiError) as exc:
        await api.health_check()
    assert exc.value.status_code is None

@pytest.mark.asyncio
async def test_upload_sends_every_file_under_files_field(api):
    files = [
        LocalFile("front.jpg", b"a" * 2000, "image/jpeg"),
        LocalFile("tour.mp4", b"b" * 3000, "video/mp4"),
    ]
    result = await api.upload_files(files)
    assert [f["filename"] for f in result["files"]] == ["front.jpg", "tour.mp4"]

@pytest.mark.asyncio
async def test_upload_reports_progress_up_to_100(api):
    progress = []
    await api.upload_files([LocalFile("front.jpg", b"a" * 50000, "image/jpeg")], on_progress=progress.append)
    assert progress
    assert progress == sorted(progress)
    assert progress[-1] == 100

@pytest.mark.asyncio
async def test_upload_errors():
    rejected = ApiService(transport=httpx.MockTransport(lambda r: httpx.Response(413, text="too big")))
    with pytest.raises(ApiError, match="Upload failed: 413"):
        await rejected.upload_files([LocalFile("a.jpg", b"a")])

    garbled = ApiService(transport=httpx.MockTransport(lambda r: httpx.Response(200, text="<html>")))
    with pytest.raises(ApiError, match="Invalid JSON response"):
        await garbled.upload_files([LocalFile("a.jpg", b"a")])

    def refuse(request):
        raise httpx.ConnectError("refused", request=request)

    offline = ApiService(transport=httpx.MockTransport(refuse))
    with pytest.raises(ApiError, match="Network error during upload"):
        await offline.upload_files([LocalFile("a.jpg", b"a")])

@pytest.mark.asyncio
async def test_create_without_json_body_is_an_api_error():
    api = ApiService(transport=httpx.MockTransport(lambda r: httpx.Response(201, text="")))
    with pytest.raises(ApiError, match="Invalid JSON response"):
        await api.create_property({"title": "Villa", "price": 1, "location": "Kigali"})

@pytest.mark.asyncio
async def test_create_without_id_is_an_api_error():
    api = ApiService(transport=httpx.MockTransport(lambda r: httpx.Response(201, json={"message": "created"})))
    with pytest.raises(ApiError, match="missing id"):
        await api.create_property({"title": "Villa", "price": 1, "location": "Kigali"})

@pytest.mark.asyncio
async def test_create_stringifies_numeric_id():
    api = ApiService(transport=httpx.MockTransport(lambda r: httpx.Response(201, json={"id": 7})))
    assert await api.create_property({"title": "Villa"}) == {"id": "7", "message": ""}

@pytest.mark.asyncio
async def test_upload_response_must_list_files():
    api = ApiService(transport=httpx.MockTransport(lambda r: httpx.Response(200, json={"ok": True})))
    with pytest.raises(ApiError, match="Invalid JSON response"):
        await api.upload_files([LocalFile("a.jpg", b"a", "image/jpeg")])
