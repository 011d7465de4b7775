import pytest

import halkit.settings as settings_module
from halkit.http_client import create_transport_client
from halkit.settings import HAL_JSON_MEDIA_TYPE, Settings


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    monkeypatch.setattr(settings_module, "load_dotenv", lambda: False)
    for name in ("HALKIT_ROOT_ENDPOINT", "HALKIT_API_TIMEOUT", "HALKIT_MEDIA_TYPE"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_load_reads_environment(isolated_env: pytest.MonkeyPatch) -> None:
    isolated_env.setenv("HALKIT_ROOT_ENDPOINT", " https://api.example.com/ ")
    isolated_env.setenv("HALKIT_API_TIMEOUT", "2.5")
    settings = Settings.load()
    assert settings.root_endpoint == "https://api.example.com/"
    assert settings.api_timeout == 2.5
    assert settings.media_type == HAL_JSON_MEDIA_TYPE
    assert settings.default_headers == ()


def test_load_requires_root_endpoint() -> None:
    with pytest.raises(ValueError, match="HALKIT_ROOT_ENDPOINT is required"):
        Settings.load()


@pytest.mark.parametrize("value", ["/relative/path", "ftp://files.example.com", "api.example.com"])
def test_load_rejects_non_absolute_root(isolated_env: pytest.MonkeyPatch, value: str) -> None:
    isolated_env.setenv("HALKIT_ROOT_ENDPOINT", value)
    with pytest.raises(ValueError, match="absolute"):
        Settings.load()


@pytest.mark.parametrize("value", ["soon", "0", "-1"])
def test_load_rejects_bad_timeout(isolated_env: pytest.MonkeyPatch, value: str) -> None:
    isolated_env.setenv("HALKIT_ROOT_ENDPOINT", "https://api.example.com/")
    isolated_env.setenv("HALKIT_API_TIMEOUT", value)
    with pytest.raises(ValueError, match="HALKIT_API_TIMEOUT"):
        Settings.load()


def test_load_rejects_bad_media_type(isolated_env: pytest.MonkeyPatch) -> None:
    isolated_env.setenv("HALKIT_ROOT_ENDPOINT", "https://api.example.com/")
    isolated_env.setenv("HALKIT_MEDIA_TYPE", "json")
    with pytest.raises(ValueError, match="HALKIT_MEDIA_TYPE"):
        Settings.load()


def test_settings_are_immutable() -> None:
    settings = Settings(
        root_endpoint="https://api.example.com/",
        default_headers=(("Authorization", "Bearer abc"),),
    )
    with pytest.raises(AttributeError):
        settings.api_timeout = 1.0  # type: ignore[misc]
    assert hash(settings) == hash(
        Settings(
            root_endpoint="https://api.example.com/",
            default_headers=(("Authorization", "Bearer abc"),),
        )
    )


@pytest.mark.anyio
async def test_transport_client_applies_timeout_and_default_headers() -> None:
    settings = Settings(
        root_endpoint="https://api.example.com/",
        api_timeout=4.0,
        default_headers=(("X-Api-Version", "2"), ("X-Tenant", "a"), ("X-Tenant", "b")),
    )
    client = create_transport_client(settings)
    try:
        assert client.timeout.read == 4.0
        assert client.follow_redirects
        assert client.headers.get_list("X-Api-Version") == ["2"]
        assert client.headers.get_list("X-Tenant") == ["a", "b"]
        request = client.build_request("GET", "https://api.example.com/", headers={"X-Api-Version": "3"})
        assert request.headers.get_list("X-Api-Version") == ["3"]
    finally:
        await client.aclose()
