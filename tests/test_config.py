import pytest

from infrastructure.config import AppConfig


def test_public_base_url_follows_host_and_port():
    config = AppConfig(host="catalogo.test", port=8080)
    assert config.public_base_url == "http://catalogo.test:8080/assets/"


def test_wildcard_host_is_published_as_loopback():
    assert AppConfig(host="0.0.0.0", port=9000).public_base_url == "http://127.0.0.1:9000/assets/"


def test_explicit_public_base_url_wins():
    config = AppConfig(port=8080, public_base_url="https://cdn.example.com/assets/")
    assert config.public_base_url == "https://cdn.example.com/assets/"


def test_unknown_backend():
    with pytest.raises(ValueError):
        AppConfig(backend="ftp")


def test_from_env(monkeypatch, tmp_path):
    for name in ("CATALOG_PUBLIC_BASE_URL", "CATALOG_HOST", "CATALOG_BACKEND"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("CATALOG_PORT", "6001")
    monkeypatch.setenv("CATALOG_FORM_TTL_MINUTES", "5")

    config = AppConfig.from_env(str(tmp_path / "missing.env"))

    assert config.port == 6001
    assert config.public_base_url == "http://127.0.0.1:6001/assets/"
    assert config.form_ttl_minutes == 5
