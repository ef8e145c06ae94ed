import pytest
from pydantic import ValidationError

from s3manifest.exceptions import InvalidEndpointError
from s3manifest.settings import ManifestSettings, StorageEndpointConfig

from conftest import FakeS3Client


@pytest.fixture
def recording_factory():
    calls = []

    def factory(service, **kwargs):
        calls.append((service, kwargs))
        return FakeS3Client()

    factory.calls = calls
    return factory


def test_defaults():
    settings = ManifestSettings(_env_file=None)
    assert settings.delimiter == "/"
    assert settings.page_size == 1000
    assert settings.batch_size == 1000
    assert settings.retry_policy.max_attempts == 3
    assert settings.retry_policy.base_delay == pytest.approx(0.1)
    assert settings.source == StorageEndpointConfig()


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("S3_MANIFEST_DELIMITER", "|")
    monkeypatch.setenv("S3_MANIFEST_BATCH_SIZE", "50")
    monkeypatch.setenv("S3_MANIFEST_SOURCE__ENDPOINT_URL", "http://minio:9000")
    monkeypatch.setenv("S3_MANIFEST_DEST__ACCESS_KEY", "AKIA")

    settings = ManifestSettings(_env_file=None)

    assert settings.delimiter == "|"
    assert settings.batch_size == 50
    assert settings.source.endpoint_url == "http://minio:9000"
    assert settings.dest.access_key == "AKIA"


@pytest.mark.parametrize("field", [{"page_size": 0}, {"page_size": 1001}, {"batch_size": 0}, {"retry_attempts": 0}])
def test_invalid_values_rejected(field):
    with pytest.raises(ValidationError):
        ManifestSettings(_env_file=None, **field)


def test_static_credentials_passed_to_client(recording_factory):
    config = StorageEndpointConfig(endpoint_url="http://minio:9000", access_key="ak", secret_key="sk")
    config.create_client(recording_factory)

    service, kwargs = recording_factory.calls[0]
    assert service == "s3"
    assert kwargs["endpoint_url"] == "http://minio:9000"
    assert kwargs["aws_access_key_id"] == "ak"
    assert kwargs["aws_secret_access_key"] == "sk"


@pytest.mark.parametrize(
    "config",
    [
        StorageEndpointConfig(),
        StorageEndpointConfig(access_key="ak"),
        StorageEndpointConfig(secret_key="sk"),
    ],
)
def test_missing_credentials_fall_back_to_default_chain(recording_factory, config):
    config.create_client(recording_factory)

    _, kwargs = recording_factory.calls[0]
    assert "aws_access_key_id" not in kwargs
    assert "aws_secret_access_key" not in kwargs
    assert kwargs["endpoint_url"] is None


def test_invalid_endpoint_is_a_configuration_error():
    config = StorageEndpointConfig(endpoint_url="not a url", region="us-east-1", access_key="ak", secret_key="sk")

    with pytest.raises(InvalidEndpointError) as exc_info:
        config.create_client()

    assert exc_info.value.endpoint == "not a url"
