import pytest
from unittest.mock import MagicMock
from botocore.exceptions import ClientError, EndpointConnectionError

from payment_portal.config import Settings
from payment_portal.errors import ConfigurationError
from payment_portal.infra.parameter_store import SecretResolver


def _ssm_returning(value):
    ssm = MagicMock()
    ssm.get_parameter.return_value = {"Parameter": {"Name": "x", "Value": value}}
    return ssm


def _settings(**overrides):
    base = dict(deployment_env="staging", deployment_env_explicit=True, app_mode="production", parameter_store_prefix="/payment-portal")
    base.update(overrides)
    return Settings(**base)


@pytest.fixture(autouse=True)
def _no_secret_in_env(monkeypatch):
    monkeypatch.delenv("STRIPE_SECRET_KEY", raising=False)
    monkeypatch.delenv("SOME_SECRET", raising=False)


def test_parameter_path_is_namespaced_by_environment():
    resolver = SecretResolver(_settings(deployment_env="main"), ssm_client=MagicMock())
    assert resolver.parameter_path("STRIPE_SECRET_KEY") == "/payment-portal/main/STRIPE_SECRET_KEY"


def test_environment_variable_wins_without_remote_call(monkeypatch):
    ssm = _ssm_returning("sk_remote")
    monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_from_env")
    resolver = SecretResolver(_settings(), ssm_client=ssm)

    assert resolver.resolve("STRIPE_SECRET_KEY") == "sk_from_env"
    ssm.get_parameter.assert_not_called()


def test_remote_lookup_uses_decryption_and_is_cached():
    ssm = _ssm_returning("sk_live_remote")
    resolver = SecretResolver(_settings(), ssm_client=ssm)

    assert resolver.resolve("STRIPE_SECRET_KEY") == "sk_live_remote"
    assert resolver.resolve("STRIPE_SECRET_KEY") == "sk_live_remote"

    ssm.get_parameter.assert_called_once_with(
        Name="/payment-portal/staging/STRIPE_SECRET_KEY", WithDecryption=True
    )
    assert resolver.is_cached("STRIPE_SECRET_KEY")


def test_cache_is_consulted_before_environment(monkeypatch):
    ssm = _ssm_returning("sk_cached")
    resolver = SecretResolver(_settings(), ssm_client=ssm)
    resolver.resolve("STRIPE_SECRET_KEY")

    monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_from_env_later")
    assert resolver.resolve("STRIPE_SECRET_KEY") == "sk_cached"


def test_remote_client_error_is_treated_as_not_found():
    ssm = MagicMock()
    ssm.get_parameter.side_effect = ClientError(
        {"Error": {"Code": "ParameterNotFound", "Message": "not found"}}, "GetParameter"
    )
    resolver = SecretResolver(_settings(), ssm_client=ssm)

    assert resolver.resolve("SOME_SECRET") is None
    assert not resolver.is_cached("SOME_SECRET")


def test_remote_connection_error_is_treated_as_not_found():
    ssm = MagicMock()
    ssm.get_parameter.side_effect = EndpointConnectionError(endpoint_url="https://ssm.us-east-1.amazonaws.com")
    resolver = SecretResolver(_settings(), ssm_client=ssm)

    assert resolver.resolve("SOME_SECRET") is None


def test_failed_lookup_is_retried_on_next_call():
    ssm = MagicMock()
    ssm.get_parameter.side_effect = [
        ClientError({"Error": {"Code": "ThrottlingException", "Message": "slow down"}}, "GetParameter"),
        {"Parameter": {"Value": "sk_second_try"}},
    ]
    resolver = SecretResolver(_settings(), ssm_client=ssm)

    assert resolver.resolve("SOME_SECRET") is None
    assert resolver.resolve("SOME_SECRET") == "sk_second_try"
    assert ssm.get_parameter.call_count == 2


def test_local_development_skips_parameter_store():
    ssm = _ssm_returning("sk_remote")
    resolver = SecretResolver(_settings(app_mode="development", deployment_env_explicit=False), ssm_client=ssm)

    assert resolver.resolve("STRIPE_SECRET_KEY") is None
    ssm.get_parameter.assert_not_called()


def test_resolve_required_raises_configuration_error():
    ssm = MagicMock()
    ssm.get_parameter.side_effect = ClientError({"Error": {"Code": "ParameterNotFound", "Message": "x"}}, "GetParameter")
    resolver = SecretResolver(_settings(), ssm_client=ssm)

    with pytest.raises(ConfigurationError):
        resolver.resolve_required("STRIPE_SECRET_KEY")


def test_boto3_client_created_lazily_with_region(monkeypatch):
    created = {}

    def fake_client(service, region_name=None):
        created["service"] = service
        created["region"] = region_name
        return _ssm_returning("sk_lazy")

    monkeypatch.setattr("payment_portal.infra.parameter_store.boto3.client", fake_client)
    resolver = SecretResolver(_settings(aws_region="eu-west-3"))
    assert created == {}

    assert resolver.resolve("STRIPE_SECRET_KEY") == "sk_lazy"
    assert created == {"service": "ssm", "region": "eu-west-3"}
