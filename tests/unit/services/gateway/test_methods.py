"""Unit tests for method provisioning."""

from __future__ import annotations

import pytest

from apigw_sync.integrations.aws.exceptions import ProviderValidationError
from apigw_sync.integrations.aws.models.endpoint import Endpoint
from apigw_sync.services.gateway.methods import MethodProvisioner, method_id
from apigw_sync.services.gateway.paths import PathProvisioner
from tests.fakes import FakeApiGatewayClient, make_context, make_endpoint


def _with_paths(fake_client: FakeApiGatewayClient, api_id: str, *endpoints: Endpoint) -> None:
    api = fake_client.apis[api_id]
    PathProvisioner(make_context(fake_client, api)).provision(endpoints)
    fake_client.reset_calls()


@pytest.mark.unit
class TestMethodProvisioner:
    """Tests for MethodProvisioner."""

    def test_creates_methods(self, fake_client: FakeApiGatewayClient) -> None:
        """Missing methods are put with the declared authorization."""
        api = fake_client.add_api()
        endpoints = [
            make_endpoint("/a"),
            make_endpoint("/a", "POST", authorization="AWS_IAM", api_key_required=True),
        ]
        _with_paths(fake_client, api.id, *endpoints)

        MethodProvisioner(make_context(fake_client, api)).provision(endpoints)

        path_id = api.path_ids()["/a"]
        assert api.methods[(path_id, "GET")]["authorizationType"] == "NONE"
        post = api.methods[(path_id, "POST")]
        assert post["authorizationType"] == "AWS_IAM"
        assert post["apiKeyRequired"] is True
        assert endpoints[1].method_id == method_id(path_id, "POST")

    def test_custom_authorizer(self, fake_client: FakeApiGatewayClient) -> None:
        """The authorizer id from the authorizer stage is attached."""
        api = fake_client.add_api()
        endpoint = make_endpoint("/a", authorizer="auth")
        assert endpoint.authorizer is not None
        endpoint.authorizer.id = "auth1"
        _with_paths(fake_client, api.id, endpoint)

        MethodProvisioner(make_context(fake_client, api)).provision([endpoint])

        method = api.methods[(endpoint.path_id or "", "GET")]
        assert method["authorizationType"] == "CUSTOM"
        assert method["authorizerId"] == "auth1"

    def test_unchanged_method_is_left_alone(self, fake_client: FakeApiGatewayClient) -> None:
        """Matching methods are only read."""
        api = fake_client.add_api()
        endpoint = make_endpoint("/a")
        _with_paths(fake_client, api.id, endpoint)
        MethodProvisioner(make_context(fake_client, api)).provision([endpoint])
        fake_client.reset_calls()

        ctx = make_context(fake_client, api)
        MethodProvisioner(ctx).provision([endpoint])

        assert fake_client.mutating_calls == []
        assert endpoint.method_id == method_id(endpoint.path_id or "", "GET")

    def test_drift_is_patched(self, fake_client: FakeApiGatewayClient) -> None:
        """Changed authorization is patched in place."""
        api = fake_client.add_api()
        endpoint = make_endpoint("/a")
        _with_paths(fake_client, api.id, endpoint)
        MethodProvisioner(make_context(fake_client, api)).provision([endpoint])
        fake_client.reset_calls()
        endpoint.api_key_required = True

        MethodProvisioner(make_context(fake_client, api)).provision([endpoint])

        assert fake_client.mutating_calls == ["update_method"]
        assert api.methods[(endpoint.path_id or "", "GET")]["apiKeyRequired"] is True

    def test_fails_fast(self, fake_client: FakeApiGatewayClient) -> None:
        """A method failure propagates as the provider error."""
        api = fake_client.add_api()
        endpoint = make_endpoint("/a")
        _with_paths(fake_client, api.id, endpoint)
        fake_client.failures["put_method"].append(ProviderValidationError("bad"))

        with pytest.raises(ProviderValidationError):
            MethodProvisioner(make_context(fake_client, api)).provision([endpoint])
