"""Unit tests for the session context."""

from __future__ import annotations

import pytest

from apigw_sync.integrations.aws.exceptions import ProviderConflictError
from apigw_sync.integrations.aws.models.endpoint import EndpointIntegration
from apigw_sync.services.gateway.context import account_id_from_arn
from tests.fakes import ACCOUNT_ID, FakeApiGatewayClient, function_arn, make_context


@pytest.mark.unit
class TestFunctionResolution:
    """Tests for backend function lookups."""

    def test_name_resolved_once(self, fake_client: FakeApiGatewayClient) -> None:
        """Each function name is looked up once per session."""
        ctx = make_context(fake_client, fake_client.add_api())
        target = EndpointIntegration(function_name="fnA")

        first = ctx.resolve_function_arn(target)
        second = ctx.resolve_function_arn(target)

        assert first == second == function_arn("fnA")
        assert fake_client.operations.count("get_function_arn") == 1

    def test_arn_used_as_is(self, fake_client: FakeApiGatewayClient) -> None:
        """An ARN target needs no lookup."""
        ctx = make_context(fake_client, fake_client.add_api())
        arn = function_arn("fnB")

        assert ctx.resolve_function_arn(EndpointIntegration(function_arn=arn)) == arn
        assert fake_client.calls == []


@pytest.mark.unit
class TestArns:
    """Tests for derived ARNs and URIs."""

    def test_invocation_uri(self, fake_client: FakeApiGatewayClient) -> None:
        """Lambda proxy URI of a function."""
        ctx = make_context(fake_client, fake_client.add_api())

        assert ctx.invocation_uri(function_arn("fnA")) == (
            "arn:aws:apigateway:us-east-1:lambda:path/2015-03-31/functions/"
            f"{function_arn('fnA')}/invocations"
        )

    def test_execute_api_arn(self, fake_client: FakeApiGatewayClient) -> None:
        """The account comes from the function ARN."""
        api = fake_client.add_api()
        ctx = make_context(fake_client, api)

        assert ctx.execute_api_arn(function_arn("fnA"), "*/GET/users") == (
            f"arn:aws:execute-api:us-east-1:{ACCOUNT_ID}:{api.id}/*/GET/users"
        )

    def test_account_id_from_short_arn(self) -> None:
        """A malformed ARN yields an empty account."""
        assert account_id_from_arn("fnA") == ""


@pytest.mark.unit
class TestGrantInvoke:
    """Tests for SessionContext.grant_invoke."""

    def test_grants_once(self, fake_client: FakeApiGatewayClient) -> None:
        """The policy is read once and a statement added once."""
        ctx = make_context(fake_client, fake_client.add_api())
        arn = function_arn("fnA")

        assert ctx.grant_invoke(arn, "sid-1", "source") is True
        assert ctx.grant_invoke(arn, "sid-1", "source") is False

        assert fake_client.operations == ["get_permission_statement_ids", "add_permission"]
        assert [m.action for m in ctx.mutations] == ["grant"]

    def test_existing_statement(self, fake_client: FakeApiGatewayClient) -> None:
        """A statement already in the policy is not added again."""
        ctx = make_context(fake_client, fake_client.add_api())
        arn = function_arn("fnA")
        fake_client.policies[arn].add("sid-1")

        assert ctx.grant_invoke(arn, "sid-1", "source") is False
        assert fake_client.mutating_calls == []
        assert not ctx.mutated

    def test_conflict_counts_as_granted(self, fake_client: FakeApiGatewayClient) -> None:
        """A statement added concurrently by someone else is accepted."""
        ctx = make_context(fake_client, fake_client.add_api())
        fake_client.failures["add_permission"].append(
            ProviderConflictError("exists", code="ResourceConflictException")
        )

        assert ctx.grant_invoke(function_arn("fnA"), "sid-1", "source") is False
        assert not ctx.mutated
