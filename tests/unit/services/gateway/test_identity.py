"""Unit tests for gateway identity resolution."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from apigw_sync.core.config.models import DeployConfig
from apigw_sync.integrations.aws.models.gateway import RememberedState
from apigw_sync.services.gateway.errors import StaleIdentityError
from apigw_sync.services.gateway.identity import lookup_identity, resolve_identity


@pytest.fixture
def mock_client() -> MagicMock:
    """Create a mock provider client."""
    client = MagicMock()
    client.rest_api_exists.return_value = True
    client.create_rest_api.return_value = {"id": "new123", "name": "ignored"}
    return client


@pytest.mark.unit
class TestLookupIdentity:
    """Tests for lookup_identity."""

    def test_nothing_known(self, mock_client: MagicMock) -> None:
        """Without state or config id there is nothing to look up."""
        assert lookup_identity(mock_client, DeployConfig(), RememberedState()) is None
        mock_client.rest_api_exists.assert_not_called()

    def test_remembered_id_wins(self, mock_client: MagicMock) -> None:
        """The remembered id is preferred over a configured one."""
        remembered = RememberedState(id="mine", name="users-api")

        identity = lookup_identity(mock_client, DeployConfig(id="other"), remembered)

        assert identity is not None
        assert identity.id == "mine"
        assert identity.name == "users-api"
        assert identity.created is False
        mock_client.rest_api_exists.assert_called_once_with("mine")

    def test_stale_id(self, mock_client: MagicMock) -> None:
        """A dead id is never silently replaced."""
        mock_client.rest_api_exists.return_value = False

        with pytest.raises(StaleIdentityError) as exc_info:
            lookup_identity(mock_client, DeployConfig(), RememberedState(id="gone"))

        assert exc_info.value.api_id == "gone"
        mock_client.create_rest_api.assert_not_called()


@pytest.mark.unit
class TestResolveIdentity:
    """Tests for resolve_identity."""

    def test_creates_with_configured_name(self, mock_client: MagicMock) -> None:
        """A new API uses the configured name, description, and endpoint types."""
        config = DeployConfig(name="users-api", description="Users", endpoint_types=["REGIONAL"])

        identity = resolve_identity(mock_client, config, RememberedState())

        mock_client.create_rest_api.assert_called_once_with("users-api", "Users", ["REGIONAL"])
        assert identity.id == "new123"
        assert identity.created is True
        assert identity.url == "https://new123.execute-api.us-east-1.amazonaws.com/dev"

    def test_generates_name(self, mock_client: MagicMock) -> None:
        """Without a name one is generated."""
        identity = resolve_identity(mock_client, DeployConfig(), RememberedState())

        assert identity.name.startswith("apigw-")
        assert mock_client.create_rest_api.call_args.args[0] == identity.name

    def test_adopts_configured_id(self, mock_client: MagicMock) -> None:
        """A configured id is adopted, not created."""
        identity = resolve_identity(mock_client, DeployConfig(id="theirs"), RememberedState())

        assert identity.id == "theirs"
        assert identity.created is False
        mock_client.create_rest_api.assert_not_called()
