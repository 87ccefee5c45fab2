"""AWS API Gateway (REST) and Lambda client adapter."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import boto3
import structlog
from botocore.config import Config
from botocore.exceptions import (
    ClientError,
    ConnectTimeoutError,
    EndpointConnectionError,
    NoCredentialsError,
    ReadTimeoutError,
)
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from apigw_sync.integrations.aws.config import AwsConnectionConfig
from apigw_sync.integrations.aws.exceptions import (
    ERROR_CODE_MAP,
    ProviderAPIError,
    ProviderAuthError,
    ProviderConnectionError,
    ProviderNotFoundError,
)

if TYPE_CHECKING:
    from botocore.client import BaseClient

logger = structlog.get_logger()

LAMBDA_INVOKE_ACTION = "lambda:InvokeFunction"
APIGATEWAY_PRINCIPAL = "apigateway.amazonaws.com"
PAGE_SIZE = 500


class ApiGatewayClient:
    """Client for the API Gateway REST API and the Lambda permission API.

    Wraps the boto3 ``apigateway`` and ``lambda`` clients behind a small
    CRUD surface, translating botocore errors into the provider exception
    hierarchy and retrying calls that fail with connection errors.

    Example:
        ```python
        from apigw_sync.integrations.aws import ApiGatewayClient

        client = ApiGatewayClient(region="us-east-1")
        api = client.create_rest_api("my-api", "demo", ["EDGE"])
        resources = client.get_resources(api["id"])
        ```
    """

    def __init__(
        self,
        region: str,
        connection_config: AwsConnectionConfig | None = None,
        *,
        apigateway: BaseClient | None = None,
        lambda_client: BaseClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            region: AWS region of the REST API and its backend functions.
            connection_config: Profile, timeout, and retry settings.
            apigateway: Pre-built boto3 ``apigateway`` client (tests, custom sessions).
            lambda_client: Pre-built boto3 ``lambda`` client.
        """
        self.region = region
        self.connection_config = connection_config or AwsConnectionConfig()
        self._retries = self.connection_config.retries

        if apigateway is None or lambda_client is None:
            session = boto3.session.Session(
                profile_name=self.connection_config.profile,
                region_name=region,
            )
            botocore_config = Config(
                connect_timeout=self.connection_config.timeout,
                read_timeout=self.connection_config.timeout,
                retries={"mode": "standard"},
            )
            apigateway = apigateway or session.client("apigateway", config=botocore_config)
            lambda_client = lambda_client or session.client("lambda", config=botocore_config)

        self._apigateway = apigateway
        self._lambda = lambda_client

        logger.info(
            "API Gateway client initialized",
            region=region,
            profile=self.connection_config.profile or "default",
        )

    def _make_retry_decorator(self) -> Any:
        """Create a retry decorator based on configuration."""
        return retry(
            retry=retry_if_exception_type(ProviderConnectionError),
            stop=stop_after_attempt(self._retries),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            reraise=True,
        )

    def _translate_error(self, error: ClientError, operation: str) -> ProviderAPIError:
        """Translate a botocore ClientError into a provider exception.

        Args:
            error: The botocore error.
            operation: The SDK operation that was called.

        Returns:
            The matching ProviderAPIError subclass instance.
        """
        response = error.response or {}
        details = response.get("Error", {})
        code = details.get("Code")
        message = details.get("Message") or str(error)
        status = response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        error_class = ERROR_CODE_MAP.get(code or "", ProviderAPIError)
        return error_class(
            message=message,
            code=code,
            status_code=status,
            operation=operation,
            response_body=dict(response),
        )

    def _request(self, service: BaseClient, operation: str, **params: Any) -> dict[str, Any]:
        """Call a boto3 operation and translate its errors.

        Args:
            service: The boto3 client to call.
            operation: snake_case operation name (e.g. "create_resource").
            **params: Operation parameters.

        Returns:
            The response dictionary without ResponseMetadata.

        Raises:
            ProviderConnectionError: If the endpoint could not be reached.
            ProviderAuthError: If no credentials are available.
            ProviderAPIError: If the provider returned an error.
        """
        log = logger.bind(operation=operation)

        try:
            log.debug("AWS API request", params=sorted(params))
            response = getattr(service, operation)(**params)
            response.pop("ResponseMetadata", None)
            log.debug("AWS API response")
            return response
        except ClientError as e:
            translated = self._translate_error(e, operation)
            log.debug("AWS API error", code=translated.code, error=translated.message)
            raise translated from e
        except (EndpointConnectionError, ConnectTimeoutError, ReadTimeoutError) as e:
            log.error("AWS connection error", error=str(e))
            raise ProviderConnectionError(
                message=f"Failed to reach AWS: {e}",
                operation=operation,
                original_error=e,
            ) from e
        except NoCredentialsError as e:
            raise ProviderAuthError(message=str(e), operation=operation) from e

    def _call(self, service: BaseClient, operation: str, **params: Any) -> dict[str, Any]:
        retry_decorator = self._make_retry_decorator()
        result: dict[str, Any] = retry_decorator(self._request)(service, operation, **params)
        return result

    def _paginate(self, operation: str, **params: Any) -> list[dict[str, Any]]:
        """Collect all items of a position-paginated API Gateway listing."""
        items: list[dict[str, Any]] = []
        position: str | None = None
        while True:
            page_params = {**params, "limit": PAGE_SIZE}
            if position:
                page_params["position"] = position
            page = self._call(self._apigateway, operation, **page_params)
            items.extend(page.get("items", []))
            position = page.get("position")
            if not position:
                return items

    # REST APIs

    def get_rest_api(self, api_id: str) -> dict[str, Any]:
        """Get a REST API by id.

        Raises:
            ProviderNotFoundError: If the API does not exist.
        """
        return self._call(self._apigateway, "get_rest_api", restApiId=api_id)

    def rest_api_exists(self, api_id: str) -> bool:
        """Check whether a REST API exists."""
        try:
            self.get_rest_api(api_id)
            return True
        except ProviderNotFoundError:
            return False

    def create_rest_api(
        self,
        name: str,
        description: str,
        endpoint_types: list[str],
    ) -> dict[str, Any]:
        """Create a REST API and return its description (including ``id``)."""
        return self._call(
            self._apigateway,
            "create_rest_api",
            name=name,
            description=description,
            endpointConfiguration={"types": endpoint_types},
        )

    def delete_rest_api(self, api_id: str) -> None:
        """Delete a REST API together with all of its sub-resources."""
        self._call(self._apigateway, "delete_rest_api", restApiId=api_id)

    # Resources (paths)

    def get_resources(self, api_id: str) -> list[dict[str, Any]]:
        """List every resource (path) of a REST API."""
        return self._paginate("get_resources", restApiId=api_id)

    def create_resource(self, api_id: str, parent_id: str, path_part: str) -> dict[str, Any]:
        """Create a child resource under ``parent_id``."""
        return self._call(
            self._apigateway,
            "create_resource",
            restApiId=api_id,
            parentId=parent_id,
            pathPart=path_part,
        )

    def delete_resource(self, api_id: str, resource_id: str) -> None:
        """Delete a resource together with its child resources and methods."""
        self._call(self._apigateway, "delete_resource", restApiId=api_id, resourceId=resource_id)

    # Authorizers

    def get_authorizers(self, api_id: str) -> list[dict[str, Any]]:
        """List every authorizer of a REST API."""
        return self._paginate("get_authorizers", restApiId=api_id)

    def create_authorizer(
        self,
        api_id: str,
        name: str,
        authorizer_uri: str,
        identity_source: str,
        result_ttl: int,
    ) -> dict[str, Any]:
        """Create a TOKEN authorizer backed by a Lambda function."""
        return self._call(
            self._apigateway,
            "create_authorizer",
            restApiId=api_id,
            name=name,
            type="TOKEN",
            authorizerUri=authorizer_uri,
            identitySource=identity_source,
            authorizerResultTtlInSeconds=result_ttl,
        )

    def update_authorizer(
        self,
        api_id: str,
        authorizer_id: str,
        patch_operations: list[dict[str, str]],
    ) -> dict[str, Any]:
        """Apply JSON-patch style operations to an authorizer."""
        return self._call(
            self._apigateway,
            "update_authorizer",
            restApiId=api_id,
            authorizerId=authorizer_id,
            patchOperations=patch_operations,
        )

    def delete_authorizer(self, api_id: str, authorizer_id: str) -> None:
        """Delete an authorizer."""
        self._call(
            self._apigateway,
            "delete_authorizer",
            restApiId=api_id,
            authorizerId=authorizer_id,
        )

    # Methods

    def get_method(self, api_id: str, resource_id: str, http_method: str) -> dict[str, Any]:
        """Get the method binding of a resource.

        Raises:
            ProviderNotFoundError: If the method does not exist.
        """
        return self._call(
            self._apigateway,
            "get_method",
            restApiId=api_id,
            resourceId=resource_id,
            httpMethod=http_method,
        )

    def put_method(
        self,
        api_id: str,
        resource_id: str,
        http_method: str,
        authorization_type: str,
        authorizer_id: str | None = None,
        api_key_required: bool = False,
    ) -> dict[str, Any]:
        """Create a method binding on a resource."""
        params: dict[str, Any] = {
            "restApiId": api_id,
            "resourceId": resource_id,
            "httpMethod": http_method,
            "authorizationType": authorization_type,
            "apiKeyRequired": api_key_required,
        }
        if authorizer_id:
            params["authorizerId"] = authorizer_id
        return self._call(self._apigateway, "put_method", **params)

    def update_method(
        self,
        api_id: str,
        resource_id: str,
        http_method: str,
        patch_operations: list[dict[str, str]],
    ) -> dict[str, Any]:
        """Apply JSON-patch style operations to a method binding."""
        return self._call(
            self._apigateway,
            "update_method",
            restApiId=api_id,
            resourceId=resource_id,
            httpMethod=http_method,
            patchOperations=patch_operations,
        )

    def delete_method(self, api_id: str, resource_id: str, http_method: str) -> None:
        """Delete a method binding (and its integration)."""
        self._call(
            self._apigateway,
            "delete_method",
            restApiId=api_id,
            resourceId=resource_id,
            httpMethod=http_method,
        )

    # Integrations

    def get_integration(self, api_id: str, resource_id: str, http_method: str) -> dict[str, Any]:
        """Get the integration of a method.

        Raises:
            ProviderNotFoundError: If the method has no integration.
        """
        return self._call(
            self._apigateway,
            "get_integration",
            restApiId=api_id,
            resourceId=resource_id,
            httpMethod=http_method,
        )

    def put_integration(
        self,
        api_id: str,
        resource_id: str,
        http_method: str,
        uri: str,
    ) -> dict[str, Any]:
        """Create or overwrite a Lambda proxy integration."""
        return self._call(
            self._apigateway,
            "put_integration",
            restApiId=api_id,
            resourceId=resource_id,
            httpMethod=http_method,
            type="AWS_PROXY",
            integrationHttpMethod="POST",
            uri=uri,
        )

    # Deployments and stages

    def create_deployment(self, api_id: str, stage: str) -> dict[str, Any]:
        """Snapshot the current configuration into ``stage``."""
        return self._call(
            self._apigateway,
            "create_deployment",
            restApiId=api_id,
            stageName=stage,
        )

    def stage_exists(self, api_id: str, stage: str) -> bool:
        """Check whether a stage has been published."""
        try:
            self._call(self._apigateway, "get_stage", restApiId=api_id, stageName=stage)
            return True
        except ProviderNotFoundError:
            return False

    # Lambda

    def get_function_arn(self, function_name: str) -> str:
        """Resolve a Lambda function name to its ARN.

        Raises:
            ProviderNotFoundError: If the function does not exist.
        """
        response = self._call(self._lambda, "get_function", FunctionName=function_name)
        arn: str = response["Configuration"]["FunctionArn"]
        return arn

    def get_permission_statement_ids(self, function: str) -> set[str]:
        """Return the statement ids of a function's resource-based policy.

        A function without a policy yields an empty set.
        """
        try:
            response = self._call(self._lambda, "get_policy", FunctionName=function)
        except ProviderNotFoundError:
            return set()
        policy = json.loads(response.get("Policy") or "{}")
        return {statement.get("Sid", "") for statement in policy.get("Statement", [])}

    def add_permission(self, function: str, statement_id: str, source_arn: str) -> None:
        """Allow API Gateway to invoke ``function`` from ``source_arn``.

        Raises:
            ProviderConflictError: If ``statement_id`` already exists.
        """
        self._call(
            self._lambda,
            "add_permission",
            FunctionName=function,
            StatementId=statement_id,
            Action=LAMBDA_INVOKE_ACTION,
            Principal=APIGATEWAY_PRINCIPAL,
            SourceArn=source_arn,
        )
