"""Unit tests for AWS Lambda handler."""

import json
from unittest.mock import MagicMock, Mock, patch

import pytest

from src.lambda_handler import lambda_handler

API_GATEWAY_EVENT = {
    "version": "2.0",
    "requestContext": {
        "http": {"method": "GET", "path": "/menu"},
        "requestId": "request-id",
    },
    "rawPath": "/menu",
}


@pytest.mark.unit
class TestLambdaHandler:
    """Tests for main lambda_handler function."""

    @patch("src.lambda_handler.mangum_handler")
    def test_routes_api_gateway_events_to_mangum(self, mock_mangum_handler: Mock) -> None:
        """Test that API Gateway events are routed to Mangum."""
        mock_mangum_handler.return_value = {"statusCode": 200, "body": "[]"}
        context = MagicMock()
        context.aws_request_id = "test-request-id"

        result = lambda_handler(API_GATEWAY_EVENT, context)

        assert result == {"statusCode": 200, "body": "[]"}
        mock_mangum_handler.assert_called_once_with(API_GATEWAY_EVENT, context)

    @patch("src.lambda_handler.mangum_handler")
    def test_handles_unhandled_exceptions(self, mock_mangum_handler: Mock) -> None:
        """Test that unhandled exceptions are caught and returned as 500 errors."""
        mock_mangum_handler.side_effect = Exception("Unexpected error")

        result = lambda_handler(API_GATEWAY_EVENT, MagicMock())

        assert result["statusCode"] == 500
        assert json.loads(result["body"]) == {
            "error": "Internal Server Error",
            "type": "InternalError",
        }
        assert result["headers"]["Access-Control-Allow-Origin"] == "*"
        assert result["headers"]["Content-Type"] == "application/json"

    def test_unwired_handler_still_answers(self) -> None:
        """Test that a handler without a wired app answers with a 500 body."""
        result = lambda_handler(API_GATEWAY_EVENT, None)

        assert result["statusCode"] == 500
