"""Unit tests for tracing decorators and logging setup."""

import logging
from unittest.mock import MagicMock, patch

import pytest
from pythonjsonlogger import jsonlogger

from food_ordering_service.errors import InternalError, NotFoundError
from food_ordering_service.observability.config import (
    configure_logging,
    get_service_resource,
    setup_auto_instrumentation,
    setup_observability,
)
from food_ordering_service.observability.decorators import _record_failure, traced


@pytest.mark.unit
class TestTraced:
    """Test suite for the @traced decorator."""

    def test_sync_function_result_is_returned(self) -> None:
        @traced("double")
        def double(value: int) -> int:
            return value * 2

        assert double(21) == 42
        assert double.__name__ == "double"

    @pytest.mark.asyncio
    async def test_async_function_result_is_returned(self) -> None:
        @traced()
        async def fetch() -> str:
            return "ok"

        assert await fetch() == "ok"

    @pytest.mark.asyncio
    async def test_errors_propagate(self) -> None:
        @traced("lookup")
        async def lookup() -> None:
            raise NotFoundError("Order not found")

        with pytest.raises(NotFoundError):
            await lookup()

    def test_client_errors_are_tagged_expected(self) -> None:
        span = MagicMock()

        _record_failure(span, NotFoundError("Order not found"))

        span.set_attribute.assert_any_call("error.expected", True)
        span.record_exception.assert_not_called()

    def test_server_errors_are_recorded(self) -> None:
        span = MagicMock()
        error = InternalError("Failed to create order")

        _record_failure(span, error)

        span.record_exception.assert_called_once_with(error)


@pytest.mark.unit
class TestConfigureLogging:
    """Test suite for structured logging setup."""

    @patch.dict("os.environ", {"LOG_LEVEL": "DEBUG"})
    def test_installs_single_json_handler(self) -> None:
        root_logger = logging.getLogger()
        saved_handlers, saved_level = root_logger.handlers[:], root_logger.level
        try:
            configure_logging()
            configure_logging()

            assert len(root_logger.handlers) == 1
            assert isinstance(root_logger.handlers[0].formatter, jsonlogger.JsonFormatter)
            assert root_logger.level == logging.DEBUG
            assert logging.getLogger("botocore").level == logging.INFO
        finally:
            root_logger.handlers = saved_handlers
            root_logger.setLevel(saved_level)


@pytest.mark.unit
class TestObservabilitySetup:
    """Test suite for OpenTelemetry provider and instrumentation setup."""

    @patch.dict("os.environ", {"ENVIRONMENT": "staging"}, clear=True)
    def test_resource_outside_lambda(self) -> None:
        attributes = get_service_resource().attributes

        assert attributes["service.name"] == "food-ordering-api"
        assert attributes["deployment.environment"] == "staging"
        assert "faas.name" not in attributes

    @patch.dict(
        "os.environ",
        {"AWS_LAMBDA_FUNCTION_NAME": "food-ordering-api-prod", "AWS_REGION": "eu-north-1"},
        clear=True,
    )
    def test_resource_names_the_lambda_function(self) -> None:
        attributes = get_service_resource().attributes

        assert attributes["faas.name"] == "food-ordering-api-prod"
        assert attributes["cloud.region"] == "eu-north-1"

    @patch("food_ordering_service.observability.config.BotocoreInstrumentor")
    def test_botocore_is_instrumented_once(self, mock_instrumentor_cls: MagicMock) -> None:
        instrumentor = mock_instrumentor_cls.return_value
        instrumentor.is_instrumented_by_opentelemetry = True

        setup_auto_instrumentation()

        instrumentor.instrument.assert_not_called()

        instrumentor.is_instrumented_by_opentelemetry = False
        setup_auto_instrumentation()

        instrumentor.instrument.assert_called_once_with()

    @patch.dict("os.environ", {"ENVIRONMENT": "test"}, clear=True)
    @patch("food_ordering_service.observability.config.FastAPIInstrumentor")
    @patch("food_ordering_service.observability.config.setup_auto_instrumentation")
    @patch("food_ordering_service.observability.config.setup_metrics")
    @patch("food_ordering_service.observability.config.setup_tracing")
    @patch("food_ordering_service.observability.config.metrics.set_meter_provider")
    @patch("food_ordering_service.observability.config.trace.set_tracer_provider")
    def test_test_environment_skips_exporters(
        self,
        mock_set_tracer: MagicMock,
        mock_set_meter: MagicMock,
        mock_setup_tracing: MagicMock,
        mock_setup_metrics: MagicMock,
        mock_auto: MagicMock,
        mock_fastapi: MagicMock,
    ) -> None:
        app = MagicMock()

        setup_observability(app)

        mock_setup_tracing.assert_not_called()
        mock_setup_metrics.assert_not_called()
        mock_set_tracer.assert_called_once()
        mock_set_meter.assert_called_once()
        mock_auto.assert_called_once_with()
        mock_fastapi.instrument_app.assert_called_once_with(app, excluded_urls="health")
