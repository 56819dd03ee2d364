"""
Unit tests for OpenTelemetry distributed tracing.
"""
from storefront_relay.core.middleware import trace_id_from_traceparent
from storefront_relay.core.tracing import (
    configure_tracing,
    get_trace_id_from_context,
    get_tracer,
    record_exception,
    set_span_attribute,
    set_span_status,
    shutdown_tracing,
    StatusCode,
)


class TestTracingConfiguration:

    def test_configure_tracing_defaults(self):
        configure_tracing()

        assert get_tracer() is not None

    def test_configure_tracing_with_service_name_and_sampling(self):
        configure_tracing(service_name="test_service", sampling_rate=0.5)

        assert get_tracer() is not None

    def test_shutdown_and_reconfigure(self):
        configure_tracing()
        shutdown_tracing()
        configure_tracing()

        assert get_tracer() is not None


class TestSpans:

    def test_trace_id_inside_span(self):
        configure_tracing()
        tracer = get_tracer()

        with tracer.start_as_current_span("aliexpress.call"):
            trace_id = get_trace_id_from_context()
            set_span_attribute("aliexpress.method", "aliexpress.affiliate.product.query")
            set_span_status(StatusCode.OK)

        assert trace_id is not None
        assert len(trace_id) == 32

    def test_trace_id_without_span(self):
        configure_tracing()

        assert get_trace_id_from_context() is None

    def test_helpers_without_active_span(self):
        configure_tracing()

        # No active span - should not raise
        set_span_attribute("test.key", "test.value")
        set_span_status(StatusCode.ERROR, "failure")
        try:
            raise ValueError("Test exception")
        except ValueError as e:
            record_exception(e)


class TestTraceparentParsing:

    def test_traceparent_becomes_uuid(self):
        header = "00-4BF92F3577B34DA6A3CE929D0E0E4736-00f067aa0ba902b7-01"

        assert trace_id_from_traceparent(header) == "4bf92f35-77b3-4da6-a3ce-929d0e0e4736"

    def test_invalid_traceparent_is_ignored(self):
        assert trace_id_from_traceparent(None) is None
        assert trace_id_from_traceparent("garbage") is None
        assert trace_id_from_traceparent("00-" + "0" * 32 + "-00f067aa0ba902b7-01") is None
        assert trace_id_from_traceparent("00-" + "z" * 32 + "-00f067aa0ba902b7-01") is None
