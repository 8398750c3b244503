"""
Basic import tests to verify the core functionality.
"""


def test_generation_service_imports():
    """Test that generation_service modules can be imported."""
    from generation_service import LLMProvider, GenerationResult, setup_logging, stop_logging

    assert callable(setup_logging)
    assert callable(stop_logging)

    result = GenerationResult(text="t", model="m")
    assert result.metadata == {}
    assert LLMProvider(provider="ollama").has_credentials()


def test_quota_imports():
    """Test that the quota package exposes its public API."""
    from app.quota import (
        QuotaConfig,
        QuotaGate,
        UsageReporter,
        InMemoryUsageStore,
        JsonFileUsageStore,
    )
    from app.quota.factory import create_quota_module

    assert QuotaConfig().daily_limit == 1000
    assert InMemoryUsageStore.supports_compare_and_swap is True
    assert JsonFileUsageStore.supports_compare_and_swap is True
    assert callable(create_quota_module)
    assert QuotaGate and UsageReporter


def test_analogy_imports():
    """Test that the analogy package can be imported."""
    from app.analogy import create_analogy_module
    from app.analogy.services import AnalogyService

    assert callable(create_analogy_module)
    assert hasattr(AnalogyService, "generate")


def test_app_creation():
    """Test that the Flask app exposes both endpoints."""
    from app.main import create_app

    app = create_app()
    rules = {rule.rule for rule in app.url_map.iter_rules()}

    assert "/api/generate-analogy" in rules
    assert "/api/get-usage" in rules
    assert "/actuator/health" in rules


def test_generation_service_public_api():
    """Test that generation_service exports only what the app uses."""
    import generation_service

    assert set(generation_service.__all__) == {
        "LLMProvider",
        "SamplingParams",
        "GenerationResult",
        "clean_ollama_response",
        "message_text",
        "setup_logging",
        "stop_logging",
        "ThreadSafeLoggingConfig",
    }
