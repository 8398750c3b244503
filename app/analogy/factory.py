from pathlib import Path

from app.quota.manager import QuotaGate
from generation_service.llm_utils import LLMProvider

from .services import AnalogyService
from .routes import create_analogy_routes


def create_analogy_module(
    quota_gate: QuotaGate,
    llm_provider: LLMProvider,
    prompts_dir: Path = None,
    timeout_seconds: float = 30,
) -> dict:
    """Create analogy generation module with service and routes.

    Args:
        quota_gate: Gate guarding the shared daily limit
        llm_provider: Configured generation backend
        prompts_dir: Directory holding analogy.md, defaults to the bundled prompts
        timeout_seconds: Deadline for one backend call

    Returns:
        Dictionary containing the service and blueprint
    """
    if prompts_dir is None:
        prompts_dir = Path(__file__).parent / "prompts"

    analogy_service = AnalogyService(
        quota_gate=quota_gate,
        llm_provider=llm_provider,
        prompts_dir=prompts_dir,
        timeout_seconds=timeout_seconds,
    )

    return {
        "service": analogy_service,
        "blueprint": create_analogy_routes(analogy_service),
    }
