"""Caller-facing entry point: filter, build, dispatch, aggregate."""

from __future__ import annotations

from promptsandbox.config.model_registry import ModelRegistry, load_model_registry
from promptsandbox.core.aggregator import aggregate
from promptsandbox.core.compatibility import CompatibilityFilter, FilterOutcome
from promptsandbox.core.credentials import CredentialTransform, IdentityTransform
from promptsandbox.core.dispatch import DispatchScheduler
from promptsandbox.core.errors import NoCompatibleModelsError, NoModelsSelectedError
from promptsandbox.core.messages import MessageBuilder
from promptsandbox.core.models import GenerationRequest, GenerationResult, ModelDescriptor
from promptsandbox.observability.logging import log_event
from promptsandbox.util.logger import logger
from promptsandbox.util.masking import mask_for_log


class PromptOrchestrator:
    def __init__(
        self,
        registry: ModelRegistry | None = None,
        builder: MessageBuilder | None = None,
        scheduler: DispatchScheduler | None = None,
        credential_transform: CredentialTransform | None = None,
    ) -> None:
        self.registry = registry or load_model_registry()
        self.compatibility = CompatibilityFilter(self.registry)
        self.builder = builder or MessageBuilder()
        self.scheduler = scheduler or DispatchScheduler()
        self.credential_transform = credential_transform or IdentityTransform()

    def get_model_by_id(self, model_id: str) -> ModelDescriptor | None:
        return self.registry.get(model_id)

    def get_all_models(self) -> list[ModelDescriptor]:
        return self.registry.all()

    def plan(self, request: GenerationRequest) -> tuple[list[ModelDescriptor], FilterOutcome]:
        """Resolve and filter the requested models; raises on configuration errors."""
        selected, unknown = self.registry.resolve(request.requested_model_ids)
        if unknown:
            logger.warning("ignoring unknown model ids=%s known=%s", unknown, self.registry.ids())
        if not selected:
            raise NoModelsSelectedError("No valid models selected")

        outcome = self.compatibility.filter([model.id for model in selected], request.attachments)
        if not outcome.kept:
            raise NoCompatibleModelsError(f"No selected model supports these attachments: {outcome.notice(self.registry)}")
        return [self.registry.get(model_id) for model_id in outcome.kept], outcome

    async def generate_responses(self, request: GenerationRequest) -> list[GenerationResult]:
        models, _ = self.plan(request)
        return await self.run(request, models)

    async def run(
        self,
        request: GenerationRequest,
        models: list[ModelDescriptor],
    ) -> list[GenerationResult]:
        credential = self.credential_transform.decode(request.credential)
        messages = self.builder.build(request.prompt_text, request.attachments)
        logger.info(
            "generate start models=%s attachments=%d key=%s",
            [model.id for model in models],
            len(request.attachments),
            mask_for_log(credential),
        )
        results = aggregate(await self.scheduler.dispatch(models, messages, credential))
        log_event(
            "generation_complete",
            models=len(results),
            failed=sum(1 for item in results if item.error_message is not None),
        )
        return results
