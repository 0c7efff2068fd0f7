from __future__ import annotations

from dependency_injector import containers, providers

from core.settings import SETTINGS
from infra.resources import DatabaseResource


class InfrastructureContainer(containers.DeclarativeContainer):
    settings = providers.Object(SETTINGS)

    # Database
    database = providers.Resource(
        DatabaseResource,
        database_url=str(SETTINGS.DATABASE.DATABASE_URL),
    )

    # Completion service (Ollama)
    completion_client = providers.Singleton(
        "api.features.chat.completion.CompletionClient",
        base_url=SETTINGS.LLM.OLLAMA_URL,
        model=SETTINGS.LLM.LLM_MODEL,
        timeout_seconds=SETTINGS.LLM.LLM_TIMEOUT_SECONDS,
        temperature=SETTINGS.LLM.LLM_TEMPERATURE,
        health_timeout_seconds=SETTINGS.LLM.LLM_HEALTH_TIMEOUT_SECONDS,
    )


class ServiceContainer(containers.DeclarativeContainer):
    """Application services - depends on infrastructure."""

    infrastructure = providers.DependenciesContainer()

    # Services
    chat_service = providers.Factory(
        "api.features.chat.service.ChatService",
        completion_client=infrastructure.completion_client,
        history_limit=SETTINGS.CHAT.HISTORY_LIMIT,
    )


class ControllerContainer(containers.DeclarativeContainer):
    """Controller-specific dependencies."""

    services = providers.DependenciesContainer()

    # Controllers
    chat_controller = providers.Factory(
        "api.features.chat.controller.ChatController",
        chat_service=services.chat_service,
    )


class ApplicationContainer(containers.DeclarativeContainer):
    """Main application container composing all sub-containers."""

    wiring_config = containers.WiringConfiguration(
        modules=[
            "api.shared.db",
            "api.features.chat.router",
        ]
    )

    infrastructure = providers.Container(InfrastructureContainer)
    services = providers.Container(ServiceContainer, infrastructure=infrastructure)
    controllers = providers.Container(ControllerContainer, services=services)
