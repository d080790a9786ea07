from dependency_injector import containers, providers

from payments_log.application.container import ApplicationContainer
from payments_log.presentation.hooks import HookDispatcher


class PresentationContainer(containers.DeclarativeContainer):
    config = providers.Configuration()
    application = providers.Container[ApplicationContainer](
        ApplicationContainer, config=config
    )

    hook_dispatcher = providers.Singleton[HookDispatcher](
        HookDispatcher, record_use_case=application.record_payment_events_use_case
    )
