from dependency_injector import containers, providers

from payments_log.application.list_payment_events import ListPaymentEventsUseCase
from payments_log.application.record_payment_events import RecordPaymentEventsUseCase
from payments_log.infrastructure.container import InfrastructureContainer


class ApplicationContainer(containers.DeclarativeContainer):
    config = providers.Configuration()
    infrastructure_container = providers.Container[InfrastructureContainer](
        InfrastructureContainer,
        config=config.infrastructure,
    )

    record_payment_events_use_case = providers.Singleton[RecordPaymentEventsUseCase](
        RecordPaymentEventsUseCase,
        unit_of_work=infrastructure_container.unit_of_work,
        order_source=infrastructure_container.order_source,
    )
    list_payment_events_use_case = providers.Singleton[ListPaymentEventsUseCase](
        ListPaymentEventsUseCase,
        unit_of_work=infrastructure_container.unit_of_work,
    )
