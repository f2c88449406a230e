from .model_service import ModelService, ArchivableService
from .client_service import ClientService
from .resource_service import ResourceService
from .unit_service import UnitService
from .receipt_service import ReceiptService
from .shipment_service import ShipmentService
from .balance_service import BalanceService, ProcessingStats
from .error_boundary import ServiceResult, handle, guarded

__all__ = [
    "ModelService",
    "ArchivableService",
    "ClientService",
    "ResourceService",
    "UnitService",
    "ReceiptService",
    "ShipmentService",
    "BalanceService",
    "ProcessingStats",
    "ServiceResult",
    "handle",
    "guarded",
]
