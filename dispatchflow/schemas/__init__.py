"""
Pydantic schemas for API request/response validation.
"""

from dispatchflow.schemas.base import BaseSchema, ActorRequest, ErrorDetail
from dispatchflow.schemas.order import (
    OrderItemResponse,
    OrderResponse,
    OperationResult,
    CompletePackingRequest,
    ItemComplaintRequest,
    StorageItemRequest,
    CompleteStorageRequest,
    LoadingItemRequest,
    CompleteLoadingRequest,
    StartRouteRequest,
    StartRouteResponse,
    CompleteDeliveryRequest,
    FailDeliveryRequest,
)
from dispatchflow.schemas.dispatch import (
    RequirementsSchema,
    DriverRef,
    AssignRequest,
    BulkAssignEntry,
    BulkAssignRequest,
    AssignmentResponse,
    BulkAssignResponse,
    QueueEntry,
    VehicleSuggestionResponse,
)
from dispatchflow.schemas.workflow import (
    StageRecordSchema,
    WorkflowResponse,
    SyncResponse,
)
from dispatchflow.schemas.vehicle import (
    VehicleTypeResponse,
    DriverResponse,
)

__all__ = [
    # Base
    "BaseSchema",
    "ActorRequest",
    "ErrorDetail",
    # Order
    "OrderItemResponse",
    "OrderResponse",
    "OperationResult",
    "CompletePackingRequest",
    "ItemComplaintRequest",
    "StorageItemRequest",
    "CompleteStorageRequest",
    "LoadingItemRequest",
    "CompleteLoadingRequest",
    "StartRouteRequest",
    "StartRouteResponse",
    "CompleteDeliveryRequest",
    "FailDeliveryRequest",
    # Dispatch
    "RequirementsSchema",
    "DriverRef",
    "AssignRequest",
    "BulkAssignEntry",
    "BulkAssignRequest",
    "AssignmentResponse",
    "BulkAssignResponse",
    "QueueEntry",
    "VehicleSuggestionResponse",
    # Workflow
    "StageRecordSchema",
    "WorkflowResponse",
    "SyncResponse",
    # Vehicle
    "VehicleTypeResponse",
    "DriverResponse",
]
