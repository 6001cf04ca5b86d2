"""Resource-specific convenience wrappers."""
from .alerts import AlertsResource
from .batches import BatchesResource
from .cycles import CyclesResource
from .materials import MaterialsResource
from .users import UsersResource

__all__ = [
    "AlertsResource",
    "BatchesResource",
    "CyclesResource",
    "MaterialsResource",
    "UsersResource",
]
