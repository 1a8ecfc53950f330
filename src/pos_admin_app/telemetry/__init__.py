from .events import SaleEvent, TelemetryEvent, auth_event, sale_event
from .logger import TelemetryLogger

__all__ = ["SaleEvent", "TelemetryEvent", "TelemetryLogger", "auth_event", "sale_event"]
