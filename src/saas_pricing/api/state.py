"""
Shared application state for the API routers.
"""
from ..collaboration.transport import InMemoryBroker
from ..config.settings import get_settings
from ..engine import MetricsEngine
from ..services.analytics import AnalyticsTracker
from ..services.saved_calculations import SavedCalculationsService
from ..services.storage import JsonFileStore

settings = get_settings()

engine = MetricsEngine(settings.formula_profile)
calculations_service = SavedCalculationsService(JsonFileStore(settings.storage_path))
analytics = AnalyticsTracker()

# Rooms of the collaboration WebSocket endpoint
broker = InMemoryBroker()
