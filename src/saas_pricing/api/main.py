from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from saas_pricing import __version__
from saas_pricing.api.calculations_api import router as calculations_router
from saas_pricing.api.collaboration_api import router as collaboration_router
from saas_pricing.api.schemas import CalculatorInputsModel
from saas_pricing.api.share_api import router as share_router
from saas_pricing.api.state import analytics, calculations_service, engine, settings
from saas_pricing.config.settings import configure_logging

configure_logging(settings)

app = FastAPI(
    title="SaaS Pricing Calculator API",
    description="Pricing recommendations and SaaS metrics for subscription businesses",
    version=__version__,
)

# Enable CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(calculations_router)
app.include_router(share_router)
app.include_router(collaboration_router)


@app.get("/")
async def root():
    return {"status": "online", "message": "SaaS Pricing Calculator API Active"}


@app.post("/calculate")
async def calculate(inputs: CalculatorInputsModel):
    result = engine.calculate(inputs.to_inputs())
    analytics.track_calculation(result)
    return result.to_dict()


@app.get("/system/status")
async def get_status():
    return {
        "engine_active": True,
        "formula_profile": engine.profile.name,
        "saved_calculations": calculations_service.get_stats()["total"],
        "storage_path": str(settings.storage_path),
        "typing_debounce_seconds": settings.typing_debounce_seconds,
    }
