import asyncio
import logging
from dataclasses import asdict

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse

from whealthy_app.schemas import ScenarioParams, TaxSetupRequest
from whealthy_app.services.deterministic import simulate_deterministic
from whealthy_app.services.monte_carlo import run_monte_carlo
from whealthy_app.services.persistence import (
    DEFAULT_SCENARIO,
    ScenarioImportError,
    export_scenario,
    import_scenario,
)
from whealthy_app.services.reverse import calculate_reverse
from whealthy_app.services.scenario import run_scenario
from whealthy_app.services.tax_profiles import apply_tax_residences, derive_tax_setup
from whealthy_app.utils.json_safety import sanitize_floats


logger = logging.getLogger(__name__)

router = APIRouter()


async def _in_executor(fn, *args):
    # Simulations are CPU-bound; keep them off the event loop
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, fn, *args)


@router.post("/simulate")
async def api_simulate(data: ScenarioParams):
    result = await _in_executor(run_scenario, data)
    return sanitize_floats(result)


@router.post("/deterministic")
async def api_deterministic(data: ScenarioParams):
    result = await _in_executor(simulate_deterministic, data)
    return sanitize_floats(asdict(result))


@router.post("/monte-carlo")
async def api_monte_carlo(data: ScenarioParams):
    result = await _in_executor(run_monte_carlo, data)
    return sanitize_floats(asdict(result))


@router.post("/reverse")
async def api_reverse(data: ScenarioParams):
    result = await _in_executor(calculate_reverse, data)
    return sanitize_floats(asdict(result))


@router.get("/scenario/default")
async def api_default_scenario():
    return JSONResponse(content=DEFAULT_SCENARIO.model_dump(mode="json", by_alias=True))


@router.post("/scenario/import")
async def api_import_scenario(request: Request):
    body = (await request.body()).decode("utf-8", errors="replace")
    try:
        params = import_scenario(body)
    except ScenarioImportError as exc:
        logger.info("Rejected scenario import: %s", exc)
        return JSONResponse({"detail": exc.message, "field": exc.field}, status_code=422)
    return JSONResponse(content=params.model_dump(mode="json", by_alias=True))


@router.post("/scenario/export")
async def api_export_scenario(data: ScenarioParams):
    return Response(
        content=export_scenario(data),
        media_type="application/json",
        headers={"Content-Disposition": 'attachment; filename="whealthy-params.json"'},
    )


@router.post("/tax-setup")
async def api_tax_setup(data: TaxSetupRequest):
    setup = derive_tax_setup(data.residences, data.weights, data.double_tax_relief)
    return asdict(setup)


@router.post("/tax-setup/apply")
async def api_apply_tax_setup(data: ScenarioParams):
    """Scenario with the jurisdiction, rates and holding settings implied by its own taxResidences."""
    params = apply_tax_residences(data)
    return JSONResponse(content=params.model_dump(mode="json", by_alias=True))


@router.get("/health")
async def health():
    return {"status": "ok"}
