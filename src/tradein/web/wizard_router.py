"""FastAPI router exposing the trade-in wizard."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from tradein.core.types import JURISDICTIONS
from tradein.wizard.controller import WizardController
from tradein.wizard.models import FIELD_NAMES, WizardSnapshot

router = APIRouter()


# --- Request/Response models ---


class FieldUpdateRequest(BaseModel):
    value: str = ""


class AttributionAccepted(BaseModel):
    accepted: bool = True


def _get_controller(request: Request, wizard_id: str) -> WizardController:
    controller = request.app.state.wizard_store.get(wizard_id)
    if controller is None:
        raise HTTPException(status_code=404, detail=f"Wizard {wizard_id!r} not found")
    return controller


# --- Wizard endpoints ---


@router.get("/api/jurisdictions")
async def list_jurisdictions() -> list[str]:
    return list(JURISDICTIONS)


@router.post("/api/wizard")
async def start_wizard(request: Request) -> WizardSnapshot:
    controller = request.app.state.wizard_factory()
    wizard_id = request.app.state.wizard_store.add(controller)
    await controller.start()
    await controller.settle()
    return controller.snapshot(wizard_id)


@router.get("/api/wizard/{wizard_id}")
async def get_wizard(wizard_id: str, request: Request) -> WizardSnapshot:
    controller = _get_controller(request, wizard_id)
    return controller.snapshot(wizard_id)


@router.put("/api/wizard/{wizard_id}/fields/{name}")
async def set_field(
    wizard_id: str, name: str, body: FieldUpdateRequest, request: Request
) -> WizardSnapshot:
    controller = _get_controller(request, wizard_id)
    if name not in FIELD_NAMES:
        raise HTTPException(status_code=404, detail=f"Unknown field {name!r}")
    controller.set_field(name, body.value)
    await controller.settle()
    return controller.snapshot(wizard_id)


@router.post("/api/wizard/{wizard_id}/advance")
async def advance(wizard_id: str, request: Request) -> WizardSnapshot:
    controller = _get_controller(request, wizard_id)
    snapshot = await controller.advance()
    snapshot.id = wizard_id
    return snapshot


@router.post("/api/wizard/{wizard_id}/back")
async def go_back(wizard_id: str, request: Request) -> WizardSnapshot:
    controller = _get_controller(request, wizard_id)
    try:
        snapshot = controller.back()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    snapshot.id = wizard_id
    return snapshot


@router.post("/api/wizard/{wizard_id}/attribution")
async def post_attribution(
    wizard_id: str, body: dict[str, Any], request: Request
) -> AttributionAccepted:
    controller = _get_controller(request, wizard_id)
    if controller.channel is None:
        raise HTTPException(status_code=409, detail="Wizard has no attribution channel")
    controller.channel.publish(body)
    return AttributionAccepted()


@router.delete("/api/wizard/{wizard_id}")
async def discard_wizard(wizard_id: str, request: Request) -> dict[str, Any]:
    controller = request.app.state.wizard_store.pop(wizard_id)
    if controller is None:
        raise HTTPException(status_code=404, detail=f"Wizard {wizard_id!r} not found")
    await controller.close()
    return {"discarded": True}
