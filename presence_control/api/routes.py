from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect

from ..core.config import Settings, settings
from ..core.timeutil import now_local
from ..domain.events import BusMessage
from ..domain.models import RecurringWindow
from ..sensors.simulated_presence_sensor import PatternConfig, SimulatedPresenceSensor
from ..services.presence_service import PresenceService
from .schemas import (
    SimBusRequest,
    SimPatternRequest,
    SimPresenceRequest,
    TouchRequest,
    WindowOut,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Dependency getters ---
# main.py points these at the real objects via app.dependency_overrides.
def get_service() -> PresenceService:  # overridden in main
    raise RuntimeError("Presence service dependency not configured")

def get_sim_sensor() -> SimulatedPresenceSensor:  # overridden in main
    raise RuntimeError("Simulated sensor dependency not configured")

def get_settings() -> Settings:
    return settings


def _window_out(w: RecurringWindow) -> WindowOut:
    start, end = w.label().split("-")
    return WindowOut(
        start_time=start,
        end_time=end,
        days=sorted(w.weekdays),
        wraps_midnight=w.wraps_midnight,
    )


@router.get("/state")
async def get_state(
    svc: PresenceService = Depends(get_service),
    cfg: Settings = Depends(get_settings),
):
    snap = svc.publisher.latest or svc.engine.snapshot()
    return {
        "app": cfg.app_name,
        "mode": cfg.mode.value,
        "now_local": now_local().isoformat(),
        "state": snap.as_dict(),
        "phase": svc.engine.timer.phase.value,
        "screen_on": svc.actuator.state,
        "touch_enabled": svc.touch_enabled,
    }


@router.websocket("/stream")
async def stream_state(ws: WebSocket, svc: PresenceService = Depends(get_service)):
    await ws.accept()
    q = svc.publisher.subscribe()
    try:
        while True:
            snap = await q.get()
            await ws.send_json(snap.as_dict())
    except WebSocketDisconnect:
        logger.debug("Stream client disconnected")
    finally:
        svc.publisher.unsubscribe(q)


@router.post("/touch")
async def touch(req: TouchRequest, svc: PresenceService = Depends(get_service)):
    if not svc.touch(req.type):
        raise HTTPException(status_code=409, detail="Touch input is disabled")
    return {"ok": True, "type": req.type}


@router.get("/schedule")
async def get_schedule(svc: PresenceService = Depends(get_service)):
    resolver = svc.engine.resolver
    sched = svc.engine.state.schedule
    win = sched.active_always_on_window
    return {
        "ignore_windows": [_window_out(w).model_dump() for w in resolver.ignore_windows()],
        "always_on_windows": [_window_out(w).model_dump() for w in resolver.always_on_windows()],
        "always_on_active": sched.always_on_active,
        "ignore_active": sched.ignore_active,
        "active_always_on_window": {
            "start": win.start_instant.isoformat(),
            "end": win.end_instant.isoformat(),
            "total_seconds": win.total_seconds,
            "seconds_remaining": win.seconds_remaining,
        } if win else None,
    }


@router.get("/settings")
async def get_settings_api(cfg: Settings = Depends(get_settings)):
    current = cfg.model_dump(mode="json", by_alias=True)
    if current.get("mqtt_password"):
        current["mqtt_password"] = "***"
    return {"settings": current}


# --- Simulation endpoints ---
@router.get("/sim/status")
async def sim_status(sensor: SimulatedPresenceSensor = Depends(get_sim_sensor)):
    return sensor.status()


@router.post("/sim/enable")
async def sim_enable(sensor: SimulatedPresenceSensor = Depends(get_sim_sensor)):
    sensor.enable()
    return {"ok": True, "enabled": True}


@router.post("/sim/disable")
async def sim_disable(sensor: SimulatedPresenceSensor = Depends(get_sim_sensor)):
    sensor.disable()
    return {"ok": True, "enabled": False}


@router.post("/sim/presence")
async def sim_set_presence(req: SimPresenceRequest, sensor: SimulatedPresenceSensor = Depends(get_sim_sensor)):
    sensor.set_present(req.present)
    return {"ok": True, "mode": "manual", "present": req.present}


@router.post("/sim/pattern")
async def sim_set_pattern(req: SimPatternRequest, sensor: SimulatedPresenceSensor = Depends(get_sim_sensor)):
    cfg = PatternConfig(**req.model_dump())
    sensor.set_pattern(cfg)
    return {"ok": True, "pattern": cfg.__dict__}


@router.post("/sim/bus")
async def sim_bus_message(
    req: SimBusRequest,
    svc: PresenceService = Depends(get_service),
    cfg: Settings = Depends(get_settings),
):
    raw = req.payload if isinstance(req.payload, str) else json.dumps(req.payload)
    topic = req.topic or cfg.bus_topic
    svc.submit(BusMessage(topic=topic, payload=raw))
    return {"ok": True, "topic": topic}
