from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from typing import Dict, List, Optional, Set

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from simulation import ConfigError, SimulationConfig
from simulation.session import ComparisonSession

logger = logging.getLogger(__name__)

BASE_TICK_INTERVAL = 0.5


class TrafficEventModel(BaseModel):
    timeStep: int = 0
    source: int
    destination: int
    count: int = 1


class StartRequest(BaseModel):
    floors: int
    elevators: int
    maxCapacity: int
    mode: str = "PREBUILT_SCENARIO"
    scenario: Optional[str] = None
    floorPriorities: Dict[int, float] = {}
    initialPeople: Dict[int, int] = {}
    timeline: List[TrafficEventModel] = []
    seed: Optional[int] = None


class SpeedRequest(BaseModel):
    multiplier: float = Field(gt=0)


class SimulationManager:
    """Owns the running comparison session and the loop that ticks it."""

    def __init__(self, base_interval: float = BASE_TICK_INTERVAL) -> None:
        self.base_interval = base_interval
        self.tick_interval = base_interval
        self.session: Optional[ComparisonSession] = None
        self.clients: Set[WebSocket] = set()
        self._task: Optional[asyncio.Task] = None
        self._lock = asyncio.Lock()

    async def start(self, config: SimulationConfig, seed: Optional[int] = None) -> dict:
        await self.stop_loop()
        async with self._lock:
            self.session = ComparisonSession(config, seed=seed)
            self.tick_interval = self.base_interval
        self._start_loop()
        return {"message": "Simulation started"}

    async def set_speed(self, multiplier: float) -> dict:
        if multiplier <= 0:
            raise ValueError("multiplier must be positive")
        self.tick_interval = self.base_interval / multiplier
        logger.info("Speed set to %sx (%.3fs per tick)", multiplier, self.tick_interval)
        if self.session is not None and not self.session.finished:
            await self.stop_loop()
            self._start_loop()
        return {"message": "Speed updated"}

    async def pause(self) -> dict:
        async with self._lock:
            if self.session is not None:
                self.session.pause()
        return {"message": "Paused"}

    async def resume(self) -> dict:
        async with self._lock:
            if self.session is not None:
                self.session.resume()
        return {"message": "Resumed"}

    async def stop(self) -> dict:
        await self.stop_loop()
        async with self._lock:
            history = [] if self.session is None else [p.to_dict() for p in self.session.history]
            self.session = None
        return {"message": "Simulation stopped", "history": history}

    async def stop_loop(self) -> None:
        if self._task:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None

    def _start_loop(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._run())

    async def _run(self) -> None:
        while True:
            async with self._lock:
                session = self.session
                if session is None:
                    return
                session.tick()
                payload = {"event": "simulation_update", "data": session.state()}
                finished = session.finished
            await self.broadcast(payload)
            if finished:
                await self.broadcast(
                    {
                        "event": "simulation_finished",
                        "data": {"history": payload["data"]["history"], "phaseHistory": payload["data"]["phaseHistory"]},
                    }
                )
                self._task = None
                return
            await asyncio.sleep(self.tick_interval)

    async def broadcast(self, payload: dict) -> None:
        """Send ``payload`` to every viewer, dropping any whose socket is gone."""

        message = json.dumps(payload)
        stale: List[WebSocket] = []
        for client in list(self.clients):
            try:
                await client.send_text(message)
            except (WebSocketDisconnect, RuntimeError) as exc:
                logger.debug("Dropping stream client after failed send: %r", exc)
                stale.append(client)
        for client in stale:
            await self.unregister(client)

    async def register(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self.clients.add(websocket)
        state = await self.current_state()
        if state is not None:
            await websocket.send_text(json.dumps({"event": "simulation_update", "data": state}))

    async def unregister(self, websocket: WebSocket) -> None:
        self.clients.discard(websocket)
        with contextlib.suppress(Exception):
            await websocket.close()

    async def current_state(self) -> Optional[dict]:
        async with self._lock:
            if self.session is None:
                return None
            return self.session.state()


def create_app(manager: Optional[SimulationManager] = None) -> FastAPI:
    manager = manager or SimulationManager()

    @contextlib.asynccontextmanager
    async def lifespan(_: FastAPI):
        yield
        await manager.stop_loop()

    app = FastAPI(title="Elevator Duel Simulation API", lifespan=lifespan)
    app.state.manager = manager
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.post("/start")
    async def start_simulation(request: StartRequest) -> dict:
        try:
            config = SimulationConfig.from_dict(request.model_dump(exclude={"seed"}))
        except ConfigError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        return await manager.start(config, seed=request.seed)

    @app.post("/speed")
    async def set_speed(request: SpeedRequest) -> dict:
        try:
            return await manager.set_speed(request.multiplier)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc))

    @app.post("/pause")
    async def pause() -> dict:
        return await manager.pause()

    @app.post("/resume")
    async def resume() -> dict:
        return await manager.resume()

    @app.post("/stop")
    async def stop() -> dict:
        return await manager.stop()

    @app.get("/state")
    async def get_state() -> dict:
        state = await manager.current_state()
        if state is None:
            raise HTTPException(status_code=404, detail="No simulation running")
        return state

    @app.websocket("/ws/stream")
    async def websocket_endpoint(websocket: WebSocket) -> None:
        await manager.register(websocket)
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            await manager.unregister(websocket)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("server.app:app", host="0.0.0.0", port=3001, reload=False)
