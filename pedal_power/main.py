import argparse
import asyncio
import logging
import math
from datetime import datetime
from pathlib import Path
from typing import Dict

import socketio
from aiohttp import web

from .bike import Bike
from .config import load_bike_config
from .config.config_loader import DEFAULT_CONFIG_PATH
from .sensors.simulated import SimulatedSensor

logger = logging.getLogger(__name__)

static_path = Path(__file__).parent / 'static'


def metrics_payload(snapshot: Dict) -> Dict:
    return {
        'type': 'metrics',
        'energy': float(snapshot.get('energy', 0)),
        'laps': float(snapshot.get('laps', 0)),
        'fed': float(snapshot.get('fed', 0)),
        'timestamp': snapshot.get('timestamp', datetime.now().isoformat())
    }


async def simulate_pedaling(sensor: SimulatedSensor, cadence_rpm: float):
    """Emit two change events per lap at the given cadence"""
    interval = 60.0 / cadence_rpm / 2
    while True:
        await asyncio.sleep(interval)
        sensor.emit()


def create_app(bike: Bike) -> web.Application:
    app = web.Application()
    sio = socketio.AsyncServer(async_mode='aiohttp', cors_allowed_origins='*')
    sio.attach(app)
    app['bike'] = bike
    app['sio'] = sio

    async def handle_tick(snapshot: Dict) -> None:
        try:
            await sio.emit('system_update', metrics_payload(snapshot))
        except Exception as e:
            logger.error(f"Emit error: {str(e)}")

    bike.callback = handle_tick

    @sio.event
    async def connect(sid, environ):
        logger.info(f"Client connected: {sid}")
        await sio.emit('system_update', {
            'type': 'connection',
            'socket_connected': True,
            'pedal_connected': bike.pedal.is_connected
        }, room=sid)

    @sio.event
    async def disconnect(sid):
        logger.info(f"Client disconnected: {sid}")

    @sio.on('consume_energy')
    async def handle_consume(sid, data):
        try:
            amount = float(data['amount'])
        except (KeyError, TypeError, ValueError):
            amount = None
        if amount is None or not math.isfinite(amount):
            logger.warning(f"Ignoring bad consume request: {data}")
            return
        bike.battery.consume(amount)
        logger.info(f"Consumed {amount}, energy now {bike.battery.total()}")
        await sio.emit('system_update', metrics_payload(bike.snapshot()))

    async def index(request):
        return web.FileResponse(str(static_path / 'index.html'))

    async def energy(request):
        return web.json_response(bike.snapshot())

    app.router.add_get('/', index)
    app.router.add_get('/energy', energy)
    if static_path.exists():
        app.router.add_static('/static', str(static_path))

    async def startup(app):
        await bike.start()
        await sio.emit('system_update', {
            'type': 'connection',
            'pedal_connected': bike.pedal.is_connected
        })

    async def cleanup(app):
        await bike.stop()
        logger.info("Bike stopped")

    app.on_startup.append(startup)
    app.on_cleanup.append(cleanup)
    return app


def build_bike(config: Dict, simulate: bool) -> Bike:
    if simulate:
        sensor = SimulatedSensor()
    else:
        from .sensors.phidget_sensor import PhidgetVoltageRatioSensor
        sensor = PhidgetVoltageRatioSensor(config['sensor'])
    return Bike.from_config(config, sensor)


def main():
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    parser = argparse.ArgumentParser(description="Pedal energy dashboard")
    parser.add_argument("--config", default=str(DEFAULT_CONFIG_PATH), help="Path to pedal_power.yaml")
    parser.add_argument("--simulate", action="store_true", help="Use a simulated pedal sensor")
    parser.add_argument("--cadence", type=float, default=60.0, help="Simulated cadence in rpm")
    parser.add_argument("--port", type=int, default=8080)
    args = parser.parse_args()

    config = load_bike_config(args.config)
    bike = build_bike(config, args.simulate)
    app = create_app(bike)

    if args.simulate:
        async def start_simulation(app):
            app['simulation'] = asyncio.create_task(simulate_pedaling(bike.pedal.sensor, args.cadence))

        async def stop_simulation(app):
            app['simulation'].cancel()
            try:
                await app['simulation']
            except asyncio.CancelledError:
                logger.info("Simulation cancelled")

        app.on_startup.append(start_simulation)
        app.on_cleanup.insert(0, stop_simulation)

    try:
        web.run_app(app, host='0.0.0.0', port=args.port)
    except Exception as e:
        logger.critical(f"Application failed: {str(e)}")
        raise


if __name__ == '__main__':
    main()
