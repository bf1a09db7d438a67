#!/usr/bin/env python3
"""
votebridge - FastAPI Server

Exposes the question session over HTTP and serves uploaded question
sheets. The serial link is opened on startup; startup waits until the
base station is plugged in.

Usage:
    python -m votebridge [--host HOST] [--port PORT] [--device DEVICE]

Example:
    python -m votebridge --port 3000 --baud 9600 --devices 10
"""

import argparse
import logging
import os
import shutil
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, File, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles

from . import __version__
from .bridge import VoteBridge
from .config import BridgeConfig
from .errors import InvalidAddressError, InvalidModeError

log = logging.getLogger(__name__)


# ============== FastAPI Application ==============

def create_app(bridge: VoteBridge, start_link: bool = True) -> FastAPI:
    """
    Build the HTTP app around a bridge

    Args:
        bridge: Bridge context shared by all handlers
        start_link: Open the serial link and start the reader on startup.
            The link is closed on shutdown either way.
    """
    uploads_dir = bridge.config.uploads_dir
    os.makedirs(uploads_dir, exist_ok=True)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if start_link:
            # Blocks until the base station is connected
            await run_in_threadpool(bridge.start)
        log.info("[Server] Ready")

        yield

        await run_in_threadpool(bridge.close)
        log.info("[Server] Stopped")

    app = FastAPI(title="votebridge", version=__version__, lifespan=lifespan)
    app.state.bridge = bridge

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Endpoints are plain functions: serial writes block, so they run
    # in the threadpool.

    @app.get("/")
    def root():
        """Health check and status endpoint."""
        return {"status": "running", **bridge.status()}

    @app.post("/questions/start/{mode}")
    def start_question(mode: str):
        try:
            question_mode = bridge.session.start(mode)
        except InvalidModeError as e:
            return JSONResponse(status_code=422, content={"status": "error", "msg": str(e)})
        return {"status": "started", "questionMode": int(question_mode)}

    @app.post("/questions/stop")
    def stop_question():
        return bridge.session.stop()

    @app.post("/test/{index}/{val}")
    def test_response(index: int, val: int):
        """Set a device's answer directly, bypassing the serial link."""
        try:
            slot, created = bridge.session.inject(index, val)
        except (InvalidAddressError, ValueError) as e:
            return JSONResponse(status_code=422, content={"status": "error", "msg": str(e)})
        return {
            "value": slot.value,
            "from": slot.address,
            "status": "created" if created else "updated",
        }

    @app.post("/upload")
    def upload(file: Optional[UploadFile] = File(None)):
        if file is None or not file.filename:
            return PlainTextResponse("No file provided", status_code=400)

        filename = os.path.basename(file.filename)
        path = os.path.join(uploads_dir, filename)
        try:
            with open(path, "wb") as out:
                shutil.copyfileobj(file.file, out)
        except OSError as e:
            log.error("[Server] Failed to store upload %s: %s", filename, e)
            return PlainTextResponse("Failed to open the file for writing", status_code=500)

        log.info("[Server] Stored upload %s", filename)
        return PlainTextResponse(f"File {filename} uploaded successfully.")

    @app.get("/uploads")
    def list_files():
        try:
            names = sorted(os.listdir(uploads_dir))
        except OSError as e:
            return JSONResponse(status_code=500, content={"error": str(e)})
        return {"files": [name for name in names if ".pdf" in name]}

    app.mount("/uploads", StaticFiles(directory=uploads_dir, check_dir=False), name="uploads")

    return app


# ============== Main Entry Point ==============

def parse_args(argv=None) -> argparse.Namespace:
    defaults = BridgeConfig()
    parser = argparse.ArgumentParser(
        description="HTTP bridge between a polling app and serial voting devices"
    )
    parser.add_argument(
        "--host",
        default=defaults.host,
        help=f"Host to bind to (default: {defaults.host})"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=defaults.port,
        help=f"Port to listen on (default: {defaults.port})"
    )
    parser.add_argument(
        "--device",
        default=defaults.device_path,
        help="Serial device path (default: discover in --search-dir)"
    )
    parser.add_argument(
        "--search-dir",
        default=defaults.search_dir,
        help=f"Directory scanned for the base station (default: {defaults.search_dir})"
    )
    parser.add_argument(
        "--baud",
        type=int,
        default=defaults.baud_rate,
        help=f"Serial baud rate (default: {defaults.baud_rate})"
    )
    parser.add_argument(
        "--devices",
        type=int,
        default=defaults.device_count,
        help=f"Number of voting devices (default: {defaults.device_count})"
    )
    parser.add_argument(
        "--backoff",
        type=float,
        default=defaults.reconnect_backoff,
        help=f"Seconds between reconnect attempts (default: {defaults.reconnect_backoff})"
    )
    parser.add_argument(
        "--uploads-dir",
        default=defaults.uploads_dir,
        help=f"Directory for uploaded files (default: {defaults.uploads_dir})"
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: INFO)"
    )
    return parser.parse_args(argv)


def config_from_args(args: argparse.Namespace) -> BridgeConfig:
    return BridgeConfig(
        device_path=args.device,
        search_dir=args.search_dir,
        baud_rate=args.baud,
        device_count=args.devices,
        reconnect_backoff=args.backoff,
        uploads_dir=args.uploads_dir,
        host=args.host,
        port=args.port,
    )


def main(argv=None):
    args = parse_args(argv)

    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s.%(msecs)03d [%(levelname)s] %(threadName)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    config = config_from_args(args)
    app = create_app(VoteBridge(config))

    log.info("[Server] votebridge v%s starting on %s:%d", __version__, config.host, config.port)

    uvicorn.run(
        app,
        host=config.host,
        port=config.port,
        log_level="warning",  # Reduce uvicorn noise
        access_log=False
    )


if __name__ == "__main__":
    main()
