"""Connect to an Evolution robot and run one action for a while.

Usage:
    uv run python examples/remote_control.py F --index 2 --duration 3
    uv run python examples/remote_control.py V --index 4
    uv run python examples/remote_control.py M --index 1 --duration 20
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from datetime import datetime

from evobot import (
    ROBOT_NAME,
    Controller,
    ControllerState,
    get_state_name,
)


def _timestamp() -> str:
    return datetime.now().strftime("%H:%M:%S")


async def run(action: str, index: int, duration: float, name: str, connect_timeout: float) -> None:
    """Wait for the robot, run the action, then pause the robot."""
    controller = Controller(robot_name=name)
    connected = asyncio.Event()
    failed = asyncio.Event()

    def on_state_changed(new_state: ControllerState, old_state: ControllerState) -> None:
        print(f"[{_timestamp()}] {get_state_name(old_state)} => {get_state_name(new_state)}")
        if new_state == ControllerState.CONNECTED:
            connected.set()
        elif new_state == ControllerState.ERROR:
            failed.set()

    def on_sound_changed(current_sound: int) -> None:
        # Sound 0 reports 0 both when it starts and when it finishes
        if current_sound == 0:
            state = "started or finished"
        else:
            state = "playing" if current_sound > 0 else "finished"
        print(f"[{_timestamp()}] sound {abs(current_sound)} {state}")

    controller.register_state_callback(on_state_changed)
    controller.robot_session.register_sound_callback(on_sound_changed)

    await controller.start()
    try:
        waiters = [asyncio.create_task(connected.wait()), asyncio.create_task(failed.wait())]
        _, pending = await asyncio.wait(
            waiters, timeout=connect_timeout, return_when=asyncio.FIRST_COMPLETED
        )
        for waiter in pending:
            waiter.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

        if not connected.is_set():
            reason = controller.error_string or "robot not found"
            print(f"[{_timestamp()}] Could not connect: {reason}")
            return

        session = controller.robot_session
        print(f"[{_timestamp()}] Firmware revision: {session.firmware_revision.name}")

        if not session.start_action(action, index):
            print(f"[{_timestamp()}] Action {action!r} was rejected")
            return

        await asyncio.sleep(duration)
        session.pause()
        # Give the transmitter a chance to deliver the paused message
        await asyncio.sleep(0.5)
    finally:
        await controller.stop()


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Drive an Evolution robot over Bluetooth LE."
    )
    parser.add_argument("action", help="Action identifier (F, B, L, R, O, C, U, D, V, M, E)")
    parser.add_argument("--index", type=int, default=0, help="Speed, sound or function index. Default: 0")
    parser.add_argument(
        "--duration",
        type=float,
        default=2.0,
        help="Seconds to keep the action running. Default: 2",
    )
    parser.add_argument("--name", default=ROBOT_NAME, help=f"Advertised robot name. Default: {ROBOT_NAME}")
    parser.add_argument(
        "--connect-timeout",
        type=float,
        default=60.0,
        help="Seconds to wait for the connection. Default: 60",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        asyncio.run(
            run(
                action=args.action,
                index=args.index,
                duration=args.duration,
                name=args.name,
                connect_timeout=args.connect_timeout,
            )
        )
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
