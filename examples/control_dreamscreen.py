"""Connect to a DreamScreen over BLE and send commands.

Usage:
    uv run python examples/control_dreamscreen.py --mode video --brightness 80
    uv run python examples/control_dreamscreen.py --address AA:BB:CC:DD:EE:FF --read mode
    uv run python examples/control_dreamscreen.py --by-name --listen 30
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from datetime import datetime

from dreamscreen import (
    MODE_NAMES,
    DreamScreenDevice,
    DreamScreenError,
    ResponseFrame,
)


def _timestamp() -> str:
    return datetime.now().strftime("%H:%M:%S")


def _print_frame(frame: ResponseFrame) -> None:
    kind = "notify" if frame.is_unsolicited else "read"
    print(f"[{_timestamp()}] <--- {frame.payload!r} ({kind})")


def _print_send(command: bytes) -> None:
    print(f"[{_timestamp()}] ---> {command.decode('ascii')!r}")


async def run(args: argparse.Namespace) -> None:
    """Connect, send the requested commands and optionally listen."""
    device = DreamScreenDevice(
        mac_address=args.address,
        timeout=args.timeout,
        response_timeout=args.response_timeout,
        discover_by_name=args.by_name,
        local_name=args.name,
    )
    device.on_read(_print_frame)
    device.on_send(_print_send)
    device.on_disconnect(lambda: print(f"[{_timestamp()}] disconnected"))

    async with device:
        print(f"Connected to {device.mac_address}")

        pending = []
        if args.mode is not None:
            pending.append(device.set_mode(args.mode))
        if args.brightness is not None:
            pending.append(device.set_brightness(args.brightness))
        await asyncio.gather(*pending)

        if args.read:
            response = await device.read_property(args.read)
            print(f"{args.read} = {response.payload!r}")

        if args.listen > 0:
            print(f"Listening for {args.listen:.1f}s")
            await asyncio.sleep(args.listen)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Control a DreamScreen over Bluetooth Low Energy."
    )
    parser.add_argument(
        "--address",
        help="Device MAC address (default: scan for the first DreamScreen)",
    )
    parser.add_argument(
        "--by-name",
        action="store_true",
        help="Scan by advertised name instead of service UUID.",
    )
    parser.add_argument(
        "--name",
        default="DreamScreen",
        help="Advertised name used with --by-name. Default: DreamScreen",
    )
    parser.add_argument(
        "--mode",
        choices=sorted(MODE_NAMES),
        help="Display mode to select.",
    )
    parser.add_argument(
        "--brightness",
        type=int,
        help="Brightness to set (0-100, clamped).",
    )
    parser.add_argument(
        "--read",
        choices=["mode", "brightness"],
        help="Property to read after sending.",
    )
    parser.add_argument(
        "--listen",
        type=float,
        default=0.0,
        help="Seconds to keep printing incoming frames. Default: 0",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=10.0,
        help="Connection timeout in seconds. Default: 10",
    )
    parser.add_argument(
        "--response-timeout",
        type=float,
        default=None,
        help="Seconds to wait for a reply (default: wait forever).",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging.",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    try:
        asyncio.run(run(args))
    except DreamScreenError as err:
        raise SystemExit(f"Error: {err}") from err
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
