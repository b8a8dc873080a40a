from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Callable

from hue_lab.bridge import BridgeClient, clamp_brightness
from hue_lab.config import AppConfig
from hue_lab.errors import HueError, HueUsageError
from hue_lab.hue_client import HueClient
from hue_lab.models import ApplicationKey, BridgeAddress, Device, LightCommand
from hue_lab.resolver import resolve_light


logger = logging.getLogger("hue_lab")

EXIT_FAILURE = 1
EXIT_USAGE = 2


def open_hue(config: AppConfig) -> HueClient:
    return HueClient(
        bridge_host=config.bridge_host,
        application_key=config.application_key,
        ca_file=config.ca_file,
    )


def _configure_logging(config: AppConfig, verbosity: int) -> None:
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.getLevelName(config.log_level)
        if not isinstance(level, int):
            level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr)


def _require_bridge(config: AppConfig) -> None:
    if not config.bridge_host:
        raise HueUsageError("Missing bridge address: pass --bridge-host or set HUE_BRIDGE_HOST")


def _require_key(config: AppConfig) -> None:
    if not config.application_key:
        raise HueUsageError("Missing application key: run create-key, then pass --application-key or set HUE_APPLICATION_KEY")


def power_from_args(*, on: bool, off: bool) -> bool:
    if on == off:
        raise HueUsageError("Pass exactly one of --on or --off")
    return on


def _print_devices(devices: list[Device]) -> None:
    rows = [("ID", "NAME", "PRODUCT", "LIGHT")]
    rows += [(d.id, d.name, d.product_name, d.light_service_id or "-") for d in devices]
    widths = [max(len(row[i]) for row in rows) for i in range(4)]
    for row in rows:
        print("  ".join(cell.ljust(width) for cell, width in zip(row, widths)).rstrip())


def cmd_create_key(config: AppConfig, args: argparse.Namespace) -> None:
    _require_bridge(config)
    with open_hue(config) as hue:
        created = BridgeClient(hue=hue).create_application_key()
    print(f"Application key: {created.username}")
    if created.clientkey:
        print(f"Client key: {created.clientkey}")


def cmd_list(config: AppConfig, args: argparse.Namespace) -> None:
    _require_bridge(config)
    _require_key(config)
    with open_hue(config) as hue:
        devices = BridgeClient(hue=hue).list_devices()
    _print_devices(devices)


def cmd_light(config: AppConfig, args: argparse.Namespace) -> None:
    power = power_from_args(on=args.on, off=args.off)
    _require_bridge(config)
    _require_key(config)
    with open_hue(config) as hue:
        bridge = BridgeClient(hue=hue)
        light_id = resolve_light(bridge, args.id_or_name)
        command = LightCommand(target=light_id, on=power, brightness=args.dim)
        bridge.send(command)
    state = "on" if command.on else "off"
    if command.brightness is not None:
        state = f"{state}, brightness {clamp_brightness(command.brightness):g}%"
    print(f"Light {light_id}: {state}")


def _brightness(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid brightness: {value!r}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hue-lab",
        description="Experimental CLI tools for Philips Hue ZigBee IoT devices.",
    )
    parser.add_argument("--bridge-host", help="Hue Bridge IP/hostname (default: $HUE_BRIDGE_HOST)")
    parser.add_argument("--application-key", help="Bridge application key (default: $HUE_APPLICATION_KEY)")
    parser.add_argument("--ca-file", help="Hue Bridge root certificate, PEM (default: $HUE_BRIDGE_CA_FILE)")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="-v for progress, -vv to trace requests")

    sub = parser.add_subparsers(dest="command", required=True)

    p_key = sub.add_parser("create-key", help="Create an application key (press the bridge button first)")
    p_key.set_defaults(func=cmd_create_key)

    p_list = sub.add_parser("list", help="List devices known to the bridge")
    p_list.set_defaults(func=cmd_list)

    p_light = sub.add_parser("light", help="Switch or dim a light by id or name")
    p_light.add_argument("id_or_name", help="Light service id, or part of the device name")
    switch = p_light.add_mutually_exclusive_group(required=True)
    switch.add_argument("--on", action="store_true", help="Turn the light on")
    switch.add_argument("--off", action="store_true", help="Turn the light off")
    p_light.add_argument("--dim", type=_brightness, metavar="0-100", help="Brightness percent, clamped to 0-100")
    p_light.set_defaults(func=cmd_light)

    return parser


def _describe(exc: HueError) -> str:
    message = str(exc)
    cause = exc.__cause__
    detail = str(cause).splitlines()[0] if cause is not None and str(cause) else ""
    if detail and detail not in message:
        message = f"{message} (caused by: {detail})"
    return message


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    config = AppConfig.from_env()
    overrides: dict[str, object] = {}
    if args.bridge_host:
        overrides["bridge_host"] = BridgeAddress(args.bridge_host.strip())
    if args.application_key:
        overrides["application_key"] = ApplicationKey(args.application_key.strip())
    if args.ca_file:
        overrides["ca_file"] = Path(args.ca_file).expanduser()
    config = replace(config, **overrides)

    _configure_logging(config, args.verbose)
    handler: Callable[[AppConfig, argparse.Namespace], None] = args.func
    try:
        handler(config, args)
    except HueUsageError as exc:
        print(f"error: {exc}", file=sys.stderr)
        raise SystemExit(EXIT_USAGE)
    except HueError as exc:
        logger.debug("%s failed", args.command, exc_info=True)
        print(f"error: {args.command} failed: {_describe(exc)}", file=sys.stderr)
        raise SystemExit(EXIT_FAILURE)


if __name__ == "__main__":
    main()
