from __future__ import annotations

import argparse
import csv
import json
import logging
import sys
from dataclasses import asdict, is_dataclass
from enum import IntEnum
from typing import Any, Dict, Optional, Sequence

from . import grammar as g
from .codec import parse, write
from .exceptions import TsiError
from .frames import ContainerNode, FrameScanner, build_tree, iter_tree
from .models import Device, MappingEntry
from .validators import validate_mapping_file
from .writer import command_id_for
from .xml import extract_mapping_blob

logger = logging.getLogger(__name__)

ROW_FIELDS = [
    "device_name",
    "device_target",
    "io_type",
    "command_id",
    "command_name",
    "control",
    "midi_channel",
    "midi_note",
    "midi_cc",
    "controller_type",
    "interaction_mode",
    "assignment",
    "auto_repeat",
    "invert",
    "soft_takeover",
    "rotary_sensitivity",
    "rotary_acceleration",
    "set_to_value",
    "encoder_mode",
    "modifier1",
    "modifier2",
    "led_min_controller",
    "led_max_controller",
    "led_min_midi",
    "led_max_midi",
    "led_invert",
    "led_blend",
    "resolution",
    "comment",
]


def _coerce_enums(obj: Any) -> Any:
    """Convert IntEnum (and nested structures) to plain int for stable CSV/JSON."""
    if isinstance(obj, IntEnum):
        return int(obj)
    if is_dataclass(obj):
        return {k: _coerce_enums(v) for k, v in asdict(obj).items()}
    if isinstance(obj, dict):
        return {k: _coerce_enums(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_coerce_enums(v) for v in obj]
    return obj


def mapping_row(device: Device, m: MappingEntry) -> Dict[str, Any]:
    """One flattened, primitive-only row per mapping."""
    row = {
        "device_name": device.name,
        "device_target": device.target,
        "io_type": m.io_type,
        "command_id": command_id_for(m),
        "command_name": m.command_name,
        "control": m.midi_control_name or "",
        "midi_channel": m.midi_channel,
        "midi_note": m.midi_note,
        "midi_cc": m.midi_cc,
        "controller_type": m.controller_type,
        "interaction_mode": m.interaction_mode,
        "assignment": m.assignment,
        "auto_repeat": m.auto_repeat,
        "invert": m.invert,
        "soft_takeover": m.soft_takeover,
        "rotary_sensitivity": m.rotary_sensitivity,
        "rotary_acceleration": m.rotary_acceleration,
        "set_to_value": m.set_to_value,
        "encoder_mode": m.encoder_mode,
        "modifier1": m.modifier1_condition.display_string if m.modifier1_condition else "",
        "modifier2": m.modifier2_condition.display_string if m.modifier2_condition else "",
        "led_min_controller": m.led_min_controller,
        "led_max_controller": m.led_max_controller,
        "led_min_midi": m.led_min_midi,
        "led_max_midi": m.led_max_midi,
        "led_invert": m.led_invert,
        "led_blend": m.led_blend,
        "resolution": m.resolution,
        "comment": m.comment,
    }
    return _coerce_enums(row)


def _dump_json(rows, path: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(rows, f, indent=2, ensure_ascii=False)


def _dump_csv(rows, path: str) -> None:
    with open(path, "w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=ROW_FIELDS)
        w.writeheader()
        for r in rows:
            w.writerow(r)


def _read(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()


# ---------- Sub-commands ----------


def cmd_dump(args: argparse.Namespace) -> int:
    mf = parse(_read(args.tsi), strict_counts=args.strict)
    rows = [mapping_row(d, m) for d in mf.devices for m in d.mappings]
    if args.json:
        _dump_json(rows, args.json)
    if args.csv:
        _dump_csv(rows, args.csv)
    if not args.json and not args.csv:
        print(json.dumps(rows, indent=2, ensure_ascii=False))
    return 0


def cmd_tree(args: argparse.Namespace) -> int:
    nodes = build_tree(extract_mapping_blob(args.tsi), g.GRAMMAR)
    for depth, node in iter_tree(nodes):
        frame = node.to_frame()
        line = f"{'  ' * depth}{node.id4} size={frame.size}"
        if isinstance(node, ContainerNode):
            line += f" prefix={len(node.prefix)} children={len(node.children)}"
        print(line)
    return 0


def cmd_scan(args: argparse.Namespace) -> int:
    blob = extract_mapping_blob(args.tsi)
    for sf in FrameScanner().walk(blob):
        print(f"{sf.start:08x}-{sf.end:08x} {sf.id4} children={sf.children_count}")
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    mf = parse(_read(args.tsi), strict_counts=args.strict)
    issues = validate_mapping_file(mf)
    for severity, message in issues:
        print(f"{severity}: {message}")
    if not issues:
        print(f"ok: {len(mf.all_mappings)} mappings in {len(mf.devices)} devices")
    return 1 if any(sev == "error" for sev, _ in issues) else 0


def cmd_roundtrip(args: argparse.Namespace) -> int:
    data = _read(args.tsi)
    mf = parse(data, strict_counts=args.strict)
    out = write(mf, template=data if args.inject else None)
    with open(args.out, "wb") as f:
        f.write(out)
    logger.info("wrote %s (%d bytes)", args.out, len(out))
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="tsi-mapping", description="Inspect and rewrite Traktor TSI mappings.")
    p.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    p.add_argument("--strict", action="store_true", help="fail on list count mismatches")
    sub = p.add_subparsers(dest="command", required=True)

    d = sub.add_parser("dump", help="flattened mapping rows")
    d.add_argument("tsi")
    d.add_argument("--json", metavar="OUT")
    d.add_argument("--csv", metavar="OUT")
    d.set_defaults(func=cmd_dump)

    t = sub.add_parser("tree", help="frame tree with sizes")
    t.add_argument("tsi")
    t.set_defaults(func=cmd_tree)

    s = sub.add_parser("scan", help="tolerant frame scan")
    s.add_argument("tsi")
    s.set_defaults(func=cmd_scan)

    c = sub.add_parser("check", help="validate mappings")
    c.add_argument("tsi")
    c.set_defaults(func=cmd_check)

    r = sub.add_parser("roundtrip", help="parse and write back")
    r.add_argument("tsi")
    r.add_argument("out")
    r.add_argument("--inject", action="store_true", help="keep the other settings of the input document")
    r.set_defaults(func=cmd_roundtrip)
    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        return args.func(args)
    except (TsiError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
