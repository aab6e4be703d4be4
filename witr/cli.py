from __future__ import annotations
import argparse
import functools
import sys

from . import __version__
from .ancestry import build_ancestry
from .config import load_config
from .detect import detect
from .heuristics import WarningEngine
from .models import TargetError
from .network import get_listening_sockets, have_proc_net
from .proc import read_process, resolve_target
from .render import (
    render_env, render_json, render_short, render_standard,
    render_tree, render_warnings,
)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="witr", description="witr - why is this running?")
    ap.add_argument("name", nargs="?", help="Process name to explain")
    ap.add_argument("--pid", type=int, default=0, help="Explain a specific PID")
    ap.add_argument("--port", type=int, default=0, help="Explain port usage")
    ap.add_argument("--short", action="store_true", help="One-line summary")
    ap.add_argument("--tree", action="store_true", help="Show process ancestry tree")
    ap.add_argument("--json", action="store_true", help="Output as JSON")
    ap.add_argument("--warnings", action="store_true", help="Show only warnings")
    ap.add_argument("--no-color", action="store_true", help="Disable colorized output")
    ap.add_argument("--env", action="store_true", help="Show environment variables")
    ap.add_argument("--config", type=str, help="Config YAML")
    ap.add_argument("--version", action="version", version=f"witr {__version__}")
    return ap


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    cfg = load_config(args.config)

    try:
        pid = resolve_target(args.pid, args.port, args.name)
    except TargetError as e:
        if e.candidates:
            print("Multiple processes found:")
            for i, (cand_pid, cmdline) in enumerate(e.candidates, 1):
                print(f"  [{i}] PID {cand_pid}  {cmdline}")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    inode_map = get_listening_sockets() if have_proc_net() else None
    reader = functools.partial(read_process, cfg=cfg, inode_map=inode_map)
    ancestry = build_ancestry(pid, reader)
    if not ancestry:
        print(f"Error: cannot read process {pid}", file=sys.stderr)
        return 1

    color = cfg.get("color", True) and not args.no_color
    if args.env:
        print(render_env(ancestry[-1], as_json=args.json, color=color))
        return 0

    source = detect(ancestry)
    warnings = WarningEngine.from_config(cfg).evaluate(ancestry, source)

    if args.json:
        print(render_json(ancestry, source, warnings))
    elif args.warnings:
        print(render_warnings(warnings, color))
    elif args.tree:
        print(render_tree(ancestry, color))
    elif args.short:
        print(render_short(ancestry, color))
    else:
        print(render_standard(ancestry, source, warnings, color))
    return 0


if __name__ == "__main__":
    sys.exit(main())
