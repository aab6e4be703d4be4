#!/usr/bin/env python3
"""
Read-only REST API for witr - explains why a process is running.
"""
from __future__ import annotations
import argparse
import functools
import sys
from typing import Any, Dict

from flask import Flask, jsonify
from flask_cors import CORS

from .ancestry import build_ancestry
from .config import load_config
from .detect import detect
from .heuristics import WarningEngine
from .models import ProcessNotFound, TargetError
from .proc import read_process, resolve_name
from .network import find_pid_by_port, get_listening_sockets, have_proc_net
from .render import report_dict

app = Flask(__name__)
CORS(app)
app.config["WITR"] = load_config(None)


def process_reader():
    """Reader bound to the loaded config and one socket table per request."""
    inode_map = get_listening_sockets() if have_proc_net() else None
    return functools.partial(read_process, cfg=app.config["WITR"], inode_map=inode_map)


def explain(pid: int):
    cfg = app.config["WITR"]
    ancestry = build_ancestry(pid, process_reader())
    if not ancestry:
        return jsonify({"message": f"cannot read process {pid}"}), 404
    source = detect(ancestry)
    warnings = WarningEngine.from_config(cfg).evaluate(ancestry, source)
    return jsonify(report_dict(ancestry, source, warnings))


def target_error(e: TargetError):
    body: Dict[str, Any] = {"message": str(e)}
    if e.candidates:
        body["candidates"] = [{"pid": pid, "cmdline": cmdline} for pid, cmdline in e.candidates]
        return jsonify(body), 409
    return jsonify(body), 404


@app.route("/api/pid/<int:pid>", methods=["GET"])
def explain_pid(pid):
    """Explain a specific PID"""
    return explain(pid)


@app.route("/api/port/<int:port>", methods=["GET"])
def explain_port(port):
    """Explain the process listening on a TCP port"""
    try:
        pid = find_pid_by_port(port)
    except TargetError as e:
        return target_error(e)
    return explain(pid)


@app.route("/api/name/<name>", methods=["GET"])
def explain_name(name):
    """Explain a process by its short command name"""
    try:
        pid = resolve_name(name)
    except TargetError as e:
        return target_error(e)
    return explain(pid)


@app.route("/api/pid/<int:pid>/env", methods=["GET"])
def process_env(pid):
    """Environment of a specific PID"""
    try:
        target = read_process(pid, cfg=app.config["WITR"])
    except ProcessNotFound as e:
        return jsonify({"message": str(e)}), 404
    return jsonify({"command": target.cmdline, "env": list(target.env)})


@app.route("/api/health", methods=["GET"])
def health():
    """Health check endpoint"""
    return jsonify({"status": "ok", "service": "witr-api"})


def main(argv: list[str] | None = None) -> None:
    ap = argparse.ArgumentParser(prog="witr-api", description="witr REST API server")
    ap.add_argument("--host", type=str, help="Host to bind to")
    ap.add_argument("--port", type=int, help="Port to bind to")
    ap.add_argument("--config", type=str, help="Config YAML")
    args = ap.parse_args(argv)

    cfg = load_config(args.config)
    app.config["WITR"] = cfg
    host = args.host or cfg["api_host"]
    port = args.port or cfg["api_port"]

    print("Starting witr API server...", file=sys.stderr)
    print(f"API running on http://{host}:{port}", file=sys.stderr)
    app.run(host=host, port=port)


if __name__ == "__main__":
    main()
