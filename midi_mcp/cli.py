from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Optional

from core.midi_service import MidiService
from core.models import CreateMidiArgs, ToolResponse
from core.progress import CallbackProgress

from midi_mcp.api_client import ContractError, HTTPError, MidiMcpClient, NetworkError


# exit codes (keep stable)
EXIT_OK = 0
EXIT_TOOL_ERROR = 2
EXIT_NETWORK_OR_HTTP = 4
EXIT_BAD_ARGS = 5

DEFAULT_BASE_URL = "http://127.0.0.1:8000"


def _print_err(msg: str) -> None:
    print(msg, file=sys.stderr)


def _default_title(composition_path: str) -> str:
    return Path(composition_path).stem or "Untitled"


def _finish(resp: ToolResponse) -> int:
    if resp.is_error:
        _print_err(resp.text)
        return EXIT_TOOL_ERROR
    print(resp.text)
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="midi-mcp", description="Composition JSON -> MIDI (MCP server, HTTP API, local tools)")
    sub = p.add_subparsers(dest="cmd", required=True)

    # ------------------------------------------------------------
    # render: local build, no server
    # ------------------------------------------------------------
    r = sub.add_parser("render", help="Build a MIDI file locally from a composition JSON file")
    r.add_argument("composition", type=str, help="Path to composition .json")
    r.add_argument("--out", dest="output_path", required=True, help="Output .mid path (relative -> per-user MIDI dir)")
    r.add_argument("--title", default=None, help="Song title (default: composition file stem)")
    r.add_argument("--quiet", action="store_true", help="Do not print progress")

    # ------------------------------------------------------------
    # serve: MCP over stdio
    # ------------------------------------------------------------
    sub.add_parser("serve", help="Run the MCP stdio server")

    # ------------------------------------------------------------
    # http: FastAPI app
    # ------------------------------------------------------------
    h = sub.add_parser("http", help="Run the HTTP API (uvicorn)")
    h.add_argument("--host", default=None, help="Bind host (default: settings HOST)")
    h.add_argument("--port", type=int, default=None, help="Bind port (default: settings PORT)")
    h.add_argument("--reload", action="store_true", help="Auto-reload (development)")

    # ------------------------------------------------------------
    # call: remote build through the HTTP API
    # ------------------------------------------------------------
    c = sub.add_parser("call", help="Call create_midi on a running HTTP API")
    c.add_argument("composition", type=str, help="Path to composition .json")
    c.add_argument("--out", dest="output_path", required=True, help="Output .mid path on the server side")
    c.add_argument("--title", default=None, help="Song title (default: composition file stem)")
    c.add_argument("--base-url", dest="base_url", default=DEFAULT_BASE_URL, help="Server base url")
    c.add_argument(
        "--send-file-path",
        action="store_true",
        help="Send composition_file (server reads the path) instead of the inline JSON",
    )

    t = sub.add_parser("tools", help="List tools of a running HTTP API")
    t.add_argument("--base-url", dest="base_url", default=DEFAULT_BASE_URL, help="Server base url")

    return p


# -------------------------------
# Commands
# -------------------------------
def cmd_render(args: argparse.Namespace, service: Optional[MidiService] = None) -> int:
    service = service or MidiService()
    progress = None
    if not args.quiet:
        progress = CallbackProgress(lambda pct, msg: _print_err(f"[{pct:3d}%] {msg}"))

    call = CreateMidiArgs(
        title=args.title or _default_title(args.composition),
        composition_file=str(Path(args.composition).resolve()),
        output_path=args.output_path,
    )
    return _finish(service.create_midi(call, progress))


def cmd_call(args: argparse.Namespace, client: Optional[MidiMcpClient] = None) -> int:
    title = args.title or _default_title(args.composition)
    owns = client is None
    client = client or MidiMcpClient(base_url=args.base_url)
    try:
        if args.send_file_path:
            resp = client.create_midi(
                title=title,
                output_path=args.output_path,
                composition_file=str(Path(args.composition).resolve()),
            )
        else:
            try:
                text = Path(args.composition).read_text(encoding="utf-8")
            except OSError as e:
                _print_err(f"Cannot read composition: {e}")
                return EXIT_BAD_ARGS
            resp = client.create_midi(title=title, output_path=args.output_path, composition=text)
    except (NetworkError, HTTPError, ContractError) as e:
        _print_err(f"Request failed: {e}")
        return EXIT_NETWORK_OR_HTTP
    finally:
        if owns:
            client.close()

    return _finish(resp)


def cmd_tools(args: argparse.Namespace) -> int:
    with MidiMcpClient(base_url=args.base_url) as client:
        try:
            tools = client.list_tools()
        except (NetworkError, HTTPError, ContractError) as e:
            _print_err(f"Request failed: {e}")
            return EXIT_NETWORK_OR_HTTP

    print(json.dumps([t.model_dump(by_alias=True) for t in tools], ensure_ascii=False, indent=2))
    return EXIT_OK


def cmd_http(args: argparse.Namespace) -> int:
    import uvicorn

    from core.config import get_settings

    s = get_settings()
    uvicorn.run(
        "app:app",
        host=args.host or s.host,
        port=args.port or s.port,
        reload=bool(args.reload),
    )
    return EXIT_OK


def cmd_serve(_: argparse.Namespace) -> int:
    from midi_mcp.mcp_server import main as serve_main

    serve_main()
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.cmd == "render":
        return cmd_render(args)
    if args.cmd == "call":
        return cmd_call(args)
    if args.cmd == "tools":
        return cmd_tools(args)
    if args.cmd == "http":
        return cmd_http(args)
    if args.cmd == "serve":
        return cmd_serve(args)

    _print_err(f"Unknown command: {args.cmd}")
    return EXIT_BAD_ARGS


if __name__ == "__main__":
    raise SystemExit(main())
