#!/usr/bin/env python3
"""
Campus concierge CLI entrypoint.

Behavior:
- Shows a brief intro banner.
- `--query "..."` answers one question and exits; otherwise opens a prompt
  loop (`quit` to exit).
- `--no-llm` keeps every answer deterministic; `--json` prints raw payloads.
"""
import argparse
import asyncio
import json
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from concierge.errors import ConfigError
from concierge.llm_client import DEFAULT_MODEL, SimpleLLMClient
from concierge.pipeline import Concierge
from config.loader import load_user_config
from utils import log_title
from utils.tracer import RunTracer
from utils.ui import BaseUI, get_ui

BANNER = r"""
  ___   ___   _  _   ___  ___  ___  ___   ___  ___
 / __| / _ \ | \| | / __||_ _|| __|| _ \ / __|| __|
| (__ | (_) || .` || (__  | | | _| |   /| (_ || _|
 \___| \___/ |_|\_| \___||___||___||_|_\ \___||___|
"""


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Campus Concierge")
    parser.add_argument("--config", default=None, help="Path to config JSON (defaults to config/concierge_config*.json)")
    parser.add_argument("--query", default=None, help="Answer a single query and exit")
    parser.add_argument("--no-llm", action="store_true", help="Disable the LLM bridges (deterministic answers only)")
    parser.add_argument("--json", action="store_true", help="Print the raw JSON payload instead of a panel")
    return parser.parse_args()


def render_intro(console: Console, llm_enabled: bool) -> None:
    console.rule("[bold cyan]Campus Concierge[/bold cyan]")
    console.print(Align.center(Text(BANNER, justify="center", style="bold cyan")))
    info = Table.grid(padding=(0, 1))
    info.add_row("Description", "Campus concierge: buildings, routes, offices and app info")
    info.add_row("LLM", "[green]on[/green]" if llm_enabled else "[yellow]off (deterministic)[/yellow]")
    info.add_row("Command", "ask a question; 'quit' to exit")
    console.print(Align.center(Panel(info, title="Info", expand=False, border_style="green")))


def build_llm_client(llm_cfg: Dict[str, Any]) -> Optional[SimpleLLMClient]:
    if not llm_cfg.get("enabled", False):
        return None
    try:
        return SimpleLLMClient(
            model=llm_cfg.get("model", DEFAULT_MODEL),
            timeout=float(llm_cfg.get("timeout_seconds", 15)),
        )
    except Exception as exc:
        print(f"LLM client unavailable, continuing without it: {exc}")
        return None


def emit(payload: Dict[str, Any], ui: BaseUI, as_json: bool) -> None:
    if as_json or not ui.enabled:
        print(json.dumps(payload, ensure_ascii=False, indent=2))
    else:
        ui.response(payload)


def answer(concierge: Concierge, query: str, allow_llm: bool, ui: BaseUI, as_json: bool) -> None:
    ui.reset()
    with ui.live():
        ui.log("User", query)
        response = asyncio.run(concierge.resolve(query, allow_llm=allow_llm))
    emit(response.to_dict(), ui, as_json)


def prompt_loop(concierge: Concierge, allow_llm: bool, ui: BaseUI, as_json: bool) -> None:
    """Main loop to handle user input."""
    while True:
        try:
            query = input("\nCONCIERGE> ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nBye.")
            return

        if query.lower() in ("quit", "q", "exit"):
            print("Bye.")
            return
        if query.lower() in ("help", "h", "?"):
            print("Ask about buildings, routes ('from X to Y'), offices or notices. 'quit' to exit.")
            continue
        if not query:
            continue
        try:
            answer(concierge, query, allow_llm, ui, as_json)
        except Exception as e:
            print(f"Runtime Error: {e}")


def main() -> None:
    args = parse_args()
    load_dotenv()  # OPENAI_API_KEY, OPENAI_BASE_URL, OLLAMA_BASE_URL
    try:
        cfg = load_user_config(args.config)
    except ConfigError as exc:
        raise SystemExit(f"Config error: {exc}")

    ui = get_ui(cfg.get("tui", {"enabled": False}).get("enabled", False) and not args.json)
    tracing_cfg = cfg.get("tracing", {"enabled": False})
    tracer = RunTracer.for_run(tracing_cfg.get("log_dir", "logs")) if tracing_cfg.get("enabled") else None

    llm_client = None if args.no_llm else build_llm_client(cfg.get("llm", {}))
    allow_llm = llm_client is not None
    cfg = {**cfg, "llm": {**cfg.get("llm", {}), "enabled": allow_llm}}
    try:
        concierge = Concierge.from_config(cfg, llm_client=llm_client, tracer=tracer, ui=ui)
    except ConfigError as exc:
        raise SystemExit(f"Config error: {exc}")

    if not ui.enabled and not args.json:
        log_title("CAMPUS CONCIERGE")
        print(f"buildings: {len(concierge.index)} | kb entries: {len(concierge.kb.entries)} | llm: {allow_llm}")

    if args.query:
        answer(concierge, args.query, allow_llm, ui, args.json)
        return

    render_intro(Console(), allow_llm)
    prompt_loop(concierge, allow_llm, ui, args.json)


if __name__ == "__main__":
    main()
