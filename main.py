# main.py
from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Dict, List, Optional, Set

import config
from backend.client import BackendServer
from backend.provider import DashboardBackend
from io_utils import get_user_input, load_prd_file, print_dashboard
from poller import SubagentPoller
from story_graph.models import WorkItem
from story_graph.resolver import ResolverPolicy, StoryDependencyResolver, describe_resolution
from subagents.aggregator import AggregatorPolicy, ExecutionEventAggregator, describe_snapshot
from subagents.trace_parser import StreamingParser, TraceLog

HELP = """Commands:
  :help                          Show this help

  Stories
  :load <prd.json>               Load stories from a local prd.json
  :prd <projectPath>             Load stories from the backend (get_ralph_prd)
  :running <id,id,...>|none      Set the ids of stories currently executing
  :graph                         Layers, statuses and cycle warning
  :ready                         Ready stories, most urgent first

  Subagents
  :agent <agentId>               Select the agent to monitor
  :poll                          Poll the backend once and show the tree
  :watch                         Poll every POLL_INTERVAL_S until Ctrl+C
  :log <file>                    Parse a local console log for the selected agent
  :tree                          Show the current subagent tree
  :clear                         Clear subagent history for the selected agent

  :server <url>                  Backend base URL (default from config)
  :trace on|off                  Print [GRAPH]/[AGG]/[POLL] trace lines

  exit | quit                    Exit
"""


def main() -> None:
    trace = bool(getattr(config, "RESOLVER_TRACE", False))
    resolver = StoryDependencyResolver(ResolverPolicy(trace=trace))
    backend = DashboardBackend()

    stories: List[WorkItem] = []
    running: Set[str] = set()

    aggregators: Dict[str, ExecutionEventAggregator] = {}
    parsers: Dict[str, StreamingParser] = {}
    agent_id: Optional[str] = None

    def _aggregator() -> ExecutionEventAggregator:
        if agent_id is None:
            raise RuntimeError("No agent selected. Use ':agent <agentId>' first.")
        if agent_id not in aggregators:
            aggregators[agent_id] = ExecutionEventAggregator(agent_id, AggregatorPolicy(trace=trace))
        return aggregators[agent_id]

    def _show_graph() -> None:
        if not stories:
            print("(no stories loaded)\n")
            return
        print_dashboard(describe_resolution(resolver.resolve(stories, running)))

    def _show_tree() -> None:
        print_dashboard(describe_snapshot(_aggregator().snapshot()))

    print("Story monitor")
    print(f"Backend: {backend.server.base_url}")
    print("Type ':help' for commands.\n")

    while True:
        try:
            line = get_user_input()
        except (EOFError, KeyboardInterrupt):
            print("\nExiting.")
            break

        stripped = line.strip()
        if not stripped:
            continue

        if stripped.lower() in {"exit", "quit", ":exit", ":quit"}:
            print("Exiting.")
            break

        parts = stripped.split(maxsplit=1)
        cmd = parts[0]
        arg = parts[1].strip() if len(parts) == 2 else ""

        try:
            if cmd in {":help", "help"}:
                print(HELP)

            elif cmd == ":load":
                if not arg:
                    print("Usage: :load <prd.json>\n")
                    continue
                stories = load_prd_file(Path(arg).expanduser())
                print(f"(loaded {len(stories)} stories)\n")
                _show_graph()

            elif cmd == ":prd":
                if not arg:
                    print("Usage: :prd <projectPath>\n")
                    continue
                stories = backend.list_work_items(arg)
                print(f"(loaded {len(stories)} stories from backend)\n")
                _show_graph()

            elif cmd == ":running":
                if arg.lower() in {"", "none"}:
                    running = set()
                else:
                    running = {s.strip() for s in arg.split(",") if s.strip()}
                print(f"(running: {sorted(running) or 'none'})\n")
                _show_graph()

            elif cmd == ":graph":
                _show_graph()

            elif cmd == ":ready":
                queue = resolver.resolve(stories, running).ready_queue()
                if not queue:
                    print("(nothing ready)\n")
                for wi in queue:
                    print(f"  P{wi.priority} {wi.id} {wi.title}".rstrip())
                print()

            elif cmd == ":agent":
                if not arg:
                    print("Usage: :agent <agentId>\n")
                    continue
                agent_id = arg
                _aggregator()
                print(f"(monitoring agent '{agent_id}')\n")

            elif cmd == ":poll":
                poller = SubagentPoller(backend, _aggregator(), agent_id or "", trace=trace)
                if not poller.poll_once():
                    print(f"[ERROR] poll failed, showing last snapshot: {poller.last_error}\n")
                _show_tree()

            elif cmd == ":watch":
                poller = SubagentPoller(
                    backend,
                    _aggregator(),
                    agent_id or "",
                    on_snapshot=lambda snap: print_dashboard(describe_snapshot(snap)),
                    trace=trace,
                )
                try:
                    asyncio.run(poller.run())
                except KeyboardInterrupt:
                    poller.cancel()
                    print("\n(watch stopped)\n")

            elif cmd == ":log":
                if not arg:
                    print("Usage: :log <file>\n")
                    continue
                agg = _aggregator()
                parser = parsers.setdefault(agg.agent_id, StreamingParser(agg.agent_id))
                log = TraceLog()
                log.extend(parser.parse_output(Path(arg).expanduser().read_text(encoding="utf-8")))
                agg.ingest_batch(log.to_batch())
                print(f"(parsed {len(log.events)} events, max depth {log.max_depth()})\n")
                _show_tree()

            elif cmd == ":tree":
                _show_tree()

            elif cmd == ":clear":
                _aggregator().clear()
                parsers.pop(agent_id or "", None)
                print("(subagent history cleared)\n")

            elif cmd == ":server":
                if not arg:
                    print("Usage: :server <url>\n")
                    continue
                backend = DashboardBackend(server=BackendServer(base_url=arg))
                print(f"(backend set to '{arg}')\n")

            elif cmd == ":trace":
                if arg.lower() not in {"on", "off"}:
                    print("Usage: :trace on|off\n")
                    continue
                trace = arg.lower() == "on"
                resolver.policy.trace = trace
                for agg in aggregators.values():
                    agg.policy.trace = trace
                print(f"(trace set to '{arg.lower()}')\n")

            else:
                print("(unknown command, try ':help')\n")

        except Exception as e:
            print(f"\n[ERROR] {e}\n")


if __name__ == "__main__":
    main()
