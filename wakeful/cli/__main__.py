"""
Wakeful CLI - command-line access to observation memory.

Usage:
    wakeful wake AGENT [--limit N] [--no-hot] [--explain] [--lens EXPR] [--format F]
    wakeful observe AGENT KIND CONTENT [--author A] [--perspective P] [--salience N] ...
    wakeful edit ID [--content C] [--salience N] [--intimacy N] ...
    wakeful pin ID | unpin ID
    wakeful forget ID [--hard]
    wakeful supersede TARGET_ID SUPERSEDING_ID
    wakeful superseded AGENT [--limit N]
    wakeful search AGENT [QUERY] [--kind K] [--min-salience N] [--max-salience N]
    wakeful soulfile AGENT [--set FILE]
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from wakeful import Wakeful
from wakeful.logging_config import setup_logging
from wakeful.supersession import SupersessionError
from wakeful.types import ObservationNotFoundError

logger = logging.getLogger(__name__)


def _print_json(data) -> None:
    print(json.dumps(data, indent=2, default=str))


def cmd_wake(args, w: Wakeful):
    """Build and print a wake."""
    result = w.wake(
        args.agent,
        limit=args.limit,
        hot=not args.no_hot,
        explain=args.explain,
        lens=args.lens,
        fmt=args.format,
    )
    _print_json(result)


def cmd_observe(args, w: Wakeful):
    """Record a new observation."""
    result = w.observe(
        agent_id=args.agent,
        author=args.author or args.agent,
        perspective=args.perspective,
        kind=args.kind,
        content=args.content,
        salience=args.salience,
        emotion_intimacy=args.intimacy,
        emotion_conflict=args.conflict,
        emotion_joy=args.joy,
        emotion_fear=args.fear,
        source_platform=args.platform,
        source_ref=args.ref,
        supersedes=args.supersedes,
    )
    if args.json:
        _print_json(result)
        return
    print(f"✓ Observation saved: {result['id']}")
    if result.get("superseded"):
        print(f"  Superseded: {result['superseded']}")
    if result.get("supersession_error"):
        print(f"  ⚠ Supersession failed: {result['supersession_error']}")


def cmd_edit(args, w: Wakeful):
    result = w.edit(
        args.id,
        content=args.content,
        salience=args.salience,
        emotion_intimacy=args.intimacy,
        emotion_conflict=args.conflict,
        emotion_joy=args.joy,
        emotion_fear=args.fear,
    )
    print(f"✓ Updated {result['id']}")


def cmd_pin(args, w: Wakeful):
    if args.command == "pin":
        w.pin(args.id)
        print(f"✓ Pinned {args.id}")
    else:
        w.unpin(args.id)
        print(f"✓ Unpinned {args.id}")


def cmd_forget(args, w: Wakeful):
    if args.hard:
        w.purge(args.id)
        print(f"✓ Permanently deleted {args.id}")
    else:
        w.delete(args.id)
        print(f"✓ Deleted {args.id}")


def cmd_supersede(args, w: Wakeful):
    result = w.supersede(args.target, args.superseding)
    print(f"✓ {result['id']} superseded by {result['superseded_by']}")


def cmd_superseded(args, w: Wakeful):
    result = w.superseded(args.agent, limit=args.limit)
    if args.json:
        _print_json(result)
        return
    records = result["superseded"]
    if not records:
        print("No superseded observations.")
        return
    for obs in records:
        print(f"- {obs['id']} → {obs['superseded_by']}: {obs['content'][:80]}")


def cmd_search(args, w: Wakeful):
    result = w.search(
        args.agent,
        args.query or "",
        kind=args.kind,
        min_salience=args.min_salience,
        max_salience=args.max_salience,
        include_superseded=args.include_superseded,
        limit=args.limit,
    )
    if args.json:
        _print_json(result)
        return
    print(f"Found {result['count']} observation(s)")
    for obs in result["observations"]:
        print(f"[{obs['decayed_salience']:>3}] {obs['kind']:<12} {obs['id']}  {obs['content'][:80]}")


def cmd_soulfile(args, w: Wakeful):
    if args.set:
        text = Path(args.set).read_text(encoding="utf-8")
        w.set_soulfile(args.agent, text)
        print(f"✓ Soulfile stored for {args.agent} ({len(text)} chars)")
        return
    text = w.get_soulfile(args.agent)
    if text is None:
        print(f"No soulfile for {args.agent}")
    else:
        print(text)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wakeful",
        description="Observation memory and deterministic wake retrieval",
    )
    parser.add_argument("--db", help="SQLite database path (default: $WAKEFUL_DB_PATH or ~/.wakeful)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    # wake
    p_wake = subparsers.add_parser("wake", help="Build the wake context for an agent")
    p_wake.add_argument("agent", help="Agent ID")
    p_wake.add_argument("--limit", "-l", type=int, default=None, help="Tier size (max 10)")
    p_wake.add_argument("--no-hot", action="store_true", help="Skip the hot tier")
    p_wake.add_argument("--explain", "-e", action="store_true", help="Tag why each record loaded")
    p_wake.add_argument("--lens", help="Lens expression, e.g. 'project:atlas+-operational'")
    p_wake.add_argument("--format", "-f", choices=["full", "compact", "legacy"], default="full")

    # observe
    p_observe = subparsers.add_parser("observe", help="Record an observation")
    p_observe.add_argument("agent", help="Agent ID")
    p_observe.add_argument("kind", help="Kind (project, relational, emotional, identity, correction, ...)")
    p_observe.add_argument("content", help="Observation text")
    p_observe.add_argument("--author", help="Author (default: the agent)")
    p_observe.add_argument("--perspective", default="self")
    p_observe.add_argument("--salience", "-s", type=int, default=0)
    p_observe.add_argument("--intimacy", type=int, default=0)
    p_observe.add_argument("--conflict", type=int, default=0)
    p_observe.add_argument("--joy", type=int, default=0)
    p_observe.add_argument("--fear", type=int, default=0)
    p_observe.add_argument("--platform", help="Source platform")
    p_observe.add_argument("--ref", help="Source reference")
    p_observe.add_argument("--supersedes", help="ID of the observation this one replaces")
    p_observe.add_argument("--json", "-j", action="store_true")

    # edit
    p_edit = subparsers.add_parser("edit", help="Edit an observation")
    p_edit.add_argument("id", help="Observation ID")
    p_edit.add_argument("--content", "-c")
    p_edit.add_argument("--salience", "-s", type=int)
    p_edit.add_argument("--intimacy", type=int)
    p_edit.add_argument("--conflict", type=int)
    p_edit.add_argument("--joy", type=int)
    p_edit.add_argument("--fear", type=int)

    # pin / unpin
    for name, help_text in (("pin", "Exempt from decay"), ("unpin", "Remove decay exemption")):
        p_pin = subparsers.add_parser(name, help=help_text)
        p_pin.add_argument("id", help="Observation ID")

    # forget
    p_forget = subparsers.add_parser("forget", help="Delete an observation")
    p_forget.add_argument("id", help="Observation ID")
    p_forget.add_argument("--hard", action="store_true", help="Remove permanently")

    # supersede
    p_supersede = subparsers.add_parser("supersede", help="Mark an observation as replaced")
    p_supersede.add_argument("target", help="Observation being replaced")
    p_supersede.add_argument("superseding", help="Observation that replaces it")

    # superseded
    p_superseded = subparsers.add_parser("superseded", help="List superseded observations")
    p_superseded.add_argument("agent", help="Agent ID")
    p_superseded.add_argument("--limit", "-l", type=int, default=None)
    p_superseded.add_argument("--json", "-j", action="store_true")

    # search
    p_search = subparsers.add_parser("search", help="Search observations")
    p_search.add_argument("agent", help="Agent ID")
    p_search.add_argument("query", nargs="?", default="")
    p_search.add_argument("--kind", "-k")
    p_search.add_argument("--min-salience", type=int)
    p_search.add_argument("--max-salience", type=int)
    p_search.add_argument("--include-superseded", action="store_true")
    p_search.add_argument("--limit", "-l", type=int, default=None)
    p_search.add_argument("--json", "-j", action="store_true")

    # soulfile
    p_soul = subparsers.add_parser("soulfile", help="Show or set an agent's soulfile")
    p_soul.add_argument("agent", help="Agent ID")
    p_soul.add_argument("--set", metavar="FILE", help="Store FILE as the active soulfile")

    return parser


COMMANDS = {
    "wake": cmd_wake,
    "observe": cmd_observe,
    "edit": cmd_edit,
    "pin": cmd_pin,
    "unpin": cmd_pin,
    "forget": cmd_forget,
    "supersede": cmd_supersede,
    "superseded": cmd_superseded,
    "search": cmd_search,
    "soulfile": cmd_soulfile,
}


def main(argv: Optional[List[str]] = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging("DEBUG" if args.verbose else "WARNING")

    try:
        w = Wakeful(db_path=args.db)
        COMMANDS[args.command](args, w)
    except SupersessionError as e:
        print(f"Error: {e.code.value}", file=sys.stderr)
        sys.exit(1)
    except ObservationNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except (ValueError, TypeError) as e:
        logger.error(f"Input validation error: {e}")
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
