from __future__ import annotations

import argparse
import json
import sys
from datetime import date
from pathlib import Path
from typing import Optional

from .board.grouping import find_overdue, group, status_counts
from .board.model import Lane
from .config import BoardConfig, load_board_config
from .logging_utils import configure_logging
from .server.api import build_coordinator, create_app


def _resolve_project_dir(project_dir: Optional[str]) -> Path:
    return Path(project_dir).expanduser().resolve() if project_dir else Path.cwd().resolve()


def _config(args: argparse.Namespace) -> BoardConfig:
    config, err = load_board_config(_resolve_project_dir(args.project_dir))
    configure_logging(args.log_level or config.log_level)
    if err:
        sys.stderr.write(f'Ignoring board config: {err}\n')
    return config


def _board(args: argparse.Namespace) -> int:
    try:
        coordinator = build_coordinator(_config(args))
    except ValueError as exc:
        sys.stderr.write(str(exc) + '\n')
        return 1
    tasks = coordinator.store.find(search=args.search) if args.search else coordinator.store.get_all()
    lanes = group(tasks)
    if args.lane:
        lanes = {Lane(args.lane): lanes[Lane(args.lane)]}
    payload = {
        'lanes': {lane.value: [t.to_dict() for t in members] for lane, members in lanes.items()},
        'counts': status_counts(tasks),
    }
    sys.stdout.write(json.dumps(payload, indent=2) + '\n')
    return 0


def _overdue(args: argparse.Namespace) -> int:
    try:
        coordinator = build_coordinator(_config(args))
        today = date.fromisoformat(args.today) if args.today else date.today()
    except ValueError as exc:
        sys.stderr.write(str(exc) + '\n')
        return 1
    overdue = find_overdue(coordinator.store.get_all(), today)
    sys.stdout.write(json.dumps({'today': today.isoformat(), 'tasks': [t.to_dict() for t in overdue]}, indent=2) + '\n')
    return 0


def _server(args: argparse.Namespace) -> int:
    try:
        import uvicorn
    except ImportError:
        sys.stderr.write("Install server extras: pip install 'farm-task-board[server]'\n")
        return 1

    config = _config(args)
    try:
        app = create_app(coordinator=build_coordinator(config))
    except ValueError as exc:
        sys.stderr.write(str(exc) + '\n')
        return 1
    uvicorn.run(app, host=args.host, port=args.port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Farm task board CLI')
    parser.add_argument('--project-dir', default=None, help='Directory holding .farm_board/ (default: current working directory)')
    parser.add_argument('--log-level', default=None, help='Override the configured log level')
    subparsers = parser.add_subparsers(dest='command', required=True)

    board = subparsers.add_parser('board', help='Print the board grouped by lane')
    board.add_argument('--lane', default=None, choices=[lane.value for lane in Lane])
    board.add_argument('--search', default=None, help='Match title, farm or crop name')
    board.set_defaults(func=_board)

    overdue = subparsers.add_parser('overdue', help='List open tasks past their due date')
    overdue.add_argument('--today', default=None, help='Reference date (YYYY-MM-DD)')
    overdue.set_defaults(func=_overdue)

    server = subparsers.add_parser('server', help='Start the board web server')
    server.add_argument('--host', default='127.0.0.1')
    server.add_argument('--port', default=8000, type=int)
    server.set_defaults(func=_server)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    handler = getattr(args, 'func', None)
    if handler is None:
        parser.print_help()
        return 1
    return int(handler(args) or 0)


if __name__ == '__main__':
    raise SystemExit(main())
