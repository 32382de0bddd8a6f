#!/usr/bin/env python3
"""
TradeLedger management CLI.

Usage:
    python manage.py start             Start the API server in the background
    python manage.py stop              Graceful shutdown
    python manage.py status            Check if server is running
    python manage.py dev               Run the API server with reload
    python manage.py migrate           Apply pending database migrations
    python manage.py migration-status  Show applied and pending migrations
    python manage.py verify-schema     Run database integrity checks
    python manage.py audit-balances    Compare stored customer balances with invoices
"""

import argparse
import asyncio
import os
import signal
import subprocess
import sys
import time
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parent
PID_FILE = ROOT_DIR / ".tradeledger.pid"
APP_PATH = "tradeledger.api.main:app"


def _is_pid_alive(pid: int) -> bool:
    """Check if a process with the given PID is running."""
    try:
        os.kill(pid, 0)
        return True
    except OSError:
        return False


def _read_pid() -> int | None:
    """Read PID from the pid file, return None if missing or stale."""
    if not PID_FILE.exists():
        return None
    try:
        pid = int(PID_FILE.read_text().strip())
    except (ValueError, OSError):
        return None
    if _is_pid_alive(pid):
        return pid
    # Stale PID file
    PID_FILE.unlink(missing_ok=True)
    return None


def _uvicorn_cmd(args: argparse.Namespace, reload: bool = False) -> list[str]:
    cmd = [
        sys.executable, "-m", "uvicorn",
        APP_PATH,
        "--host", args.host,
        "--port", str(args.port),
    ]
    if reload:
        cmd.append("--reload")
    elif getattr(args, "workers", 1) > 1:
        cmd += ["--workers", str(args.workers)]
    return cmd


def cmd_start(args: argparse.Namespace) -> None:
    """Start the server in the background."""
    existing_pid = _read_pid()
    if existing_pid is not None:
        print(f"Server already running (PID {existing_pid}). Use 'stop' first.")
        sys.exit(1)

    print(f"Starting server on {args.host}:{args.port}...")
    proc = subprocess.Popen(_uvicorn_cmd(args), cwd=str(ROOT_DIR))
    PID_FILE.write_text(str(proc.pid))
    print(f"Server started (PID {proc.pid}).")
    print(f"  API:      http://{args.host}:{args.port}/api/health")
    print(f"  PID file: {PID_FILE}")


def cmd_stop(args: argparse.Namespace) -> None:
    """Stop the running server."""
    pid = _read_pid()
    if pid is None:
        print("Server is not running.")
        return

    print(f"Stopping server (PID {pid})...")
    try:
        os.kill(pid, signal.SIGTERM)
    except OSError:
        pass
    for _ in range(30):
        if not _is_pid_alive(pid):
            break
        time.sleep(0.1)
    else:
        print("Warning: Process did not exit within 3 seconds.")

    PID_FILE.unlink(missing_ok=True)
    print("Server stopped." if not _is_pid_alive(pid) else "Warning: Server may still be running.")


def cmd_status(args: argparse.Namespace) -> None:
    """Check if the server is running."""
    pid = _read_pid()
    if pid is not None:
        print(f"Server is running (PID {pid}).")
    else:
        print("Server is not running.")


def cmd_dev(args: argparse.Namespace) -> None:
    """Run the server in the foreground with --reload."""
    print(f"Starting backend on {args.host}:{args.port} (reload mode)...")
    try:
        subprocess.run(_uvicorn_cmd(args, reload=True), cwd=str(ROOT_DIR))
    except KeyboardInterrupt:
        print("\nDev server stopped.")


def cmd_migrate(args: argparse.Namespace) -> None:
    """Apply pending migrations."""
    from tradeledger.infrastructure.storage.sqlite.migrations import run_migrations

    results = asyncio.run(run_migrations(create_backup_before=not args.no_backup))
    if not results:
        print("Database is up to date.")
        return
    for result in results:
        state = "OK" if result.success else f"FAILED: {result.error}"
        print(f"  {result.version}  {state}")
    if not all(result.success for result in results):
        sys.exit(1)


def cmd_migration_status(args: argparse.Namespace) -> None:
    """Print applied and pending migrations."""
    from tradeledger.infrastructure.storage.sqlite.migrations import get_migration_status

    status = asyncio.run(get_migration_status())
    if not status["exists"]:
        print("Database does not exist yet.")
    else:
        print(f"Current version: {status['current_version']}")
        print(f"Applied: {', '.join(status['applied_migrations']) or '-'}")
    print(f"Pending: {', '.join(status['pending_migrations']) or '-'}")


def cmd_verify_schema(args: argparse.Namespace) -> None:
    """Run integrity checks against the database."""
    from tradeledger.infrastructure.storage.sqlite.migrations import verify_schema_integrity

    checks = asyncio.run(verify_schema_integrity())
    for check in checks:
        print(f"  {check['check']:<20} {check['status']}")
    if any(check["status"] != "PASS" for check in checks):
        sys.exit(1)


async def _audit(customer_id: int | None) -> list:
    from tradeledger.application.use_cases import AuditBalancesUseCase
    from tradeledger.infrastructure.storage import close_record_store

    try:
        return await AuditBalancesUseCase().execute(customer_id)
    finally:
        await close_record_store()


def cmd_audit_balances(args: argparse.Namespace) -> None:
    """Report customers whose stored balance drifted from their invoices."""
    audits = asyncio.run(_audit(args.customer_id))
    drifted = [audit for audit in audits if not audit.consistent]
    print(f"Checked {len(audits)} customer(s).")
    for audit in drifted:
        print(
            f"  customer {audit.customer_id}: stored {audit.stored:.2f}, "
            f"expected {audit.expected:.2f}, drift {audit.drift:+.2f}"
        )
    if drifted:
        sys.exit(1)
    print("All balances consistent.")


def main() -> None:
    parser = argparse.ArgumentParser(
        description="TradeLedger management CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # start
    p_start = sub.add_parser("start", help="Start the server")
    p_start.add_argument("--host", default="0.0.0.0", help="Bind host (default: 0.0.0.0)")
    p_start.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
    p_start.add_argument("--workers", type=int, default=1, help="Number of uvicorn workers")
    p_start.set_defaults(func=cmd_start)

    # stop
    p_stop = sub.add_parser("stop", help="Stop the server")
    p_stop.set_defaults(func=cmd_stop)

    # status
    p_status = sub.add_parser("status", help="Check if server is running")
    p_status.set_defaults(func=cmd_status)

    # dev
    p_dev = sub.add_parser("dev", help="Run the server with reload")
    p_dev.add_argument("--host", default="127.0.0.1", help="Bind host (default: 127.0.0.1)")
    p_dev.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
    p_dev.set_defaults(func=cmd_dev)

    # migrate
    p_migrate = sub.add_parser("migrate", help="Apply pending migrations")
    p_migrate.add_argument("--no-backup", action="store_true", help="Skip the pre-migration backup")
    p_migrate.set_defaults(func=cmd_migrate)

    # migration-status
    p_mstatus = sub.add_parser("migration-status", help="Show migration status")
    p_mstatus.set_defaults(func=cmd_migration_status)

    # verify-schema
    p_verify = sub.add_parser("verify-schema", help="Run database integrity checks")
    p_verify.set_defaults(func=cmd_verify_schema)

    # audit-balances
    p_audit = sub.add_parser("audit-balances", help="Audit customer balances")
    p_audit.add_argument("--customer-id", type=int, default=None, help="Audit one customer only")
    p_audit.set_defaults(func=cmd_audit_balances)

    args = parser.parse_args()
    args.func(args)


if __name__ == "__main__":
    main()
