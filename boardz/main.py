# boardz/main.py  (Rev 0.1.0)
"""Headless smoke check: wire the engine, sign in, print the board."""
import argparse
import sys

from PySide6.QtCore import QCoreApplication

from .app_context import AppContext
from .utils.config import load_settings
from .utils.logging_setup import setup_logging
from .utils.paths import ensure_dirs
from .models.types import TaskStatus
from .viewmodels.board_viewmodel import BoardViewModel
from .viewmodels.summary_viewmodel import SummaryViewModel


def _parse_args(argv):
    p = argparse.ArgumentParser(prog="boardz", description="Print the current board.")
    p.add_argument("--user", required=True, help="identity to sign in as")
    p.add_argument("--db", help="path to the SQLite document database")
    return p.parse_args(argv)


def main(argv=None) -> int:
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    app = QCoreApplication.instance() or QCoreApplication([])
    QCoreApplication.setOrganizationName("boardz")
    QCoreApplication.setApplicationName("boardZ")

    ensure_dirs()
    logfile = setup_logging("boardZ")
    print(f"[logging] Writing to: {logfile}")

    settings = load_settings()
    if args.db:
        settings["store"]["backend"] = "sqlite"
        settings["store"]["path"] = args.db

    # --- DI wiring ---
    ctx = AppContext.create(settings)
    try:
        board_vm = BoardViewModel(ctx.board, ctx.cascade)
        summary_vm = SummaryViewModel(ctx.board)
        ctx.session.sign_in(args.user)

        for status in TaskStatus:
            tasks = board_vm.column(status)
            print(f"== {status.value} ({len(tasks)})")
            for t in tasks:
                names = ", ".join(a.initials for a in t.assigns) or "-"
                print(f"  {t.title}  [{t.subtasks_done}/{t.subtasks_total} {t.progress}%]  {names}")
        s = summary_vm.summary()
        print(f"total={s.total} urgent={s.urgent} next_due={s.next_due or '-'}")
        board_vm.close()
    finally:
        ctx.close()
    app.quit()
    return 0


if __name__ == "__main__":
    sys.exit(main())
