"""Simple SQL migration runner.

Reads .sql files from the migrations/ directory in lexicographic order,
tracks applied migrations in a _migrations table, and skips already-applied ones.
Runs against the configured engine, so SQLite and PostgreSQL share one path.

Usage:
    python migrations/migrate.py                # apply pending migrations
    python migrations/migrate.py --dry-run      # show what would be applied
    python migrations/migrate.py --status       # show migration status
"""

import argparse
from datetime import UTC, datetime
from pathlib import Path

from sqlalchemy import text
from sqlalchemy.engine import Connection, Engine

from db.connection import get_engine

MIGRATIONS_DIR: Path = Path(__file__).resolve().parent


def _statements(sql: str) -> list[str]:
    """Split a migration script on ';'. Scripts must not embed ';' in literals."""
    lines: list[str] = [ln for ln in sql.splitlines() if not ln.strip().startswith("--")]
    return [s.strip() for s in "\n".join(lines).split(";") if s.strip()]


def _ensure_tracking_table(conn: Connection) -> None:
    conn.execute(
        text(
            "CREATE TABLE IF NOT EXISTS _migrations ("
            "  filename TEXT PRIMARY KEY,"
            "  applied_at TEXT NOT NULL"
            ")"
        )
    )


def _get_applied(conn: Connection) -> set[str]:
    return set(conn.execute(text("SELECT filename FROM _migrations")).scalars())


def _get_pending(applied: set[str]) -> list[Path]:
    sql_files: list[Path] = sorted(MIGRATIONS_DIR.glob("*.sql"))
    return [f for f in sql_files if f.name not in applied]


def migrate(dry_run: bool = False, engine: Engine | None = None) -> list[str]:
    """Apply pending migrations, each in its own transaction. Returns applied names."""
    engine = engine or get_engine()
    print(f"Database: {engine.url.render_as_string(hide_password=True)}")

    with engine.begin() as conn:
        _ensure_tracking_table(conn)
        applied: set[str] = _get_applied(conn)
    pending: list[Path] = _get_pending(applied)

    if not pending:
        print("No pending migrations.")
        return []

    done: list[str] = []
    for migration in pending:
        print(f"{'[DRY RUN] ' if dry_run else ''}Applying {migration.name} ...")
        if dry_run:
            continue

        with engine.begin() as conn:
            for statement in _statements(migration.read_text()):
                conn.exec_driver_sql(statement)
            conn.execute(
                text("INSERT INTO _migrations (filename, applied_at) VALUES (:name, :at)"),
                {"name": migration.name, "at": datetime.now(UTC).isoformat()},
            )
        done.append(migration.name)
        print(f"  Applied {migration.name}")

    print("Done.")
    return done


def status(engine: Engine | None = None) -> None:
    engine = engine or get_engine()
    with engine.begin() as conn:
        _ensure_tracking_table(conn)
        applied: set[str] = _get_applied(conn)
    pending: list[Path] = _get_pending(applied)

    print(f"Database: {engine.url.render_as_string(hide_password=True)}")
    print(f"Applied:  {len(applied)}")
    for name in sorted(applied):
        print(f"  [x] {name}")
    print(f"Pending:  {len(pending)}")
    for p in pending:
        print(f"  [ ] {p.name}")


def main() -> None:
    parser: argparse.ArgumentParser = argparse.ArgumentParser(description="SQL migration runner")
    parser.add_argument("--dry-run", action="store_true", help="Show what would be applied")
    parser.add_argument("--status", action="store_true", help="Show migration status")
    args: argparse.Namespace = parser.parse_args()

    if args.status:
        status()
    else:
        migrate(dry_run=args.dry_run)


if __name__ == "__main__":
    main()
