from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable

import mysql.connector
from werkzeug.security import generate_password_hash

from .connection import DBConfig

logger = logging.getLogger(__name__)


def _connect(target: DBConfig, *, with_database: bool = True):
    kwargs = dict(
        host=target.host,
        port=target.port,
        user=target.user,
        password=target.password,
        use_pure=True,
    )
    if with_database:
        kwargs["database"] = target.database
    return mysql.connector.connect(**kwargs)


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql independent of the configured database name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def iter_sql_statements(sql: str) -> Iterable[str]:
    """Split a SQL script on ';' outside of quotes and '--' comments."""

    buf: list[str] = []
    in_single = False
    in_double = False
    in_comment = False
    escape = False
    prev = ""

    for ch in sql:
        if in_comment:
            if ch == "\n":
                in_comment = False
                buf.append(ch)
            prev = ch
            continue

        if escape:
            buf.append(ch)
            escape = False
        elif ch == "\\" and (in_single or in_double):
            buf.append(ch)
            escape = True
        elif ch == "-" and prev == "-" and not in_single and not in_double:
            buf.pop()
            in_comment = True
        elif ch == "'" and not in_double:
            in_single = not in_single
            buf.append(ch)
        elif ch == '"' and not in_single:
            in_double = not in_double
            buf.append(ch)
        elif ch == ";" and not in_single and not in_double:
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
        else:
            buf.append(ch)
        prev = ch

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _run_script(db_config: dict, path: str | Path) -> None:
    target = DBConfig.from_dict(db_config)
    sql = _strip_create_db_and_use(Path(path).read_text(encoding="utf-8"))

    conn = _connect(target)
    try:
        cur = conn.cursor()
        for stmt in iter_sql_statements(sql):
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()


def ensure_database_exists(db_config: dict) -> None:
    target = DBConfig.from_dict(db_config)
    conn = _connect(target, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    _run_script(db_config, schema_path)


def apply_seed_sql(db_config: dict, *, seed_path: str | Path) -> None:
    _run_script(db_config, seed_path)


def ensure_demo_users(db_config: dict) -> None:
    """Upsert an admin and an employee account, each linked to a team member."""

    conn = _connect(DBConfig.from_dict(db_config))
    try:
        cur = conn.cursor(dictionary=True)

        def upsert_user(full_name: str, email: str, password: str, role: str) -> int:
            password_hash = generate_password_hash(password)
            cur.execute("SELECT user_id FROM users WHERE email=%s", (email,))
            existing = cur.fetchone()
            if existing:
                cur.execute(
                    "UPDATE users SET full_name=%s, password_hash=%s, role=%s, is_active=1 WHERE email=%s",
                    (full_name, password_hash, role, email),
                )
                return int(existing["user_id"])
            cur.execute(
                "INSERT INTO users (email, full_name, password_hash, role) VALUES (%s, %s, %s, %s)",
                (email, full_name, password_hash, role),
            )
            return int(cur.lastrowid)

        def link_member(user_id: int, full_name: str, email: str, role_title: str) -> None:
            cur.execute("SELECT member_id FROM team_members WHERE email=%s", (email,))
            if cur.fetchone():
                cur.execute(
                    "UPDATE team_members SET auth_user_id=%s, is_approved=1 WHERE email=%s",
                    (user_id, email),
                )
                return
            cur.execute(
                """
                INSERT INTO team_members (full_name, email, role_title, auth_user_id, is_approved)
                VALUES (%s, %s, %s, %s, 1)
                """,
                (full_name, email, role_title, user_id),
            )

        admin_id = upsert_user("Admin Demo", "admin@example.com", "admin123", "admin")
        link_member(admin_id, "Admin Demo", "admin@example.com", "Manager")
        employee_id = upsert_user("Recruiter Demo", "recruiter@example.com", "staff123", "employee")
        link_member(employee_id, "Recruiter Demo", "recruiter@example.com", "Recruiter")

        conn.commit()
        logger.info("demo users ready")
    finally:
        conn.close()


def list_tables(db_config: dict) -> list[str]:
    conn = _connect(DBConfig.from_dict(db_config))
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
