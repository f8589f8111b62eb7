from __future__ import annotations

from sqlite3 import Connection, Row

TITLE_MAX = 200
DESCRIPTION_MAX = 1024


def ensure_schema(conn: Connection):
    # AUTOINCREMENT keeps sqlite from handing out the id of a deleted row again
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS todo (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            title VARCHAR(200) DEFAULT NULL,
            description VARCHAR(1024) DEFAULT NULL,
            reminder TIMESTAMP NULL DEFAULT NULL
        )
        """
    )


def insert(conn: Connection, title: str, description: str, reminder: str | None) -> int:
    cur = conn.execute(
        "INSERT INTO todo(title, description, reminder) VALUES (?, ?, ?)",
        (title, description, reminder),
    )
    return int(cur.lastrowid)


def select_by_id(conn: Connection, todo_id: int) -> list[Row]:
    return conn.execute(
        "SELECT id, title, description, reminder FROM todo WHERE id = ?",
        (todo_id,),
    ).fetchall()


def update(conn: Connection, todo_id: int, title: str, description: str, reminder: str | None) -> int:
    cur = conn.execute(
        "UPDATE todo SET title = ?, description = ?, reminder = ? WHERE id = ?",
        (title, description, reminder, todo_id),
    )
    return cur.rowcount


def delete(conn: Connection, todo_id: int) -> int:
    cur = conn.execute("DELETE FROM todo WHERE id = ?", (todo_id,))
    return cur.rowcount


def select_all(conn: Connection) -> list[Row]:
    return conn.execute("SELECT id, title, description, reminder FROM todo").fetchall()
