"""SQLite persistence for user accounts and saved analyses."""

import datetime
import json
import logging
import sqlite3

import bcrypt

from .config import DEFAULT_DB_PATH
from .errors import InvalidInputError

logger = logging.getLogger(__name__)


def get_connection(db_path=None):
    """Establishes a connection to the SQLite database."""
    return sqlite3.connect(db_path or DEFAULT_DB_PATH)


def init_db(db_path=None):
    """Initializes the database and creates required tables if they don't exist."""
    conn = get_connection(db_path)
    c = conn.cursor()

    c.execute('''
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            username TEXT NOT NULL UNIQUE,
            password_hash TEXT NOT NULL
        )
    ''')

    c.execute('''
        CREATE TABLE IF NOT EXISTS saved_analyses (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER NOT NULL,
            analysis_name TEXT NOT NULL,
            analysis_type TEXT NOT NULL,
            file_name TEXT,
            selected_variables TEXT NOT NULL,
            results TEXT NOT NULL,
            created_at TEXT NOT NULL,
            FOREIGN KEY (user_id) REFERENCES users(id)
        )
    ''')

    conn.commit()
    conn.close()

# ------------------ USER FUNCTIONS ------------------

def create_user(username, password, db_path=None):
    """Creates a new user with hashed password. Returns False if the name is taken."""
    if not username or not password:
        raise InvalidInputError("Username and password are required.")
    conn = get_connection(db_path)
    c = conn.cursor()
    password_hash = bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')
    try:
        c.execute("INSERT INTO users (username, password_hash) VALUES (?, ?)", (username, password_hash))
        conn.commit()
        logger.info("Registered user %s", username)
        return True
    except sqlite3.IntegrityError:
        return False
    finally:
        conn.close()


def authenticate_user(username, password, db_path=None):
    """Validates user login and returns the user id, or None."""
    conn = get_connection(db_path)
    c = conn.cursor()
    c.execute("SELECT id, password_hash FROM users WHERE username = ?", (username,))
    result = c.fetchone()
    conn.close()
    if result:
        user_id, password_hash = result
        if bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8')):
            return user_id
    logger.info("Failed login for %s", username)
    return None

# ------------------ SAVED ANALYSES ------------------

def _row_to_record(row):
    record_id, user_id, name, analysis_type, file_name, variables, results, created_at = row
    return {
        'id': record_id,
        'user_id': user_id,
        'analysis_name': name,
        'analysis_type': analysis_type,
        'file_name': file_name,
        'selected_variables': json.loads(variables),
        'results': json.loads(results),
        'created_at': created_at,
    }


def save_analysis(user_id, analysis_name, analysis_type, file_name, selected_variables, results, db_path=None):
    """Stores a result payload (a JSON-serializable dict) and returns the new row id."""
    if not analysis_name or not analysis_name.strip():
        raise InvalidInputError("Please give the analysis a name.")
    conn = get_connection(db_path)
    c = conn.cursor()
    created_at = datetime.datetime.now().isoformat()
    c.execute("""
        INSERT INTO saved_analyses
        (user_id, analysis_name, analysis_type, file_name, selected_variables, results, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?)
    """, (user_id, analysis_name.strip(), analysis_type, file_name or 'Unknown',
          json.dumps(list(selected_variables)), json.dumps(results), created_at))
    conn.commit()
    analysis_id = c.lastrowid
    conn.close()
    logger.info("Saved analysis %r for user %s", analysis_name, user_id)
    return analysis_id


def list_saved_analyses(user_id, db_path=None):
    conn = get_connection(db_path)
    c = conn.cursor()
    c.execute("""
        SELECT id, user_id, analysis_name, analysis_type, file_name, selected_variables, results, created_at
        FROM saved_analyses WHERE user_id = ? ORDER BY created_at DESC, id DESC
    """, (user_id,))
    rows = c.fetchall()
    conn.close()
    return [_row_to_record(row) for row in rows]


def get_saved_analysis(user_id, analysis_id, db_path=None):
    conn = get_connection(db_path)
    c = conn.cursor()
    c.execute("""
        SELECT id, user_id, analysis_name, analysis_type, file_name, selected_variables, results, created_at
        FROM saved_analyses WHERE user_id = ? AND id = ?
    """, (user_id, analysis_id))
    row = c.fetchone()
    conn.close()
    return _row_to_record(row) if row else None


def delete_saved_analysis(user_id, analysis_id, db_path=None):
    conn = get_connection(db_path)
    c = conn.cursor()
    c.execute("DELETE FROM saved_analyses WHERE user_id = ? AND id = ?", (user_id, analysis_id))
    conn.commit()
    deleted = c.rowcount > 0
    conn.close()
    return deleted
