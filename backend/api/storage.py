"""
File-backed storage: one JSON file per row under <data_dir>/<table>/<id>.json.

Tables mirror the relational schema the frontend expects:
projects, transcripts, analysis_results, chat_conversations.
"""
import glob
import json
import logging
import os
import re
import tempfile
from datetime import datetime, timezone
from typing import Dict, List, Any, Optional
import uuid

from core.errors import PersistenceError

logger = logging.getLogger("storage")

PROJECTS = "projects"
TRANSCRIPTS = "transcripts"
ANALYSIS_RESULTS = "analysis_results"
CHAT_CONVERSATIONS = "chat_conversations"

CONTEXT_SEPARATOR = "\n\n---\n\n"

# Row ids are uuids; anything with path separators or dots is rejected
ROW_ID_PATTERN = re.compile(r"[A-Za-z0-9_-]+")


def ensure_dir(directory: str):
    """Ensure directory exists"""
    os.makedirs(directory, exist_ok=True)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _row_path(table: str, row_id: str, data_dir: str) -> str:
    """Path of one row. Ids that are not plain tokens never resolve to a file."""
    if not isinstance(row_id, str) or not ROW_ID_PATTERN.fullmatch(row_id):
        raise FileNotFoundError(f"No {table} row with id {row_id!r}")
    return os.path.join(data_dir, table, f"{row_id}.json")


def _write_row(table: str, row: Dict[str, Any], data_dir: str) -> Dict[str, Any]:
    """Write a row via a temp file so readers never see a partial file."""
    tmp_path = None
    try:
        path = _row_path(table, row["id"], data_dir)
        ensure_dir(os.path.dirname(path))
        fd, tmp_path = tempfile.mkstemp(dir=os.path.dirname(path), suffix=".tmp")
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            json.dump(row, f, indent=2, ensure_ascii=False)
        os.replace(tmp_path, path)
        tmp_path = None
    except (OSError, TypeError, ValueError) as e:
        logger.error(f"❌ Failed to write {table}/{row.get('id')}: {e}")
        raise PersistenceError(f"Failed to save {table} row: {e}") from e
    finally:
        if tmp_path and os.path.exists(tmp_path):
            os.remove(tmp_path)
    return row


def _read_row(table: str, row_id: str, data_dir: str) -> Dict[str, Any]:
    """Load one row. Raises FileNotFoundError when it does not exist."""
    path = _row_path(table, row_id, data_dir)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except FileNotFoundError:
        raise
    except (OSError, ValueError) as e:
        logger.error(f"❌ Failed to read {table}/{row_id}: {e}")
        raise PersistenceError(f"Failed to load {table} row: {e}") from e


def _delete_row(table: str, row_id: str, data_dir: str):
    try:
        os.remove(_row_path(table, row_id, data_dir))
    except FileNotFoundError:
        raise
    except OSError as e:
        raise PersistenceError(f"Failed to delete {table} row: {e}") from e


def _select(table: str, data_dir: str, project_id: Optional[str] = None, newest_first: bool = False) -> List[Dict[str, Any]]:
    rows = []
    for file_path in glob.glob(os.path.join(data_dir, table, "*.json")):
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                row = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"❌ Failed to read {file_path}: {e}")
            raise PersistenceError(f"Failed to load {table}: {e}") from e
        if project_id is None or row.get("project_id") == project_id:
            rows.append(row)
    rows.sort(key=lambda r: r.get("created_at", ""), reverse=newest_first)
    return rows


# --- Projects ---

def create_project(name: str, description: str, data_dir: str) -> Dict[str, Any]:
    """Create a new project"""
    now = _now()
    project = {
        "id": str(uuid.uuid4()),
        "name": name,
        "description": description or "",
        "context": "",
        "created_at": now,
        "updated_at": now,
        "last_analyzed": None
    }
    return _write_row(PROJECTS, project, data_dir)


def load_project(project_id: str, data_dir: str) -> Dict[str, Any]:
    """Load a project. Raises FileNotFoundError if it does not exist."""
    return _read_row(PROJECTS, project_id, data_dir)


def list_projects(data_dir: str) -> List[Dict[str, Any]]:
    """All projects, newest first"""
    return _select(PROJECTS, data_dir, newest_first=True)


def update_project(project_id: str, data_dir: str, **fields) -> Dict[str, Any]:
    """Update project fields (name, description, context, last_analyzed)"""
    project = load_project(project_id, data_dir)
    project.update(fields)
    project["updated_at"] = _now()
    return _write_row(PROJECTS, project, data_dir)


def delete_project(project_id: str, data_dir: str):
    """Delete a project together with its transcripts, analyses and chat history"""
    load_project(project_id, data_dir)
    for table in (TRANSCRIPTS, ANALYSIS_RESULTS, CHAT_CONVERSATIONS):
        for row in _select(table, data_dir, project_id=project_id):
            _delete_row(table, row["id"], data_dir)
    _delete_row(PROJECTS, project_id, data_dir)
    logger.info(f"🗑️  Deleted project {project_id}")


# --- Project context ---

def get_project_context(project_id: str, data_dir: str) -> str:
    return load_project(project_id, data_dir).get("context") or ""


def save_project_context(project_id: str, context: str, data_dir: str, mode: str = "append") -> str:
    """
    Store project context.

    mode="append" adds the new text after the existing context with a separator,
    mode="replace" overwrites it.
    """
    if mode not in ("append", "replace"):
        raise ValueError(f"Invalid context mode: {mode}")

    existing = get_project_context(project_id, data_dir)
    if mode == "append" and existing:
        context = f"{existing}{CONTEXT_SEPARATOR}{context}"

    update_project(project_id, data_dir, context=context)
    return context


def clear_project_context(project_id: str, data_dir: str):
    update_project(project_id, data_dir, context="")


# --- Transcripts ---

def add_transcript(project_id: str, filename: str, content: str, data_dir: str) -> Dict[str, Any]:
    """Add transcript to a project"""
    transcript = {
        "id": str(uuid.uuid4()),
        "project_id": project_id,
        "filename": filename,
        "content": content,
        "size_kb": round(len(content) / 1024, 1),
        "created_at": _now()
    }
    return _write_row(TRANSCRIPTS, transcript, data_dir)


def list_transcripts(project_id: str, data_dir: str) -> List[Dict[str, Any]]:
    """Transcripts for a project, newest first"""
    return _select(TRANSCRIPTS, data_dir, project_id=project_id, newest_first=True)


def delete_transcript(transcript_id: str, data_dir: str):
    _delete_row(TRANSCRIPTS, transcript_id, data_dir)


# --- Analysis results ---

def save_analysis_result(project_id: str, analysis: Dict[str, Any], transcript_count: int, data_dir: str) -> Dict[str, Any]:
    """Persist a new analysis run. Earlier runs are kept but superseded."""
    row = {
        "id": str(uuid.uuid4()),
        "project_id": project_id,
        "key_themes": analysis.get("keyThemes", []),
        "disagreements": analysis.get("disagreements", []),
        "transcript_count": transcript_count,
        "created_at": _now()
    }
    return _write_row(ANALYSIS_RESULTS, row, data_dir)


def get_latest_analysis_result(project_id: str, data_dir: str) -> Optional[Dict[str, Any]]:
    """Most recently created analysis for a project, or None"""
    rows = _select(ANALYSIS_RESULTS, data_dir, project_id=project_id, newest_first=True)
    return rows[0] if rows else None


# --- Chat conversations ---

def save_chat_exchange(
    project_id: str,
    user_message: str,
    ai_response: str,
    response_quotes: List[Dict[str, Any]],
    data_dir: str,
    session_id: Optional[str] = None
) -> Dict[str, Any]:
    """Append one question/answer exchange"""
    exchange = {
        "id": str(uuid.uuid4()),
        "project_id": project_id,
        "user_message": user_message,
        "ai_response": ai_response,
        "response_quotes": response_quotes,
        "created_at": _now(),
        "session_id": session_id
    }
    return _write_row(CHAT_CONVERSATIONS, exchange, data_dir)


def list_chat_exchanges(project_id: str, data_dir: str, session_id: Optional[str] = None) -> List[Dict[str, Any]]:
    """Chat history for a project, oldest first, optionally limited to one session"""
    rows = _select(CHAT_CONVERSATIONS, data_dir, project_id=project_id)
    if session_id is not None:
        rows = [r for r in rows if r.get("session_id") == session_id]
    return rows


def delete_chat_exchanges(project_id: str, data_dir: str) -> int:
    """Delete all chat history for a project. Returns number of rows removed."""
    rows = _select(CHAT_CONVERSATIONS, data_dir, project_id=project_id)
    for row in rows:
        _delete_row(CHAT_CONVERSATIONS, row["id"], data_dir)
    return len(rows)
