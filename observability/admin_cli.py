"""Lightweight CLI helpers for inspecting interview sessions and the model server."""
from __future__ import annotations

import argparse
import json
from typing import List, Optional

from config import gateway_config_from_settings
from config.settings import settings
from llm_gateway import ModelServerProvider
from storage.sqlite import get_conn


def tail_sessions(limit: int = 20, db_path: Optional[str] = None) -> List[str]:
    lines: List[str] = []
    with get_conn(db_path) as conn:
        rows = conn.execute(
            """
            SELECT session_id, subject_id, domain, status, version, started_at, updated_at
            FROM interview_sessions
            ORDER BY updated_at DESC
            LIMIT ?
            """,
            (limit,),
        ).fetchall()
    for row in rows:
        lines.append(
            f"[{row['updated_at']}] {row['session_id']} subject={row['subject_id']} "
            f"domain={row['domain']} status={row['status']} v{row['version']}"
        )
    return lines


def show_session(session_id: str, db_path: Optional[str] = None) -> List[str]:
    with get_conn(db_path) as conn:
        row = conn.execute(
            "SELECT document FROM interview_sessions WHERE session_id = ?",
            (session_id,),
        ).fetchone()
    if row is None:
        return [f"session {session_id} not found"]
    doc = json.loads(row["document"])
    lines = [
        f"session={doc['session_id']} subject={doc['subject_id']} status={doc['status']}",
        f"domain={doc['domain']} difficulty={doc['initial_difficulty']}->{doc['current_difficulty']}",
        f"topics={','.join(doc.get('topics_covered', []))}",
    ]
    for index, record in enumerate(doc.get("history", []), start=1):
        lines.append(
            f"  {index}. [{record['difficulty']}/{record['topic']}] score={record['score']} "
            f"q={record['question'][:80]}"
        )
    report = doc.get("final_report")
    if report:
        lines.append(f"overall={report['scores']['overall']} ai_analyzed={report['ai_analyzed']}")
    return lines


def list_models() -> List[str]:
    provider = ModelServerProvider(gateway_config_from_settings(settings).secondary)
    available, error = provider.probe()
    if not available:
        return [f"model server unavailable: {error}"]
    return provider.installed_models()


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--tail-sessions", type=int, help="Show the most recently updated sessions")
    parser.add_argument("--show", metavar="SESSION_ID", help="Print one session with its answer history")
    parser.add_argument("--models", action="store_true", help="List models installed on the model server")
    args = parser.parse_args(argv)

    if args.tail_sessions:
        for line in tail_sessions(args.tail_sessions):
            print(line)
    if args.show:
        for line in show_session(args.show):
            print(line)
    if args.models:
        for line in list_models():
            print(line)


if __name__ == "__main__":
    main()
