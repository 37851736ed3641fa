# src/server/db.py

from __future__ import annotations

import json
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from .errors import PersistenceFailure

ISO = "%Y-%m-%dT%H:%M:%S.%f"

ROLES = {"patient", "doctor", "staff"}
REPORT_STATUSES = {"queued", "running", "complete", "failed"}
APPOINTMENT_STATUSES = {"pending", "confirmed", "completed", "cancelled"}


@dataclass(frozen=True)
class DB:
    path: Path


def _now() -> str:
    return datetime.now(timezone.utc).strftime(ISO)


def init_db(db_path: str | Path = "storage/server.db") -> DB:
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path)
    cur = conn.cursor()

    # Portal accounts (profile only; authentication lives elsewhere)
    cur.execute(
        """
    CREATE TABLE IF NOT EXISTS users (
        user_id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        email TEXT NOT NULL UNIQUE,
        role TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
    """
    )

    # Uploaded medical reports + analysis jobs
    cur.execute(
        """
    CREATE TABLE IF NOT EXISTS reports (
        report_id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        file_name TEXT NOT NULL,
        file_url TEXT NOT NULL,
        status TEXT NOT NULL,
        result_path TEXT,
        error TEXT,
        doctor_notes TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """
    )

    cur.execute(
        """
    CREATE TABLE IF NOT EXISTS medications (
        medication_id TEXT PRIMARY KEY,
        patient_id TEXT NOT NULL,
        medicine TEXT NOT NULL,
        dosage TEXT NOT NULL,
        times TEXT NOT NULL,
        status TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
    """
    )

    cur.execute(
        """
    CREATE TABLE IF NOT EXISTS emergencies (
        emergency_id TEXT PRIMARY KEY,
        ward TEXT NOT NULL,
        patient_id TEXT NOT NULL,
        condition TEXT NOT NULL,
        status TEXT NOT NULL,
        acknowledged_by TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """
    )

    cur.execute(
        """
    CREATE TABLE IF NOT EXISTS appointments (
        appointment_id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        doctor_id TEXT NOT NULL,
        department TEXT NOT NULL,
        date TEXT NOT NULL,
        time TEXT NOT NULL,
        status TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
    """
    )

    conn.commit()
    conn.close()
    return DB(path=db_path)


def _connect(db: DB) -> sqlite3.Connection:
    return sqlite3.connect(db.path)


def _write(db: DB, sql: str, params: Iterable[Any]) -> int:
    conn = _connect(db)
    try:
        cur = conn.cursor()
        cur.execute(sql, tuple(params))
        conn.commit()
        return cur.rowcount
    except sqlite3.Error as e:
        raise PersistenceFailure(str(e)) from e
    finally:
        conn.close()


def _fetchone(db: DB, sql: str, params: Iterable[Any]) -> Optional[Dict[str, Any]]:
    conn = _connect(db)
    try:
        conn.row_factory = sqlite3.Row
        cur = conn.cursor()
        cur.execute(sql, tuple(params))
        row = cur.fetchone()
    finally:
        conn.close()
    return dict(row) if row else None


def _fetchall(db: DB, sql: str, params: Iterable[Any]) -> List[Dict[str, Any]]:
    conn = _connect(db)
    try:
        conn.row_factory = sqlite3.Row
        cur = conn.cursor()
        cur.execute(sql, tuple(params))
        rows = cur.fetchall()
    finally:
        conn.close()
    return [dict(r) for r in rows]


# -----------------------
# User helpers
# -----------------------
def create_user(db: DB, user_id: str, name: str, email: str, role: str) -> None:
    if role not in ROLES:
        raise ValueError(f"role must be one of: {sorted(ROLES)}")
    _write(
        db,
        "INSERT INTO users(user_id,name,email,role,created_at) VALUES(?,?,?,?,?)",
        (user_id, name, email.lower(), role, _now()),
    )


def get_user(db: DB, user_id: str) -> Optional[Dict[str, Any]]:
    return _fetchone(db, "SELECT * FROM users WHERE user_id=?", (user_id,))


def get_user_by_email(db: DB, email: str) -> Optional[Dict[str, Any]]:
    return _fetchone(db, "SELECT * FROM users WHERE email=?", (email.lower(),))


# -----------------------
# Report helpers
# -----------------------
def create_report(db: DB, report_id: str, user_id: str, file_name: str, file_url: str) -> None:
    ts = _now()
    _write(
        db,
        "INSERT INTO reports(report_id,user_id,file_name,file_url,status,created_at,updated_at) VALUES(?,?,?,?,?,?,?)",
        (report_id, user_id, file_name, file_url, "queued", ts, ts),
    )


def update_report_status(
    db: DB,
    report_id: str,
    status: str,
    *,
    result_path: str | None = None,
    error: str | None = None,
) -> None:
    if status not in REPORT_STATUSES:
        raise ValueError(f"status must be one of: {sorted(REPORT_STATUSES)}")
    _write(
        db,
        "UPDATE reports SET status=?, updated_at=?, result_path=COALESCE(?, result_path), error=? WHERE report_id=?",
        (status, _now(), result_path, error, report_id),
    )


def save_report(
    db: DB,
    report_id: str,
    user_id: str,
    file_name: str,
    file_url: str,
    result_path: str,
) -> None:
    """Record an already-analysed report in one step (status complete)."""
    ts = _now()
    _write(
        db,
        "INSERT INTO reports(report_id,user_id,file_name,file_url,status,result_path,created_at,updated_at) "
        "VALUES(?,?,?,?,?,?,?,?)",
        (report_id, user_id, file_name, file_url, "complete", result_path, ts, ts),
    )


def get_report(db: DB, report_id: str) -> Optional[Dict[str, Any]]:
    return _fetchone(db, "SELECT * FROM reports WHERE report_id=?", (report_id,))


def list_user_reports(db: DB, user_id: str) -> List[Dict[str, Any]]:
    return _fetchall(
        db,
        "SELECT * FROM reports WHERE user_id=? ORDER BY created_at DESC, rowid DESC",
        (user_id,),
    )


def set_doctor_notes(db: DB, report_id: str, notes: str) -> bool:
    n = _write(
        db,
        "UPDATE reports SET doctor_notes=?, updated_at=? WHERE report_id=?",
        (notes, _now(), report_id),
    )
    return n > 0


# -----------------------
# Medication helpers
# -----------------------
def _medication_row(row: Dict[str, Any]) -> Dict[str, Any]:
    row["times"] = json.loads(row["times"])
    return row


def create_medication(db: DB, medication_id: str, patient_id: str, medicine: str, dosage: str, times: List[str]) -> None:
    _write(
        db,
        "INSERT INTO medications(medication_id,patient_id,medicine,dosage,times,status,created_at) VALUES(?,?,?,?,?,?,?)",
        (medication_id, patient_id, medicine, dosage, json.dumps(times), "active", _now()),
    )


def get_medication(db: DB, medication_id: str) -> Optional[Dict[str, Any]]:
    row = _fetchone(db, "SELECT * FROM medications WHERE medication_id=?", (medication_id,))
    return _medication_row(row) if row else None


def list_medications(db: DB, patient_id: str, *, active_only: bool = True) -> List[Dict[str, Any]]:
    sql = "SELECT * FROM medications WHERE patient_id=?"
    if active_only:
        sql += " AND status='active'"
    sql += " ORDER BY created_at DESC, rowid DESC"
    return [_medication_row(r) for r in _fetchall(db, sql, (patient_id,))]


def set_medication_status(db: DB, medication_id: str, status: str) -> bool:
    if status not in {"active", "stopped"}:
        raise ValueError("status must be one of: active, stopped")
    n = _write(db, "UPDATE medications SET status=? WHERE medication_id=?", (status, medication_id))
    return n > 0


# -----------------------
# Emergency helpers
# -----------------------
def create_emergency(db: DB, emergency_id: str, ward: str, patient_id: str, condition: str) -> None:
    ts = _now()
    _write(
        db,
        "INSERT INTO emergencies(emergency_id,ward,patient_id,condition,status,created_at,updated_at) VALUES(?,?,?,?,?,?,?)",
        (emergency_id, ward, patient_id, condition, "pending", ts, ts),
    )


def get_emergency(db: DB, emergency_id: str) -> Optional[Dict[str, Any]]:
    return _fetchone(db, "SELECT * FROM emergencies WHERE emergency_id=?", (emergency_id,))


def list_pending_emergencies(db: DB) -> List[Dict[str, Any]]:
    return _fetchall(
        db,
        "SELECT * FROM emergencies WHERE status='pending' ORDER BY created_at DESC, rowid DESC",
        (),
    )


def acknowledge_emergency(db: DB, emergency_id: str, doctor_id: str) -> bool:
    # Only a pending alert can be acknowledged; a second doctor gets False.
    n = _write(
        db,
        "UPDATE emergencies SET status='acknowledged', acknowledged_by=?, updated_at=? "
        "WHERE emergency_id=? AND status='pending'",
        (doctor_id, _now(), emergency_id),
    )
    return n > 0


def resolve_emergency(db: DB, emergency_id: str) -> bool:
    n = _write(
        db,
        "UPDATE emergencies SET status='resolved', updated_at=? WHERE emergency_id=? AND status!='resolved'",
        (_now(), emergency_id),
    )
    return n > 0


# -----------------------
# Appointment helpers
# -----------------------
def create_appointment(
    db: DB,
    appointment_id: str,
    user_id: str,
    doctor_id: str,
    department: str,
    date: str,
    time: str,
) -> None:
    _write(
        db,
        "INSERT INTO appointments(appointment_id,user_id,doctor_id,department,date,time,status,created_at) "
        "VALUES(?,?,?,?,?,?,?,?)",
        (appointment_id, user_id, doctor_id, department, date, time, "pending", _now()),
    )


def get_appointment(db: DB, appointment_id: str) -> Optional[Dict[str, Any]]:
    return _fetchone(db, "SELECT * FROM appointments WHERE appointment_id=?", (appointment_id,))


def list_user_appointments(db: DB, user_id: str) -> List[Dict[str, Any]]:
    return _fetchall(
        db,
        "SELECT * FROM appointments WHERE user_id=? ORDER BY created_at DESC, rowid DESC",
        (user_id,),
    )


def update_appointment_status(db: DB, appointment_id: str, status: str) -> bool:
    if status not in APPOINTMENT_STATUSES:
        raise ValueError(f"status must be one of: {sorted(APPOINTMENT_STATUSES)}")
    n = _write(db, "UPDATE appointments SET status=? WHERE appointment_id=?", (status, appointment_id))
    return n > 0
