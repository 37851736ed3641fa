# src/server/app.py

from __future__ import annotations

import asyncio
import logging
import traceback
import uuid
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from fastapi import FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .acquire import acquire_text, detect_kind, image_to_text
from .config import get_settings
from .db import (
    init_db,
    create_user,
    get_user,
    get_user_by_email,
    create_report,
    update_report_status,
    save_report,
    get_report,
    list_user_reports,
    set_doctor_notes,
    create_medication,
    get_medication,
    list_medications,
    set_medication_status,
    create_emergency,
    get_emergency,
    list_pending_emergencies,
    acknowledge_emergency,
    resolve_emergency,
    create_appointment,
    get_appointment,
    list_user_appointments,
    update_appointment_status,
)
from .errors import FileTooLarge, PersistenceFailure, ReportError
from .pipeline import run_report_pipeline
from .reminders import due_medications, normalize_times
from .storage import init_storage, save_upload, write_json, read_json

SETTINGS = get_settings()
logging.basicConfig(level=SETTINGS.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="Hospital Report Server (Local)")

STORAGE = init_storage(SETTINGS.storage_root)
DB = init_db(SETTINGS.db_path)

# Strong refs to in-flight report jobs
_JOBS: set = set()


class UserCreateRequest(BaseModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    role: str = Field(default="patient", description="patient | doctor | staff")


class AnalyzeRequest(BaseModel):
    text: str = ""
    user_id: Optional[str] = Field(default=None, description="If set, the analysis is saved as a report")


class ReportCreateResponse(BaseModel):
    report_id: str
    status: str


class ReportStatusResponse(BaseModel):
    report_id: str
    user_id: str
    file_name: str
    status: str
    created_at: str
    updated_at: str
    doctor_notes: str | None = None
    error: str | None = None


class DoctorNotesRequest(BaseModel):
    doctor_id: str
    notes: str


class MedicationCreateRequest(BaseModel):
    patient_id: str
    medicine: str
    dosage: str
    times: List[str]


class EmergencyCreateRequest(BaseModel):
    ward: str = Field(..., min_length=1)
    patient_id: str = Field(..., min_length=1)
    condition: str


class AcknowledgeRequest(BaseModel):
    doctor_id: str


class AppointmentCreateRequest(BaseModel):
    user_id: str
    doctor_id: str
    department: str = Field(..., min_length=1)
    date: str = Field(..., description="YYYY-MM-DD")
    time: str = Field(..., description="HH:MM")


class AppointmentStatusRequest(BaseModel):
    status: str


@app.exception_handler(ReportError)
async def report_error_handler(request: Request, exc: ReportError):
    logger.warning("%s on %s: %s", type(exc).__name__, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content={"detail": str(exc)})


@app.get("/health")
def health():
    return {"ok": True}


def _require_user(user_id: str, role: str | None = None) -> dict:
    row = get_user(DB, user_id)
    if not row:
        raise HTTPException(status_code=404, detail="User not found")
    if role and row["role"] != role:
        raise HTTPException(status_code=403, detail=f"Only a {role} can do this")
    return row


# -----------------------
# Users
# -----------------------
@app.post("/users")
def create_user_endpoint(req: UserCreateRequest):
    role = req.role.lower().strip()
    try:
        if get_user_by_email(DB, req.email):
            raise HTTPException(status_code=409, detail="Email already registered")
        user_id = str(uuid.uuid4())
        create_user(DB, user_id, req.name.strip(), req.email.strip(), role)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return get_user(DB, user_id)


@app.get("/users/{user_id}")
def get_user_endpoint(user_id: str):
    return _require_user(user_id)


# -----------------------
# Analysis / report endpoints
# -----------------------
@app.post("/analyze")
def analyze_text(req: AnalyzeRequest):
    result = run_report_pipeline(text=req.text)
    if not req.user_id:
        return result

    _require_user(req.user_id)
    report_id = str(uuid.uuid4())
    path = save_upload(STORAGE, req.user_id, "analysis.txt", req.text.encode("utf-8"))
    result_path = STORAGE.results / f"{report_id}.json"
    write_json(result_path, result)
    save_report(DB, report_id, req.user_id, "analysis.txt", str(path), str(result_path))
    return {**result, "report_id": report_id}


@app.post("/reports", response_model=ReportCreateResponse)
async def upload_report(user_id: str = Form(...), file: UploadFile = File(...)):
    _require_user(user_id)

    data = await file.read()
    if len(data) > SETTINGS.max_upload_bytes:
        raise FileTooLarge(f"File size must be under {SETTINGS.max_upload_bytes} bytes")

    # Reject unsupported types before anything is stored
    detect_kind(file.filename, file.content_type)

    file_name = file.filename or "upload"
    path = save_upload(STORAGE, user_id, file_name, data)

    report_id = str(uuid.uuid4())
    try:
        create_report(DB, report_id, user_id, file_name, str(path))
    except PersistenceFailure:
        path.unlink(missing_ok=True)
        raise
    task = asyncio.create_task(_process_report(report_id=report_id, content_type=file.content_type))
    _JOBS.add(task)
    task.add_done_callback(_JOBS.discard)

    return ReportCreateResponse(report_id=report_id, status="queued")


@app.get("/reports/{report_id}", response_model=ReportStatusResponse)
def get_report_status(report_id: str):
    row = get_report(DB, report_id)
    if not row:
        raise HTTPException(status_code=404, detail="Report not found")

    return ReportStatusResponse(
        report_id=row["report_id"],
        user_id=row["user_id"],
        file_name=row["file_name"],
        status=row["status"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        doctor_notes=row["doctor_notes"],
        error=row["error"],
    )


@app.get("/reports/{report_id}/results")
def get_report_results(report_id: str):
    row = get_report(DB, report_id)
    if not row:
        raise HTTPException(status_code=404, detail="Report not found")

    if row["status"] != "complete":
        raise HTTPException(status_code=409, detail=f"Not ready. Current status: {row['status']}")

    if not row["result_path"]:
        raise HTTPException(status_code=500, detail="Missing result path")

    return read_json(Path(row["result_path"]))


@app.get("/users/{user_id}/reports")
def get_user_reports(user_id: str):
    _require_user(user_id)
    return {"reports": list_user_reports(DB, user_id)}


@app.put("/reports/{report_id}/notes")
def put_doctor_notes(report_id: str, req: DoctorNotesRequest):
    _require_user(req.doctor_id, role="doctor")
    if not set_doctor_notes(DB, report_id, req.notes.strip()):
        raise HTTPException(status_code=404, detail="Report not found")
    return {"report_id": report_id, "doctor_notes": req.notes.strip()}


def _ocr(data: bytes) -> str:
    return image_to_text(data, lang=SETTINGS.ocr_lang)


async def _process_report(report_id: str, content_type: str | None):
    row = get_report(DB, report_id)
    if not row:
        return

    try:
        update_report_status(DB, report_id, "running")

        data = Path(row["file_url"]).read_bytes()
        text = await asyncio.to_thread(acquire_text, data, row["file_name"], content_type, ocr=_ocr)
        result = run_report_pipeline(text=text)

        result_path = STORAGE.results / f"{report_id}.json"
        write_json(result_path, result)

        update_report_status(DB, report_id, "complete", result_path=str(result_path))
        logger.info("Report %s analysed: %s", report_id, result["diseases"] or "no findings")
    except Exception as e:
        logger.exception("Report %s failed", report_id)
        update_report_status(DB, report_id, "failed", error=str(e) + "\n" + traceback.format_exc())


# -----------------------
# Medication reminders
# -----------------------
@app.post("/medications")
def create_medication_endpoint(req: MedicationCreateRequest):
    _require_user(req.patient_id)
    medicine, dosage = req.medicine.strip(), req.dosage.strip()
    if not medicine:
        raise HTTPException(status_code=400, detail="Please enter medicine name")
    if not dosage:
        raise HTTPException(status_code=400, detail="Please enter dosage")
    try:
        times = normalize_times(req.times)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    medication_id = str(uuid.uuid4())
    create_medication(DB, medication_id, req.patient_id, medicine, dosage, times)
    return get_medication(DB, medication_id)


@app.get("/users/{user_id}/medications")
def get_user_medications(user_id: str, include_stopped: bool = False):
    _require_user(user_id)
    return {"medications": list_medications(DB, user_id, active_only=not include_stopped)}


@app.get("/users/{user_id}/medications/due")
def get_due_medications(user_id: str, at: Optional[str] = None):
    _require_user(user_id)
    if at is not None:
        try:
            at = normalize_times([at])[0]
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
    now = at or datetime.now()
    return {"due": due_medications(list_medications(DB, user_id), now)}


@app.post("/medications/{medication_id}/stop")
def stop_medication(medication_id: str):
    if not set_medication_status(DB, medication_id, "stopped"):
        raise HTTPException(status_code=404, detail="Medication not found")
    return get_medication(DB, medication_id)


# -----------------------
# Emergency alerts
# -----------------------
@app.post("/emergencies")
def create_emergency_endpoint(req: EmergencyCreateRequest):
    condition = req.condition.strip()
    if not condition:
        raise HTTPException(status_code=400, detail="Please describe the emergency condition")
    emergency_id = str(uuid.uuid4())
    create_emergency(DB, emergency_id, req.ward.strip(), req.patient_id.strip(), condition)
    logger.warning("Emergency %s raised in ward %s", emergency_id, req.ward)
    return get_emergency(DB, emergency_id)


@app.get("/emergencies/pending")
def get_pending_emergencies():
    return {"emergencies": list_pending_emergencies(DB)}


@app.post("/emergencies/{emergency_id}/acknowledge")
def acknowledge_emergency_endpoint(emergency_id: str, req: AcknowledgeRequest):
    _require_user(req.doctor_id, role="doctor")
    row = get_emergency(DB, emergency_id)
    if not row:
        raise HTTPException(status_code=404, detail="Emergency not found")
    if not acknowledge_emergency(DB, emergency_id, req.doctor_id):
        raise HTTPException(status_code=409, detail=f"Emergency is already {row['status']}")
    return get_emergency(DB, emergency_id)


@app.post("/emergencies/{emergency_id}/resolve")
def resolve_emergency_endpoint(emergency_id: str):
    row = get_emergency(DB, emergency_id)
    if not row:
        raise HTTPException(status_code=404, detail="Emergency not found")
    if not resolve_emergency(DB, emergency_id):
        raise HTTPException(status_code=409, detail="Emergency is already resolved")
    return get_emergency(DB, emergency_id)


# -----------------------
# Appointments
# -----------------------
@app.post("/appointments")
def create_appointment_endpoint(req: AppointmentCreateRequest):
    _require_user(req.user_id)
    _require_user(req.doctor_id, role="doctor")
    appointment_id = str(uuid.uuid4())
    create_appointment(DB, appointment_id, req.user_id, req.doctor_id, req.department.strip(), req.date, req.time)
    return get_appointment(DB, appointment_id)


@app.get("/users/{user_id}/appointments")
def get_user_appointments(user_id: str):
    _require_user(user_id)
    return {"appointments": list_user_appointments(DB, user_id)}


@app.post("/appointments/{appointment_id}/status")
def set_appointment_status(appointment_id: str, req: AppointmentStatusRequest):
    try:
        ok = update_appointment_status(DB, appointment_id, req.status.lower().strip())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not ok:
        raise HTTPException(status_code=404, detail="Appointment not found")
    return get_appointment(DB, appointment_id)
