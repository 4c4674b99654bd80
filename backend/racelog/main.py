import logging
import sys

from fastapi import FastAPI, Request, Depends, Query
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, PlainTextResponse

from .settings import settings
from .db import init_db, get_session, open_session
from . import services
from .auth import CurrentUser, staff_required, superadmin_required
from .race_config import ConfigError
from .schemas import StudentCreate, ScanCreate, MarksCriterionCreate

logging.basicConfig(
    level=getattr(logging, settings.RACELOG_LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)

app = FastAPI(title="RFID Race Log")

@app.on_event("startup")
def _startup() -> None:
    init_db()
    if settings.RACELOG_SEED_MARKS:
        s = open_session()
        try:
            services.seed_default_marks_criteria(s)
        finally:
            s.close()
    logger.info("RFID race log backend started (tz=%s)", settings.RACELOG_TIMEZONE)

@app.exception_handler(ConfigError)
def _config_error(request: Request, exc: ConfigError):
    return JSONResponse({"error": str(exc)}, status_code=400)

@app.exception_handler(services.RetrievalError)
def _retrieval_error(request: Request, exc: services.RetrievalError):
    return JSONResponse({"error": "Database error during fetch"}, status_code=500)

@app.get("/", response_class=PlainTextResponse)
def health():
    return "RFID Race Logger backend is running"

# ---------------------------
# Results
# ---------------------------

def _result_json(r: services.ResultRow) -> dict:
    return {
        "id": r.id,
        "roll_no": r.roll_no,
        "name": r.name,
        "age": r.age,
        "weight": r.weight,
        "contact": r.contact,
        "gender": r.gender,
        "race": r.race,
        "running_ground": r.running_ground,
        "academy": r.academy,
        "student_role": r.student_role,
        "created_by": r.created_by,
        "created_at": r.created_at,
        "tag_id": r.tag_id,
        "status": r.status,
        "total_rounds": r.total_rounds,
        "total_seconds": r.total_seconds,
        "completionTime": r.completion_time,
        "round_info": r.round_info,
        "marks": r.marks,
    }

@app.get("/api/race-students")
def race_students(
    race: str | None = Query(default=None),
    user: CurrentUser = Depends(staff_required),
    session=Depends(get_session),
):
    if not race:
        return JSONResponse({"error": "Query param 'race' is required (e.g. ?race=1600m)"}, status_code=400)
    rows = services.compute_race_results(session, race, user)
    return jsonable_encoder([_result_json(r) for r in rows])

# ---------------------------
# Students
# ---------------------------

def _student_json(s) -> dict:
    return {
        "id": s.id,
        "roll_no": s.roll_no,
        "name": s.name,
        "age": s.age,
        "weight": s.weight,
        "contact": s.contact,
        "gender": s.gender,
        "race": s.race,
        "running_ground": s.running_ground,
        "academy": s.academy,
        "student_role": s.student_role,
        "tag_id": s.tag_id,
        "created_by": s.created_by,
        "created_at": s.created_at,
    }

@app.get("/api/students")
def students(user: CurrentUser = Depends(staff_required), session=Depends(get_session)):
    listing = services.list_students_with_completion(session, user)
    return jsonable_encoder([{**_student_json(x.student), "completionTime": x.completion_time} for x in listing])

@app.post("/api/students", status_code=201)
def add_student(payload: StudentCreate, user: CurrentUser = Depends(staff_required), session=Depends(get_session)):
    try:
        s = services.create_student(session, payload, created_by=user.email)
    except ValueError as e:
        return JSONResponse({"error": str(e)}, status_code=400)
    return jsonable_encoder({"message": "Student added successfully!", "student": _student_json(s)})

# ---------------------------
# Reader bridge
# ---------------------------

@app.post("/api/scans", status_code=201, dependencies=[Depends(staff_required)])
def add_scan(payload: ScanCreate, session=Depends(get_session)):
    try:
        ev = services.record_scan(session, payload)
    except ValueError as e:
        return JSONResponse({"error": str(e)}, status_code=400)
    return jsonable_encoder({"id": ev.id, "tag_id": ev.tag_id, "scanned_at": ev.scanned_at})

# ---------------------------
# Marks criteria
# ---------------------------

def _criterion_json(c) -> dict:
    return {
        "id": c.id,
        "gender": c.gender,
        "role": c.role,
        "race": c.race,
        "min_seconds": c.min_seconds,
        "max_seconds": c.max_seconds,
        "marks": c.marks,
    }

@app.get("/api/marks-criteria", dependencies=[Depends(staff_required)])
def marks_criteria(race: str | None = Query(default=None), session=Depends(get_session)):
    return [_criterion_json(c) for c in services.list_marks_criteria(session, race)]

@app.post("/api/marks-criteria", status_code=201, dependencies=[Depends(superadmin_required)])
def add_marks_criterion(payload: MarksCriterionCreate, session=Depends(get_session)):
    try:
        c = services.create_marks_criterion(session, payload)
    except ValueError as e:
        return JSONResponse({"error": str(e)}, status_code=400)
    return _criterion_json(c)

from .csv_export import router as csv_router
app.include_router(csv_router, prefix="/api", tags=["csv"])
