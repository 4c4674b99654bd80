from __future__ import annotations

import csv
from io import StringIO

from fastapi import APIRouter, Depends
from starlette.responses import Response
from sqlalchemy.orm import Session

from .db import get_session
from .auth import CurrentUser, staff_required
from . import services

router = APIRouter()

def _csv_response(filename: str, text: str) -> Response:
    return Response(
        content=text,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )

@router.get("/results.csv")
def results_csv(
    race: str,
    user: CurrentUser = Depends(staff_required),
    session: Session = Depends(get_session),
):
    table = services.compute_race_results(session, race, user)
    buf = StringIO()
    w = csv.writer(buf)

    # one column per configured round; runners on different grounds may differ
    round_keys: list[str] = []
    for r in table:
        for key in r.round_info:
            if key not in round_keys:
                round_keys.append(key)

    w.writerow(["roll_no", "name", "gender", "role", "tag_id", "status", "time", *round_keys, "marks"])
    for r in table:
        w.writerow([
            r.roll_no,
            r.name,
            r.gender,
            r.student_role or "",
            r.tag_id,
            r.status,
            r.completion_time or "",
            *[r.round_info.get(k) or "" for k in round_keys],
            r.marks,
        ])

    safe_race = race.strip().replace(" ", "_")
    return _csv_response(f"results_{safe_race}.csv", buf.getvalue())
