import logging
import os
from datetime import date
from pathlib import Path
from typing import List, Optional

from fastapi import Depends, FastAPI, Form, HTTPException, Query, Request, Response
from fastapi.responses import HTMLResponse, RedirectResponse, StreamingResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError
from sqlalchemy.orm import Session

from . import crud
from .clock import contrast_color, ring_segments
from .database import get_db, init_db
from .models import User
from .schemas import (
    DATE_PATTERN,
    ActivityCreate,
    ActivityOut,
    ActivityUpdate,
    ActivityWithCategoryOut,
    CategoryCreate,
    CategoryOut,
    CategoryUpdate,
    CategoryWithDurationOut,
    HourSlotOut,
    UserCreate,
    UserOut,
    check_calendar_date,
)
from .timeline import activity_duration, resolve_hour_occupancy

LOG_LEVEL = os.getenv("DAYWHEEL_LOG_LEVEL", "INFO")
COOKIE_NAME = os.getenv("DAYWHEEL_COOKIE_NAME", "daywheel_user")
BASE_DIR = Path(__file__).resolve().parent

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="Daywheel")

init_db()

app.mount("/static", StaticFiles(directory=str(BASE_DIR / "static")), name="static")
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))
templates.env.filters["contrast"] = contrast_color


def get_today() -> str:
    return date.today().isoformat()


def get_current_user(request: Request, db: Session = Depends(get_db)) -> Optional[User]:
    raw = request.cookies.get(COOKIE_NAME)
    if not raw or not raw.isdigit():
        return None
    return crud.get_user(db, int(raw))


def day_query(day: Optional[str] = Query(None, alias="date", pattern=DATE_PATTERN)) -> str:
    if day is None:
        return get_today()
    try:
        return check_calendar_date(day)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))


def category_for_user(db: Session, category_id: int, user_id: int):
    """The category, or 404 when it is missing or belongs to someone else."""
    category = crud.get_category(db, category_id)
    if not category or category.user_id != user_id:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


# JSON API: users

@app.post("/api/users", response_model=UserOut, status_code=201)
async def api_create_user(body: UserCreate, db: Session = Depends(get_db)):
    if crud.get_user_by_nickname(db, body.nickname):
        raise HTTPException(status_code=409, detail="This nickname is already taken")
    return crud.create_user(db, body.nickname)


@app.get("/api/users/{nickname}", response_model=UserOut)
async def api_get_user_by_nickname(nickname: str, db: Session = Depends(get_db)):
    user = crud.get_user_by_nickname(db, nickname)
    if not user:
        logger.info("User not found: %s", nickname)
        raise HTTPException(status_code=404, detail="User not found")
    return user


@app.get("/api/user/{user_id}", response_model=UserOut)
async def api_get_user(user_id: int, db: Session = Depends(get_db)):
    user = crud.get_user(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


# JSON API: categories

@app.get("/api/users/{user_id}/categories", response_model=List[CategoryOut])
async def api_list_categories(user_id: int, db: Session = Depends(get_db)):
    return crud.list_categories(db, user_id)


@app.post("/api/categories", response_model=CategoryOut, status_code=201)
async def api_create_category(body: CategoryCreate, db: Session = Depends(get_db)):
    if not crud.get_user(db, body.user_id):
        raise HTTPException(status_code=404, detail="User not found")
    return crud.create_category(db, body.user_id, body.name, body.color, body.description)


@app.put("/api/categories/{category_id}", response_model=CategoryOut)
async def api_update_category(category_id: int, body: CategoryUpdate, db: Session = Depends(get_db)):
    category = crud.update_category(db, category_id, **body.model_dump(exclude_unset=True))
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


@app.delete("/api/categories/{category_id}", status_code=204)
async def api_delete_category(category_id: int, db: Session = Depends(get_db)):
    if not crud.get_category(db, category_id):
        raise HTTPException(status_code=404, detail="Category not found")
    if not crud.delete_category(db, category_id):
        raise HTTPException(status_code=400, detail="This category is in use and cannot be deleted")
    return Response(status_code=204)


# JSON API: activities

@app.get("/api/users/{user_id}/activities", response_model=List[ActivityWithCategoryOut])
async def api_list_activities(user_id: int, day: str = Depends(day_query), db: Session = Depends(get_db)):
    return crud.list_activities(db, user_id, day)


@app.post("/api/activities", response_model=ActivityOut, status_code=201)
async def api_create_activity(body: ActivityCreate, db: Session = Depends(get_db)):
    if not crud.get_user(db, body.user_id):
        raise HTTPException(status_code=404, detail="User not found")
    category_for_user(db, body.category_id, body.user_id)
    return crud.create_activity(db, **body.model_dump())


@app.put("/api/activities/{activity_id}", response_model=ActivityOut)
async def api_update_activity(activity_id: int, body: ActivityUpdate, db: Session = Depends(get_db)):
    activity = crud.get_activity(db, activity_id)
    if not activity:
        raise HTTPException(status_code=404, detail="Activity not found")

    changes = body.model_dump(exclude_unset=True)
    start = changes.get("start_hour", activity.start_hour)
    end = changes.get("end_hour", activity.end_hour)
    if start >= end:
        raise HTTPException(status_code=422, detail="startHour must be before endHour")
    if "category_id" in changes:
        category_for_user(db, changes["category_id"], activity.user_id)

    return crud.update_activity(db, activity_id, **changes)


@app.delete("/api/activities/{activity_id}", status_code=204)
async def api_delete_activity(activity_id: int, db: Session = Depends(get_db)):
    if not crud.delete_activity(db, activity_id):
        raise HTTPException(status_code=404, detail="Activity not found")
    return Response(status_code=204)


# JSON API: day views

@app.get("/api/users/{user_id}/summary", response_model=List[CategoryWithDurationOut])
async def api_summary(user_id: int, day: str = Depends(day_query), db: Session = Depends(get_db)):
    return [CategoryWithDurationOut.model_validate(row) for row in crud.get_activity_summary(db, user_id, day)]


@app.get("/api/users/{user_id}/timeline", response_model=List[HourSlotOut])
async def api_timeline(user_id: int, day: str = Depends(day_query), db: Session = Depends(get_db)):
    occupancy = crud.get_hour_occupancy(db, user_id, day)
    return [
        HourSlotOut(hour=hour, activity=ActivityOut.model_validate(activity) if activity else None)
        for hour, activity in occupancy.items()
    ]


# HTML pages

def login_redirect() -> RedirectResponse:
    return RedirectResponse(url="/login", status_code=303)


@app.get("/login", response_class=HTMLResponse)
async def login_page(request: Request):
    return templates.TemplateResponse(request, "login.html", {"error": None})


@app.post("/login")
async def login(
    request: Request,
    nickname: str = Form(...),
    action: str = Form("login"),
    db: Session = Depends(get_db),
):
    nickname = nickname.strip()
    user = crud.get_user_by_nickname(db, nickname) if nickname else None

    error = None
    if not nickname:
        error = "Please enter a nickname"
    elif action == "register":
        if user:
            error = "This nickname is already taken"
        else:
            user = crud.create_user(db, nickname)
    elif not user:
        logger.info("Login failed, no user %s", nickname)
        error = "User not found"

    if error:
        return templates.TemplateResponse(request, "login.html", {"error": error}, status_code=400)

    response = RedirectResponse(url="/", status_code=303)
    response.set_cookie(COOKIE_NAME, str(user.id), httponly=True, samesite="lax")
    return response


@app.post("/logout")
async def logout():
    response = login_redirect()
    response.delete_cookie(COOKIE_NAME)
    return response


@app.get("/", response_class=HTMLResponse)
async def index(
    request: Request,
    day: Optional[date] = None,
    user: Optional[User] = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if user is None:
        return login_redirect()
    day_value = day.isoformat() if day else get_today()

    activities = crud.list_activities(db, user.id, day_value)
    categories = crud.list_categories(db, user.id)
    summary = crud.get_activity_summary(db, user.id, day_value)

    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "user": user,
            "day": day_value,
            "activities": activities,
            "categories": categories,
            "segments": ring_segments(resolve_hour_occupancy(activities)),
            "summary": summary,
            "occupied": [row for row in sorted(summary, key=lambda r: -r.hours) if row.hours > 0],
        },
    )


@app.post("/activities/add")
async def add_activity(
    date_value: str = Form(...),
    category_id: int = Form(...),
    start_hour: int = Form(...),
    end_hour: int = Form(...),
    notes: str = Form(""),
    title: str = Form("Activity"),
    user: Optional[User] = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if user is None:
        return login_redirect()

    category_for_user(db, category_id, user.id)

    try:
        body = ActivityCreate(
            user_id=user.id,
            category_id=category_id,
            start_hour=start_hour,
            end_hour=end_hour,
            date=date_value,
            notes=notes or None,
            title=title or "Activity",
        )
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=exc.errors()[0]["msg"])

    crud.create_activity(db, **body.model_dump())
    return RedirectResponse(url=f"/?day={date_value}", status_code=303)


@app.post("/activities/{activity_id}/edit")
async def edit_activity(
    activity_id: int,
    category_id: int = Form(...),
    start_hour: int = Form(...),
    end_hour: int = Form(...),
    notes: str = Form(""),
    title: str = Form("Activity"),
    user: Optional[User] = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if user is None:
        return login_redirect()
    activity = crud.get_activity(db, activity_id)
    if not activity or activity.user_id != user.id:
        raise HTTPException(status_code=404, detail="Activity not found")
    category_for_user(db, category_id, user.id)

    try:
        body = ActivityUpdate(
            category_id=category_id,
            start_hour=start_hour,
            end_hour=end_hour,
            notes=notes or None,
            title=title or "Activity",
        )
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=exc.errors()[0]["msg"])

    crud.update_activity(db, activity_id, **body.model_dump(exclude_unset=True))
    return RedirectResponse(url=f"/?day={activity.date}", status_code=303)


@app.post("/activities/{activity_id}/delete")
async def delete_activity(
    activity_id: int,
    user: Optional[User] = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if user is None:
        return login_redirect()
    activity = crud.get_activity(db, activity_id)
    if not activity or activity.user_id != user.id:
        raise HTTPException(status_code=404, detail="Activity not found")
    date_value = activity.date
    crud.delete_activity(db, activity_id)
    return RedirectResponse(url=f"/?day={date_value}", status_code=303)


@app.get("/categories", response_class=HTMLResponse)
async def categories_page(
    request: Request,
    user: Optional[User] = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if user is None:
        return login_redirect()
    return templates.TemplateResponse(
        request,
        "categories.html",
        {"user": user, "categories": crud.list_categories(db, user.id)},
    )


def owned_category(db: Session, category_id: int, user: User):
    category = crud.get_category(db, category_id)
    if not category or category.user_id != user.id:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


@app.post("/categories/add")
async def add_category(
    name: str = Form(...),
    color: str = Form("#4A90E2"),
    description: str = Form(""),
    user: Optional[User] = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if user is None:
        return login_redirect()
    crud.create_category(db, user.id, name, color or "#4A90E2", description or None)
    return RedirectResponse(url="/categories", status_code=303)


@app.post("/categories/{category_id}/edit")
async def edit_category(
    category_id: int,
    name: str = Form(...),
    color: str = Form(...),
    description: str = Form(""),
    user: Optional[User] = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if user is None:
        return login_redirect()
    owned_category(db, category_id, user)
    crud.update_category(db, category_id, name=name, color=color, description=description or None)
    return RedirectResponse(url="/categories", status_code=303)


@app.post("/categories/{category_id}/delete")
async def delete_category(
    category_id: int,
    user: Optional[User] = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if user is None:
        return login_redirect()
    owned_category(db, category_id, user)
    if not crud.delete_category(db, category_id):
        raise HTTPException(status_code=400, detail="This category is in use and cannot be deleted")
    return RedirectResponse(url="/categories", status_code=303)


@app.get("/export/excel")
async def export_excel(
    day: Optional[date] = None,
    user: Optional[User] = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    from io import BytesIO

    import openpyxl
    from openpyxl.utils import get_column_letter

    if user is None:
        return login_redirect()
    day_value = day.isoformat() if day else get_today()

    activities = crud.list_activities(db, user.id, day_value)
    summary = crud.get_activity_summary(db, user.id, day_value)

    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Activities"

    headers = ["Date", "Category", "Title", "Start", "End", "Hours", "Notes"]
    ws.append(headers)
    for activity in activities:
        ws.append(
            [
                activity.date,
                activity.category.name if activity.category else "",
                activity.title,
                f"{activity.start_hour:02d}:00",
                f"{activity.end_hour:02d}:00",
                activity_duration(activity),
                activity.notes or "",
            ]
        )
    for col in range(1, len(headers) + 1):
        ws.column_dimensions[get_column_letter(col)].auto_size = True

    ws_summary = wb.create_sheet("Summary")
    ws_summary.append(["Category", "Color", "Hours", "Percentage"])
    for row in summary:
        ws_summary.append([row.name, row.color, row.hours, row.percentage])

    stream = BytesIO()
    wb.save(stream)
    stream.seek(0)

    filename = f"activities_{day_value}.xlsx"
    headers_resp = {
        "Content-Disposition": f'attachment; filename="{filename}"'
    }

    return StreamingResponse(
        stream,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers=headers_resp,
    )
