import logging
import os
import random
import string
import time
import uuid
from datetime import datetime, timedelta, timezone
from typing import List, Literal, Optional

from fastapi import Depends, FastAPI, File, Header, HTTPException, Query, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel, EmailStr
from pymongo.errors import DuplicateKeyError

import database
from analytics import (
    analytics_summary,
    cause_progress,
    city_stats,
    dashboard_stats,
    donation_stats,
    filter_donations,
    filter_reports,
    map_view,
)
from database import (
    DatabaseNotConfigured,
    count_documents,
    create_document,
    delete_document,
    find_document,
    get_document,
    get_documents,
    increment_field,
    toggle_in_array,
    update_document,
    update_documents,
)
from directory import INTEREST_OPTIONS, NATURE_HEROES, NOTIFICATION_ICONS, WHATS_NEW
from integrations import (
    UPLOAD_DIR,
    IntegrationError,
    analyze_issue_image,
    apply_suggestions,
    invoke_llm,
    save_upload,
    send_email,
)
from schemas import (
    Bugreport as BugreportSchema,
    Cause as CauseSchema,
    Comment as CommentSchema,
    Conversation as ConversationSchema,
    Donation as DonationSchema,
    Herostory as HerostorySchema,
    MediaType,
    Message as MessageSchema,
    Movementmember as MovementmemberSchema,
    Notification as NotificationSchema,
    PaymentMethod,
    Post as PostSchema,
    Priority,
    Report as ReportSchema,
    ReportCategory,
    ReportStatus,
    Story as StorySchema,
    User as UserSchema,
)
from social import author_block, group_stories, present_post

APP_NAME = "Samadhan Setu API"
JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change")
JWT_ALG = "HS256"
JWT_EXPIRE_MINUTES = int(os.getenv("JWT_EXPIRE_MINUTES", str(60 * 24 * 14)))  # 14 days
ADMIN_EMAILS = {e.strip().lower() for e in os.getenv("ADMIN_EMAILS", "").split(",") if e.strip()}
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
PAYMENT_SIMULATION_SECONDS = float(os.getenv("PAYMENT_SIMULATION_SECONDS", "3"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

ACCESS_DENIED = "Access denied. Admin privileges required."

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

app = FastAPI(title=APP_NAME)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.mount("/uploads", StaticFiles(directory=UPLOAD_DIR, check_dir=False), name="uploads")


@app.exception_handler(DatabaseNotConfigured)
def database_not_configured(request: Request, exc: DatabaseNotConfigured):
    logger.error(f"{request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": "Database not configured"})


# ---------- Auth Helpers ----------

def create_token(email: str, role: str):
    payload = {
        "sub": email,
        "role": role,
        "jti": uuid.uuid4().hex,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=JWT_EXPIRE_MINUTES),
        "iat": datetime.now(timezone.utc),
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALG)


def decode_bearer(authorization: str):
    scheme, token = authorization.split(" ", 1)
    if scheme.lower() != "bearer":
        raise ValueError("Invalid auth scheme")
    return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALG])


def verify_token(authorization: Optional[str] = Header(None)):
    if not authorization:
        raise HTTPException(status_code=401, detail="Missing Authorization header")
    try:
        data = decode_bearer(authorization)
    except (JWTError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    if find_document("revokedtoken", {"jti": data.get("jti")}):
        raise HTTPException(status_code=401, detail="Token has been revoked")
    return {"email": data.get("sub"), "role": data.get("role"), "jti": data.get("jti"), "exp": data.get("exp")}


def public_user(user: dict):
    return {k: v for k, v in user.items() if k != "password_hash"}


def get_current_user(token=Depends(verify_token)):
    user = find_document("user", {"email": token["email"]})
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    if not user.get("is_active", True):
        raise HTTPException(status_code=403, detail="Account disabled")
    return user


def optional_user(authorization: Optional[str] = Header(None)):
    if not authorization:
        return None
    return get_current_user(verify_token(authorization))


def require_admin(user=Depends(get_current_user)):
    if user.get("role") != "admin":
        raise HTTPException(status_code=403, detail=ACCESS_DENIED)
    return user


def fetch_or_404(collection: str, doc_id: str, label: str):
    try:
        doc = get_document(collection, doc_id)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid {label} id")
    if doc is None:
        raise HTTPException(status_code=404, detail=f"{label.capitalize()} not found")
    return doc


def notify(recipient: str, kind: str, text: str):
    """Record an in-app notification; never fails the caller."""
    try:
        note = NotificationSchema(recipient=recipient, type=kind, text=text, icon=NOTIFICATION_ICONS.get(kind, ""))
        create_document("notification", note)
    except Exception:
        logger.exception(f"Failed to create {kind} notification for {recipient}")


def send_email_quietly(to: Optional[str], subject: str, body: str):
    if not to:
        logger.warning(f"No recipient for email {subject!r}; skipping")
        return
    try:
        send_email(to, subject, body)
    except IntegrationError:
        logger.exception(f"Failed to send email {subject!r} to {to}")


# ---------- Models for requests ----------
class RegisterRequest(BaseModel):
    full_name: str
    email: EmailStr
    password: str
    phone_number: Optional[str] = ""


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    phone_number: Optional[str] = None
    address: Optional[str] = None
    avatar_url: Optional[str] = None
    language: Optional[Literal['en', 'hi']] = None


class ReportSubmission(BaseModel):
    title: Optional[str] = ""
    description: Optional[str] = ""
    category: Optional[ReportCategory] = None
    priority: Priority = "medium"
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    address: Optional[str] = ""
    photo_url: Optional[str] = ""
    voice_note_url: Optional[str] = ""
    ai_analysis: Optional[dict] = None


class ReportUpdate(BaseModel):
    status: Optional[ReportStatus] = None
    priority: Optional[Priority] = None
    assigned_department: Optional[str] = None
    assigned_to: Optional[str] = None
    resolution_notes: Optional[str] = None


class AnalyzeImageRequest(BaseModel):
    file_url: str
    form: dict = {}


class InvokeLLMRequest(BaseModel):
    prompt: str
    file_urls: List[str] = []
    response_json_schema: Optional[dict] = None


class SendEmailRequest(BaseModel):
    to: EmailStr
    subject: str
    body: str


class DonationRequest(BaseModel):
    cause_id: str
    amount: Optional[int] = None
    payment_method: Optional[PaymentMethod] = None
    donor_name: Optional[str] = None
    donor_email: Optional[str] = None
    donor_phone: Optional[str] = None
    anonymous: bool = False
    is_recurring: bool = False
    recurring_frequency: Optional[str] = "monthly"
    notes: Optional[str] = ""


class PostRequest(BaseModel):
    type: MediaType = "image"
    url: Optional[str] = ""
    caption: Optional[str] = ""
    location: Optional[str] = ""


class CommentRequest(BaseModel):
    text: str


class StoryRequest(BaseModel):
    type: MediaType = "image"
    url: str
    duration: int = 5000


class ConversationRequest(BaseModel):
    participant_email: EmailStr


class MessageRequest(BaseModel):
    text: str


# ---------- Basic routes ----------
@app.get("/")
def root():
    return {"message": f"{APP_NAME} running"}


@app.get("/test")
def test_database():
    info = {
        "backend": "running",
        "database": "disconnected",
        "collections": [],
    }
    try:
        if database.db is not None:
            info["database"] = "connected"
            info["collections"] = database.db.list_collection_names()[:10]
    except Exception as e:
        logger.warning(f"Database health check failed: {e}")
        info["database"] = f"error: {str(e)[:80]}"
    return info


# ---------- Auth endpoints ----------
@app.post("/auth/register")
def register(req: RegisterRequest):
    email = req.email.lower()
    if find_document("user", {"email": email}):
        raise HTTPException(status_code=400, detail="Email already registered")

    role = "admin" if email in ADMIN_EMAILS else "user"
    user = UserSchema(
        email=email,
        full_name=req.full_name,
        role=role,
        phone_number=req.phone_number,
        password_hash=pwd_context.hash(req.password),
    )
    try:
        create_document("user", user, created_by=email)
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="Email already registered")
    logger.info(f"Registered {email} as {role}")

    token = create_token(email, role)
    return {"token": token, "user": {"full_name": req.full_name, "email": email, "role": role}}


@app.post("/auth/login")
def login(req: LoginRequest):
    user = find_document("user", {"email": req.email.lower()})
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials")

    if not pwd_context.verify(req.password, user.get("password_hash", "")):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    if not user.get("is_active", True):
        raise HTTPException(status_code=403, detail="Account disabled")

    token = create_token(user["email"], user.get("role", "user"))
    return {"token": token, "user": {"full_name": user.get("full_name"), "email": user["email"], "role": user.get("role", "user")}}


@app.post("/auth/logout")
def logout(token=Depends(verify_token)):
    # the TTL index on expires_at drops the entry once the token would have expired anyway
    expires = datetime.fromtimestamp(token["exp"], tz=timezone.utc) if token.get("exp") else None
    try:
        create_document("revokedtoken", {"jti": token["jti"], "expires_at": expires}, created_by=token["email"])
    except DuplicateKeyError:
        logger.info(f"Token {token['jti']} already revoked")
    return {"ok": True}


@app.get("/me")
def me(user=Depends(get_current_user)):
    return public_user(user)


@app.patch("/me")
def update_my_user_data(body: ProfileUpdate, user=Depends(get_current_user)):
    changes = body.model_dump(exclude_none=True)
    if changes:
        update_document("user", user["id"], changes)
    return public_user({**user, **changes})


@app.post("/me/avatar")
def upload_avatar(file: UploadFile = File(...), user=Depends(get_current_user)):
    try:
        file_url = save_upload(file.filename, file.content_type, file.file.read())
    except IntegrationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    update_document("user", user["id"], {"avatar_url": file_url})
    return {"avatar_url": file_url}


# ---------- Integration endpoints ----------
@app.post("/integrations/upload")
def upload_file(file: UploadFile = File(...), user=Depends(get_current_user)):
    try:
        file_url = save_upload(file.filename, file.content_type, file.file.read())
    except IntegrationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"file_url": file_url}


@app.post("/integrations/analyze-image")
def analyze_image(body: AnalyzeImageRequest, user=Depends(get_current_user)):
    try:
        analysis = analyze_issue_image(body.file_url)
    except IntegrationError:
        logger.exception(f"AI analysis failed for {body.file_url}")
        raise HTTPException(status_code=502, detail="AI analysis failed, but you can still fill the form manually.")
    suggestion = analysis.model_dump()
    return {**suggestion, "form": apply_suggestions(body.form, suggestion)}


@app.post("/integrations/invoke-llm")
def invoke_llm_endpoint(body: InvokeLLMRequest, user=Depends(get_current_user)):
    try:
        result = invoke_llm(body.prompt, file_urls=body.file_urls, response_json_schema=body.response_json_schema)
    except IntegrationError as e:
        logger.exception("LLM invocation failed")
        raise HTTPException(status_code=502, detail=str(e))
    return {"result": result}


@app.post("/integrations/send-email")
def send_email_endpoint(body: SendEmailRequest, admin=Depends(require_admin)):
    try:
        sent = send_email(body.to, body.subject, body.body)
    except IntegrationError as e:
        logger.exception("Email sending failed")
        raise HTTPException(status_code=502, detail=str(e))
    return {"sent": sent}


# ---------- Report endpoints ----------

def validate_report_submission(data: dict) -> Optional[str]:
    """Return the first blocking form error, or None when the report can be submitted."""
    if not data.get("photo_url"):
        return "Photo is required to submit a report."
    if not data.get("title") or not data.get("category"):
        return "Please fill in the title and category."
    if data.get("latitude") is None or data.get("longitude") is None:
        return "Please provide location information."
    return None


def report_submitted_email(user: dict, report: dict) -> str:
    return f"""Dear {user.get('full_name') or 'Citizen'},

Thank you for submitting your civic report through Samadhan Setu!

Report Details:
- Title: {report['title']}
- Category: {report['category']}
- Description: {report.get('description') or ''}
- Status: Submitted
- Report ID: {report['id']}

Your report has been received and will be reviewed by the relevant municipal department. You will receive email updates as your report progresses through our system.

Thank you for helping improve our community!

Best regards,
Samadhan Setu Team"""


def status_label(status: str) -> str:
    return status.replace("_", " ").title()


@app.post("/reports", status_code=201)
def create_report(body: ReportSubmission, user=Depends(get_current_user)):
    data = body.model_dump()
    error = validate_report_submission(data)
    if error:
        raise HTTPException(status_code=400, detail=error)

    try:
        report = ReportSchema(**data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    _id = create_document("report", report, created_by=user["email"])
    saved = get_document("report", _id)
    logger.info(f"Report {_id} ({report.category}) submitted by {user['email']}")

    send_email_quietly(user.get("email"), "Report Submitted Successfully - Samadhan Setu", report_submitted_email(user, saved))
    return saved


@app.get("/reports")
def list_reports(
    sort: str = "-created_date",
    limit: int = Query(50, ge=1, le=500),
    status: Optional[ReportStatus] = None,
    category: Optional[ReportCategory] = None,
    priority: Optional[Priority] = None,
    created_by: Optional[str] = None,
):
    criteria = {k: v for k, v in {"status": status, "category": category, "priority": priority, "created_by": created_by}.items() if v}
    return get_documents("report", criteria, limit, sort)


@app.get("/reports/stats")
def report_stats(limit: int = Query(50, ge=1, le=500)):
    return city_stats(get_documents("report", {}, limit, "-created_date"))


@app.get("/reports/mine")
def my_reports(limit: int = Query(50, ge=1, le=500), user=Depends(get_current_user)):
    return get_documents("report", {"created_by": user["email"]}, limit, "-created_date")


@app.get("/reports/{report_id}")
def get_report(report_id: str):
    return fetch_or_404("report", report_id, "report")


@app.patch("/reports/{report_id}")
def update_report(report_id: str, body: ReportUpdate, admin=Depends(require_admin)):
    report = fetch_or_404("report", report_id, "report")

    changes = body.model_dump(exclude_none=True)
    if not changes:
        return report
    # any status may be set from any other; no workflow is enforced
    if changes.get("status") == "resolved":
        changes["resolved_date"] = datetime.now(timezone.utc).date().isoformat()

    update_document("report", report_id, changes)
    logger.info(f"Report {report_id} updated by {admin['email']}: {changes}")

    new_status = changes.get("status")
    if new_status and new_status != report.get("status") and report.get("created_by"):
        text = f'Your report "{report["title"]}" has been updated to "{status_label(new_status)}".'
        notify(report["created_by"], "report", text)
        send_email_quietly(report["created_by"], "Report Status Updated - Samadhan Setu", text)

    return {**report, **changes}


@app.delete("/reports/{report_id}")
def delete_report(report_id: str, admin=Depends(require_admin)):
    fetch_or_404("report", report_id, "report")
    delete_document("report", report_id)
    logger.info(f"Report {report_id} removed by {admin['email']}")
    return {"ok": True}


@app.post("/reports/{report_id}/upvote")
def upvote_report(report_id: str, user=Depends(get_current_user)):
    fetch_or_404("report", report_id, "report")
    increment_field("report", report_id, "upvotes")
    return get_document("report", report_id)


# ---------- Admin endpoints ----------
@app.get("/admin/reports")
def admin_reports(
    search: str = "",
    status: str = "all",
    category: str = "all",
    limit: int = Query(100, ge=1, le=500),
    admin=Depends(require_admin),
):
    reports = get_documents("report", {}, limit, "-created_date")
    return {
        "stats": dashboard_stats(reports),
        "reports": filter_reports(reports, search, status, category),
    }


@app.get("/admin/analytics")
def admin_analytics(limit: int = Query(200, ge=1, le=1000), admin=Depends(require_admin)):
    return analytics_summary(get_documents("report", {}, limit, "-created_date"))


# ---------- Map endpoints ----------
@app.get("/map/reports")
def map_reports(status: str = "all", category: str = "all", limit: int = Query(50, ge=1, le=500)):
    return map_view(get_documents("report", {}, limit, "-created_date"), status, category)


# ---------- Cause & donation endpoints ----------

def with_progress(cause: dict):
    return {**cause, "progress": cause_progress(cause)}


def generate_transaction_id() -> str:
    suffix = "".join(random.choices(string.digits + string.ascii_lowercase, k=9))
    return f"TXN_{int(time.time() * 1000)}_{suffix}"


def simulate_payment():
    # no gateway: a fixed delay that always succeeds
    time.sleep(PAYMENT_SIMULATION_SECONDS)


@app.get("/causes")
def list_causes(sort: str = "-created_date", limit: int = Query(50, ge=1, le=500)):
    return [with_progress(c) for c in get_documents("cause", {}, limit, sort)]


@app.get("/causes/{cause_id}")
def get_cause(cause_id: str):
    return with_progress(fetch_or_404("cause", cause_id, "cause"))


@app.post("/causes", status_code=201)
def create_cause(body: CauseSchema, admin=Depends(require_admin)):
    _id = create_document("cause", body, created_by=admin["email"])
    return with_progress(get_document("cause", _id))


@app.post("/donations", status_code=201)
def create_donation(body: DonationRequest, user=Depends(get_current_user)):
    if not body.amount or not body.payment_method:
        raise HTTPException(status_code=400, detail="Please fill in all required fields")
    if body.amount < 10:
        raise HTTPException(status_code=400, detail="Minimum donation amount is ₹10")

    cause = fetch_or_404("cause", body.cause_id, "cause")
    if not cause.get("is_active", True):
        raise HTTPException(status_code=400, detail="Campaign Ended")

    simulate_payment()

    donation = DonationSchema(
        amount=body.amount,
        status="completed",
        cause_id=cause["id"],
        cause_name=cause["name"],
        cause_type=cause["cause_type"],
        payment_method=body.payment_method,
        transaction_id=generate_transaction_id(),
        donor_name=body.donor_name if body.donor_name is not None else user.get("full_name", ""),
        donor_email=body.donor_email if body.donor_email is not None else user["email"],
        donor_phone=body.donor_phone if body.donor_phone is not None else user.get("phone_number", ""),
        anonymous=body.anonymous,
        is_recurring=body.is_recurring,
        recurring_frequency=body.recurring_frequency,
        notes=body.notes,
    )
    _id = create_document("donation", donation, created_by=user["email"])
    logger.info(f"Donation {donation.transaction_id} of {donation.amount} to cause {cause['id']}")
    return get_document("donation", _id)


@app.get("/donations")
def my_donations(search: str = "", limit: int = Query(20, ge=1, le=500), user=Depends(get_current_user)):
    donations = get_documents("donation", {"created_by": user["email"]}, limit, "-created_date")
    return filter_donations(donations, search)


@app.get("/donations/stats")
def my_donation_stats(limit: int = Query(20, ge=1, le=500), user=Depends(get_current_user)):
    return donation_stats(get_documents("donation", {"created_by": user["email"]}, limit, "-created_date"))


# ---------- EcoVoice endpoints ----------
@app.get("/posts")
def list_posts(limit: int = Query(50, ge=1, le=500), user=Depends(optional_user)):
    viewer = user["email"] if user else None
    return [present_post(p, viewer) for p in get_documents("post", {}, limit, "-created_date")]


@app.post("/posts", status_code=201)
def create_post(body: PostRequest, user=Depends(get_current_user)):
    caption = (body.caption or "").strip()
    if not body.url or not caption:
        raise HTTPException(status_code=400, detail="A photo or video and a caption are required")

    post = PostSchema(
        user=author_block(user),
        content={"type": body.type, "url": body.url, "caption": caption},
        location=body.location,
    )
    _id = create_document("post", post, created_by=user["email"])
    return present_post(get_document("post", _id), user["email"])


@app.post("/posts/{post_id}/like")
def like_post(post_id: str, user=Depends(get_current_user)):
    post = fetch_or_404("post", post_id, "post")
    liked = toggle_in_array("post", post_id, "liked_by", user["email"], counter="engagement.likes")

    author = post["user"]["email"]
    if liked and author != user["email"]:
        notify(author, "like", f"{user.get('full_name') or user['email']} liked your post.")

    return present_post(get_document("post", post_id), user["email"])


@app.post("/posts/{post_id}/bookmark")
def bookmark_post(post_id: str, user=Depends(get_current_user)):
    fetch_or_404("post", post_id, "post")
    toggle_in_array("post", post_id, "bookmarked_by", user["email"])
    return present_post(get_document("post", post_id), user["email"])


@app.get("/posts/{post_id}/comments")
def list_comments(post_id: str):
    fetch_or_404("post", post_id, "post")
    return get_documents("comment", {"post_id": post_id}, None, "created_date")


@app.post("/posts/{post_id}/comments", status_code=201)
def add_comment(post_id: str, body: CommentRequest, user=Depends(get_current_user)):
    text = body.text.strip()
    if not text:
        raise HTTPException(status_code=400, detail="Comment cannot be empty")
    post = fetch_or_404("post", post_id, "post")

    name = user.get("full_name") or user["email"]
    comment = CommentSchema(post_id=post_id, user=user["email"], user_name=name, text=text)
    _id = create_document("comment", comment, created_by=user["email"])
    increment_field("post", post_id, "engagement.comments")

    author = post["user"]["email"]
    if author != user["email"]:
        notify(author, "comment", f'{name} commented on your post: "{text}"')
    return get_document("comment", _id)


@app.get("/stories")
def list_stories(limit: int = Query(100, ge=1, le=500), user=Depends(optional_user)):
    viewer = user["email"] if user else None
    return group_stories(get_documents("story", {}, limit, "-created_date"), viewer)


@app.post("/stories", status_code=201)
def create_story(body: StoryRequest, user=Depends(get_current_user)):
    if not body.url:
        raise HTTPException(status_code=400, detail="A photo or video is required")
    if body.duration <= 0:
        raise HTTPException(status_code=400, detail="Story duration must be positive")
    story = StorySchema(user=author_block(user), type=body.type, url=body.url, duration=body.duration)
    _id = create_document("story", story, created_by=user["email"])
    return get_document("story", _id)


# ---------- Chat endpoints ----------

def clock_time(value) -> str:
    return value.strftime("%I:%M %p") if isinstance(value, datetime) else ""


def conversation_for(conversation_id: str, email: str):
    convo = fetch_or_404("conversation", conversation_id, "conversation")
    if email not in convo.get("participants", []):
        raise HTTPException(status_code=404, detail="Conversation not found")
    return convo


def conversation_summary(convo: dict, email: str):
    other = next((p for p in convo["participants"] if p != email), email)
    last = get_documents("message", {"conversation_id": convo["id"]}, 1, "-created_date")
    unread = count_documents("message", {"conversation_id": convo["id"], "sender": {"$ne": email}, "read": False})
    return {
        "id": convo["id"],
        "name": convo.get("names", {}).get(other.replace(".", "_")) or other,
        "participants": convo["participants"],
        "lastMessage": last[0]["text"] if last else "",
        "time": clock_time(last[0]["created_date"]) if last else "",
        "unread": unread,
    }


@app.get("/conversations")
def list_conversations(user=Depends(get_current_user)):
    convos = get_documents("conversation", {"participants": user["email"]}, None, "-updated_date")
    return [conversation_summary(c, user["email"]) for c in convos]


@app.post("/conversations", status_code=201)
def start_conversation(body: ConversationRequest, user=Depends(get_current_user)):
    participant = body.participant_email.lower()
    if participant == user["email"]:
        raise HTTPException(status_code=400, detail="Cannot start a conversation with yourself")
    other = find_document("user", {"email": participant})
    if not other:
        raise HTTPException(status_code=404, detail="User not found")

    pair = [user["email"], other["email"]]
    existing = find_document("conversation", {"participants": {"$all": pair}})
    if existing:
        return conversation_summary(existing, user["email"])

    # Mongo field names cannot contain dots
    names = {
        user["email"].replace(".", "_"): user.get("full_name") or user["email"],
        other["email"].replace(".", "_"): other.get("full_name") or other["email"],
    }
    _id = create_document("conversation", ConversationSchema(participants=pair, names=names), created_by=user["email"])
    return conversation_summary(get_document("conversation", _id), user["email"])


@app.get("/conversations/{conversation_id}/messages")
def list_messages(conversation_id: str, user=Depends(get_current_user)):
    conversation_for(conversation_id, user["email"])
    update_documents(
        "message",
        {"conversation_id": conversation_id, "sender": {"$ne": user["email"]}, "read": False},
        {"read": True},
    )
    messages = get_documents("message", {"conversation_id": conversation_id}, None, "created_date")
    return [{**m, "isMe": m["sender"] == user["email"], "time": clock_time(m.get("created_date"))} for m in messages]


@app.post("/conversations/{conversation_id}/messages", status_code=201)
def send_message(conversation_id: str, body: MessageRequest, user=Depends(get_current_user)):
    text = body.text.strip()
    if not text:
        raise HTTPException(status_code=400, detail="Message cannot be empty")
    conversation_for(conversation_id, user["email"])

    msg = MessageSchema(conversation_id=conversation_id, sender=user["email"], text=text)
    _id = create_document("message", msg, created_by=user["email"])
    update_document("conversation", conversation_id, {})
    saved = get_document("message", _id)
    return {**saved, "isMe": True, "time": clock_time(saved.get("created_date"))}


# ---------- Notification endpoints ----------
@app.get("/notifications")
def list_notifications(limit: int = Query(50, ge=1, le=500), user=Depends(get_current_user)):
    return get_documents("notification", {"recipient": user["email"]}, limit, "-created_date")


@app.post("/notifications/{notification_id}/read")
def mark_notification_read(notification_id: str, user=Depends(get_current_user)):
    note = fetch_or_404("notification", notification_id, "notification")
    if note["recipient"] != user["email"]:
        raise HTTPException(status_code=404, detail="Notification not found")
    update_document("notification", notification_id, {"read": True})
    return {**note, "read": True}


# ---------- Nature heroes & misc endpoints ----------
@app.get("/heroes")
def list_heroes():
    return {"heroes": NATURE_HEROES, "interests": INTEREST_OPTIONS}


@app.post("/heroes/stories", status_code=201)
def share_hero_story(body: HerostorySchema, user=Depends(optional_user)):
    if not body.title.strip() or not body.description.strip():
        raise HTTPException(status_code=400, detail="Please fill in all required fields")
    data = body.model_dump()
    if user:
        data["contact_email"] = data["contact_email"] or user["email"]
        data["contact_name"] = data["contact_name"] or user.get("full_name", "")
    _id = create_document("herostory", data, created_by=user["email"] if user else None)
    return {
        "id": _id,
        "message": "Thank you for sharing your story! It will be reviewed and featured soon.",
    }


@app.post("/heroes/join", status_code=201)
def join_movement(body: MovementmemberSchema, user=Depends(optional_user)):
    if not body.name.strip():
        raise HTTPException(status_code=400, detail="Please fill in all required fields")
    _id = create_document("movementmember", body, created_by=user["email"] if user else None)
    return {
        "id": _id,
        "message": "Welcome to the Nature Heroes movement! You'll receive updates about upcoming initiatives.",
    }


@app.get("/whats-new")
def whats_new():
    return WHATS_NEW


@app.post("/bugs", status_code=201)
def report_bug(body: BugreportSchema, user=Depends(optional_user)):
    if not body.subject.strip() or not body.description.strip():
        raise HTTPException(status_code=400, detail="Please fill in all required fields")
    _id = create_document("bugreport", body, created_by=user["email"] if user else None)
    logger.info(f"Bug report {_id}: {body.subject}")
    return {"id": _id, "ok": True}
