"""
Integration helpers: file upload, transactional email, LLM invocation.

Each one is a thin client over an external collaborator. Failures raise
IntegrationError so endpoints can decide whether to surface or swallow them.
"""

import json
import logging
import os
import smtplib
import uuid
from email.message import EmailMessage
from typing import List, Optional

import requests
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from schemas import PRIORITIES, REPORT_CATEGORIES, Priority, ReportCategory

load_dotenv()

logger = logging.getLogger(__name__)

UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploads")
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "http://localhost:8000").rstrip("/")
ALLOWED_UPLOAD_PREFIXES = ("image/", "video/", "audio/")

SMTP_SERVER = os.getenv("SMTP_SERVER")
SMTP_PORT = int(os.getenv("SMTP_PORT")) if os.getenv("SMTP_PORT") else 587
SMTP_USER = os.getenv("SMTP_USER")
SMTP_PASS = os.getenv("SMTP_PASS")
EMAIL_FROM = os.getenv("EMAIL_FROM") or SMTP_USER

LLM_API_URL = os.getenv("LLM_API_URL")  # OpenAI-compatible /chat/completions
LLM_API_KEY = os.getenv("LLM_API_KEY")
LLM_MODEL = os.getenv("LLM_MODEL", "gpt-4o-mini")
LLM_TIMEOUT = float(os.getenv("LLM_TIMEOUT", "30"))


class IntegrationError(Exception):
    pass


# ---------- File upload ----------

def save_upload(filename: str, content_type: Optional[str], data: bytes) -> str:
    """Store an uploaded file and return its public URL"""
    if not data:
        raise IntegrationError("Empty file")
    if not content_type or not content_type.startswith(ALLOWED_UPLOAD_PREFIXES):
        raise IntegrationError(f"Unsupported file type: {content_type}")

    _, ext = os.path.splitext(filename or "")
    stored_name = f"{uuid.uuid4().hex}{ext.lower()}"
    os.makedirs(UPLOAD_DIR, exist_ok=True)
    try:
        with open(os.path.join(UPLOAD_DIR, stored_name), "wb") as fh:
            fh.write(data)
    except OSError as e:
        logger.error(f"Failed to store upload {filename!r}: {e}")
        raise IntegrationError("Failed to upload file. Please try again.") from e

    logger.info(f"Stored upload {filename!r} as {stored_name} ({len(data)} bytes)")
    return f"{PUBLIC_BASE_URL}/uploads/{stored_name}"


# ---------- Email ----------

def email_configured() -> bool:
    return bool(SMTP_SERVER and SMTP_USER and SMTP_PASS)


def send_email(to: str, subject: str, body: str) -> bool:
    """
    Send a plain-text email over SMTP.

    Returns False (and logs) when SMTP is not configured, so development
    setups keep working without a mail relay.
    """
    if not email_configured():
        logger.warning(f"SMTP not configured; skipping email to {to} ({subject!r})")
        return False

    msg = EmailMessage()
    msg["From"] = EMAIL_FROM
    msg["To"] = to
    msg["Subject"] = subject
    msg.set_content(body)

    try:
        with smtplib.SMTP(SMTP_SERVER, SMTP_PORT, timeout=10) as server:
            server.starttls()
            server.login(SMTP_USER, SMTP_PASS)
            server.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        raise IntegrationError(f"Failed to send email to {to}: {e}") from e

    logger.info(f"Sent email to {to} ({subject!r})")
    return True


# ---------- LLM ----------

def invoke_llm(prompt: str, file_urls: Optional[List[str]] = None, response_json_schema: Optional[dict] = None):
    """
    Call the chat-completions endpoint with a prompt and optional image URLs.

    With a schema the model is asked for JSON and the parsed object is
    returned; otherwise the raw text.
    """
    if not LLM_API_URL:
        raise IntegrationError("LLM endpoint not configured")

    content = [{"type": "text", "text": prompt}]
    for url in file_urls or []:
        content.append({"type": "image_url", "image_url": {"url": url}})

    payload = {
        "model": LLM_MODEL,
        "messages": [{"role": "user", "content": content}],
    }
    if response_json_schema:
        payload["response_format"] = {
            "type": "json_schema",
            "json_schema": {"name": "response", "schema": response_json_schema},
        }

    headers = {"Content-Type": "application/json"}
    if LLM_API_KEY:
        headers["Authorization"] = f"Bearer {LLM_API_KEY}"

    try:
        resp = requests.post(LLM_API_URL, json=payload, headers=headers, timeout=LLM_TIMEOUT)
        resp.raise_for_status()
        text = resp.json()["choices"][0]["message"]["content"]
    except requests.exceptions.Timeout as e:
        raise IntegrationError("LLM request timed out") from e
    except requests.exceptions.RequestException as e:
        raise IntegrationError(f"LLM request failed: {e}") from e
    except (KeyError, IndexError, ValueError) as e:
        raise IntegrationError("Unexpected LLM response shape") from e

    if not response_json_schema:
        return text
    try:
        return json.loads(text)
    except (TypeError, ValueError) as e:
        raise IntegrationError("LLM did not return valid JSON") from e


ISSUE_ANALYSIS_PROMPT = """Analyze this civic issue image and provide structured information about what you see. Look for common civic problems like potholes, broken streetlights, trash/waste issues, water leaks, graffiti, traffic signal problems, sidewalk damage, or other municipal issues.

Please provide:
1. A brief descriptive title for the issue
2. A detailed description of what you observe
3. The most appropriate category from these options: pothole, streetlight, trash, water_leak, graffiti, traffic_signal, sidewalk, noise, other
4. Priority level (low, medium, high, urgent) based on safety and urgency
5. Any additional observations that would help municipal workers

Be specific and professional in your assessment."""

ISSUE_ANALYSIS_SCHEMA = {
    "type": "object",
    "properties": {
        "title": {"type": "string", "description": "Brief title for the civic issue"},
        "description": {"type": "string", "description": "Detailed description of the observed issue"},
        "category": {
            "type": "string",
            "enum": REPORT_CATEGORIES,
            "description": "Most appropriate category for this issue",
        },
        "priority": {
            "type": "string",
            "enum": PRIORITIES,
            "description": "Recommended priority level",
        },
        "confidence": {
            "type": "string",
            "enum": ["high", "medium", "low"],
            "description": "AI confidence in the analysis",
        },
        "additional_notes": {"type": "string", "description": "Additional observations or recommendations"},
    },
    "required": ["title", "description", "category", "priority", "confidence"],
}


class IssueAnalysis(BaseModel):
    title: str
    description: str
    category: ReportCategory
    priority: Priority
    confidence: str = Field('medium')
    additional_notes: Optional[str] = ''


def analyze_issue_image(file_url: str) -> IssueAnalysis:
    raw = invoke_llm(ISSUE_ANALYSIS_PROMPT, file_urls=[file_url], response_json_schema=ISSUE_ANALYSIS_SCHEMA)
    try:
        return IssueAnalysis.model_validate(raw)
    except ValueError as e:
        raise IntegrationError(f"LLM analysis did not match schema: {e}") from e


PREFILL_FIELDS = ("title", "description", "category", "priority")


def apply_suggestions(form: dict, suggestion: dict) -> dict:
    """Fill report form fields from an AI suggestion, keeping existing values where it is blank"""
    merged = dict(form)
    for key in PREFILL_FIELDS:
        if suggestion.get(key):
            merged[key] = suggestion[key]
    return merged
