from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from pydantic import BaseModel
from typing import List, Optional, Literal
import logging
from datetime import datetime
import os
import sys
import asyncio

# Add parent directory to path to allow imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from api import storage, llm_service, analysis_service, email_service
from core import config
from core.errors import TranscriptIQError

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger("api-server")

llm_service.setup_llm_debug_log(config.LLM_DEBUG_LOG)

app = FastAPI(title="TranscriptIQ API")

# Permissive CORS for the browser frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials="*" not in config.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Pydantic models for API
class TranscriptItem(BaseModel):
    filename: str | None = None
    content: str | None = None


class AnalyzeRequest(BaseModel):
    transcripts: List[TranscriptItem] = []
    projectId: str | None = None


class ChatRequest(BaseModel):
    question: str | None = None
    projectId: str | None = None
    sessionId: str | None = None


class CleanupRequest(BaseModel):
    text: str | None = None
    # Legacy request shape
    quote: str | None = None
    participant: str | None = None
    context: str | None = None


class AuthEmailRequest(BaseModel):
    email: str | None = None
    type: str | None = None
    token: str = ""
    redirectTo: str | None = None


class ProjectRequest(BaseModel):
    name: str | None = None
    description: str = ""


class ContextRequest(BaseModel):
    context: str = ""
    mode: Literal["append", "replace"] = "append"


class TranscriptRequest(BaseModel):
    filename: str | None = None
    content: str | None = None


def error_response(message: str, status: int = 500) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(str(exc.detail), exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return error_response(f"Invalid request body: {exc.errors()}", 400)


@app.get("/")
async def root():
    """Health check endpoint"""
    return {
        "status": "ok",
        "service": "TranscriptIQ API",
        "timestamp": datetime.now().isoformat()
    }


# --- LLM-backed functions ---

@app.post("/api/analyze")
async def analyze_transcripts(request: AnalyzeRequest):
    """
    Extract key themes and disagreements from transcripts.

    Uses the transcripts in the body, or the project's stored transcripts when
    the body has none. The result is persisted when a projectId is given.
    """
    transcripts = [t.model_dump() for t in request.transcripts] or None
    try:
        return await asyncio.to_thread(
            analysis_service.run_analysis,
            project_id=request.projectId,
            transcripts=transcripts
        )
    except TranscriptIQError as e:
        logger.error(f"Error in analyze-transcripts: {e}")
        return error_response(str(e))


@app.post("/api/chat")
async def chat_with_transcripts(request: ChatRequest):
    """Answer a question about a project's transcripts, with supporting quotes"""
    if not request.question or not request.question.strip() or not request.projectId:
        return error_response("Question and project ID are required", 400)

    try:
        exchange = await asyncio.to_thread(
            analysis_service.answer_question,
            request.projectId,
            request.question,
            session_id=request.sessionId
        )
    except TranscriptIQError as e:
        logger.error(f"Error in chat-with-transcripts: {e}")
        return error_response(str(e))

    return {"response": exchange["ai_response"], "quotes": exchange["response_quotes"]}


@app.post("/api/cleanup-quote")
async def cleanup_quote(request: CleanupRequest):
    """Remove disfluencies from a single quote"""
    legacy = request.text is None and request.quote is not None
    text = request.quote if legacy else request.text

    try:
        cleaned = await asyncio.to_thread(
            analysis_service.cleanup_quote,
            text or "",
            request.participant,
            request.context
        )
    except TranscriptIQError as e:
        logger.error(f"Error in cleanup-quote: {e}")
        return error_response(str(e))

    body = {"cleanedText": cleaned}
    if legacy:
        body["cleanedQuote"] = cleaned
    return body


@app.post("/api/send-auth-email")
async def send_auth_email(request: AuthEmailRequest):
    """Send sign-up, recovery or magic-link e-mail"""
    try:
        message_id = await asyncio.to_thread(
            email_service.send_auth_email,
            request.email,
            request.type,
            request.token,
            request.redirectTo
        )
    except TranscriptIQError as e:
        logger.error(f"Error sending auth email: {e}")
        return error_response(str(e))

    return {"success": True, "messageId": message_id}


# --- Projects ---

@app.get("/api/projects")
def list_projects():
    """List all projects, newest first"""
    try:
        return {"projects": storage.list_projects(config.DATA_DIR)}
    except TranscriptIQError as e:
        logger.error(f"Error listing projects: {e}")
        return error_response(str(e))


@app.post("/api/projects")
def create_project(request: ProjectRequest):
    if not request.name or not request.name.strip():
        return error_response("Project name is required", 400)
    try:
        project = storage.create_project(request.name.strip(), request.description, config.DATA_DIR)
        logger.info(f"✅ Created project {project['id']} ({project['name']})")
        return project
    except TranscriptIQError as e:
        logger.error(f"Error creating project: {e}")
        return error_response(str(e))


@app.get("/api/projects/{project_id}")
def get_project(project_id: str):
    try:
        return storage.load_project(project_id, config.DATA_DIR)
    except FileNotFoundError:
        return error_response("Project not found", 404)
    except TranscriptIQError as e:
        logger.error(f"Error loading project: {e}")
        return error_response(str(e))


@app.put("/api/projects/{project_id}")
def update_project(project_id: str, request: ProjectRequest):
    if not request.name or not request.name.strip():
        return error_response("Project name is required", 400)
    try:
        return storage.update_project(
            project_id, config.DATA_DIR, name=request.name.strip(), description=request.description
        )
    except FileNotFoundError:
        return error_response("Project not found", 404)
    except TranscriptIQError as e:
        logger.error(f"Error updating project: {e}")
        return error_response(str(e))


@app.delete("/api/projects/{project_id}")
def delete_project(project_id: str):
    try:
        storage.delete_project(project_id, config.DATA_DIR)
        return {"status": "deleted", "id": project_id}
    except FileNotFoundError:
        return error_response("Project not found", 404)
    except TranscriptIQError as e:
        logger.error(f"Error deleting project: {e}")
        return error_response(str(e))


# --- Project context ---

@app.get("/api/projects/{project_id}/context")
def get_context(project_id: str):
    try:
        return {"context": storage.get_project_context(project_id, config.DATA_DIR)}
    except FileNotFoundError:
        return error_response("Project not found", 404)
    except TranscriptIQError as e:
        logger.error(f"Error loading project context: {e}")
        return error_response(str(e))


@app.put("/api/projects/{project_id}/context")
def save_context(project_id: str, request: ContextRequest):
    """Append to (default) or replace the project context"""
    try:
        context = storage.save_project_context(project_id, request.context, config.DATA_DIR, mode=request.mode)
        return {"context": context}
    except FileNotFoundError:
        return error_response("Project not found", 404)
    except TranscriptIQError as e:
        logger.error(f"Error saving project context: {e}")
        return error_response(str(e))


@app.delete("/api/projects/{project_id}/context")
def delete_context(project_id: str):
    try:
        storage.clear_project_context(project_id, config.DATA_DIR)
        return {"context": ""}
    except FileNotFoundError:
        return error_response("Project not found", 404)
    except TranscriptIQError as e:
        logger.error(f"Error deleting project context: {e}")
        return error_response(str(e))


# --- Transcripts ---

@app.get("/api/projects/{project_id}/transcripts")
def list_transcripts(project_id: str):
    try:
        return {"transcripts": storage.list_transcripts(project_id, config.DATA_DIR)}
    except TranscriptIQError as e:
        logger.error(f"Error listing transcripts: {e}")
        return error_response(str(e))


@app.post("/api/projects/{project_id}/transcripts")
def add_transcript(project_id: str, request: TranscriptRequest):
    if not request.filename or not request.content:
        return error_response("Filename and content are required", 400)
    try:
        storage.load_project(project_id, config.DATA_DIR)
        transcript = storage.add_transcript(project_id, request.filename, request.content, config.DATA_DIR)
        logger.info(f"📄 Added transcript {request.filename} ({transcript['size_kb']} KB) to project {project_id}")
        return transcript
    except FileNotFoundError:
        return error_response("Project not found", 404)
    except TranscriptIQError as e:
        logger.error(f"Error adding transcript: {e}")
        return error_response(str(e))


@app.delete("/api/transcripts/{transcript_id}")
def delete_transcript(transcript_id: str):
    try:
        storage.delete_transcript(transcript_id, config.DATA_DIR)
        return {"status": "deleted", "id": transcript_id}
    except FileNotFoundError:
        return error_response("Transcript not found", 404)
    except TranscriptIQError as e:
        logger.error(f"Error deleting transcript: {e}")
        return error_response(str(e))


# --- Analysis results ---

@app.get("/api/projects/{project_id}/analysis")
def get_latest_analysis(project_id: str):
    """Most recent analysis for a project (earlier runs are superseded)"""
    try:
        row = storage.get_latest_analysis_result(project_id, config.DATA_DIR)
    except TranscriptIQError as e:
        logger.error(f"Error loading analysis result: {e}")
        return error_response(str(e))

    if row is None:
        return error_response("No analysis found for this project", 404)
    return analysis_service.row_to_analysis_result(row)


@app.post("/api/projects/{project_id}/analysis")
def run_project_analysis(project_id: str):
    """Analyze all stored transcripts of a project and persist the result"""
    try:
        storage.load_project(project_id, config.DATA_DIR)
        return analysis_service.run_analysis(project_id=project_id)
    except FileNotFoundError:
        return error_response("Project not found", 404)
    except TranscriptIQError as e:
        logger.error(f"Error analyzing project {project_id}: {e}")
        return error_response(str(e))


# --- Chat history ---

@app.get("/api/projects/{project_id}/chat")
def list_chat(project_id: str, sessionId: Optional[str] = None):
    try:
        return {"conversations": storage.list_chat_exchanges(project_id, config.DATA_DIR, session_id=sessionId)}
    except TranscriptIQError as e:
        logger.error(f"Error loading chat history: {e}")
        return error_response(str(e))


@app.delete("/api/projects/{project_id}/chat")
def clear_chat(project_id: str):
    try:
        deleted = storage.delete_chat_exchanges(project_id, config.DATA_DIR)
        logger.info(f"🗑️  Cleared {deleted} chat exchange(s) for project {project_id}")
        return {"deleted": deleted}
    except TranscriptIQError as e:
        logger.error(f"Error clearing chat history: {e}")
        return error_response(str(e))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.HOST, port=config.PORT, log_level=config.LOG_LEVEL.lower())
