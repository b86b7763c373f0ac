"""
Orchestration of the three LLM-backed operations: full analysis, transcript
chat, and quote cleanup.

Each operation is one synchronous round trip to the generation endpoint plus
storage reads/writes. Nothing is retried.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, List, Any, Optional

from api import llm_service, storage
from core import config
from core.errors import NoTranscriptsError, ParseError, PersistenceError, ValidationError
from core.extractor import extract_json, validate_analysis_shape
from core.models import AnalysisResult, ChatExchange, TranscriptInput
from core.speaker_filter import filter_excluded_speaker, filter_quotes
from prompts import ANALYSIS_PROMPT, CHAT_PROMPT, CLEANUP_PROMPT

logger = logging.getLogger("analysis-service")

# Stripped once from each end of a cleaned quote
QUOTE_CHARS = '"“”„«»'


def _load_context(project_id: Optional[str], data_dir: str) -> str:
    """Project context is optional; any failure to read it means no context."""
    if not project_id:
        return ""
    try:
        return storage.get_project_context(project_id, data_dir)
    except (FileNotFoundError, PersistenceError) as e:
        logger.warning(f"⚠️  Could not load context for project {project_id}: {e}")
        return ""


def row_to_analysis_result(row: Dict[str, Any]) -> AnalysisResult:
    """Convert a stored analysis_results row into the API shape"""
    return {
        "id": row["id"],
        "projectId": row["project_id"],
        "keyThemes": row.get("key_themes", []),
        "disagreements": row.get("disagreements", []),
        "transcriptCountAtAnalysis": row.get("transcript_count", 0),
        "createdAt": row["created_at"]
    }


def run_analysis(
    project_id: Optional[str] = None,
    transcripts: Optional[List[TranscriptInput]] = None,
    data_dir: Optional[str] = None,
    excluded_aliases: Optional[List[str]] = None
) -> AnalysisResult:
    """
    Extract key themes and disagreements from a set of transcripts.

    Args:
        project_id: Project to analyze; its stored transcripts are used when
            transcripts is not given, and the result is persisted against it
        transcripts: Explicit transcript dicts (filename, content)
        data_dir: Storage root (defaults to config.DATA_DIR)
        excluded_aliases: Speaker names to exclude (defaults to config)

    Returns:
        dict: AnalysisResult with keyThemes, disagreements,
            transcriptCountAtAnalysis and createdAt

    Raises:
        NoTranscriptsError, UpstreamError, ParseError, SchemaError, PersistenceError
    """
    data_dir = data_dir or config.DATA_DIR
    aliases = config.EXCLUDED_SPEAKER_ALIASES if excluded_aliases is None else excluded_aliases

    if transcripts is None and project_id:
        transcripts = storage.list_transcripts(project_id, data_dir)

    if not transcripts:
        raise NoTranscriptsError()

    project_context = _load_context(project_id, data_dir)
    system_instruction, user_instruction = ANALYSIS_PROMPT(transcripts, project_context, aliases)

    logger.info(f"📊 Analyzing {len(transcripts)} transcript(s) for project {project_id or '-'}")
    raw_text = llm_service.generate_completion(
        system_instruction,
        user_instruction,
        model=config.ANALYSIS_MODEL,
        temperature=config.ANALYSIS_TEMPERATURE,
        max_tokens=config.ANALYSIS_MAX_TOKENS
    )

    analysis = validate_analysis_shape(extract_json(raw_text))
    analysis = filter_excluded_speaker(analysis, aliases)

    result = {
        "keyThemes": analysis["keyThemes"],
        "disagreements": analysis["disagreements"],
        "transcriptCountAtAnalysis": len(transcripts),
        "createdAt": datetime.now(timezone.utc).isoformat()
    }

    if project_id:
        row = storage.save_analysis_result(project_id, result, len(transcripts), data_dir)
        result = row_to_analysis_result(row)
        try:
            storage.update_project(project_id, data_dir, last_analyzed=row["created_at"])
        except FileNotFoundError:
            logger.warning(f"⚠️  Analysis saved for unknown project {project_id}")

    logger.info(
        f"✅ Analysis complete: {len(result['keyThemes'])} themes, "
        f"{len(result['disagreements'])} disagreements"
    )
    return result


def parse_chat_reply(raw_text: str) -> Dict[str, Any]:
    """
    Parse a chat reply into {response, quotes}.

    Plain-text replies are accepted as the answer with no quotes.
    """
    try:
        parsed = extract_json(raw_text)
    except ParseError:
        logger.info("💬 Chat reply had no JSON, using raw text as the answer")
        return {"response": raw_text, "quotes": []}

    response = parsed.get("response")
    quotes = parsed.get("quotes")
    return {
        "response": response if isinstance(response, str) else raw_text,
        "quotes": quotes if isinstance(quotes, list) else []
    }


def answer_question(
    project_id: str,
    question: str,
    session_id: Optional[str] = None,
    data_dir: Optional[str] = None,
    excluded_aliases: Optional[List[str]] = None
) -> ChatExchange:
    """
    Answer one question against a project's transcripts and log the exchange.

    A failure to save the exchange is logged and does not fail the call.

    Returns:
        dict: ChatExchange (id is None if it could not be saved)

    Raises:
        ValidationError, NoTranscriptsError, UpstreamError, PersistenceError (transcript load)
    """
    if not question or not question.strip() or not project_id:
        raise ValidationError("Question and project ID are required")

    data_dir = data_dir or config.DATA_DIR
    aliases = config.EXCLUDED_SPEAKER_ALIASES if excluded_aliases is None else excluded_aliases

    transcripts = storage.list_transcripts(project_id, data_dir)
    if not transcripts:
        raise NoTranscriptsError("No transcripts found for this project. Please add some transcripts first.")

    project_context = _load_context(project_id, data_dir)
    system_instruction, user_instruction = CHAT_PROMPT(transcripts, project_context, question, aliases)

    raw_text = llm_service.generate_completion(
        system_instruction,
        user_instruction,
        model=config.CHAT_MODEL,
        temperature=config.CHAT_TEMPERATURE,
        max_tokens=config.CHAT_MAX_TOKENS
    )

    reply = parse_chat_reply(raw_text)
    quotes = filter_quotes(reply["quotes"], aliases)

    exchange = {
        "id": None,
        "project_id": project_id,
        "user_message": question,
        "ai_response": reply["response"],
        "response_quotes": quotes,
        "created_at": datetime.now(timezone.utc).isoformat(),
        "session_id": session_id
    }

    try:
        exchange = storage.save_chat_exchange(
            project_id, question, reply["response"], quotes, data_dir, session_id=session_id
        )
    except PersistenceError as e:
        # Don't fail the request if saving fails, just log it
        logger.error(f"Error saving conversation: {e}")

    logger.info(f"💬 Answered question for project {project_id} with {len(quotes)} quote(s)")
    return exchange


def strip_wrapping_quotes(text: str) -> str:
    """Remove one leading and one trailing quotation mark, if present."""
    text = text.strip()
    if text and text[0] in QUOTE_CHARS:
        text = text[1:]
    if text and text[-1] in QUOTE_CHARS:
        text = text[:-1]
    return text.strip()


def cleanup_quote(text: str, participant: Optional[str] = None, context: Optional[str] = None) -> str:
    """
    Remove disfluencies and speech-to-text artifacts from one quote.

    Raises:
        ValidationError: empty quote
        UpstreamError: generation call failed
    """
    if not text or not text.strip():
        raise ValidationError("Quote text is required")

    system_instruction, user_instruction = CLEANUP_PROMPT(text.strip(), participant, context)
    cleaned = llm_service.generate_completion(
        system_instruction,
        user_instruction,
        model=config.CLEANUP_MODEL,
        temperature=config.CLEANUP_TEMPERATURE,
        max_tokens=config.CLEANUP_MAX_TOKENS
    )

    logger.info("✨ Quote cleaned successfully")
    return strip_wrapping_quotes(cleaned)
