from openai import OpenAI, OpenAIError
from typing import Optional
import logging

from core import config
from core.errors import UpstreamError

logger = logging.getLogger("llm-service")

# Raw prompt/response log, only attached when LLM_DEBUG_LOG is set
llm_logger = logging.getLogger("llm-debug")
llm_logger.propagate = False


def setup_llm_debug_log(log_file: str) -> None:
    """Write raw prompts and model replies to a dedicated file."""
    if not log_file or llm_logger.handlers:
        return
    llm_file_handler = logging.FileHandler(log_file, mode='a')
    llm_file_handler.setFormatter(logging.Formatter(
        '%(asctime)s | %(levelname)s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    llm_logger.addHandler(llm_file_handler)
    llm_logger.setLevel(logging.INFO)
    logger.info(f"📝 LLM debug logs will be written to: {log_file}")


def _client() -> OpenAI:
    if not config.LLM_API_KEY:
        raise UpstreamError("LLM API key not configured")
    return OpenAI(api_key=config.LLM_API_KEY, base_url=config.LLM_BASE_URL)


def generate_completion(
    system_instruction: str,
    user_instruction: str,
    model: Optional[str] = None,
    temperature: float = 0.3,
    max_tokens: int = 1000
) -> str:
    """
    Send one chat completion request and return the reply text.

    No retries and no streaming; the transport default timeout applies.

    Args:
        system_instruction: System message
        user_instruction: User message
        model: Model name (defaults to the analysis model)
        temperature: Sampling temperature
        max_tokens: Completion token limit

    Returns:
        str: The model's reply, stripped

    Raises:
        UpstreamError: non-success response or malformed envelope
    """
    client = _client()
    model = model or config.ANALYSIS_MODEL

    llm_logger.info(f"--- LLM GENERATION START ({model}) ---")
    llm_logger.info(f"System:\n{system_instruction}")
    llm_logger.info(f"User:\n{user_instruction}")

    try:
        response = client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": system_instruction},
                {"role": "user", "content": user_instruction}
            ],
            temperature=temperature,
            max_tokens=max_tokens
        )
    except OpenAIError as e:
        logger.error(f"❌ LLM API error: {e}")
        raise UpstreamError(f"LLM API error: {e}") from e

    if not response.choices or response.choices[0].message is None:
        raise UpstreamError("Invalid response from LLM API")

    content = response.choices[0].message.content
    if not content:
        raise UpstreamError("No response generated from AI")

    llm_logger.info(f"Raw response:\n{content}")
    llm_logger.info("--- LLM GENERATION END ---")

    return content.strip()
