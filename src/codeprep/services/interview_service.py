"""
Interview content produced by the text generation service, each with a fixed fallback.
"""
import logging
import re
from typing import Optional

from redis.exceptions import RedisError

from src.codeprep.models.interview import Interview
from src.codeprep.schemas.interview import InterviewCreate, TranscriptTurn
from src.codeprep.services.conversation_store import ConversationStore
from src.codeprep.services.text_generation import GenerationResult, TextGenerationClient

logger = logging.getLogger(__name__)

FOLLOW_UP_FALLBACK = "Thank you for your response. Let's continue with the next question."
FEEDBACK_FALLBACK = "Unable to generate feedback at this time."

DEFAULT_QUESTIONS = {
    "technical": [
        "Walk me through a technically challenging project you worked on recently.",
        "How would you design a URL shortening service?",
        "Explain the difference between a process and a thread.",
        "How do you approach debugging a problem you cannot reproduce locally?",
        "Describe how you would optimize a slow database query.",
    ],
    "behavioral": [
        "Tell me about yourself and what draws you to this role.",
        "Describe a time you disagreed with a teammate and how you resolved it.",
        "Tell me about a project that failed and what you learned from it.",
        "How do you prioritize when everything seems urgent?",
        "Describe a time you had to learn something new quickly.",
    ],
}

MIN_QUESTIONS = 3
MAX_QUESTIONS = 10
MINUTES_PER_QUESTION = 6

_NUMBERED_LINE = re.compile(r"^\s*(?:\d+[.)]|[-*])\s*(.+?)\s*$")


def question_count(duration: str) -> int:
    """Number of questions that fit the interview duration (minutes)."""
    match = re.search(r"\d+", duration or "")
    if not match:
        return 5
    return max(MIN_QUESTIONS, min(MAX_QUESTIONS, int(match.group()) // MINUTES_PER_QUESTION))


def default_questions(interview_type: str, count: int) -> list[str]:
    questions = DEFAULT_QUESTIONS.get(interview_type.lower(), DEFAULT_QUESTIONS["behavioral"] + DEFAULT_QUESTIONS["technical"])
    return questions[:count]


def parse_questions(text: str, count: int) -> list[str]:
    """Numbered or bulleted lines of a completion, at most ``count``."""
    questions = []
    for line in text.splitlines():
        match = _NUMBERED_LINE.match(line)
        if match and match.group(1):
            questions.append(match.group(1))
    return questions[:count]


async def generate_questions(client: TextGenerationClient, interview_in: InterviewCreate) -> list[str]:
    """Questions for a new interview; the fixed set when generation fails."""
    count = question_count(interview_in.duration)
    prompt = (
        f"Generate {count} {interview_in.difficulty} {interview_in.interview_type} interview questions "
        f"for the position of {interview_in.position}"
        + (f" at {interview_in.company_name}" if interview_in.company_name else "")
        + ".\n"
        + (f"Job description:\n{interview_in.job_description}\n" if interview_in.job_description else "")
        + "Return only a numbered list, one question per line."
    )
    result = await client.complete(prompt, max_tokens=800)
    questions = parse_questions(result.text, count) if result.ok else []
    if not questions:
        logger.info(f"Using default questions ({result.status.value}: {result.error})")
        return default_questions(interview_in.interview_type, count)
    return questions


async def generate_follow_up(
    client: TextGenerationClient,
    store: ConversationStore,
    interview: Interview,
    *,
    user_input: str,
    question_index: int,
    candidate_name: Optional[str] = None,
) -> GenerationResult:
    """Interviewer reply to a candidate answer, using the recent turns of this interview."""
    session_id = str(interview.id)
    questions = interview.questions or []
    current_question = questions[question_index] if question_index < len(questions) else ""

    try:
        history = await store.recent(session_id, limit=6)
    except RedisError as e:
        logger.warning(f"Conversation history unavailable for interview {session_id}: {e}")
        history = []

    transcript = "\n".join(
        f"{'Interviewer' if turn.get('role') == 'assistant' else 'Candidate'}: {turn.get('text', '')}"
        for turn in history
    )
    prompt = (
        "You are an AI interviewer conducting a professional interview.\n\n"
        f"Position: {interview.position}\n"
        f"Interview type: {interview.interview_type}\n"
        f"Current question: {current_question}\n"
        f"Question {question_index + 1} of {len(questions)}\n"
        + (f"Candidate name: {candidate_name}\n" if candidate_name else "")
        + (f"\nRecent conversation:\n{transcript}\n" if transcript else "")
        + f'\nCandidate response: "{user_input}"\n\n'
        "Reply with a brief, professional follow-up under 50 words. Ask for clarification "
        "if the answer is incomplete, otherwise move on to the next question."
    )
    result = await client.complete(prompt, max_tokens=150)

    try:
        await store.append(session_id, "user", user_input)
        await store.append(session_id, "assistant", result.text_or(FOLLOW_UP_FALLBACK))
    except RedisError as e:
        logger.warning(f"Could not record turn for interview {session_id}: {e}")
    return result


async def generate_feedback(
    client: TextGenerationClient,
    interview: Interview,
    transcript: list[TranscriptTurn],
    completion_rate: Optional[float] = None,
) -> GenerationResult:
    conversation = "\n".join(
        f"{'Interviewer' if turn.role == 'assistant' else 'Candidate'}: {turn.text}" for turn in transcript
    ) or "No conversation transcript available."
    prompt = (
        "Analyze this interview conversation and provide professional feedback for the candidate.\n\n"
        f"Position: {interview.position}\n"
        f"Duration: {interview.duration}\n"
        + (f"Completion rate: {completion_rate:.0f}%\n" if completion_rate is not None else "")
        + f"Interview type: {interview.interview_type}\n"
        f"Difficulty: {interview.difficulty}\n"
        f"Questions prepared: {len(interview.questions or [])}\n\n"
        f"Conversation:\n{conversation}\n\n"
        "Cover overall performance, communication, technical competency, problem solving, "
        "strengths, areas for improvement and a final recommendation."
    )
    return await client.complete(prompt, max_tokens=1000)


async def forget_conversation(store: ConversationStore, interview_id) -> None:
    """Drop the stored turns of a finished interview."""
    try:
        await store.clear(str(interview_id))
    except RedisError as e:
        logger.warning(f"Could not clear conversation for interview {interview_id}: {e}")
