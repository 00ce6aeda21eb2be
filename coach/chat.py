"""AI career coach chat seeded with an analysis result."""
import uuid
from typing import Iterator, Optional

from config import CHAT_ERROR_MESSAGE, COACH_NAME
from coach.schemas import AnalysisResult, ChatMessage
from services.llm_client import LLMClient, ChatBackend
from utils.logging_utils import get_logger

logger = get_logger(__name__)


class ChatBusyError(RuntimeError):
    """A previous exchange on this session is still streaming."""


def build_chat_system_instruction(result: AnalysisResult) -> str:
    """System instruction summarising the analysis for the coach."""
    gaps_summary = ", ".join(f"{g['skillName']} ({g['importance']})" for g in result["gaps"])
    learning_steps = "\n".join(f"{s['stepNumber']}. {s['topic']}" for s in result["learningPath"])

    return f"""You are an expert Career Coach and Technical Mentor named "{COACH_NAME}".
The user has just completed a skill gap analysis for the target role: "{result['jobTitle']}".

Analysis Context:
- Match Score: {result['matchScore']}%
- Market Summary: {result['marketSummary']}
- Critical Gaps Identified: {gaps_summary}
- Suggested Learning Path Steps:
{learning_steps}

Your goals:
1. Help the user understand their results and why certain gaps are critical.
2. Provide specific advice, study tips, or explanations for technical concepts related to their gaps.
3. Keep the user motivated and confident.
4. Be concise, friendly, and professional.

If the user asks for more resources, you can suggest specific books, websites, or project ideas that align with their learning path."""


def greeting_message(result: AnalysisResult) -> ChatMessage:
    return ChatMessage(
        id="init",
        role="model",
        text=(
            f"Hi! I'm {COACH_NAME}, your AI career coach. I've analyzed your profile for the "
            f"{result['jobTitle']} role. How can I help you get started with your learning path?"
        ),
    )


class ChatSession:
    """One conversation; at most one exchange may be in flight."""

    def __init__(self, backend: ChatBackend, system_instruction: str):
        self._backend = backend
        self.system_instruction = system_instruction
        self._busy = False

    @property
    def is_busy(self) -> bool:
        return self._busy

    def send(self, text: str) -> Iterator[str]:
        """
        Send a message and return the reply as a lazy sequence of fragments.

        The fragments must be concatenated to get the full reply. The
        sequence is finite and can only be consumed once.

        Raises:
            ChatBusyError: If the previous reply is still streaming
        """
        if self._busy:
            raise ChatBusyError("Wait for the current reply to finish.")
        return self._exchange(text)

    def _exchange(self, text: str) -> Iterator[str]:
        if self._busy:
            raise ChatBusyError("Wait for the current reply to finish.")
        self._busy = True
        try:
            yield from self._backend.send_message_stream(text)
        finally:
            self._busy = False


def open_chat_session(result: AnalysisResult, llm: LLMClient) -> ChatSession:
    """Start a chat whose context is fixed to the given analysis."""
    system_instruction = build_chat_system_instruction(result)
    return ChatSession(llm.start_chat(system_instruction), system_instruction)


def new_message_id() -> str:
    return uuid.uuid4().hex


def stream_reply(session: ChatSession, text: str,
                 message_id: Optional[str] = None) -> Iterator[ChatMessage]:
    """
    Accumulate a streamed reply into message snapshots.

    Yields one snapshot per fragment (is_streaming=True) and a final one
    with is_streaming=False. If the exchange fails at any point, the last
    snapshot carries the fixed apology text instead; nothing is retried.

    Raises:
        ChatBusyError: If the session is already streaming a reply
    """
    message_id = message_id or new_message_id()
    fragments = session.send(text)
    reply = ""
    try:
        for fragment in fragments:
            reply += fragment
            yield ChatMessage(id=message_id, role="model", text=reply, is_streaming=True)
    except ChatBusyError:
        raise
    except Exception as e:
        logger.error(f"Chat error: {str(e)}")
        yield ChatMessage(id=message_id, role="model", text=CHAT_ERROR_MESSAGE, is_streaming=False)
        return

    yield ChatMessage(id=message_id, role="model", text=reply, is_streaming=False)
