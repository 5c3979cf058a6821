"""Context-grounded answer generation.

Wraps an :class:`~docrag.interfaces.llm_provider.ILLMProvider` with the
prompt used for retrieval-augmented answers: the model may only use the
supplied context and must say so when the context lacks the answer.
"""

from __future__ import annotations

import structlog

from docrag.interfaces.llm_provider import ILLMProvider

logger = structlog.get_logger(logger_name=__name__)

# Fixed answers returned to callers verbatim; tests and clients match on them.
NOT_FOUND_ANSWER = "Not found in document."
EMPTY_RESPONSE_ANSWER = "No response from LLM."

# The refusal sentence in the prompt must stay identical to NOT_FOUND_ANSWER.
_SYSTEM_PROMPT = (
    "You are a document analysis AI. Answer ONLY using the provided context. "
    f'If the answer is not found in the context, say exactly: "{NOT_FOUND_ANSWER}" '
    "Do not make up information. Be concise and accurate."
)

# Section labels are fixed; the trailing "Answer:" is where the reply starts.
_USER_PROMPT_TEMPLATE = """\
Context:
{context}

Question:
{question}

Answer:"""


class AnswerGenerator:
    """Generates an answer to a question from retrieved context.

    Parameters
    ----------
    llm_provider:
        Completion backend.
    temperature:
        Sampling temperature; kept low so answers stay close to the context.
    max_tokens:
        Upper bound on answer length.
    """

    def __init__(
        self,
        llm_provider: ILLMProvider,
        temperature: float = 0.1,
        max_tokens: int = 1024,
    ) -> None:
        self._llm = llm_provider
        self._temperature = temperature
        self._max_tokens = max_tokens

    @property
    def provider_name(self) -> str:
        return self._llm.get_provider_name()

    async def generate_answer(self, context: str, question: str) -> str:
        """Answer *question* using only *context*.

        Returns ``"No response from LLM."`` when the model replies with
        nothing.  Provider errors propagate as ``LLMError``.
        """
        user_prompt = _USER_PROMPT_TEMPLATE.format(context=context, question=question)
        answer = await self._llm.complete(
            system_prompt=_SYSTEM_PROMPT,
            user_prompt=user_prompt,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )
        # Providers return "" rather than None when the model produced nothing.
        answer = answer.strip()
        if not answer:
            logger.warning("llm_empty_answer", provider=self.provider_name)
            return EMPTY_RESPONSE_ANSWER

        logger.info(
            "answer_generated",
            provider=self.provider_name,
            context_chars=len(context),
            answer_chars=len(answer),
        )
        return answer
