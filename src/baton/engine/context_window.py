"""Conversation trimming to fit a model's context window."""

import logging
from typing import Callable, List, Optional, Protocol, Sequence, Tuple

from baton.domain.context_config import ContextConfig, ContextStrategy
from baton.domain.messages import (
    SUMMARY_NOTICE_PREFIX,
    TRUNCATION_NOTICE_PREFIX,
    Message,
    Role,
)
from baton.engine.token_estimator import (
    CONVERSATION_OVERHEAD,
    estimate_message,
    estimate_messages,
)
from baton.llm.provider import ModelResponse, ProviderAdapter

logger = logging.getLogger(__name__)

SUMMARY_INSTRUCTIONS = (
    "Summarize the following conversation excerpt in a few sentences. "
    "Keep facts, decisions, tool results and open requests. "
    "Do not add commentary."
)


class Summarizer(Protocol):
    """Produces a short text summary of dropped history."""

    def summarize(self, messages: Sequence[Message]) -> str:
        ...


def truncation_notice(dropped: int) -> Message:
    return Message.system(
        f"{TRUNCATION_NOTICE_PREFIX}{dropped} earlier messages were truncated "
        "to fit the context window.]"
    )


def summary_notice(dropped: int, summary: str) -> Message:
    return Message.system(
        f"{SUMMARY_NOTICE_PREFIX}{dropped} earlier messages: {summary}]"
    )


class ContextWindowManager:
    """
    Trims a conversation before each provider call.

    The leading system message (when preserve_system is set) and the trailing
    preserve_recent messages are always kept, even past the budget. Older
    history is re-admitted newest first while it fits, and a single notice
    replaces whatever was dropped.

    Args:
        config: Trimming limits.
        summarizer: Used by the summarization strategy; without one the
            strategy falls back to the truncation notice.
    """

    def __init__(
        self, config: ContextConfig, summarizer: Optional[Summarizer] = None
    ) -> None:
        self.config = config
        self.summarizer = summarizer

    def fits(self, messages: Sequence[Message]) -> bool:
        if self.config.strategy == ContextStrategy.MESSAGE_COUNT:
            return len(messages) <= self.config.max_messages
        return estimate_messages(messages) <= self.config.max_tokens

    def trim(self, messages: Sequence[Message]) -> List[Message]:
        """
        Returns the messages to send, oldest first.

        Args:
            messages: Full conversation including the system prompt.

        Returns:
            The input unchanged when it fits, otherwise the trimmed list with
            one notice inserted before the re-admitted history.
        """
        messages = list(messages)
        if self.fits(messages):
            return messages

        head, middle, recent = self._partition(messages)
        if not middle:
            return messages

        admitted = self._admit(head, middle, recent)
        dropped = middle[: len(middle) - len(admitted)]
        if not dropped:
            return messages

        notice = self._notice(dropped)
        logger.info(
            "Trimmed conversation history",
            extra={
                "strategy": self.config.strategy.value,
                "dropped": len(dropped),
                "kept": len(head) + len(admitted) + len(recent),
            },
        )
        return head + [notice] + admitted + recent

    def _partition(
        self, messages: List[Message]
    ) -> Tuple[List[Message], List[Message], List[Message]]:
        head: List[Message] = []
        if (
            self.config.preserve_system
            and messages
            and messages[0].role == Role.SYSTEM
        ):
            head = messages[:1]
        rest = messages[len(head):]

        keep = self.config.preserve_recent
        if keep >= len(rest):
            return head, [], rest
        start = len(rest) - keep
        if keep:
            # Keep tool results together with the assistant turn that issued them.
            while start > 0 and rest[start].role == Role.TOOL:
                start -= 1
        return head, rest[:start], rest[start:]

    def _admit(
        self, head: List[Message], middle: List[Message], recent: List[Message]
    ) -> List[Message]:
        """Walks backward from the newest middle message while it fits."""

        reserved = head + [truncation_notice(len(middle))] + recent
        if self.config.strategy == ContextStrategy.MESSAGE_COUNT:
            has_room = self._count_predicate(len(reserved))
        else:
            has_room = self._token_predicate(reserved)

        start = len(middle)
        for index in range(len(middle) - 1, -1, -1):
            if not has_room(middle[index]):
                break
            start = index

        if start == len(middle) and not recent:
            # Nothing recent survives; emit the newest message regardless of size.
            start = len(middle) - 1

        admitted = middle[start:]
        while admitted and admitted[0].role == Role.TOOL:
            admitted = admitted[1:]
        if admitted or recent or start == len(middle):
            return admitted

        # Only tool results fit; keep them with the assistant turn that issued them.
        while start > 0 and middle[start].role == Role.TOOL:
            start -= 1
        return middle[start:]

    def _token_predicate(
        self, reserved: List[Message]
    ) -> Callable[[Message], bool]:
        used = [
            CONVERSATION_OVERHEAD + sum(estimate_message(m) for m in reserved)
        ]

        def has_room(message: Message) -> bool:
            cost = estimate_message(message)
            if used[0] + cost > self.config.max_tokens:
                return False
            used[0] += cost
            return True

        return has_room

    def _count_predicate(self, reserved_count: int) -> Callable[[Message], bool]:
        used = [reserved_count]

        def has_room(message: Message) -> bool:
            if used[0] + 1 > self.config.max_messages:
                return False
            used[0] += 1
            return True

        return has_room

    def _notice(self, dropped: List[Message]) -> Message:
        if (
            self.config.strategy == ContextStrategy.SUMMARIZATION
            and self.summarizer is not None
        ):
            summary = self.summarizer.summarize(dropped).strip()
            if summary:
                return summary_notice(len(dropped), summary)
        return truncation_notice(len(dropped))


class ProviderSummarizer:
    """
    Summarizes dropped history with one provider call.

    Args:
        provider: The adapter used for the summary request.
        model: Model id for the summary request.
    """

    def __init__(self, provider: ProviderAdapter, model: str) -> None:
        self.provider = provider
        self.model = model

    def summarize(self, messages: Sequence[Message]) -> str:
        transcript = "\n".join(
            f"{message.role.value}: {message.content}"
            for message in messages
            if message.content
        )
        request = [
            Message.system(SUMMARY_INSTRUCTIONS).to_provider_dict(),
            Message.user(transcript).to_provider_dict(),
        ]
        response = ModelResponse.parse(
            self.provider.complete(request, self.model, [])
        )
        logger.debug(
            "Summarized dropped history",
            extra={"model": self.model, "messages": len(messages)},
        )
        return response.text()
