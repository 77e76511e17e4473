"""One provider round trip and the state transition it implies."""

import logging
from typing import List, Mapping, Optional, Sequence

from baton.domain.agent import Agent
from baton.domain.context_config import ContextStrategy
from baton.domain.exceptions import ConfigurationError
from baton.domain.handoff import HandoffContext
from baton.domain.messages import Message
from baton.domain.run_config import RunConfig
from baton.domain.step import (
    NextStep,
    NextStepFinalOutput,
    NextStepHandoff,
    NextStepRunAgain,
    StepResult,
)
from baton.engine.behavior_handlers import ToolUseBehaviorHandler
from baton.engine.context_window import (
    ContextWindowManager,
    ProviderSummarizer,
    Summarizer,
)
from baton.engine.handoff_coordinator import HandoffCoordinator
from baton.engine.response_classifier import ClassifiedResponse, classify
from baton.engine.tool_dispatcher import ToolDispatcher, render_output, result_messages
from baton.engine.tool_use_tracker import ToolUseTracker
from baton.llm.provider import ModelResponse, ProviderAdapter

logger = logging.getLogger(__name__)


class StepExecutor:
    """
    Executes a single step: trim, call the provider, classify, act.

    Args:
        provider: Adapter used for every model call.
        dispatcher: Executes ordinary tool calls.
        coordinator: Resolves and executes handoffs.
        summarizer: Overrides the provider-backed summarizer used by the
            summarization strategy.
    """

    def __init__(
        self,
        provider: ProviderAdapter,
        dispatcher: Optional[ToolDispatcher] = None,
        coordinator: Optional[HandoffCoordinator] = None,
        summarizer: Optional[Summarizer] = None,
    ) -> None:
        self.provider = provider
        self.dispatcher = dispatcher or ToolDispatcher()
        self.coordinator = coordinator or HandoffCoordinator()
        self.summarizer = summarizer

    def execute_step(
        self,
        agent: Agent,
        conversation: Sequence[Message],
        config: RunConfig,
        *,
        context: HandoffContext,
        agents: Mapping[str, Agent],
        tracker: ToolUseTracker,
        original_input: Sequence[Message] = (),
        pre_step_items: Sequence[Message] = (),
    ) -> StepResult:
        """
        Runs one step for the active agent.

        Args:
            agent: The active agent.
            conversation: Full history so far, oldest first. Not modified.
            config: Run options.
            context: The run's handoff context.
            agents: Agents of the run keyed by name.
            tracker: The run's tool-use tracker.
            original_input: Messages the run started with.
            pre_step_items: Items generated by earlier steps.

        Returns:
            The StepResult; its new_step_items are to be appended to the
            conversation by the caller.

        Raises:
            ConfigurationError: When neither the agent nor the run names a model.
            ResponseValidationError: When the provider response is malformed.
        """
        model = agent.model or config.model
        if not model:
            raise ConfigurationError(f"No model configured for agent '{agent.name}'")

        request = self._prepare_messages(agent, conversation, config, model)
        tools = [tool.as_openai_tool() for tool in agent.tools]
        tools.extend(self.coordinator.build_handoff_tools(agent))

        logger.debug(
            "Provider request",
            extra={"agent": agent.name, "model": model, "messages": len(request)},
        )
        raw = self.provider.complete(
            [message.to_provider_dict() for message in request], model, tools
        )
        response = ModelResponse.parse(raw)
        classified = classify(response, agent)

        new_items: List[Message] = []
        assistant = classified.assistant_message(agent.name)
        if assistant.content or assistant.tool_calls:
            new_items.append(assistant)

        if classified.has_handoff:
            next_step = self._handle_handoff(
                agent, classified, config, context, agents, tracker, new_items
            )
        elif classified.has_tool_calls:
            next_step = self._handle_tools(
                agent, classified, config, conversation, tracker, new_items
            )
        else:
            next_step = NextStepFinalOutput(output=classified.final_text())

        logger.info(
            "Step complete",
            extra={
                "agent": agent.name,
                "model": model,
                "next_step": type(next_step).__name__,
                "new_items": len(new_items),
            },
        )
        return StepResult(
            original_input=tuple(original_input),
            model_response=response,
            pre_step_items=tuple(pre_step_items),
            new_step_items=tuple(new_items),
            next_step=next_step,
        )

    def _prepare_messages(
        self,
        agent: Agent,
        conversation: Sequence[Message],
        config: RunConfig,
        model: str,
    ) -> List[Message]:
        messages = list(conversation)
        if agent.instructions:
            messages.insert(0, Message.system(agent.instructions))
        context_config = config.context_for(model)
        summarizer = self.summarizer
        if summarizer is None and context_config.strategy == ContextStrategy.SUMMARIZATION:
            summarizer = ProviderSummarizer(self.provider, model)
        return ContextWindowManager(context_config, summarizer).trim(messages)

    def _handle_handoff(
        self,
        agent: Agent,
        classified: ClassifiedResponse,
        config: RunConfig,
        context: HandoffContext,
        agents: Mapping[str, Agent],
        tracker: ToolUseTracker,
        new_items: List[Message],
    ) -> NextStep:
        call = classified.handoff_calls[0]
        if len(classified.handoff_calls) > 1:
            logger.warning(
                "Dropping extra handoff calls",
                extra={
                    "agent": agent.name,
                    "kept": call.name,
                    "dropped": [c.name for c in classified.handoff_calls[1:]],
                },
            )

        # Every retained call id needs a result, so ordinary tools still run.
        results = self.dispatcher.dispatch(
            agent, classified.tool_calls, parallel=config.parallel_tool_calls
        )
        new_items.extend(result_messages(results, agent.name))
        tracker.add_tool_use(agent, [c.name for c in classified.tool_calls])

        resolution = self.coordinator.resolve_call(agent, call, agents)
        if not resolution.resolved:
            logger.warning(
                "Handoff could not be resolved",
                extra={"agent": agent.name, "tool": call.name, "call_id": call.id},
            )
            new_items.append(self.coordinator.failure_message(resolution, agent.name))
            return NextStepRunAgain()

        tracker.add_tool_use(agent, [call.name])
        handoff = resolution.handoff
        target = resolution.target
        self.coordinator.execute(
            agent,
            target,
            resolution.payload,
            context,
            input_filter=handoff.input_filter,
            on_handoff=handoff.on_handoff,
        )
        new_items.append(
            self.coordinator.transfer_message(call, target.name, agent.name)
        )
        return NextStepHandoff(target_agent=target)

    def _handle_tools(
        self,
        agent: Agent,
        classified: ClassifiedResponse,
        config: RunConfig,
        conversation: Sequence[Message],
        tracker: ToolUseTracker,
        new_items: List[Message],
    ) -> NextStep:
        calls = classified.tool_calls
        results = self.dispatcher.dispatch(
            agent, calls, parallel=config.parallel_tool_calls
        )
        new_items.extend(result_messages(results, agent.name))
        tracker.add_tool_use(agent, [c.name for c in calls])

        decision = ToolUseBehaviorHandler.handle(
            agent.tool_use_behavior,
            agent,
            calls,
            results,
            list(conversation) + new_items,
        )
        if decision.should_continue and not decision.done:
            return NextStepRunAgain()
        if decision.record_as_message:
            new_items.append(
                Message.assistant(
                    content=render_output(decision.final_output), agent=agent.name
                )
            )
        return NextStepFinalOutput(output=decision.final_output)
