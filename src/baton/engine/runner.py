"""The turn loop driving a run from input to final output."""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from baton.config import Settings
from baton.config_provider import ConfigProvider
from baton.domain.agent import Agent
from baton.domain.exceptions import ConfigurationError, MaxTurnsError, StopRequested
from baton.domain.handoff import HandoffContext
from baton.domain.messages import Message, Role
from baton.domain.run_config import RunConfig
from baton.domain.run_result import RunResult
from baton.domain.step import NextStepFinalOutput, NextStepHandoff, StepResult
from baton.domain.usage import Usage
from baton.engine.step_executor import StepExecutor
from baton.engine.tool_dispatcher import render_output
from baton.engine.tool_use_tracker import ToolUseTracker
from baton.llm.factory import build_provider
from baton.llm.provider import ProviderAdapter

logger = logging.getLogger(__name__)

DEFAULT_MAX_TURNS = 10

RunInput = Union[str, Message, Mapping[str, Any], Sequence[Union[str, Message, Mapping[str, Any]]]]


def normalize_input(value: RunInput) -> List[Message]:
    """
    Converts run input into messages.

    Strings become user messages; mappings are validated as Message fields.
    """
    if isinstance(value, (str, Message, Mapping)):
        items: Sequence[Any] = [value]
    else:
        items = list(value)
    messages: List[Message] = []
    for item in items:
        if isinstance(item, Message):
            messages.append(item)
        elif isinstance(item, str):
            messages.append(Message.user(item))
        elif isinstance(item, Mapping):
            messages.append(Message.model_validate(dict(item)))
        else:
            raise ConfigurationError(
                f"Unsupported input item type: {type(item).__name__}"
            )
    return messages


class Runner:
    """
    Drives steps until a final output, an error, or the turn budget.

    Each call to run owns its conversation, handoff context and tracker, so
    one Runner can serve concurrent runs.

    Args:
        provider: Adapter for model calls.
        step_executor: Overrides the default executor built on the provider.
    """

    def __init__(
        self,
        provider: ProviderAdapter,
        step_executor: Optional[StepExecutor] = None,
    ) -> None:
        self.provider = provider
        self.step_executor = step_executor or StepExecutor(provider)

    def run(
        self,
        input: RunInput,
        agents: Sequence[Agent],
        config: Optional[RunConfig] = None,
        *,
        starting_agent: Optional[Union[Agent, str]] = None,
    ) -> RunResult:
        """
        Executes a run.

        Args:
            input: User text, a message, a message mapping, or a list of these.
            agents: Every agent that may hold control; names must be unique.
            config: Run options.
            starting_agent: Agent (or name) that receives the input; defaults
                to the first agent.

        Returns:
            The RunResult of the completed run.

        Raises:
            ConfigurationError: On duplicate agent names or unknown start agent.
            InputGuardrailTripwire: When an input guardrail rejects the input.
            OutputGuardrailTripwire: When an output guardrail rejects the output.
            StopRequested: When the stop predicate returns True.
            MaxTurnsError: When the turn budget is exhausted.
        """
        config = config or RunConfig()
        agents_by_name = self._index_agents(agents)
        current = self._starting_agent(agents, agents_by_name, starting_agent)
        start = current

        input_messages = normalize_input(input)
        self._check_input(input_messages, config, start)

        max_turns = config.max_turns or start.max_turns or DEFAULT_MAX_TURNS
        context = HandoffContext(current_agent=current)
        tracker = ToolUseTracker()
        conversation: List[Message] = list(input_messages)
        generated: List[Message] = []
        steps: List[StepResult] = []
        usage = Usage()
        turns = 0

        while True:
            if config.stop_predicate is not None and config.stop_predicate():
                logger.info(
                    "Run stopped by predicate",
                    extra={"agent": current.name, "turn": turns},
                )
                raise StopRequested(f"Run stopped before turn {turns + 1}")
            if turns >= max_turns:
                logger.warning(
                    "Turn budget exhausted",
                    extra={"agent": current.name, "max_turns": max_turns},
                )
                raise MaxTurnsError(max_turns)

            turns += 1
            try:
                step = self.step_executor.execute_step(
                    current,
                    conversation,
                    config,
                    context=context,
                    agents=agents_by_name,
                    tracker=tracker,
                    original_input=input_messages,
                    pre_step_items=generated,
                )
            except Exception:
                logger.exception(
                    "Step execution failed",
                    extra={"agent": current.name, "turn": turns},
                )
                raise
            steps.append(step)
            usage = usage.add(step.model_response.usage)
            conversation.extend(step.new_step_items)
            generated.extend(step.new_step_items)

            next_step = step.next_step
            if isinstance(next_step, NextStepHandoff):
                current = next_step.target_agent
            elif isinstance(next_step, NextStepFinalOutput):
                break

        final_output = self._check_output(
            next_step.output, conversation, config, start
        )
        logger.info(
            "Run complete",
            extra={
                "agent": current.name,
                "turns": turns,
                "total_tokens": usage.total_tokens,
            },
        )
        return RunResult(
            messages=tuple(conversation),
            last_agent=current,
            usage=usage,
            turns=turns,
            final_output=final_output,
            handoff_chain=context.handoff_chain,
            shared_context=dict(context.shared_context),
            tool_usage=tracker.summary(),
            step_results=tuple(steps),
        )

    @staticmethod
    def _index_agents(agents: Sequence[Agent]) -> Dict[str, Agent]:
        if not agents:
            raise ConfigurationError("At least one agent is required")
        indexed: Dict[str, Agent] = {}
        for agent in agents:
            if agent.name in indexed:
                raise ConfigurationError(f"Duplicate agent name: {agent.name}")
            indexed[agent.name] = agent
        return indexed

    @staticmethod
    def _starting_agent(
        agents: Sequence[Agent],
        agents_by_name: Mapping[str, Agent],
        starting_agent: Optional[Union[Agent, str]],
    ) -> Agent:
        if starting_agent is None:
            return agents[0]
        name = starting_agent if isinstance(starting_agent, str) else starting_agent.name
        if name not in agents_by_name:
            raise ConfigurationError(f"Starting agent '{name}' is not in the run")
        return agents_by_name[name]

    @staticmethod
    def _check_input(
        messages: Sequence[Message], config: RunConfig, agent: Agent
    ) -> None:
        guardrails = list(config.input_guardrails) + list(agent.input_guardrails)
        for message in messages:
            if message.role != Role.USER:
                continue
            for guardrail in guardrails:
                guardrail.check(message.content or "")

    @staticmethod
    def _check_output(
        output: Any,
        conversation: List[Message],
        config: RunConfig,
        agent: Agent,
    ) -> Any:
        """Runs output guardrails and applies any rewrite to the last reply."""

        guardrails = list(config.output_guardrails) + list(agent.output_guardrails)
        if not guardrails:
            return output
        original = render_output(output)
        text = original
        for guardrail in guardrails:
            text = guardrail.apply(text)
        if text == original:
            return output

        if conversation:
            last = conversation[-1]
            if last.role == Role.ASSISTANT and last.content == original:
                conversation[-1] = last.model_copy(update={"content": text})
        return text


def run(
    input: RunInput,
    agents: Sequence[Agent],
    config: Optional[RunConfig] = None,
    *,
    provider: Optional[ProviderAdapter] = None,
    settings: Optional[Settings] = None,
    starting_agent: Optional[Union[Agent, str]] = None,
) -> RunResult:
    """
    Convenience wrapper around Runner.run.

    Without a provider, settings are loaded and the default provider stack is
    built from them. Without a config, one is derived from the settings.
    """
    if provider is None or config is None:
        settings = settings or ConfigProvider().load()
    if provider is None:
        provider = build_provider(settings)
    if config is None:
        config = RunConfig.from_settings(settings)
    return Runner(provider).run(
        input, agents, config, starting_agent=starting_agent
    )
