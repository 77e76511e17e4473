from baton.domain.agent import Agent
from baton.domain.context_config import ContextConfig, ContextStrategy
from baton.domain.guardrail import InputGuardrail, OutputGuardrail
from baton.domain.handoff import (
    RECOMMENDED_PROMPT_PREFIX,
    Handoff,
    HandoffContext,
    HandoffRecord,
    prompt_with_handoff_instructions,
)
from baton.domain.messages import Message, Role, ToolCall
from baton.domain.run_config import RunConfig
from baton.domain.run_result import RunResult
from baton.domain.step import (
    NextStepFinalOutput,
    NextStepHandoff,
    NextStepRunAgain,
    StepResult,
)
from baton.domain.tool import BaseTool, FunctionTool, ToolResult
from baton.domain.tool_use_behavior import (
    CustomToolUseBehavior,
    RunLLMAgain,
    StopAtTools,
    StopOnFirstTool,
    ToolsToFinalOutput,
)
from baton.domain.usage import Usage

__all__ = [
    "Agent",
    "BaseTool",
    "ContextConfig",
    "ContextStrategy",
    "CustomToolUseBehavior",
    "FunctionTool",
    "Handoff",
    "HandoffContext",
    "HandoffRecord",
    "InputGuardrail",
    "Message",
    "NextStepFinalOutput",
    "NextStepHandoff",
    "NextStepRunAgain",
    "OutputGuardrail",
    "RECOMMENDED_PROMPT_PREFIX",
    "Role",
    "RunConfig",
    "RunLLMAgain",
    "RunResult",
    "StepResult",
    "StopAtTools",
    "StopOnFirstTool",
    "ToolCall",
    "ToolResult",
    "ToolsToFinalOutput",
    "Usage",
    "prompt_with_handoff_instructions",
]
