# narrative.py
import logging
from typing import Optional

import openai

from ..config import OPENAI_API_KEY, OPENAI_MAX_TOKENS, OPENAI_MODEL
from ..scheduling import Priority, Task, TimeWindow

logger = logging.getLogger(__name__)

# Optional cost estimate, USD per 1K tokens
COST_PER_1K_INPUT = {
    "gpt-3.5-turbo-0125": 0.0005,
}
COST_PER_1K_OUTPUT = {
    "gpt-3.5-turbo-0125": 0.0015,
}


class NarrativeGenerator:
    """Explains why a slot was chosen for a task. May raise; the engine falls back on failure."""

    def explain(self, task: Task, window: TimeWindow, score: int) -> str:
        raise NotImplementedError


def build_reasoning_prompt(task: Task, window: TimeWindow, score: int) -> str:
    deadline = task.deadline.strftime("%B %d, %Y %H:%M") if task.deadline else "No specific deadline"
    time_of_day = window.start.strftime("%I:%M %p")
    return f"""
You are an expert productivity coach. Provide a specific, actionable explanation for why this time slot is optimal for the given task.

Task Details:
- Task: "{task.title}"
- Description: "{task.description or 'No description provided'}"
- Duration: {task.duration_minutes} minutes
- Priority: {Priority(task.priority).value}
- Category: {task.category or 'General'}
- Deadline: {deadline}

Scheduled Time: {window.start.strftime('%A, %B %d, %Y')} at {time_of_day}
Confidence Score: {round(score)}/100

Explain whether the task lands on its deadline day or earlier and why, how the time of day suits this kind of task,
and any contextual factor (meal times, working hours) that matters.

Reply with 2-3 sentences, no preamble.
"""


class OpenAINarrativeGenerator(NarrativeGenerator):
    def __init__(self, api_key: Optional[str] = None, model: str = OPENAI_MODEL,
                 max_tokens: int = OPENAI_MAX_TOKENS, temperature: float = 0.7, client=None):
        self.client = client or openai.OpenAI(api_key=api_key or OPENAI_API_KEY)
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature

    def explain(self, task: Task, window: TimeWindow, score: int) -> str:
        prompt = build_reasoning_prompt(task, window, score)
        logger.debug(f"Reasoning prompt for '{task.title}': {prompt}")
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )
        message = (response.choices[0].message.content or "").strip()

        usage = response.usage
        if usage is not None:
            input_cost = (usage.prompt_tokens / 1000) * COST_PER_1K_INPUT.get(self.model, 0.001)
            output_cost = (usage.completion_tokens / 1000) * COST_PER_1K_OUTPUT.get(self.model, 0.002)
            logger.debug(f"GPT call: {usage.prompt_tokens} prompt + {usage.completion_tokens} completion tokens, "
                         f"estimated cost ${input_cost + output_cost:.6f} ({self.model})")
        return message


def get_default_narrator() -> Optional[NarrativeGenerator]:
    if not OPENAI_API_KEY:
        logger.info("OPENAI_API_KEY not set, assignments will use templated reasoning")
        return None
    return OpenAINarrativeGenerator()
