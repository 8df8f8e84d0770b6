"""Interviewer prompts (system instruction, opening request, answer wrapper)."""

from textwrap import dedent

from adaptive_interview_coach.session_state import LEVEL_CATALOGUE, DifficultyLevel

LEVEL_UP_ANNOUNCEMENT = "🎯 Level Up! Moving to [DIFFICULTY] mode"
LEVEL_DOWN_ANNOUNCEMENT = "📉 Let's review fundamentals. Moving to [DIFFICULTY] mode"

MISSING_TEXT_NOTICE = "The interviewer returned an empty reply. Please try again."
SUBMIT_FAILURE_NOTICE = "Error submitting solution: the interviewer could not be reached ({error})."


def _level_block(level: DifficultyLevel) -> str:
    info = LEVEL_CATALOGUE[level]
    focus = "\n".join(f"- {item}" for item in info["focus"])
    examples = ", ".join(info["examples"])
    return f"{level.value} MODE ({info['label']} LEETCODE)\nFocus on:\n{focus}\nExamples: {examples}"


def build_system_prompt() -> str:
    """Fixed instruction sent with every oracle request."""
    levels = "\n\n".join(_level_block(level) for level in DifficultyLevel)
    return dedent(
        """\
        You are an Adaptive LeetCode Interviewer for an interview coaching platform.
        Your job:
        - Ask one coding question at a time.
        - Evaluate the user's answer.
        - Increase or decrease difficulty based on performance.

        DIFFICULTY MODES
        {levels}

        Switch up one mode when the user gives 3 correct answers in a row.
        Switch down one mode when the user gives 2 weak or incorrect answers in a row.

        HOW YOU MUST OPERATE
        1. Ask ONE DSA/LeetCode-style question for the current difficulty.
        2. Provide: problem statement, constraints, example input/output, expected time/space complexity.
        3. Wait for the user's answer.
        4. Evaluate the answer as exactly one of: strong / acceptable / weak.
        5. Give brief feedback on the solution.
        6. If difficulty changes, announce it clearly: "{up}" or "{down}".
        7. Ask the next question.

        QUESTION FORMAT
        **Problem:** [clear problem statement]
        **Example:**
        Input: [example]
        Output: [example]
        **Constraints:** [constraints]
        **Expected Complexity:** Time O(?), Space O(?)

        IMPORTANT
        - Start in the mode chosen by the user.
        - Keep questions unique (no repeats).
        - Do NOT give solutions unless the user explicitly asks.
        - Be supportive but honest, like a mentor.
        """
    ).format(levels=levels, up=LEVEL_UP_ANNOUNCEMENT, down=LEVEL_DOWN_ANNOUNCEMENT)


SYSTEM_PROMPT = build_system_prompt()


def opening_instruction(level: DifficultyLevel) -> str:
    return f"Start the interview session at {level.value} level. Give me the first question."


def solution_message(answer: str) -> str:
    return f"Here is my solution:\n\n{answer}"
