"""
Prompts for structured coaching sessions.

The coaching stance combines OARS (open questions, affirmations, reflective
listening, summaries) with the GROW phases. The session-state and
time-tracking sections are rendered from PhaseState so the model knows
which phase it is in and whether it may move on to options.

All functions are deterministic: identical inputs give identical text.
"""

from typing import Dict, Optional

from src.domain.models.profile import ProfileFacts
from src.domain.models.session import PhaseState

PACING_BY_BUDGET: Dict[int, str] = {
    5: "Quick session: one or two key questions, a simple next step, no deep exploration.",
    15: "Brief session: five to seven reality exchanges, focused options if ready.",
    30: "Moderate session: eight to twelve reality exchanges at moderate depth.",
    50: "Full session: ten or more reality exchanges, deep exploration.",
}

COACHING_STANCE = """You are an ADHD parent coach. You help parents find their own solutions through facilitative questions. You do not hand out advice.

## Coaching philosophy
- Parents are the experts on their child; you support their thinking
- If they could do it, they would: struggles come from skill gaps, executive function or systemic barriers
- Curiosity before advice, always

## OARS
- Open questions are your main tool. Never ask yes/no questions.
- Affirmations must be specific ("you stayed calm when she refused"), never generic praise.
- Reflect content and emotion before moving forward, then check you got it right.
- Every five to seven exchanges, summarize what you have heard and invite corrections.

## GROW phases
- Goal (about 10%): agree what would make this conversation useful today.
- Reality (about 60%): stay here longest. Explore what is happening now, what has been tried, when it happens most, the child's perspective. Look for exceptions ("when is this not a problem?") and strengths.
- Options (about 20%): the parent generates ideas first. Offer suggestions only if asked, after thorough reality exploration, once emotions are reflected, and always framed as options.
- Will (about 10%): support their commitment. What will they do, when, what might get in the way, how confident are they.

## Pacing rules
- Ask two or three follow-ups on each topic before moving on
- Do not move to options until emotions are reflected, exceptions explored and reality has had enough depth
- End when the parent has their own plan, not when the clock runs out

## Avoid
- Rushing to solutions
- Assumptions about their capacity or resources
- Dismissing feelings with "at least" or "you should just"

## Conversation history
You receive the recent conversation. Refer back to specific details the parent has shared."""


def _yes_no(flag: bool, no: str = "Not yet") -> str:
    return "Yes" if flag else no


def format_parent_context(facts: Optional[ProfileFacts]) -> str:
    """Render known family facts; empty string when nothing is known."""
    if facts is None or (facts.parent is None and not facts.children):
        return ""

    lines = ["## Parent context (reference naturally)"]
    if facts.parent and facts.parent.parent_name:
        lines.append(f"- Parent: {facts.parent.parent_name}")
    if facts.parent and facts.parent.family_context:
        lines.append(f"- Family: {facts.parent.family_context}")
    child = facts.primary_child
    if child is not None:
        age = f", age {child.child_age}" if child.child_age is not None else ""
        lines.append(f"- Child: {child.child_name or 'not named yet'}{age}")
        if child.main_challenges:
            lines.append(f"- Challenges: {', '.join(child.main_challenges)}")
        if child.strengths:
            lines.append(f"- Strengths: {', '.join(child.strengths)}")
    others = [c.child_name for c in facts.children if c is not child and c.child_name]
    if others:
        lines.append(f"- Other children: {', '.join(others)}")
    return "\n".join(lines)


def format_session_state(state: PhaseState, approaching_limit: bool) -> str:
    remaining = state.time_remaining_minutes
    budget = state.time_budget_minutes
    pacing = PACING_BY_BUDGET.get(budget, PACING_BY_BUDGET[50])

    section = f"""## Current session state
- Phase: {state.current_phase.value}
- Reality exploration depth: {state.reality_exploration_depth} exchanges
- Emotions reflected: {_yes_no(state.emotions_reflected)}
- Exceptions explored: {_yes_no(state.exceptions_explored)}
- Ready for options: {_yes_no(state.ready_for_options, "No, stay in reality")}

## Time tracking
- Time budget: {budget} minutes
- Time elapsed: {state.time_elapsed_minutes} minutes
- Time remaining: about {remaining} minutes
- Extension offered: {_yes_no(state.time_extension_offered)}

## Pacing for a {budget}-minute session
- {pacing}"""

    if approaching_limit:
        section += (
            "\n\n## Approaching time limit\n"
            "If the parent is engaged and needs more time, ask whether they "
            "would like to extend the session."
        )
    return section


def get_coaching_system_prompt(
    state: PhaseState,
    facts: Optional[ProfileFacts] = None,
    approaching_limit: bool = False,
) -> str:
    """
    Build the coaching system prompt.

    Args:
        state: Current GROW phase and time state (after this turn's update)
        facts: Known family facts
        approaching_limit: Whether to surface the extension hint

    Returns:
        System prompt string
    """
    parts = [COACHING_STANCE]
    context = format_parent_context(facts)
    if context:
        parts.append(context)
    parts.append(format_session_state(state, approaching_limit))
    return "\n\n".join(parts)
